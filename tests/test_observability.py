import json
import logging

import pytest
import structlog

from linktrust.observability import configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_json_logging_emits_structured_lines(capsys, restore_logging):
    configure_logging("INFO", json_output=True)

    structlog.get_logger("linktrust.test").info("URL evaluated", url="https://example.com", score=95.0)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "URL evaluated"
    assert event["url"] == "https://example.com"
    assert event["level"] == "info"
    assert event["logger"] == "linktrust.test"


def test_level_filters_debug(capsys, restore_logging):
    configure_logging("WARNING", json_output=True)

    structlog.get_logger("linktrust.test").info("quiet")

    assert capsys.readouterr().err == ""
