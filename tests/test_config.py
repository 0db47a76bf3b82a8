from linktrust.config import DEFAULT_USER_AGENT, load_settings

_VARS = (
    "LINKTRUST_SAFE_BROWSING_API_KEY",
    "LINKTRUST_PROBE_ATTEMPTS",
    "LINKTRUST_BATCH_CAP",
    "LINKTRUST_RETRY_BACKOFF_S",
    "LINKTRUST_LOG_JSON",
    "LINKTRUST_LOG_LEVEL",
    "LINKTRUST_USER_AGENT",
)


def _clear(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("LINKTRUST_SAFE_BROWSING_API_KEY", "   ")

    settings = load_settings()

    assert settings.safe_browsing_api_key is None
    assert settings.probe_attempts == 2
    assert settings.batch_cap == 50
    assert settings.cache_ttl_hours == 24.0
    assert settings.user_agent == DEFAULT_USER_AGENT
    assert settings.log_json is False


def test_values_from_environment(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("LINKTRUST_SAFE_BROWSING_API_KEY", "secret")
    monkeypatch.setenv("LINKTRUST_BATCH_CAP", "10")
    monkeypatch.setenv("LINKTRUST_LOG_JSON", "true")
    monkeypatch.setenv("LINKTRUST_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.safe_browsing_api_key == "secret"
    assert settings.batch_cap == 10
    assert settings.log_json is True
    assert settings.log_level == "DEBUG"


def test_bad_and_out_of_range_values(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("LINKTRUST_PROBE_ATTEMPTS", "0")
    monkeypatch.setenv("LINKTRUST_BATCH_CAP", "lots")
    monkeypatch.setenv("LINKTRUST_RETRY_BACKOFF_S", "-3")

    settings = load_settings()

    assert settings.probe_attempts == 1
    assert settings.batch_cap == 50
    assert settings.retry_backoff_s == 0.0
