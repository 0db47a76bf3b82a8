"""
Shared fixtures for linktrust tests.

Nothing here touches the network: HTTP goes through httpx.MockTransport and
the prober used by evaluator tests is a stub.
"""
from datetime import datetime, timedelta, timezone

import pytest

from linktrust.cache import ResultCache
from linktrust.config import Settings
from linktrust.evaluator import Evaluator
from linktrust.models import (
    CHECK_AGE_MONTHS,
    CHECK_HAS_CONTACT,
    CHECK_HAS_PRIVACY_POLICY,
    CHECK_HTTPS,
    CHECK_SAFE_BROWSING,
    CHECK_VALID_DOMAIN,
    CHECK_VALID_TLS,
    EvaluationResult,
    ProbeOutcome,
)


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class StubProber:
    """Stands in for Prober.run_all; every check succeeds unless overridden."""

    def __init__(self, overrides: dict[str, ProbeOutcome] | None = None, fail_for: set[str] | None = None):
        self.overrides = overrides or {}
        self.fail_for = fail_for or set()
        self.calls: list[str] = []

    async def run_all(self, url: str):
        self.calls.append(url)
        if url in self.fail_for:
            raise RuntimeError(f"probe exploded for {url}")
        outcomes = {
            CHECK_HTTPS: ProbeOutcome.ok(url.startswith("https://")),
            CHECK_VALID_TLS: ProbeOutcome.ok(True),
            CHECK_VALID_DOMAIN: ProbeOutcome.ok(True),
            CHECK_AGE_MONTHS: ProbeOutcome.unknown(-1, "domain age lookup not available"),
            CHECK_HAS_CONTACT: ProbeOutcome.ok(True),
            CHECK_HAS_PRIVACY_POLICY: ProbeOutcome.ok(True),
            CHECK_SAFE_BROWSING: ProbeOutcome.ok(True),
        }
        outcomes.update(self.overrides)
        return outcomes, {name: 0 for name in outcomes}


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def settings():
    return Settings(retry_backoff_s=0.0, probe_timeout_s=0.5, tls_timeout_s=0.5)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def stub_prober():
    return StubProber()


@pytest.fixture
def evaluator(stub_prober, cache):
    return Evaluator(stub_prober, cache, batch_cap=50, batch_concurrency=4)


def make_result(url: str = "https://example.com", score: float = 75.0) -> EvaluationResult:
    return EvaluationResult(
        url=url,
        checks={
            CHECK_HTTPS: True,
            CHECK_VALID_TLS: True,
            CHECK_VALID_DOMAIN: True,
            CHECK_HAS_CONTACT: False,
            CHECK_HAS_PRIVACY_POLICY: False,
            CHECK_SAFE_BROWSING: True,
            CHECK_AGE_MONTHS: -1,
        },
        score=score,
        level="HIGH",
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def result_factory():
    return make_result


@pytest.fixture
def stub_prober_factory():
    return StubProber
