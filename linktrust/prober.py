from __future__ import annotations

import asyncio
import re
import socket
import ssl
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from urllib.parse import urlparse

import httpx
import structlog

from .classifier import MaliciousUrlClassifier
from .config import Settings
from .models import (
    CHECK_AGE_MONTHS,
    CHECK_HAS_CONTACT,
    CHECK_HAS_PRIVACY_POLICY,
    CHECK_HTTPS,
    CHECK_SAFE_BROWSING,
    CHECK_VALID_DOMAIN,
    CHECK_VALID_TLS,
    UNKNOWN_AGE_MONTHS,
    ProbeOutcome,
)

logger = structlog.get_logger(__name__)

CONTACT_PATHS = (
    "/contact",
    "/contacts",
    "/contact-us",
    "/contactus",
    "/about/contact",
    "/info/contact",
    "/feedback",
)

PRIVACY_PATHS = (
    "/privacy",
    "/privacy-policy",
    "/privacypolicy",
    "/privacy_policy",
    "/policy",
    "/legal/privacy",
)

_DOMAIN_RE = re.compile(r"((?!-)[A-Za-z0-9-]{1,63}(?<!-)\.)+[A-Za-z]{2,6}")

Sleep = Callable[[float], Awaitable[Any]]


def _fetch_peer_cert(hostname: str, port: int, timeout: float) -> dict:
    ctx = ssl.create_default_context()
    with socket.create_connection((hostname, port), timeout=timeout) as sock:
        with ctx.wrap_socket(sock, server_hostname=hostname) as ssock:
            return ssock.getpeercert() or {}


def _cert_not_after(cert: dict) -> datetime | None:
    not_after = cert.get("notAfter")
    if not not_after:
        return None
    return datetime.fromtimestamp(ssl.cert_time_to_seconds(not_after), tz=timezone.utc)


class Prober:
    """Network-observable checks against a single normalized URL.

    Every probe converts its own failures into a ProbeOutcome, so callers
    never see exceptions from here. Probes hold no mutable state and can run
    concurrently.
    """

    def __init__(
        self,
        settings: Settings,
        classifier: MaliciousUrlClassifier | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings
        self.classifier = classifier
        self._transport = transport
        self._sleep = sleep

    def check_https(self, url: str) -> ProbeOutcome:
        try:
            return ProbeOutcome.ok(urlparse(url).scheme == "https")
        except ValueError as e:
            return ProbeOutcome.failed(False, str(e))

    async def check_tls_validity(self, url: str) -> ProbeOutcome:
        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
            port = parsed.port or 443
        except ValueError as e:
            return ProbeOutcome.failed(False, f"unparseable URL: {e}")

        if parsed.scheme != "https":
            return ProbeOutcome.ok(False)
        if not hostname:
            return ProbeOutcome.failed(False, "URL has no host")

        try:
            # The socket timeout does not cover name resolution.
            cert = await asyncio.wait_for(
                asyncio.to_thread(_fetch_peer_cert, hostname, port, self.settings.tls_timeout_s),
                self.settings.tls_timeout_s + 1,
            )
            expires = _cert_not_after(cert)
        except asyncio.TimeoutError:
            logger.debug("TLS check timed out", url=url)
            return ProbeOutcome.failed(False, "TLS handshake timed out")
        except (OSError, ValueError) as e:
            # ssl.SSLError and socket timeouts are OSErrors.
            logger.debug("TLS probe failed", url=url, error=str(e))
            return ProbeOutcome.failed(False, f"TLS handshake failed: {e}")

        if expires is None:
            return ProbeOutcome.failed(False, "certificate has no expiry date")
        return ProbeOutcome.ok(datetime.now(timezone.utc) < expires)

    def validate_domain_syntax(self, url: str) -> ProbeOutcome:
        try:
            host = urlparse(url).hostname or ""
        except ValueError as e:
            return ProbeOutcome.failed(False, str(e))
        return ProbeOutcome.ok(bool(_DOMAIN_RE.fullmatch(host)))

    async def probe_path_exists(
        self,
        base_url: str,
        candidate_paths: tuple[str, ...] | list[str],
        max_attempts: int,
    ) -> ProbeOutcome:
        """HEAD each candidate path under `base_url`, retrying the whole list.

        True on the first 2xx/3xx response. Rounds are separated by a fixed
        backoff that suspends the coroutine rather than blocking a thread.
        """
        headers = {"user-agent": self.settings.user_agent}
        got_response = False
        last_error: str | None = None

        async with httpx.AsyncClient(
            timeout=self.settings.probe_timeout_s,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for attempt in range(max_attempts):
                for path in candidate_paths:
                    target = base_url + path
                    try:
                        res = await client.head(target, headers=headers)
                    except (httpx.HTTPError, httpx.InvalidURL) as e:
                        last_error = f"{type(e).__name__}: {e}"
                        logger.debug("Path probe failed", url=target, attempt=attempt + 1, error=last_error)
                        continue
                    got_response = True
                    if 200 <= res.status_code < 400:
                        return ProbeOutcome.ok(True)

                if attempt < max_attempts - 1:
                    await self._sleep(self.settings.retry_backoff_s)

        if not got_response and last_error is not None:
            return ProbeOutcome.failed(False, last_error)
        return ProbeOutcome.ok(False)

    async def check_malicious_url(self, url: str) -> ProbeOutcome:
        """True means safe. Fails open: no classifier or a broken one counts as safe."""
        if self.classifier is None:
            return ProbeOutcome.unknown(True, "no classifier configured")
        try:
            return ProbeOutcome.ok(bool(await self.classifier.is_safe(url)))
        except Exception as e:
            logger.warning("Malicious-URL classifier failed", url=url, error=str(e))
            return ProbeOutcome.failed(True, f"classifier error: {e}")

    def domain_age_months(self, url: str) -> ProbeOutcome:
        return ProbeOutcome.unknown(UNKNOWN_AGE_MONTHS, "domain age lookup not available")

    async def run_all(self, url: str) -> tuple[dict[str, ProbeOutcome], dict[str, int]]:
        """Run every probe for `url` concurrently.

        Returns (outcomes by check name, elapsed milliseconds by check name).
        """
        timings: dict[str, int] = {}

        async def timed(name: str, coro: Awaitable[ProbeOutcome]) -> tuple[str, ProbeOutcome]:
            start = time.perf_counter()
            try:
                return name, await coro
            finally:
                timings[name] = int((time.perf_counter() - start) * 1000)

        async def done(outcome: ProbeOutcome) -> ProbeOutcome:
            return outcome

        attempts = self.settings.probe_attempts
        pairs = await asyncio.gather(
            timed(CHECK_HTTPS, done(self.check_https(url))),
            timed(CHECK_VALID_TLS, self.check_tls_validity(url)),
            timed(CHECK_VALID_DOMAIN, done(self.validate_domain_syntax(url))),
            timed(CHECK_AGE_MONTHS, done(self.domain_age_months(url))),
            timed(CHECK_HAS_CONTACT, self.probe_path_exists(url, CONTACT_PATHS, attempts)),
            timed(CHECK_HAS_PRIVACY_POLICY, self.probe_path_exists(url, PRIVACY_PATHS, attempts)),
            timed(CHECK_SAFE_BROWSING, self.check_malicious_url(url)),
        )
        return dict(pairs), timings
