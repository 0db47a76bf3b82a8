"""
Malicious-URL classification backends.

The prober only needs something that answers "is this URL safe?". The one
shipped backend asks the Google Safe Browsing v4 Lookup API.
"""
from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from .config import Settings

logger = structlog.get_logger(__name__)

SAFE_BROWSING_ENDPOINT = "https://safebrowsing.googleapis.com/v4/threatMatches:find"

_THREAT_TYPES = ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE"]


class MaliciousUrlClassifier(Protocol):
    async def is_safe(self, url: str) -> bool:
        """Return False if the URL is flagged as malicious."""
        ...


class SafeBrowsingClassifier:
    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 5.0,
        client_id: str = "linktrust",
        client_version: str = "1.0.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.client_id = client_id
        self.client_version = client_version
        self._transport = transport

    def _payload(self, url: str) -> dict:
        return {
            "client": {"clientId": self.client_id, "clientVersion": self.client_version},
            "threatInfo": {
                "threatTypes": _THREAT_TYPES,
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

    async def is_safe(self, url: str) -> bool:
        # Errors propagate; the caller decides how to fail.
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            res = await client.post(
                SAFE_BROWSING_ENDPOINT,
                params={"key": self.api_key},
                json=self._payload(url),
            )
            res.raise_for_status()
            data = res.json()

        matches = data.get("matches") if isinstance(data, dict) else None
        if matches:
            threat_types = sorted({str(m.get("threatType")) for m in matches if isinstance(m, dict)})
            logger.info("URL flagged by Safe Browsing", url=url, threat_types=threat_types)
            return False
        return True


def build_classifier(settings: Settings) -> MaliciousUrlClassifier | None:
    if not settings.safe_browsing_api_key:
        logger.info("No Safe Browsing API key configured; malicious-URL check will fail open")
        return None
    return SafeBrowsingClassifier(settings.safe_browsing_api_key, timeout=settings.classifier_timeout_s)
