import json

import httpx
import pytest

from linktrust.classifier import SafeBrowsingClassifier, build_classifier
from linktrust.config import Settings


def safe_browsing_transport(body: dict, status: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_clean_url_is_safe():
    seen: list[httpx.Request] = []
    classifier = SafeBrowsingClassifier("k3y", transport=safe_browsing_transport({}, seen=seen))

    assert await classifier.is_safe("https://example.com") is True

    request = seen[0]
    assert request.method == "POST"
    assert request.url.params["key"] == "k3y"
    payload = json.loads(request.content)
    assert payload["threatInfo"]["threatEntries"] == [{"url": "https://example.com"}]
    assert "SOCIAL_ENGINEERING" in payload["threatInfo"]["threatTypes"]


@pytest.mark.asyncio
async def test_matched_url_is_not_safe():
    body = {"matches": [{"threatType": "MALWARE", "threat": {"url": "https://evil.example"}}]}
    classifier = SafeBrowsingClassifier("k3y", transport=safe_browsing_transport(body))

    assert await classifier.is_safe("https://evil.example") is False


@pytest.mark.asyncio
async def test_http_error_propagates():
    classifier = SafeBrowsingClassifier("bad", transport=safe_browsing_transport({"error": {}}, status=403))

    with pytest.raises(httpx.HTTPStatusError):
        await classifier.is_safe("https://example.com")


def test_build_classifier_needs_api_key():
    assert build_classifier(Settings()) is None
    assert isinstance(build_classifier(Settings(safe_browsing_api_key="abc")), SafeBrowsingClassifier)
