"""
Candidate URL extraction from free text.

Two passes: full URLs with a scheme first, then bare domains promoted to
https URLs. Garbage or very large input degrades to fewer (or zero)
candidates and never raises.
"""
from __future__ import annotations

import re
from bisect import bisect_right

from .urls import host_of

_URL_RE = re.compile(
    r"\b(?:https?|ftp)://[-a-zA-Z0-9+&@#/%?=~_|!:,.;]*[-a-zA-Z0-9+&@#/%=~_|]",
    re.IGNORECASE,
)

_DOMAIN_RE = re.compile(
    r"\b(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}\b",
    re.IGNORECASE,
)

# Runs of characters a domain match can span. Runs are bounded by non-word
# characters, so word boundaries inside a run match those in the full text.
_DOMAIN_RUN_RE = re.compile(r"[\w.-]+")

# Longest possible hostname; longer runs are not scanned for domains.
_MAX_HOSTNAME_LEN = 253

_IPV4_RE = re.compile(r"\d+\.\d+\.\d+\.\d+")

_KNOWN_PREFIXES = ("http://", "https://", "ftp://")


def _as_text(text: str | bytes | None) -> str:
    if text is None:
        return ""
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return text


def _is_email_part(text: str, start: int, end: int) -> bool:
    before = text[start - 1] if start > 0 else ""
    after = text[end] if end < len(text) else ""
    return before == "@" or after == "@"


def _path_span(url: str, offset: int) -> tuple[int, int] | None:
    """Absolute span of the path component of a URL matched at `offset`."""
    authority_start = url.find("://") + 3
    path_start = url.find("/", authority_start)
    if path_start < 0:
        return None
    stops = [i for i in (url.find("?", path_start), url.find("#", path_start)) if i >= 0]
    path_end = min(stops) if stops else len(url)
    return offset + path_start, offset + path_end


def _in_spans(spans: list[tuple[int, int]], index: int) -> bool:
    # spans are sorted and disjoint
    i = bisect_right(spans, (index, float("inf"))) - 1
    return i >= 0 and spans[i][0] <= index < spans[i][1]


def _domain_matches(text: str):
    for run in _DOMAIN_RUN_RE.finditer(text):
        if run.end() - run.start() > _MAX_HOSTNAME_LEN:
            continue
        for m in _DOMAIN_RE.finditer(run.group(0)):
            yield m.group(0), run.start() + m.start(), run.start() + m.end()


def extract_urls(text: str | bytes | None) -> list[str]:
    """Return candidate URLs in order of first appearance, without duplicates."""
    text = _as_text(text)
    if not text.strip():
        return []

    found: dict[str, None] = {}
    path_spans: list[tuple[int, int]] = []

    for m in _URL_RE.finditer(text):
        url = m.group(0)
        if not url.lower().startswith(_KNOWN_PREFIXES):
            url = "https://" + url
        found.setdefault(url, None)
        span = _path_span(m.group(0), m.start())
        if span is not None:
            path_spans.append(span)

    # Hosts that pass 1 already covers; bare mentions of them add nothing.
    known_hosts = {host_of(u) for u in found}

    for domain, start, end in _domain_matches(text):
        lowered = domain.lower()
        if "@" in domain or _is_email_part(text, start, end):
            continue
        if lowered.startswith("localhost"):
            continue
        if _IPV4_RE.fullmatch(domain):
            continue
        if lowered in known_hosts:
            continue
        # File names in a captured URL's path (page.html) are not domains.
        if _in_spans(path_spans, start):
            continue
        found.setdefault("https://" + domain, None)

    return list(found)
