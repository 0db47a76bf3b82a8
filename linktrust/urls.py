from __future__ import annotations

import re
from urllib.parse import urlparse

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z\d+.-]*://")

_STRICT_URL_RE = re.compile(
    r"(https?|ftp|file)://[-a-zA-Z0-9+&@#/%?=~_|!:,.;]*[-a-zA-Z0-9+&@#/%=~_|]"
)

_ALLOWED_SCHEMES = ("http", "https", "ftp", "file")


class InvalidUrlError(ValueError):
    """Raised when raw input cannot be turned into a usable URL."""

    def __init__(self, reason: str, raw: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.raw = raw


def normalize_url(raw: str) -> str:
    """Return the canonical form of `raw` or raise InvalidUrlError.

    The canonical form is scheme-prefixed (https by default) with no trailing
    slash. It doubles as the cache key, so the function is pure and
    normalize_url(normalize_url(x)) == normalize_url(x).
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidUrlError("Please provide a URL to check.", raw)

    if not _SCHEME_RE.match(value):
        value = "https://" + value
    else:
        # Schemes are case-insensitive; the canonical form is lowercase.
        scheme = _SCHEME_RE.match(value).group(0)
        value = scheme.lower() + value[len(scheme):]

    value = value.rstrip("/")

    if not _is_well_formed(value):
        raise InvalidUrlError("Malformed URL.", raw)
    if not _STRICT_URL_RE.fullmatch(value):
        raise InvalidUrlError("Unsupported URL format.", raw)

    return value


def _is_well_formed(value: str) -> bool:
    try:
        parsed = urlparse(value)
        # Accessing .port validates it; a bad port raises ValueError.
        parsed.port
    except ValueError:
        return False

    scheme = parsed.scheme.lower()
    if scheme not in _ALLOWED_SCHEMES:
        return False
    if scheme == "file":
        return bool(parsed.path)
    return bool(parsed.hostname)


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
