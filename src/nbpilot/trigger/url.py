"""Source URL validation.

The one input nbpilot relays is an absolute http/https URL. It is
checked before any browser activity so a bad clipboard never opens the
target site.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

from nbpilot.exceptions import InvalidURLError

ALLOWED_SCHEMES = ("http", "https")

_PREVIEW_LEN = 50


def validate_source_url(text: str | None) -> str:
    """Return the normalized form of *text* if it is an http/https URL.

    Surrounding whitespace is stripped, scheme and host are lower-cased
    and an empty path becomes ``/``.

    This is stricter than a browser's URL parser. Text with interior
    whitespace is rejected rather than percent-encoded, and the scheme
    must be followed by ``//`` and a host (``https:example.com`` is
    rejected), so copied prose is never relayed as a URL.

    Raises:
        InvalidURLError: If *text* is empty, does not parse as an absolute
            URL, or uses a scheme other than http/https.
    """
    candidate = (text or "").strip()
    if not candidate:
        raise InvalidURLError("No URL provided (clipboard is empty)")

    preview = candidate[:_PREVIEW_LEN] + ("..." if len(candidate) > _PREVIEW_LEN else "")
    if any(ch.isspace() for ch in candidate):
        raise InvalidURLError(f"Not a valid URL: {preview}")

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        parts.port  # raises ValueError for a malformed port
    except ValueError:
        raise InvalidURLError(f"Not a valid URL: {preview}") from None

    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidURLError(f"Not a valid URL: {preview}")
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidURLError(f"Not an http/https URL ({scheme}:)")
    if not hostname:
        raise InvalidURLError(f"Not a valid URL: {preview}")

    netloc = parts.netloc
    host_start = netloc.rfind("@") + 1
    netloc = netloc[:host_start] + netloc[host_start:].lower()
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))
