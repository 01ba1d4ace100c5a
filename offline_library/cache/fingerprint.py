"""Request fingerprints used as cache keys.

A fingerprint is ``"<METHOD> <normalized-url>"``. Normalization makes
equivalent URLs share a key: scheme and host are lower-cased, default ports
and fragments dropped, an empty path becomes ``/`` and query parameters are
sorted.
"""

import hashlib
from urllib.parse import parse_qsl
from urllib.parse import urlencode
from urllib.parse import urljoin
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

from ..models.requests import InterceptedRequest

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """Normalize an absolute URL for cache lookup.

    Args:
        url: Absolute URL

    Returns:
        Normalized URL

    Example:
        >>> normalize_url("HTTP://Example.com:80/a?b=2&a=1#top")
        'http://example.com/a?a=1&b=2'
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()

    netloc = host
    if parts.port is not None and parts.port != DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{parts.port}"
    if parts.username:
        credentials = parts.username + (f":{parts.password}" if parts.password else "")
        netloc = f"{credentials}@{netloc}"

    path = parts.path or "/"
    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)))

    return urlunsplit((scheme, netloc, path, query, ""))


def fingerprint(request: InterceptedRequest) -> str:
    """Build the cache fingerprint of a request."""
    return f"{request.method} {normalize_url(request.url)}"


def fingerprint_for(url: str, method: str = "GET") -> str:
    """Build a fingerprint from a URL without an intercepted request."""
    return f"{method.upper()} {normalize_url(url)}"


def entry_key(fingerprint_value: str) -> str:
    """Filesystem-safe key for a fingerprint."""
    return hashlib.sha256(fingerprint_value.encode("utf-8")).hexdigest()


def resolve_url(origin: str, path: str) -> str:
    """Resolve a manifest path or route against the application origin.

    Example:
        >>> resolve_url("http://localhost:3000", "/dashboard")
        'http://localhost:3000/dashboard'
    """
    return urljoin(origin.rstrip("/") + "/", path)
