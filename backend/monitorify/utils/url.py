"""URL utility functions."""
import re
from urllib.parse import urlsplit, urlunsplit, SplitResult

from monitorify.utils.exceptions import InvalidURL

_HTTP_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_LOCAL_HOSTS = {"localhost", "127.0.0.1"}


def parse_absolute_url(value: str) -> SplitResult:
    """
    Parse an absolute URL.

    Raises:
        InvalidURL: If the value is empty, relative, or has no hostname
    """
    if not value or not isinstance(value, str):
        raise InvalidURL("URL is required.")
    try:
        parts = urlsplit(value.strip())
        hostname = parts.hostname
    except ValueError:
        raise InvalidURL("Invalid URL format.")
    if not parts.scheme or not hostname:
        raise InvalidURL("Invalid URL format.")
    return parts


def extract_host(value: str) -> str:
    """Return the lower-cased hostname of an absolute URL."""
    return parse_absolute_url(value).hostname.lower()


def strip_www(host: str) -> str:
    """Lower-case a hostname and drop one leading 'www.'."""
    host = (host or "").lower()
    return host[4:] if host.startswith("www.") else host


def normalize_and_validate_url(value: str, allow_local: bool = True) -> str:
    """
    Validate a client-supplied http(s) URL and return its canonical form.

    The fragment is removed, the host is lower-cased and an empty path
    becomes "/".

    Args:
        value: Raw URL from the request
        allow_local: Whether localhost URLs are accepted

    Returns:
        Normalized URL string

    Raises:
        InvalidURL: If the URL is missing, not http(s), or malformed
    """
    if not value or not isinstance(value, str) or not value.strip():
        raise InvalidURL("URL is required.")

    trimmed = value.strip()
    if not _HTTP_SCHEME_RE.match(trimmed):
        raise InvalidURL("URL must start with http:// or https://.")

    parts = parse_absolute_url(trimmed)
    host = parts.hostname.lower()
    if not allow_local and host in _LOCAL_HOSTS:
        raise InvalidURL("Localhost URLs are not allowed.")

    netloc = parts.netloc if "@" in parts.netloc else parts.netloc.lower()
    return urlunsplit((parts.scheme.lower(), netloc, parts.path or "/", parts.query, ""))
