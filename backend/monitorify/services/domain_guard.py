"""Same-domain enforcement for guest projects.

A guest key may only be used against the host it was issued for. Hosts are
compared after lower-casing and stripping a single leading ``www.``, so
``www.example.com`` and ``example.com`` are the same scope while
``sub.example.com`` is not.

These functions are pure: the HTTP layer uses them to reject requests, and
the job worker runs them again before rendering because job payloads are
client-supplied.
"""
from monitorify.utils.exceptions import DomainNotAllowed
from monitorify.utils.url import extract_host, strip_www


def allowed_host(anchor_url: str) -> str:
    """Return the normalized host a project is scoped to."""
    return strip_www(extract_host(anchor_url))


def hosts_match(anchor_host: str, target_host: str) -> bool:
    """Compare two hostnames under www-stripping equivalence."""
    return strip_www(anchor_host) == strip_www(target_host)


def is_url_allowed(anchor_url: str, target_url: str) -> bool:
    """
    Check whether a target URL belongs to the project's domain.

    Raises:
        InvalidURL: If the target URL cannot be parsed
    """
    target_host = extract_host(target_url)
    return hosts_match(extract_host(anchor_url), target_host)


def ensure_url_allowed(anchor_url: str, target_url: str) -> str:
    """
    Validate a target URL against the project's anchor URL.

    Args:
        anchor_url: The project's website URL
        target_url: The URL requested by the client

    Returns:
        The target URL unchanged

    Raises:
        InvalidURL: If the target URL cannot be parsed
        DomainNotAllowed: If the hosts differ after normalization
    """
    target_host = extract_host(target_url)
    anchor_host = allowed_host(anchor_url)
    if strip_www(target_host) != anchor_host:
        raise DomainNotAllowed(anchor_host)
    return target_url
