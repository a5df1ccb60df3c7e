import pytest

from monitorify.services.domain_guard import allowed_host, ensure_url_allowed, hosts_match, is_url_allowed
from monitorify.utils.exceptions import DomainNotAllowed, InvalidURL
from monitorify.utils.url import normalize_and_validate_url


def test_www_prefix_is_equivalent():
    assert is_url_allowed("https://www.example.com/", "https://example.com/about")
    assert is_url_allowed("https://example.com/", "http://WWW.Example.com/pricing?x=1")


def test_subdomain_is_a_different_scope():
    assert not is_url_allowed("https://example.com/", "https://blog.example.com/")
    assert not hosts_match("example.com", "example.com.evil.io")


def test_allowed_host_strips_single_www():
    assert allowed_host("https://www.Example.com/x") == "example.com"
    assert allowed_host("https://www.www.example.com/") == "www.example.com"


def test_ensure_url_allowed_reports_allowed_host():
    with pytest.raises(DomainNotAllowed) as exc:
        ensure_url_allowed("https://www.example.com/", "https://other.com/")
    assert exc.value.message == "URL domain not allowed. Allowed: example.com"


def test_ensure_url_allowed_returns_target():
    target = "https://example.com/docs"
    assert ensure_url_allowed("https://www.example.com", target) == target


@pytest.mark.parametrize("bad", ["", "not a url", "/relative/path"])
def test_unparseable_target_is_invalid(bad):
    with pytest.raises(InvalidURL):
        ensure_url_allowed("https://example.com", bad)


def test_normalize_drops_fragment_and_lowercases_host():
    assert normalize_and_validate_url("  HTTPS://Example.COM#top ") == "https://example.com/"
    assert normalize_and_validate_url("https://example.com/a?b=1#c") == "https://example.com/a?b=1"


def test_normalize_requires_http_scheme():
    with pytest.raises(InvalidURL) as exc:
        normalize_and_validate_url("ftp://example.com")
    assert "http://" in exc.value.message


def test_normalize_can_reject_localhost():
    assert normalize_and_validate_url("http://localhost:3000") == "http://localhost:3000/"
    with pytest.raises(InvalidURL):
        normalize_and_validate_url("http://127.0.0.1/", allow_local=False)


def test_www_equivalence_on_subdomain_anchor():
    anchor = "https://shop.example.com"
    assert ensure_url_allowed(anchor, "https://www.shop.example.com/page")
    with pytest.raises(DomainNotAllowed):
        ensure_url_allowed(anchor, "https://example.com/page")
