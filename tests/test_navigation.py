import pytest

from cra_client.core.navigation import NavigationDecision, NavigationGuard


@pytest.fixture
def guard():
    return NavigationGuard({"192.168.50.55", "Portal.Example.com"})


def test_blocks_host_outside_allowlist(guard):
    assert guard.decide("https://evil.example.com/phish") is NavigationDecision.BLOCK


def test_allows_allowlisted_host_ignoring_port(guard):
    assert guard.decide("http://192.168.50.55:3000/dashboard") is NavigationDecision.ALLOW
    assert guard.allows("https://192.168.50.55")


def test_host_match_is_case_insensitive(guard):
    assert guard.allows("https://PORTAL.example.COM/login")
    assert guard.allows("http://portal.example.com:8443/")


def test_subdomains_are_not_implied(guard):
    assert not guard.allows("https://evil.portal.example.com/")


@pytest.mark.parametrize(
    "url",
    ["about:blank", "data:text/html,<p>hi</p>", "blob:http://192.168.50.55/123"],
)
def test_internal_pages_are_allowed(guard, url):
    assert guard.allows(url)


@pytest.mark.parametrize("url", ["http://localhost:5173/", "http://127.0.0.1:41234/index.html"])
def test_loopback_pages_are_allowed(guard, url):
    assert guard.allows(url)


@pytest.mark.parametrize(
    "url",
    ["javascript:alert(1)", "file:///etc/passwd", "ftp://192.168.50.55/", "mailto:x@example.com"],
)
def test_other_schemes_are_blocked(guard, url):
    assert not guard.allows(url)


def test_empty_allowlist_only_permits_internal_pages():
    guard = NavigationGuard(())
    assert guard.allows("about:blank")
    assert not guard.allows("http://192.168.50.55:3000")


def test_describe_lists_sorted_hosts(guard):
    assert guard.describe() == "192.168.50.55,portal.example.com"


def test_allowlist_entries_with_ports_are_reduced_to_hosts():
    guard = NavigationGuard(["192.168.50.55:3000"])
    assert guard.allows("http://192.168.50.55:8080/other")
    assert guard.describe() == "192.168.50.55"
