"""Navigation guard confining the hosted window to the allowlist."""

from __future__ import annotations

from enum import Enum

import httpx

from .validator import LOOPBACK_HOSTS, allowlist_host, normalize_host

# Schemes that never leave the window (blank pages, inline content)
INTERNAL_SCHEMES = frozenset({"about", "data", "blob"})


class NavigationDecision(Enum):
    ALLOW = "allow"
    BLOCK = "block"


class NavigationGuard:
    """Allow or block a URL by exact, case-insensitive host match.

    Ports are ignored. Loopback hosts serving the bootstrap page are always
    allowed. The allowlist is fixed at construction.
    """

    def __init__(self, allowed_hosts):
        self._allowed_hosts = frozenset(allowlist_host(h) for h in allowed_hosts if h.strip())

    @property
    def allowed_hosts(self) -> frozenset[str]:
        return self._allowed_hosts

    def decide(self, url: str) -> NavigationDecision:
        scheme, sep, _ = url.strip().partition(":")
        if sep and scheme.lower() in INTERNAL_SCHEMES:
            return NavigationDecision.ALLOW
        try:
            parsed = httpx.URL(url.strip())
        except httpx.InvalidURL:
            return NavigationDecision.BLOCK
        if parsed.scheme.lower() not in ("http", "https"):
            return NavigationDecision.BLOCK
        host = normalize_host(parsed.host)
        if host and (host in LOOPBACK_HOSTS or host in self._allowed_hosts):
            return NavigationDecision.ALLOW
        return NavigationDecision.BLOCK

    def allows(self, url: str) -> bool:
        return self.decide(url) is NavigationDecision.ALLOW

    def describe(self) -> str:
        return ",".join(sorted(self._allowed_hosts))
