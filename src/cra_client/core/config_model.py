"""Core configuration model (structured view)."""

from __future__ import annotations

from dataclasses import dataclass, field

# Bare setting names as they appear in client.env
APP_URL = "APP_URL"
ALLOWED_HOSTS = "ALLOWED_HOSTS"
WINDOW_TITLE = "WINDOW_TITLE"
WINDOW_WIDTH = "WINDOW_WIDTH"
WINDOW_HEIGHT = "WINDOW_HEIGHT"
MIN_WEB_BUILD_HASH = "MIN_WEB_BUILD_HASH"
ENFORCE_WEB_BUILD = "ENFORCE_WEB_BUILD"
ALLOW_LOCALHOST_RELEASE = "ALLOW_LOCALHOST_RELEASE"

SETTING_KEYS = (
    APP_URL,
    ALLOWED_HOSTS,
    WINDOW_TITLE,
    WINDOW_WIDTH,
    WINDOW_HEIGHT,
    MIN_WEB_BUILD_HASH,
    ENFORCE_WEB_BUILD,
    ALLOW_LOCALHOST_RELEASE,
)


@dataclass(frozen=True)
class ResolvedSetting:
    value: str
    source: str


@dataclass(frozen=True)
class RawConfig:
    """Merged, untyped settings with the origin of each value."""

    settings: dict[str, ResolvedSetting] = field(default_factory=dict)
    diagnostics: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def get(self, key: str) -> ResolvedSetting | None:
        return self.settings.get(key)

    def value(self, key: str) -> str | None:
        setting = self.settings.get(key)
        return setting.value if setting else None


@dataclass(frozen=True)
class ClientConfig:
    app_url: str
    app_host: str
    allowed_hosts: frozenset[str]
    window_title: str
    window_width: int
    window_height: int
    min_web_build_hash: str | None
    enforce_web_build: bool
    allow_localhost_release: bool = False

    def sorted_hosts(self) -> list[str]:
        return sorted(self.allowed_hosts)


@dataclass(frozen=True)
class ConfigOutcome:
    """Result of the Initializing stage: a config or the reason there is none."""

    config: ClientConfig | None
    error: Exception | None
    diagnostics: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
