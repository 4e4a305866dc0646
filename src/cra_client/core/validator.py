"""Validation of merged settings into a ClientConfig.

Checks run in a fixed order and stop at the first failure; no partially
valid config is ever returned.
"""

from __future__ import annotations

import re

import httpx

from ..config import Config
from ..platform_utils import BuildProfile
from .config_model import (
    ALLOW_LOCALHOST_RELEASE,
    ALLOWED_HOSTS,
    APP_URL,
    ENFORCE_WEB_BUILD,
    MIN_WEB_BUILD_HASH,
    WINDOW_HEIGHT,
    WINDOW_TITLE,
    WINDOW_WIDTH,
    ClientConfig,
    RawConfig,
)
from .errors import ConfigError, ConfigErrorKind

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "tauri.localhost"})

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}
_HEX_RE = re.compile(r"^[0-9a-f]+$")


def normalize_host(value: str) -> str:
    return value.strip().lower()


def allowlist_host(value: str) -> str:
    """Normalize one allowlist entry; a trailing ``:port`` is dropped."""
    host = normalize_host(value)
    if host.startswith("["):
        return host[1:].partition("]")[0]
    if host.count(":") == 1:
        return host.partition(":")[0]
    return host


def parse_allowed_hosts(value: str) -> frozenset[str]:
    return frozenset(h for h in (allowlist_host(part) for part in value.split(",")) if h)


def parse_bool(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


class ConfigValidator:
    """Turn a RawConfig into a ClientConfig for a given build profile."""

    def __init__(self, profile: BuildProfile):
        self.profile = profile

    def validate(self, raw: RawConfig, diagnostics: list[str] | None = None) -> ClientConfig:
        notes = diagnostics if diagnostics is not None else []

        app_url, app_host = self._check_app_url(raw)
        allowed_hosts = self._check_allowed_hosts(raw)

        allow_localhost_release = self._read_bool(raw, ALLOW_LOCALHOST_RELEASE, False)
        if self.profile is BuildProfile.RELEASE:
            if app_host in LOOPBACK_HOSTS and not allow_localhost_release:
                notes.append("release_localhost_guard=blocked")
                raise ConfigError(
                    ConfigErrorKind.LOCALHOST_NOT_ALLOWED_IN_RELEASE,
                    f"APP_URL host '{app_host}' resolves to localhost in a release build "
                    f"({app_url}). Use a non-localhost target, or set "
                    f"{Config.env_key(ALLOW_LOCALHOST_RELEASE)}=true for diagnostic builds.",
                )
            notes.append("release_localhost_guard=pass")
        else:
            notes.append("release_localhost_guard=debug-skip")

        if app_host not in allowed_hosts:
            raise ConfigError(
                ConfigErrorKind.APP_HOST_NOT_ALLOWLISTED,
                f"ALLOWED_HOSTS ({','.join(sorted(allowed_hosts))}) must include the "
                f"APP_URL host '{app_host}' ({app_url}).",
            )

        min_hash = self._read_min_hash(raw)
        enforce_default = self.profile is BuildProfile.RELEASE
        config = ClientConfig(
            app_url=app_url,
            app_host=app_host,
            allowed_hosts=allowed_hosts,
            window_title=raw.value(WINDOW_TITLE) or Config.DEFAULT_TITLE,
            window_width=self._read_dimension(raw, WINDOW_WIDTH, Config.DEFAULT_WIDTH),
            window_height=self._read_dimension(raw, WINDOW_HEIGHT, Config.DEFAULT_HEIGHT),
            min_web_build_hash=min_hash,
            enforce_web_build=self._read_bool(raw, ENFORCE_WEB_BUILD, enforce_default),
            allow_localhost_release=allow_localhost_release,
        )
        notes.append(f"resolved_app_url={config.app_url}")
        notes.append(f"resolved_allowed_hosts={','.join(config.sorted_hosts())}")
        notes.append(f"required_web_build_hash={min_hash or 'none'}")
        notes.append(f"enforce_web_build={config.enforce_web_build}")
        return config

    def _check_app_url(self, raw: RawConfig) -> tuple[str, str]:
        setting = raw.get(APP_URL)
        if setting is None:
            raise ConfigError(
                ConfigErrorKind.MISSING_APP_URL,
                f"Missing required setting: APP_URL. Set it via {Config.env_key(APP_URL)} "
                "or client.env.",
            )
        text = setting.value.strip()
        try:
            url = httpx.URL(text)
        except httpx.InvalidURL as e:
            raise ConfigError(
                ConfigErrorKind.INVALID_APP_URL,
                f"APP_URL must be a valid URL, got '{text}' from {setting.source}: {e}",
            ) from e
        if url.scheme not in ("http", "https"):
            raise ConfigError(
                ConfigErrorKind.INVALID_APP_URL,
                f"APP_URL must use HTTP or HTTPS, got '{text}' from {setting.source}.",
            )
        host = normalize_host(url.host)
        if not host:
            raise ConfigError(
                ConfigErrorKind.INVALID_APP_URL,
                f"APP_URL must include a host, got '{text}' from {setting.source}.",
            )
        return text, host

    def _check_allowed_hosts(self, raw: RawConfig) -> frozenset[str]:
        setting = raw.get(ALLOWED_HOSTS)
        hosts = parse_allowed_hosts(setting.value) if setting else frozenset()
        if not hosts:
            raise ConfigError(
                ConfigErrorKind.MISSING_ALLOWED_HOSTS,
                "Missing required setting: ALLOWED_HOSTS must include at least one host. "
                f"Set it via {Config.env_key(ALLOWED_HOSTS)} or client.env.",
            )
        return hosts

    def _read_bool(self, raw: RawConfig, key: str, fallback: bool) -> bool:
        setting = raw.get(key)
        if setting is None:
            return fallback
        value = parse_bool(setting.value)
        if value is None:
            raise ConfigError(
                ConfigErrorKind.INVALID_SETTING,
                f"{key} must be a boolean (true/false/1/0), got '{setting.value}' "
                f"from {setting.source}.",
            )
        return value

    def _read_dimension(self, raw: RawConfig, key: str, fallback: int) -> int:
        setting = raw.get(key)
        if setting is None:
            return fallback
        try:
            value = int(float(setting.value))
        except (ValueError, OverflowError):
            value = 0
        if value <= 0:
            raise ConfigError(
                ConfigErrorKind.INVALID_SETTING,
                f"{key} must be a positive number, got '{setting.value}' from {setting.source}.",
            )
        return value

    def _read_min_hash(self, raw: RawConfig) -> str | None:
        setting = raw.get(MIN_WEB_BUILD_HASH)
        if setting is None:
            return None
        value = setting.value.strip().lower()
        if not _HEX_RE.match(value):
            raise ConfigError(
                ConfigErrorKind.INVALID_SETTING,
                f"MIN_WEB_BUILD_HASH must be a hex build hash prefix, got '{setting.value}' "
                f"from {setting.source}.",
            )
        return value
