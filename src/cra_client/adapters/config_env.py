"""Layered configuration adapter producing a structured ClientConfig.

Sources, highest precedence first:

    1. process environment (namespaced ``CRA_CLIENT_*`` names only)
    2. ``client.env`` in the current working directory
    3. ``client.env`` next to the executable
    4. ``client.env`` in the per-user data directory

Each setting is taken from the first source that defines it. File sources
accept both the namespaced and the bare legacy names; the process
environment never accepts bare names so unrelated host variables such as
``APP_URL`` are not picked up.
"""

from __future__ import annotations

import io
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv.parser import parse_stream

from ..config import Config
from ..core.config_model import APP_URL, SETTING_KEYS, ConfigOutcome, RawConfig, ResolvedSetting
from ..core.errors import ConfigError, ConfigErrorKind
from ..core.validator import ConfigValidator
from ..platform_utils import BuildProfile, detect_build_profile, executable_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSource:
    """One layer of settings, keyed by bare setting name."""

    name: str
    values: dict[str, ResolvedSetting] = field(default_factory=dict)

    def defines(self, key: str) -> bool:
        return key in self.values


class SourceUnreadable(ConfigError):
    def __init__(self, path: Path, reason: str):
        super().__init__(
            ConfigErrorKind.SOURCE_UNREADABLE,
            f"Could not parse config file '{path}': {reason}. The file was ignored.",
        )
        self.path = path


def parse_client_env(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines; raise ValueError on a malformed line."""
    values: dict[str, str] = {}
    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            raise ValueError(f"malformed line {binding.original.line}: {binding.original.string!r}")
        if binding.key is None:
            continue
        if binding.value is None:
            raise ValueError(f"line {binding.original.line} has no '=': {binding.key!r}")
        values[binding.key.strip()] = binding.value.strip()
    return values


def env_source(environ: Mapping[str, str]) -> ConfigSource:
    values = {}
    for key in SETTING_KEYS:
        env_key = Config.env_key(key)
        value = (environ.get(env_key) or "").strip()
        if value:
            values[key] = ResolvedSetting(value, f"process env {env_key}")
    return ConfigSource("process env", values)


def file_source(path: Path) -> ConfigSource | None:
    """Read one client.env file; ``None`` when it does not exist."""
    if not path.is_file():
        return None
    try:
        parsed = parse_client_env(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise SourceUnreadable(path, str(e)) from e

    values = {}
    for key in SETTING_KEYS:
        for candidate in (Config.env_key(key), key):
            value = parsed.get(candidate, "")
            if value:
                values[key] = ResolvedSetting(value, f"client.env {path} {candidate}")
                break
    return ConfigSource(f"client.env {path}", values)


class ConfigResolver:
    """Merge the four config layers into a RawConfig.

    The per-user file is created on first run and migrated off stale
    defaults; both writes happen at most once per resolver instance.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        cwd_file: Path | None = None,
        exe_file: Path | None = None,
        appdata_file: Path | None = None,
    ):
        self._environ = os.environ if environ is None else environ
        self.cwd_file = cwd_file or Path.cwd() / Config.CONFIG_FILENAME
        self.exe_file = exe_file or executable_dir() / Config.CONFIG_FILENAME
        self.appdata_file = appdata_file or Config.APPDATA_CONFIG
        self._provision_lock = threading.Lock()
        self._provisioned = False
        self._provision_notes: list[str] = []

    def candidate_files(self) -> list[Path]:
        files: list[Path] = []
        seen: set[Path] = set()
        for path in (self.cwd_file, self.exe_file, self.appdata_file):
            key = path.resolve()
            if key not in seen:
                seen.add(key)
                files.append(path)
        return files

    def resolve(self) -> RawConfig:
        diagnostics = list(self._provision())
        warnings: list[str] = []

        sources = [env_source(self._environ)]
        for path in self.candidate_files():
            try:
                source = file_source(path)
            except SourceUnreadable as e:
                logger.warning("%s", e)
                warnings.append(str(e))
                diagnostics.append(f"source_unreadable={path}")
                continue
            if source is not None:
                sources.append(source)

        settings: dict[str, ResolvedSetting] = {}
        for key in SETTING_KEYS:
            for source in sources:
                if source.defines(key):
                    settings[key] = source.values[key]
                    break
            origin = settings[key].source if key in settings else "missing"
            diagnostics.append(f"{key.lower()}_source={origin}")

        return RawConfig(settings=settings, diagnostics=tuple(diagnostics), warnings=tuple(warnings))

    def _provision(self) -> list[str]:
        with self._provision_lock:
            if not self._provisioned:
                self._provisioned = True
                self._provision_notes = self._provision_appdata_file()
            return list(self._provision_notes)

    def _provision_appdata_file(self) -> list[str]:
        path = self.appdata_file
        notes = []
        try:
            if not path.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(Config.default_client_env(), encoding="utf-8")
                logger.info("Created default config file %s", path)
                notes.append(f"first_run=created {path}")
            elif self._migrate_stale_default(path):
                logger.info("Migrated stale APP_URL default in %s", path)
                notes.append(f"migration=rewrote {path}")
        except OSError as e:
            raise ConfigError(
                ConfigErrorKind.PROVISIONING_FAILED,
                f"Could not create or update config file '{path}': {e}",
            ) from e
        return notes

    def _migrate_stale_default(self, path: Path) -> bool:
        try:
            # Read and written as bytes; line endings are preserved
            text = path.read_bytes().decode("utf-8")
            parsed = parse_client_env(text)
        except (UnicodeDecodeError, ValueError):
            # Left for resolve() to report as unreadable
            return False
        if parsed.get(APP_URL) not in Config.STALE_DEFAULT_APP_URLS:
            return False

        lines = text.splitlines(keepends=True)
        for i, line in enumerate(lines):
            key, sep, value = line.partition("=")
            stale = value.strip().strip("\"'") in Config.STALE_DEFAULT_APP_URLS
            if sep and key.strip() == APP_URL and stale:
                ending = line[len(line.rstrip("\r\n")):]
                lines[i] = f"{APP_URL}={Config.DEFAULT_APP_URL}{ending}"
        path.write_bytes("".join(lines).encode("utf-8"))
        return True


class EnvConfigLoader:
    """Resolve then validate; one call per process start."""

    def __init__(self, resolver: ConfigResolver, validator: ConfigValidator):
        self._resolver = resolver
        self._validator = validator

    def load(self) -> ConfigOutcome:
        diagnostics: list[str] = []
        warnings: tuple[str, ...] = ()
        try:
            raw = self._resolver.resolve()
            diagnostics.extend(raw.diagnostics)
            warnings = raw.warnings
            config = self._validator.validate(raw, diagnostics)
        except ConfigError as e:
            logger.error("Configuration error: %s", e)
            return ConfigOutcome(None, e, tuple(diagnostics), warnings)
        return ConfigOutcome(config, None, tuple(diagnostics), warnings)


def load_client_config(profile: BuildProfile | None = None) -> ConfigOutcome:
    return EnvConfigLoader(
        ConfigResolver(),
        ConfigValidator(profile or detect_build_profile()),
    ).load()
