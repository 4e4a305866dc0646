"""Immutable snapshots handed to the presentation layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace

from ..config import Config
from .config_model import ClientConfig
from .parity import ParityResult
from .state_machine import RETRYABLE_STATES, LaunchState


@dataclass(frozen=True)
class BootstrapState:
    phase: str
    ready: bool
    retry_enabled: bool
    config_error: str | None
    app_url: str | None
    app_host: str | None
    window_title: str
    window_width: int
    window_height: int
    version: str
    reachable: bool = False
    reachability_error: str | None = None
    web_build_hash: str | None = None
    web_build_time: str | None = None
    required_web_build_hash: str | None = None
    build_parity_ok: bool = False
    build_parity_error: str | None = None
    enforce_web_build: bool = False

    @classmethod
    def initial(cls, version: str) -> BootstrapState:
        return cls(
            phase=LaunchState.INITIALIZING.name,
            ready=False,
            retry_enabled=False,
            config_error=None,
            app_url=None,
            app_host=None,
            window_title=Config.DEFAULT_TITLE,
            window_width=Config.DEFAULT_WIDTH,
            window_height=Config.DEFAULT_HEIGHT,
            version=version,
        )

    @classmethod
    def for_config(cls, config: ClientConfig, version: str, state: LaunchState) -> BootstrapState:
        return cls(
            phase=state.name,
            ready=True,
            retry_enabled=state in RETRYABLE_STATES,
            config_error=None,
            app_url=config.app_url,
            app_host=config.app_host,
            window_title=config.window_title,
            window_width=config.window_width,
            window_height=config.window_height,
            version=version,
            required_web_build_hash=config.min_web_build_hash,
            enforce_web_build=config.enforce_web_build,
        )

    def advance(self, state: LaunchState, **changes) -> BootstrapState:
        """Copy with a new phase; retry availability follows the phase."""
        return replace(
            self,
            phase=state.name,
            retry_enabled=state in RETRYABLE_STATES,
            **changes,
        )

    def with_parity(self, state: LaunchState, result: ParityResult) -> BootstrapState:
        return self.advance(
            state,
            reachable=True,
            reachability_error=None,
            web_build_hash=result.build_hash,
            web_build_time=result.build_time,
            build_parity_ok=result.ok,
            build_parity_error=result.error,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AboutInfo:
    title: str
    version: str
    app_host: str
    app_url: str
    web_build_hash: str | None
    required_web_build_hash: str | None
    phase: str

    def to_dict(self) -> dict:
        return asdict(self)
