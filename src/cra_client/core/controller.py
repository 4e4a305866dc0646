"""Core orchestration for CRA Client.

Keeps the config -> reachability -> build parity -> launch pipeline in one
place, decoupled from the network, window toolkit and filesystem via ports.
The gate is the single writer of the current BootstrapState; every
transition replaces the snapshot as a whole.
"""

from __future__ import annotations

import asyncio
import logging

from .. import __version__
from ..config import Config
from .bootstrap_state import AboutInfo, BootstrapState
from .config_model import ClientConfig
from .errors import LaunchError, ReachError
from .navigation import NavigationGuard
from .parity import ParityResult
from .ports import (
    BuildParityChecker,
    ConfigLoader,
    ReachabilityProbe,
    SnapshotListener,
    StartupLog,
    UIFeedback,
    WindowHost,
)
from .state_machine import LaunchEvent, LaunchState, LaunchStateMachine

logger = logging.getLogger(__name__)


class LaunchGate:
    """Orchestrates the bootstrap sequence and exposes it to the UI."""

    def __init__(
        self,
        config_loader: ConfigLoader,
        probe: ReachabilityProbe,
        parity: BuildParityChecker,
        window: WindowHost | None = None,
        ui: UIFeedback | None = None,
        startup_log: StartupLog | None = None,
        listener: SnapshotListener | None = None,
        version: str = __version__,
        probe_timeout: float = Config.PROBE_TIMEOUT,
    ):
        self._config_loader = config_loader
        self._probe = probe
        self._parity = parity
        self._window = window
        self._ui = ui
        self._log = startup_log
        self._listener = listener
        self._version = version
        self._probe_timeout = probe_timeout

        self._state = LaunchStateMachine()
        self._snapshot = BootstrapState.initial(version)
        self._config: ClientConfig | None = None
        self._initialized = False
        self._started = False
        self._attempt: asyncio.Future | None = None
        self._guard: NavigationGuard | None = None

    @property
    def state(self) -> LaunchState:
        return self._state.state

    @property
    def snapshot(self) -> BootstrapState:
        return self._snapshot

    @property
    def config(self) -> ClientConfig | None:
        return self._config

    @property
    def navigation_guard(self) -> NavigationGuard | None:
        return self._guard

    def attach_window(self, window: WindowHost) -> None:
        self._window = window

    def initialize(self) -> BootstrapState:
        """Run the Initializing stage once; later calls return the snapshot."""
        if self._initialized:
            return self._snapshot
        self._initialized = True

        outcome = self._config_loader.load()
        for entry in outcome.diagnostics:
            self._record(entry)
        for warning in outcome.warnings:
            self._record(f"warning={warning}")

        if outcome.config is None:
            message = str(outcome.error) if outcome.error else "Runtime configuration is missing."
            self._record(f"startup_result=error:{message}")
            self._transition(LaunchEvent.CONFIG_FAILED, config_error=message)
            return self._snapshot

        self._record("startup_result=ok")
        self._config = outcome.config
        next_state = self._state.transition(LaunchEvent.CONFIG_OK)
        self._publish(BootstrapState.for_config(outcome.config, self._version, next_state))
        return self._snapshot

    async def bootstrap_state(self) -> BootstrapState:
        """Snapshot read; the first call drives the full pipeline."""
        self.initialize()
        if self._config is not None and not self._started:
            self._started = True
            await self._run_attempt()
        elif self._attempt is not None:
            await asyncio.shield(self._attempt)
        return self._snapshot

    async def retry_connect(self) -> BootstrapState:
        """Re-enter Probing from Unreachable or ParityBlocked.

        Ignored while an attempt is in flight or when the current state
        does not allow a retry. Configuration is not re-resolved.
        """
        if self._attempt is not None:
            logger.debug("Retry ignored: a connection attempt is already in flight")
            return self._snapshot
        if not self._state.can(LaunchEvent.RETRY):
            logger.warning("Retry ignored in state %s", self._state.state.name)
            return self._snapshot

        self._record("retry_requested")
        self._transition(
            LaunchEvent.RETRY,
            reachable=False,
            reachability_error=None,
            web_build_hash=None,
            web_build_time=None,
            build_parity_ok=False,
            build_parity_error=None,
        )
        await self._run_attempt()
        return self._snapshot

    def launch_app(self) -> None:
        """Show the remote app; only valid once the gate is Launched."""
        if self._state.state is not LaunchState.LAUNCHED or self._config is None:
            target = self._config.app_url if self._config else "the remote app"
            raise LaunchError(
                f"Cannot open {target} while the client is in state {self._state.state.name}."
            )
        if self._window is None:
            raise LaunchError(f"No window is available to display {self._config.app_url}.")
        self._record(f"launch_app url={self._config.app_url}")
        self._window.show_app(self._config.app_url)

    def get_about_info(self) -> AboutInfo:
        snapshot = self._snapshot
        config = self._config
        if config is None:
            return AboutInfo(
                title=Config.DEFAULT_TITLE,
                version=self._version,
                app_host="not-configured",
                app_url="not-configured",
                web_build_hash=None,
                required_web_build_hash=None,
                phase=snapshot.phase,
            )
        return AboutInfo(
            title=config.window_title,
            version=self._version,
            app_host=config.app_host or "unknown-host",
            app_url=config.app_url,
            web_build_hash=snapshot.web_build_hash,
            required_web_build_hash=config.min_web_build_hash,
            phase=snapshot.phase,
        )

    async def _run_attempt(self) -> None:
        self._attempt = asyncio.ensure_future(self._probe_and_check())
        try:
            await self._attempt
        finally:
            self._attempt = None

    async def _probe_and_check(self) -> None:
        config = self._config
        try:
            await self._probe.probe(config.app_url, self._probe_timeout)
        except ReachError as e:
            self._record(f"reachability=error:{e}")
            self._transition(LaunchEvent.PROBE_FAILED, reachable=False, reachability_error=str(e))
            return
        self._record(f"reachability=ok url={config.app_url}")

        result = await self._parity.check(
            config.app_url, config.min_web_build_hash, config.enforce_web_build
        )
        self._record(
            f"build_parity ok={result.ok} observed={result.build_hash or 'unknown'} "
            f"required={config.min_web_build_hash or 'none'}"
        )

        if result.ok:
            self._transition_parity(LaunchEvent.PARITY_OK, result)
            self._arm_guard()
        elif config.enforce_web_build:
            self._transition_parity(LaunchEvent.PARITY_FAILED, result)
            self._notify("Web build blocked", result.error or "Build parity check failed.")
        else:
            self._transition_parity(LaunchEvent.PARITY_WARNED, result)
            self._notify("Web build warning", result.error or "Build parity check failed.")
            self._transition(LaunchEvent.WARNING_SHOWN)
            self._arm_guard()

    def _arm_guard(self) -> None:
        if self._guard is not None:
            return
        self._guard = NavigationGuard(self._config.allowed_hosts)
        self._record(f"navigation_guard=armed allowed_hosts={self._guard.describe()}")
        if self._window is not None:
            self._window.arm_navigation_guard(self._guard)

    def _transition(self, event: LaunchEvent, **changes) -> None:
        next_state = self._state.transition(event)
        self._publish(self._snapshot.advance(next_state, **changes))

    def _transition_parity(self, event: LaunchEvent, result: ParityResult) -> None:
        next_state = self._state.transition(event)
        self._publish(self._snapshot.with_parity(next_state, result))

    def _publish(self, snapshot: BootstrapState) -> None:
        self._snapshot = snapshot
        self._record(f"state={snapshot.phase}")
        if self._listener is not None:
            self._listener.publish(snapshot)

    def _notify(self, title: str, message: str) -> None:
        logger.warning("%s: %s", title, message)
        if self._ui is not None:
            self._ui.notify(title, message)

    def _record(self, entry: str) -> None:
        if self._log is not None:
            self._log.record(entry)
