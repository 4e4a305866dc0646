"""Core ports (interfaces) for CRA Client.

These protocols define the boundaries between the launch gate and the
network, window toolkit and filesystem adapters. They are intentionally
small so the gate can be exercised with plain fakes.
"""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from .bootstrap_state import BootstrapState
    from .config_model import ConfigOutcome
    from .navigation import NavigationGuard
    from .parity import ParityResult


@runtime_checkable
class ConfigLoader(Protocol):
    """Resolve and validate configuration once per process start."""

    def load(self) -> "ConfigOutcome":
        """Return the validated config or the error that prevented it."""


@runtime_checkable
class ReachabilityProbe(Protocol):
    """Single bounded-timeout connectivity check."""

    async def probe(self, url: str, timeout: float) -> None:
        """Return when the server answered; raise ReachError otherwise."""


@runtime_checkable
class BuildParityChecker(Protocol):
    """Compare the server's reported build against a minimum."""

    async def check(self, url: str, min_hash: str | None, enforce: bool) -> "ParityResult":
        """Fetch deploy info and evaluate it; never raises for fetch errors."""


@runtime_checkable
class WindowHost(Protocol):
    """The native window hosting the remote app."""

    def arm_navigation_guard(self, guard: "NavigationGuard") -> None:
        """Install the session allowlist."""

    def show_app(self, url: str) -> None:
        """Navigate the window to the remote app."""


@runtime_checkable
class UIFeedback(Protocol):
    """User-visible notifications."""

    def notify(self, title: str, message: str) -> None:
        """Display a notification."""


@runtime_checkable
class StartupLog(Protocol):
    """Append-only diagnostics sink."""

    def record(self, entry: str) -> None:
        """Append one line."""


@runtime_checkable
class SnapshotListener(Protocol):
    """Receives every bootstrap snapshot, in order."""

    def publish(self, snapshot: "BootstrapState") -> None:
        """Handle a new snapshot."""
