"""pywebview window adapter and JavaScript bridge."""

from __future__ import annotations

import logging
import threading
from typing import Any

from ..core.navigation import NavigationGuard
from ..shell_page import BOOTSTRAP_HTML, build_init_script, notify_script

logger = logging.getLogger(__name__)


class WebviewHost:
    """WindowHost and UIFeedback ports backed by one pywebview window.

    Until the gate arms the allowlist only the bootstrap page and other
    internal pages may load. Each navigation is checked from
    ``before_load``, before the new page's DOM is built, and again on
    ``loaded``; a blocked page is replaced by the last allowed one.
    """

    def __init__(self, startup_log=None):
        self._window: Any | None = None
        self._guard: NavigationGuard | None = None
        self._fallback_guard = NavigationGuard(())
        self._last_allowed_url: str | None = None
        self._turned_back_url: str | None = None
        self._startup_log = startup_log
        self._lock = threading.Lock()

    def bind(self, window: Any) -> None:
        self._window = window
        window.events.before_load += self._on_before_load
        window.events.loaded += self._on_loaded

    @property
    def guard(self) -> NavigationGuard:
        return self._guard or self._fallback_guard

    def arm_navigation_guard(self, guard: NavigationGuard) -> None:
        with self._lock:
            if self._guard is not None:
                raise RuntimeError("Navigation guard is already armed for this session")
            self._guard = guard

    def show_app(self, url: str) -> None:
        if not self.check_navigation(url):
            raise RuntimeError(f"Refusing to open {url}: host is not allowlisted")
        self._require_window().load_url(url)

    def notify(self, title: str, message: str) -> None:
        if self._window is None:
            return
        try:
            self._window.evaluate_js(notify_script(title, message))
        except Exception:  # JS errors ignored, the snapshot carries the message
            logger.debug("Failed to push notification to webview", exc_info=True)

    def check_navigation(self, url: str) -> bool:
        guard = self.guard
        if guard.allows(url):
            self._last_allowed_url = url
            return True
        logger.warning("Blocked navigation to %s", url)
        if self._startup_log is not None:
            self._startup_log.record(
                f"blocked_navigation url={url} allowed_hosts={guard.describe()}"
            )
        return False

    def _on_before_load(self) -> None:
        window = self._window
        if window is None:
            return
        url = window.get_current_url()
        if url and url == self._turned_back_url:
            return
        previous = self._last_allowed_url
        if url and not self.check_navigation(url):
            self._turn_back(window, url, previous)

    def _on_loaded(self) -> None:
        window = self._window
        if window is None:
            return
        url = window.get_current_url()
        if url and url == self._turned_back_url:
            # Already logged and reverted from before_load
            return
        previous = self._last_allowed_url
        if url and not self.check_navigation(url):
            self._turn_back(window, url, previous)
            return
        self._turned_back_url = None
        window.evaluate_js(build_init_script(self.guard.allowed_hosts))

    def _turn_back(self, window: Any, url: str, previous: str | None) -> None:
        self._turned_back_url = url
        if previous:
            window.load_url(previous)
        else:
            window.load_html(BOOTSTRAP_HTML)

    def _require_window(self) -> Any:
        if self._window is None:
            raise RuntimeError("Window has not been created yet")
        return self._window


class JsApi:
    """Methods exposed to the bootstrap page as ``window.pywebview.api``.

    pywebview calls these on worker threads; each call is forwarded to the
    gate's event loop through the async bridge.
    """

    def __init__(self, gate, bridge):
        self._gate = gate
        self._bridge = bridge

    def bootstrap_state(self) -> dict:
        return self._bridge.run_sync(self._gate.bootstrap_state()).to_dict()

    def retry_connect(self) -> dict:
        return self._bridge.run_sync(self._gate.retry_connect()).to_dict()

    def launch_app(self) -> None:
        self._gate.launch_app()

    def get_about_info(self) -> dict:
        return self._gate.get_about_info().to_dict()
