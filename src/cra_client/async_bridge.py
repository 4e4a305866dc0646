"""Run launch gate coroutines from window toolkit threads.

pywebview invokes ``js_api`` methods on its own worker threads, while the
launch gate is asyncio code that must run on one loop so that in-flight
attempts are tracked in one place. This module keeps a persistent event
loop in a dedicated thread and lets any thread submit work to it.

    +--------------------+         +----------------------+
    | JS API THREADS     |         | GATE LOOP THREAD     |
    |                    |         |                      |
    | run_sync(coro)     |-------->| asyncio event loop   |
    |     |              |         |   - LaunchGate       |
    |     v              |         |   - httpx requests   |
    | Future.result()    |<--------|   - snapshots        |
    +--------------------+         +----------------------+
"""

import asyncio
import atexit
import logging
import threading
from concurrent.futures import Future
from typing import Any, Coroutine

from .config import Config

logger = logging.getLogger(__name__)


class AsyncBridge:
    """Gate event loop owned by a daemon thread.

    Example:
        bridge = AsyncBridge()
        bridge.start()
        snapshot = bridge.run_sync(gate.bootstrap_state())
        bridge.stop()
    """

    def __init__(self, name: str = "LaunchGate-EventLoop"):
        self.name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        loop = self._loop
        thread = self._thread
        return thread is not None and thread.is_alive() and loop is not None and loop.is_running()

    def start(self) -> None:
        """Start the loop thread; no-op while it is alive."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._ready.clear()
            self._thread = threading.Thread(target=self._serve, name=self.name, daemon=True)
            self._thread.start()
            if not self._ready.wait(timeout=5.0):
                raise RuntimeError(f"Event loop thread {self.name} did not start")
            logger.debug("Started %s", self.name)

    def stop(self) -> None:
        """Stop the loop and join its thread. Safe to call repeatedly."""
        with self._lock:
            loop, thread = self._loop, self._thread
            if loop is not None:
                loop.call_soon_threadsafe(loop.stop)
            if thread is not None:
                thread.join(timeout=5.0)
                self._thread = None
            self._ready.clear()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """Schedule ``coro`` on the gate loop from any thread."""
        loop = self._loop
        if loop is None:
            coro.close()
            raise RuntimeError(f"Event loop thread {self.name} is not running; call start() first")
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def run_sync(
        self, coro: Coroutine[Any, Any, Any], timeout: float | None = Config.GATE_CALL_TIMEOUT
    ) -> Any:
        """Block the calling thread until ``coro`` finishes on the gate loop."""
        return self.submit(coro).result(timeout=timeout)

    def _serve(self):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            _cancel_pending(loop)
            loop.close()
            self._loop = None


def _cancel_pending(loop: asyncio.AbstractEventLoop) -> None:
    pending = asyncio.all_tasks(loop)
    for task in pending:
        task.cancel()
    if pending:
        loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        logger.debug("Cancelled %d pending gate task(s) on shutdown", len(pending))


_shared_bridge: AsyncBridge | None = None
_shared_lock = threading.Lock()


def get_async_bridge() -> AsyncBridge:
    """Process-wide bridge, started on first use and stopped at exit."""
    global _shared_bridge

    with _shared_lock:
        if _shared_bridge is None:
            _shared_bridge = AsyncBridge()
            atexit.register(_stop_at_exit)
        _shared_bridge.start()
        return _shared_bridge


def _stop_at_exit():
    global _shared_bridge
    bridge, _shared_bridge = _shared_bridge, None
    if bridge is None:
        return
    try:
        bridge.stop()
    except RuntimeError as e:
        logger.debug("Event loop shutdown failed: %s", e)


def reset_async_bridge():
    """Stop and forget the process-wide bridge (for testing and shutdown)."""
    global _shared_bridge

    with _shared_lock:
        bridge, _shared_bridge = _shared_bridge, None
        if bridge is not None:
            bridge.stop()
