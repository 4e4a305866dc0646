import asyncio

import pytest

from cra_client.core.config_model import ClientConfig, ConfigOutcome
from cra_client.core.controller import LaunchGate
from cra_client.core.errors import ConfigError, ConfigErrorKind, LaunchError, ReachError, ReachErrorKind
from cra_client.core.parity import ParityResult
from cra_client.core.ports import (
    BuildParityChecker,
    ConfigLoader,
    ReachabilityProbe,
    SnapshotListener,
    StartupLog,
    UIFeedback,
    WindowHost,
)
from cra_client.core.state_machine import LaunchState

APP_URL = "http://192.168.50.55:3000"


def _config(min_hash=None, enforce=True):
    return ClientConfig(
        app_url=APP_URL,
        app_host="192.168.50.55",
        allowed_hosts=frozenset({"192.168.50.55"}),
        window_title="CRA Client",
        window_width=1280,
        window_height=800,
        min_web_build_hash=min_hash,
        enforce_web_build=enforce,
    )


class _Loader(ConfigLoader):
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    def load(self):
        self.calls += 1
        return self.outcome


class _Probe(ReachabilityProbe):
    def __init__(self, failures=0):
        self.failures = failures
        self.calls = []
        self.entered = None
        self.release = None

    async def probe(self, url, timeout):
        self.calls.append((url, timeout))
        if self.entered is not None:
            self.entered.set()
            await self.release.wait()
        if self.failures:
            self.failures -= 1
            raise ReachError(
                ReachErrorKind.CONNECTION_REFUSED,
                url,
                f"Could not reach server at {url} (connection refused): refused",
            )


class _Parity(BuildParityChecker):
    def __init__(self, results=None):
        self.results = list(results or [ParityResult("aacb669", None, ok=True)])
        self.calls = []

    async def check(self, url, min_hash, enforce):
        self.calls.append((url, min_hash, enforce))
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class _Window(WindowHost):
    def __init__(self):
        self.guards = []
        self.shown = []

    def arm_navigation_guard(self, guard):
        self.guards.append(guard)

    def show_app(self, url):
        self.shown.append(url)


class _UI(UIFeedback):
    def __init__(self):
        self.calls = []

    def notify(self, title: str, message: str) -> None:
        self.calls.append((title, message))


class _Log(StartupLog):
    def __init__(self):
        self.entries = []

    def record(self, entry: str) -> None:
        self.entries.append(entry)


class _Listener(SnapshotListener):
    def __init__(self):
        self.phases = []

    def publish(self, snapshot) -> None:
        self.phases.append(snapshot.phase)


def _gate(outcome=None, probe=None, parity=None, loader=None, **kwargs):
    outcome = outcome or ConfigOutcome(config=_config(), error=None)
    return LaunchGate(
        loader or _Loader(outcome),
        probe or _Probe(),
        parity or _Parity(),
        version="1.0.0",
        probe_timeout=8.0,
        **kwargs,
    )


def test_gate_happy_path():
    window = _Window()
    listener = _Listener()
    gate = _gate(window=window, listener=listener)

    snapshot = asyncio.run(gate.bootstrap_state())

    assert snapshot.phase == "LAUNCHED"
    assert snapshot.ready is True
    assert snapshot.reachable is True
    assert snapshot.build_parity_ok is True
    assert snapshot.web_build_hash == "aacb669"
    assert snapshot.retry_enabled is False
    assert listener.phases == ["PROBING", "LAUNCHED"]
    assert [g.allowed_hosts for g in window.guards] == [frozenset({"192.168.50.55"})]

    gate.launch_app()
    assert window.shown == [APP_URL]


def test_gate_config_error_is_terminal():
    error = ConfigError(ConfigErrorKind.MISSING_APP_URL, "APP_URL is missing.")
    probe = _Probe()
    gate = _gate(outcome=ConfigOutcome(config=None, error=error), probe=probe, window=_Window())

    snapshot = asyncio.run(gate.bootstrap_state())
    assert snapshot.phase == "CONFIG_ERROR"
    assert snapshot.ready is False
    assert snapshot.config_error == "APP_URL is missing."
    assert snapshot.retry_enabled is False

    after_retry = asyncio.run(gate.retry_connect())
    assert after_retry is snapshot
    assert probe.calls == []

    with pytest.raises(LaunchError):
        gate.launch_app()

    about = gate.get_about_info()
    assert about.app_host == "not-configured"
    assert about.app_url == "not-configured"
    assert about.version == "1.0.0"


def test_gate_unreachable_then_retry_launches():
    probe = _Probe(failures=1)
    window = _Window()
    loader = _Loader(ConfigOutcome(config=_config(), error=None))
    gate = _gate(probe=probe, loader=loader, window=window)

    async def scenario():
        first = await gate.bootstrap_state()
        second = await gate.retry_connect()
        return first, second

    first, second = asyncio.run(scenario())

    assert first.phase == "UNREACHABLE"
    assert first.retry_enabled is True
    assert APP_URL in first.reachability_error
    assert window.guards == []

    assert second.phase == "LAUNCHED"
    assert second.reachability_error is None
    assert len(probe.calls) == 2
    assert loader.calls == 1
    assert len(window.guards) == 1


def test_launch_before_launched_is_rejected():
    gate = _gate(probe=_Probe(failures=1), window=_Window())
    asyncio.run(gate.bootstrap_state())

    with pytest.raises(LaunchError) as excinfo:
        gate.launch_app()
    assert "UNREACHABLE" in str(excinfo.value)


def test_enforced_mismatch_blocks_launch():
    ui = _UI()
    window = _Window()
    parity = _Parity([ParityResult("1111111", None, ok=False, error="Web build mismatch")])
    gate = _gate(outcome=ConfigOutcome(config=_config("aacb669", enforce=True), error=None),
                 parity=parity, ui=ui, window=window)

    snapshot = asyncio.run(gate.bootstrap_state())

    assert snapshot.phase == "PARITY_BLOCKED"
    assert snapshot.reachable is True
    assert snapshot.build_parity_ok is False
    assert snapshot.web_build_hash == "1111111"
    assert snapshot.required_web_build_hash == "aacb669"
    assert snapshot.retry_enabled is True
    assert ui.calls[0][0] == "Web build blocked"
    assert window.guards == []
    assert parity.calls == [(APP_URL, "aacb669", True)]


def test_blocked_parity_can_be_retried():
    parity = _Parity([
        ParityResult("1111111", None, ok=False, error="Web build mismatch"),
        ParityResult("aacb669ff", None, ok=True),
    ])
    gate = _gate(outcome=ConfigOutcome(config=_config("aacb669", enforce=True), error=None),
                 parity=parity, window=_Window())

    async def scenario():
        await gate.bootstrap_state()
        return await gate.retry_connect()

    snapshot = asyncio.run(scenario())

    assert snapshot.phase == "LAUNCHED"
    assert snapshot.build_parity_error is None


def test_unenforced_mismatch_warns_then_launches():
    ui = _UI()
    listener = _Listener()
    window = _Window()
    parity = _Parity([ParityResult("1111111", None, ok=False, error="Web build mismatch")])
    gate = _gate(outcome=ConfigOutcome(config=_config("aacb669", enforce=False), error=None),
                 parity=parity, ui=ui, listener=listener, window=window)

    snapshot = asyncio.run(gate.bootstrap_state())

    assert snapshot.phase == "LAUNCHED"
    assert snapshot.build_parity_ok is False
    assert snapshot.build_parity_error == "Web build mismatch"
    assert listener.phases == ["PROBING", "PARITY_WARNING", "LAUNCHED"]
    assert ui.calls == [("Web build warning", "Web build mismatch")]
    assert len(window.guards) == 1


def test_retry_during_attempt_is_dropped():
    probe = _Probe(failures=1)
    gate = _gate(probe=probe, window=_Window())

    async def scenario():
        first = await gate.bootstrap_state()
        probe.entered = asyncio.Event()
        probe.release = asyncio.Event()
        task = asyncio.create_task(gate.retry_connect())
        await probe.entered.wait()
        during = await gate.retry_connect()
        probe.release.set()
        final = await task
        return first, during, final

    first, during, final = asyncio.run(scenario())

    assert first.phase == "UNREACHABLE"
    assert during.phase == "PROBING"
    assert final.phase == "LAUNCHED"
    assert len(probe.calls) == 2


def test_concurrent_bootstrap_calls_share_one_attempt():
    probe = _Probe()
    gate = _gate(probe=probe, window=_Window())

    async def scenario():
        probe.entered = asyncio.Event()
        probe.release = asyncio.Event()
        first = asyncio.create_task(gate.bootstrap_state())
        second = asyncio.create_task(gate.bootstrap_state())
        await probe.entered.wait()
        probe.release.set()
        return await asyncio.gather(first, second)

    first, second = asyncio.run(scenario())

    assert first.phase == second.phase == "LAUNCHED"
    assert len(probe.calls) == 1


def test_bootstrap_state_is_idempotent_after_launch():
    probe = _Probe()
    parity = _Parity()
    gate = _gate(probe=probe, parity=parity, window=_Window())

    async def scenario():
        return [await gate.bootstrap_state() for _ in range(3)]

    snapshots = asyncio.run(scenario())

    assert {s.phase for s in snapshots} == {"LAUNCHED"}
    assert len(probe.calls) == 1
    assert len(parity.calls) == 1


def test_startup_log_records_pipeline():
    log = _Log()
    outcome = ConfigOutcome(
        config=_config(),
        error=None,
        diagnostics=("app_url_source=client.env /tmp/client.env APP_URL",),
        warnings=("Could not read /tmp/other.env",),
    )
    gate = _gate(outcome=outcome, startup_log=log, window=_Window())

    asyncio.run(gate.bootstrap_state())

    assert log.entries[0] == "app_url_source=client.env /tmp/client.env APP_URL"
    assert "warning=Could not read /tmp/other.env" in log.entries
    assert "startup_result=ok" in log.entries
    assert f"reachability=ok url={APP_URL}" in log.entries
    assert "navigation_guard=armed allowed_hosts=192.168.50.55" in log.entries
    assert log.entries.index("state=LAUNCHED") < log.entries.index(
        "navigation_guard=armed allowed_hosts=192.168.50.55"
    )


def test_about_info_after_launch():
    gate = _gate(outcome=ConfigOutcome(config=_config("aacb669"), error=None), window=_Window())
    asyncio.run(gate.bootstrap_state())

    about = gate.get_about_info()

    assert about.title == "CRA Client"
    assert about.app_host == "192.168.50.55"
    assert about.app_url == APP_URL
    assert about.web_build_hash == "aacb669"
    assert about.required_web_build_hash == "aacb669"
    assert about.phase == "LAUNCHED"


def test_initialize_without_network():
    probe = _Probe()
    gate = _gate(probe=probe)

    snapshot = gate.initialize()

    assert gate.state is LaunchState.PROBING
    assert snapshot.app_url == APP_URL
    assert snapshot.window_width == 1280
    assert probe.calls == []
    assert gate.initialize() is snapshot
