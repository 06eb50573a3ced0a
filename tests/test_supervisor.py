"""Tests for ProcessGuard: bootstrap, ticking, action dispatch and the loop itself."""

from __future__ import annotations

import signal

import psutil
import pytest

from procguard.supervisor import ProcessGuard
from procguard.supervisor.reconcile import Launch, TerminateManaged

from conftest import FakeSnapshotProvider, make_config


def make_guard(snapshots, executor, config=None, on_call=None):
    provider = FakeSnapshotProvider(snapshots, on_call=on_call)
    return ProcessGuard(config or make_config(), snapshot_provider=provider, executor=executor)


class TestInitialize:
    def test_launches_immediately_when_nothing_runs(self, executor):
        guard = make_guard([[(1, "explorer.exe")]], executor)
        guard.initialize_supervision()
        assert executor.calls == [("launch", "start-b", ("--x",))]
        assert guard.known_pids == frozenset()

    def test_seeds_known_from_running_processes(self, executor):
        guard = make_guard([[(10, "b.exe"), (11, "a.exe")]], executor)
        guard.initialize_supervision()
        assert executor.calls == []
        assert guard.known_pids == {10, 11}


class TestRunTick:
    def test_scenario(self, executor):
        guard = make_guard([
            [],
            [(10, "b.exe")],
            [(10, "b.exe"), (11, "a.exe")],
        ], executor)
        guard.initialize_supervision()
        assert guard.run_tick() == []
        assert guard.run_tick() == [TerminateManaged(trigger_pid=11, trigger_name="a.exe")]
        assert executor.calls == [
            ("launch", "start-b", ("--x",)),
            ("terminate", "b.exe"),
        ]

    def test_terminate_resolves_by_managed_name(self, executor):
        guard = make_guard([[(10, "B.EXE")], [(10, "B.EXE"), (30, "A.EXE")]], executor)
        guard.initialize_supervision()
        guard.run_tick()
        assert executor.calls == [("terminate", "b.exe")]

    def test_snapshot_failure_skips_tick(self, executor):
        guard = make_guard([
            [(10, "b.exe")],
            psutil.AccessDenied(),
            [(10, "b.exe")],
        ], executor)
        guard.initialize_supervision()
        assert guard.run_tick() == []
        assert guard.known_pids == {10}
        assert guard.run_tick() == []
        assert executor.calls == []

    def test_failed_bootstrap_is_retried_on_first_tick(self, executor):
        guard = make_guard([OSError("no proc"), [(11, "a.exe")]], executor)
        guard.initialize_supervision()
        assert guard.known_pids is None
        assert guard.run_tick() == []
        assert guard.known_pids == {11}

    def test_repeated_empty_polls_keep_launching(self, executor):
        guard = make_guard([[]], executor)
        guard.initialize_supervision()
        guard.run_tick()
        guard.run_tick()
        assert [c[0] for c in executor.calls] == ["launch", "launch", "launch"]


class TestSupervisionLoop:
    def test_runs_until_stopped(self, executor):
        guard = None

        def stop_after_third_snapshot(calls):
            if calls == 3:
                guard.stop()

        config = make_config(interval_seconds=1)
        guard = make_guard([[]], executor, config=config, on_call=stop_after_third_snapshot)
        # Don't actually sleep between polls
        guard.shutdown_signal_received.wait = lambda timeout=None: guard.shutdown_signal_received.is_set()

        guard.supervision_loop()

        assert guard.snapshot_provider.calls == 3
        assert executor.calls == [("launch", "start-b", ("--x",))] * 3

    def test_stop_before_first_interval(self, executor):
        guard = make_guard([[(10, "b.exe")]], executor)
        guard.shutdown_signal_received.wait = lambda timeout=None: True
        guard.supervision_loop()
        assert guard.snapshot_provider.calls == 1

    def test_execute_dispatches_actions_in_order(self, executor):
        guard = make_guard([[]], executor)
        guard.execute([
            TerminateManaged(trigger_pid=1, trigger_name="a.exe"),
            Launch(command="x", arguments=("y",)),
        ])
        assert executor.calls == [("terminate", "b.exe"), ("launch", "x", ("y",))]


class TestSignals:
    @pytest.fixture
    def saved_handlers(self):
        previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
        yield
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    def test_signal_sets_shutdown_event(self, executor, saved_handlers, signum):
        guard = make_guard([[]], executor)
        guard.install_signal_handlers()
        assert not guard.shutdown_signal_received.is_set()
        signal.getsignal(signum)(signum, None)
        assert guard.shutdown_signal_received.is_set()

