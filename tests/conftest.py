"""Shared test fixtures: scripted snapshots and a recording executor. No real processes."""

from __future__ import annotations

import pytest

from procguard.config import ExecutionConfig, GuardConfig, ProcessesConfig, normalize_config
from procguard.supervisor.reconcile import ProcessEntry


class FakeSnapshotProvider:
    """Returns scripted snapshots in order, repeating the last one when exhausted.

    A snapshot given as an Exception instance is raised instead of returned.
    """

    def __init__(self, snapshots: list | None = None, on_call=None):
        self._snapshots = list(snapshots or [[]])
        self._on_call = on_call
        self.calls = 0

    def list_processes(self):
        index = min(self.calls, len(self._snapshots) - 1)
        self.calls += 1
        if self._on_call:
            self._on_call(self.calls)
        snapshot = self._snapshots[index]
        if isinstance(snapshot, Exception):
            raise snapshot
        return [ProcessEntry(pid, name) for pid, name in snapshot]


class RecordingExecutor:
    """Records launch/terminate requests instead of touching the OS."""

    def __init__(self):
        self.calls: list[tuple] = []

    def launch(self, command, arguments):
        self.calls.append(("launch", command, tuple(arguments)))
        return 4242

    def terminate(self, name):
        self.calls.append(("terminate", name))
        return True


def make_config(observe_names=("a.exe",), executable_name="b.exe", interval_seconds=1,
                command="start-b", arguments=("--x",)) -> GuardConfig:
    return normalize_config(GuardConfig(
        processes=ProcessesConfig(
            observe_names=frozenset(observe_names),
            executable_name=executable_name,
        ),
        execution=ExecutionConfig(
            interval_seconds=interval_seconds,
            command=command,
            arguments=tuple(arguments),
        ),
    ))


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def executor():
    return RecordingExecutor()
