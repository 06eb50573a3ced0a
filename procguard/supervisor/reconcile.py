"""
Reconciliation of process snapshots against the guard configuration.

Everything here is a pure function of (known pids, snapshot, config). The
supervisor owns the known-pid state and passes it in on every tick; the
returned actions are executed by the supervisor, not here.
"""
from collections import namedtuple
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple, Union

from procguard.config import GuardConfig

ProcessEntry = namedtuple("ProcessEntry", ["pid", "name"])


@dataclass(frozen=True)
class Launch:
    """(Re)start the managed executable."""
    command: str
    arguments: Tuple[str, ...]


@dataclass(frozen=True)
class TerminateManaged:
    """Kill the managed executable because a forbidden process appeared."""
    trigger_pid: int
    trigger_name: str


Action = Union[Launch, TerminateManaged]


def is_observed(name: str, config: GuardConfig) -> bool:
    """True if the process name is on the (already lowercased) watch list."""
    return name.lower() in config.processes.observe_names


def is_target(name: str, config: GuardConfig) -> bool:
    lowered = name.lower()
    return lowered in config.processes.observe_names or lowered == config.processes.executable_name


def target_pids(snapshot: Iterable[ProcessEntry], config: GuardConfig) -> Dict[int, str]:
    """
    Filters a snapshot down to the watched and managed processes.

    :param snapshot: (pid, name) pairs for every running process.
    :param config: The normalized configuration.
    :return: Mapping of matching pid to its process name, as reported.
    """
    return {pid: name for pid, name in snapshot if is_target(name, config)}


def _launch(config: GuardConfig) -> Launch:
    return Launch(command=config.execution.command, arguments=config.execution.arguments)


def bootstrap(snapshot: Iterable[ProcessEntry], config: GuardConfig) -> Tuple[FrozenSet[int], List[Action]]:
    """
    Handles the snapshot taken before the first interval elapses.

    Processes already running here seed the known set and are never reported
    as new, so a forbidden process running at startup does not cause a kill.
    If nothing matches, the managed executable is launched immediately.
    """
    target = target_pids(snapshot, config)
    actions: List[Action] = [] if target else [_launch(config)]
    return frozenset(target), actions


def tick(known: FrozenSet[int], snapshot: Iterable[ProcessEntry], config: GuardConfig) -> Tuple[FrozenSet[int], List[Action]]:
    """
    Runs one poll of the reconciliation loop.

    An empty target set always yields a Launch, whether or not a forbidden
    process was ever seen. Otherwise, every forbidden pid that was not in
    `known` yields one TerminateManaged, in ascending pid order.

    :param known: Target pids from the previous tick (or bootstrap).
    :param snapshot: The current (pid, name) pairs.
    :param config: The normalized configuration.
    :return: The new known set and the actions to execute.
    """
    target = target_pids(snapshot, config)
    actions: List[Action] = []

    if not target:
        actions.append(_launch(config))
    else:
        new_pids = target.keys() - known
        for pid in sorted(new_pids):
            name = target[pid]
            if is_observed(name, config):
                actions.append(TerminateManaged(trigger_pid=pid, trigger_name=name))

    return frozenset(target), actions
