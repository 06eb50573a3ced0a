import signal
import psutil
import logging
import threading
from typing import FrozenSet, Iterable, List, Optional

from procguard.config import GuardConfig
from procguard.supervisor import reconcile
from procguard.supervisor.process_utils import ProcessActionExecutor, PsutilSnapshotProvider

log = logging.getLogger(__name__)


class ProcessGuard:
    """
    Keeps the managed executable mutually exclusive with the watched processes.

    Holds the known-pid set between polls and drives the action executor
    with the results of each reconciliation tick.
    """

    def __init__(self, config: GuardConfig, snapshot_provider=None, executor=None) -> None:
        """
        :param config: The normalized configuration.
        :param snapshot_provider: Object with list_processes(). Defaults to psutil.
        :param executor: Object with launch() and terminate(). Defaults to the OS executor.
        """
        self.config = config
        self.snapshot_provider = snapshot_provider or PsutilSnapshotProvider()
        self.executor = executor or ProcessActionExecutor()
        self.known_pids: Optional[FrozenSet[int]] = None
        self.shutdown_signal_received = threading.Event()

    def _take_snapshot(self) -> Optional[List[reconcile.ProcessEntry]]:
        """Returns the current snapshot, or None if the process table could not be read."""
        try:
            return list(self.snapshot_provider.list_processes())
        except (psutil.Error, OSError) as e:
            log.error(f"Failed to read the process table, skipping this poll: {e}")
            return None

    def execute(self, actions: Iterable[reconcile.Action]) -> None:
        """Hands each action to the executor, in order."""
        for action in actions:
            if isinstance(action, reconcile.Launch):
                log.info("No watched or managed process is running. Launching the managed executable.")
                self.executor.launch(action.command, action.arguments)
            elif isinstance(action, reconcile.TerminateManaged):
                log.info(f"Watched process started: {action.trigger_name} (PID: {action.trigger_pid})")
                self.executor.terminate(self.config.processes.executable_name)
            else:
                raise TypeError(f"Unknown action: {action!r}")

    def initialize_supervision(self) -> None:
        """Takes the startup snapshot and launches immediately if nothing is running."""
        log.info("Supervisor started. Monitoring processes.")
        self.shutdown_signal_received.clear()

        snapshot = self._take_snapshot()
        if snapshot is None:
            # known stays unset; the first successful poll bootstraps instead
            return
        self.known_pids, actions = reconcile.bootstrap(snapshot, self.config)
        self.execute(actions)

    def run_tick(self) -> List[reconcile.Action]:
        """
        Runs one poll: snapshot, reconcile, act.

        :return: The actions that were executed (empty if the snapshot failed).
        """
        snapshot = self._take_snapshot()
        if snapshot is None:
            return []

        if self.known_pids is None:
            self.known_pids, actions = reconcile.bootstrap(snapshot, self.config)
        else:
            self.known_pids, actions = reconcile.tick(self.known_pids, snapshot, self.config)
        self.execute(actions)
        return actions

    def stop(self) -> None:
        """Asks the supervision loop to exit after the current poll."""
        self.shutdown_signal_received.set()

    def install_signal_handlers(self) -> None:
        """Routes SIGINT/SIGTERM to stop() so external termination exits cleanly."""
        def _handle_signal(signum, _frame):
            log.info(f"Received signal {signum}. Stopping supervisor.")
            self.stop()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

    def supervision_loop(self) -> None:
        """Main loop. Polls every interval_seconds until stop() is called."""
        self.initialize_supervision()
        interval = self.config.execution.interval_seconds

        while not self.shutdown_signal_received.is_set():
            try:
                if self.shutdown_signal_received.wait(interval):
                    break
                self.run_tick()
            except KeyboardInterrupt:
                log.info("Supervisor loop interrupted by user.")
                break

        log.info("Supervisor stopped.")
