import sys
import psutil
import logging
import subprocess
from typing import Any, Dict, List, Optional, Sequence

from .reconcile import ProcessEntry

log = logging.getLogger(__name__)


#* --- Process Status & Monitoring ---
def iter_processes():
    """A wrapper for psutil.process_iter for easy testing/mocking if needed."""
    return psutil.process_iter(["pid", "name"])


def find_process_by_name(name: str) -> Optional[psutil.Process]:
    """
    Returns the first live process whose name matches, case-insensitively.

    :param name: An already lowercased process name.
    :return: The matching psutil.Process, or None if nothing matches.
    """
    for proc in iter_processes():
        proc_name = proc.info.get("name")
        if proc_name and proc_name.lower() == name:
            return proc
    return None


class PsutilSnapshotProvider:
    """Reads the current process table through psutil."""

    def list_processes(self) -> List[ProcessEntry]:
        """
        Lists (pid, name) for every process whose name is readable.

        psutil.Error raised by the enumeration itself propagates; the
        supervisor decides what a failed snapshot means.
        """
        entries = []
        for proc in iter_processes():
            name = proc.info.get("name")
            if not name:
                continue
            entries.append(ProcessEntry(proc.info["pid"], name))
        return entries


#* --- Process Creation & Termination ---
def _get_popen_creation_flags() -> Dict[str, Any]:
    """Returns platform-specific flags that detach the child from this process."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.DETACHED_PROCESS | subprocess.CREATE_NO_WINDOW}
    return {"start_new_session": True}


class ProcessActionExecutor:
    """
    Performs launch and terminate requests against the OS.

    Failures are logged and reported through return values; nothing here
    raises into the supervision loop.
    """

    def launch(self, command: str, arguments: Sequence[str]) -> Optional[int]:
        """
        Spawns the command detached from the daemon.

        :param command: Executable to run.
        :param arguments: Arguments passed through verbatim, in order.
        :return: The new process ID, or None if the launch failed.
        """
        args = [command, *arguments]
        log.info(f"Launching managed process: {args}")
        try:
            p = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                **_get_popen_creation_flags(),
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            log.error(f"Failed to launch '{command}': {e}")
            return None

        log.info(f"Launched process with PID: {p.pid}")
        return p.pid

    def terminate(self, name: str) -> bool:
        """
        Kills the first live process with the given name.

        :param name: An already lowercased process name.
        :return: True if a kill request was issued, False otherwise.
        """
        try:
            proc = find_process_by_name(name)
        except psutil.Error as e:
            log.error(f"Could not search for '{name}': {e}")
            return False

        if proc is None:
            log.info(f"{name} is not running.")
            return False

        log.info(f"Terminating {name} (PID: {proc.pid})")
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            log.info(f"{name} (PID: {proc.pid}) exited before it could be killed.")
            return False
        except psutil.Error as e:
            log.error(f"Failed to terminate {name} (PID: {proc.pid}): {e}")
            return False
        return True
