"""
Entry point for the ProcGuard daemon.

Loads the configuration once, then hands control to the supervision loop,
which only returns after an external stop request.
"""
import sys
import logging
import setproctitle

from procguard import settings
from procguard.config import ConfigError, load_config
from procguard.log import setup_logging
from procguard.supervisor import ProcessGuard

log = logging.getLogger(__name__)


def get_console_level(name: str) -> int:
    """Maps a level name such as "DEBUG" to its number, falling back to INFO."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def main() -> int:
    """
    Runs the daemon.

    :return: 0 after an external stop, 1 if the configuration could not be loaded.
    """
    setup_logging(get_console_level(settings.LOG_LEVEL), settings.LOG_FILE_PATH or None)

    try:
        config = load_config()
    except ConfigError as e:
        log.critical(f"Failed to load configuration: {e}")
        return 1

    log.info(
        f"Configuration loaded: watching {sorted(config.processes.observe_names)}, "
        f"managing '{config.processes.executable_name}' every {config.execution.interval_seconds}s."
    )

    guard = ProcessGuard(config)
    guard.install_signal_handlers()
    guard.supervision_loop()
    return 0


def run() -> None:
    setproctitle.setproctitle(settings.PROCESS_TITLE)
    sys.exit(main())


if __name__ == "__main__":
    run()
