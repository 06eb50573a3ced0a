import sys
import json
import logging
import tomllib
import threading
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from procguard import settings

log = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration file cannot be created, read or validated."""


@dataclass(frozen=True)
class ProcessesConfig:
    observe_names: FrozenSet[str]
    executable_name: str


@dataclass(frozen=True)
class ExecutionConfig:
    interval_seconds: int
    command: str
    arguments: Tuple[str, ...]


@dataclass(frozen=True)
class GuardConfig:
    """Validated, normalized daemon configuration. Immutable after load."""
    processes: ProcessesConfig
    execution: ExecutionConfig


def default_config() -> GuardConfig:
    """Builds the documented default configuration."""
    return normalize_config(GuardConfig(
        processes=ProcessesConfig(
            observe_names=frozenset(settings.DEFAULT_OBSERVE_NAMES),
            executable_name=settings.DEFAULT_EXECUTABLE_NAME,
        ),
        execution=ExecutionConfig(
            interval_seconds=settings.DEFAULT_INTERVAL_SECONDS,
            command=settings.DEFAULT_COMMAND,
            arguments=tuple(settings.DEFAULT_ARGUMENTS),
        ),
    ))


def normalize_config(config: GuardConfig) -> GuardConfig:
    """
    Lowercases and deduplicates the watch list and lowercases the managed name.

    Every later name comparison relies on this having happened, so matching
    elsewhere is plain equality against lowercased process names.

    :param config: A parsed configuration.
    :return: A new, normalized configuration. Normalizing twice is a no-op.
    """
    return GuardConfig(
        processes=ProcessesConfig(
            observe_names=frozenset(name.lower() for name in config.processes.observe_names),
            executable_name=config.processes.executable_name.lower(),
        ),
        execution=config.execution,
    )


#* --- Schema Validation ---
def _require_table(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    table = data.get(key)
    if not isinstance(table, dict):
        raise ConfigError(f"Missing or invalid table [{key}].")
    return table


def _require_string(table: Dict[str, Any], section: str, key: str) -> str:
    value = table.get(key)
    if not isinstance(value, str):
        raise ConfigError(f"'{section}.{key}' must be a string.")
    return value


def _require_string_list(table: Dict[str, Any], section: str, key: str) -> List[str]:
    value = table.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{section}.{key}' must be a list of strings.")
    return value


def parse_config(data: Dict[str, Any]) -> GuardConfig:
    """
    Validates raw TOML data against the config schema.

    :param data: The decoded TOML document.
    :return: A GuardConfig (not yet normalized).
    :raises ConfigError: If a table or key is missing or has the wrong type.
    """
    processes = _require_table(data, "processes")
    execution = _require_table(data, "execution")

    executable_name = _require_string(processes, "processes", "executable_name")
    if not executable_name:
        raise ConfigError("'processes.executable_name' must not be empty.")

    interval = execution.get("interval_seconds")
    # bool is an int subclass; reject it explicitly
    if not isinstance(interval, int) or isinstance(interval, bool):
        raise ConfigError("'execution.interval_seconds' must be an integer.")
    if interval <= 0:
        raise ConfigError(f"'execution.interval_seconds' must be greater than 0, got {interval}.")
    # Event.wait overflows past TIMEOUT_MAX
    if interval > threading.TIMEOUT_MAX:
        raise ConfigError(f"'execution.interval_seconds' must be at most {int(threading.TIMEOUT_MAX)}, got {interval}.")

    return GuardConfig(
        processes=ProcessesConfig(
            observe_names=frozenset(_require_string_list(processes, "processes", "observe_names")),
            executable_name=executable_name,
        ),
        execution=ExecutionConfig(
            interval_seconds=interval,
            command=_require_string(execution, "execution", "command"),
            arguments=tuple(_require_string_list(execution, "execution", "arguments")),
        ),
    )


#* --- File Handling ---
def _toml_value(value: Any) -> str:
    """Renders a string or list of strings as a TOML literal."""
    if isinstance(value, str):
        # JSON string escapes are valid TOML basic-string escapes
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(item) for item in value) + "]"
    return str(value)


def render_default_config() -> str:
    """Returns the TOML text written when no config file exists."""
    return settings.CONFIG_TEMPLATE.format(
        observe_names=_toml_value(settings.DEFAULT_OBSERVE_NAMES),
        executable_name=_toml_value(settings.DEFAULT_EXECUTABLE_NAME),
        interval_seconds=settings.DEFAULT_INTERVAL_SECONDS,
        command=_toml_value(settings.DEFAULT_COMMAND),
        arguments=_toml_value(settings.DEFAULT_ARGUMENTS),
    )


def get_binary_dir() -> Path:
    """Returns the directory of the running executable (or entry script)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0]).resolve().parent


def resolve_config_path(candidates: Optional[Iterable[Path]] = None) -> Path:
    """
    Resolves the config file location.

    Precedence: PROCGUARD_CONFIG_PATH, then an existing config file next to
    the running binary, then the current working directory.
    """
    if settings.CONFIG_PATH_OVERRIDE:
        return Path(settings.CONFIG_PATH_OVERRIDE)

    if candidates is None:
        candidates = [get_binary_dir()]
    for directory in candidates:
        config_path = directory / settings.CONFIG_FILE_NAME
        if config_path.exists():
            return config_path

    return Path.cwd() / settings.CONFIG_FILE_NAME


def load_config(path: Optional[Path] = None) -> GuardConfig:
    """
    Loads the configuration, creating a default file if none exists.

    :param path: Explicit config file path. Resolved when omitted.
    :return: The normalized configuration.
    :raises ConfigError: If the file cannot be written, read, parsed or validated.
    """
    config_path = Path(path) if path is not None else resolve_config_path()

    if not config_path.exists():
        log.info(f"Creating default config file: {config_path}")
        try:
            config_path.write_text(render_default_config(), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to write default config '{config_path}': {e}") from e
        return default_config()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read config '{config_path}': {e}") from e

    config = normalize_config(parse_config(data))
    log.debug(f"Loaded config from {config_path}")
    return config
