"""
This module contains the configuration settings for the ProcGuard daemon.
It defines the config file location, the documented defaults, the template
used to write a fresh config file, and logging settings.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Config File ---
CONFIG_FILE_NAME = "config.toml"
# Explicit path that bypasses the binary-dir / cwd lookup
CONFIG_PATH_OVERRIDE = os.getenv("PROCGUARD_CONFIG_PATH", "")

#* --- Default Configuration ---
DEFAULT_OBSERVE_NAMES = ["taskmgr.exe", "mspaint.exe"]
DEFAULT_EXECUTABLE_NAME = "calculatorapp.exe"
DEFAULT_INTERVAL_SECONDS = 5
DEFAULT_COMMAND = "cmd"
DEFAULT_ARGUMENTS = ["/C", "start", "", "C:/Windows/System32/calc.exe"]

#* --- Logging ---
LOG_LEVEL = os.getenv("PROCGUARD_LOG_LEVEL", "INFO").upper()
LOG_FILE_PATH = os.getenv("PROCGUARD_LOG_FILE", "")
LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'

#* --- Process Title ---
PROCESS_TITLE = "ProcGuard - Supervisor"

#* --- Config Template ---
# Values are pre-rendered TOML literals (see config.render_default_config)
CONFIG_TEMPLATE = """\
[processes]
# Process names that force the managed executable to be terminated (case-insensitive)
observe_names = {observe_names}
# Name of the managed process (case-insensitive)
executable_name = {executable_name}

[execution]
# Poll interval in seconds
interval_seconds = {interval_seconds}
# Command used to (re)launch the managed executable
command = {command}
arguments = {arguments}
"""
