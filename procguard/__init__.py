"""
ProcGuard: a watchdog daemon that terminates a managed executable whenever a
watched process starts, and relaunches it once none of them are running.
"""

__version__ = "0.1.0"
