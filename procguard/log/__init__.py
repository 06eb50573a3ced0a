"""
Logging module for the application.
This module provides the function that configures the root logger.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
