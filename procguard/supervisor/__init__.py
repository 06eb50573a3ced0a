"""
The Supervisor package.
Keeps the managed executable and the watched processes mutually exclusive.

This package contains the ProcessGuard class, the pure reconciliation
functions it drives, and the psutil-backed snapshot and action helpers.
"""
from .supervisor import ProcessGuard

__all__ = ['ProcessGuard']
