"""Daemon facade module."""

from .client import DaemonClient

__all__ = ["DaemonClient"]
