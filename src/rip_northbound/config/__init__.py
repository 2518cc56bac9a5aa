"""Daemon settings."""
from .settings import DaemonSettings, load_settings

__all__ = ["DaemonSettings", "load_settings"]
