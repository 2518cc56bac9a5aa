"""Daemon settings loaded from YAML with environment overrides.

Environment variables:
- RIPNB_CONFIG: Path to the settings file
- RIPNB_RIP_PORT: UDP port the RIP socket binds to (default: 520)
- RIPNB_BIND_ADDRESS: Address the RIP socket binds to (default: 0.0.0.0)
- RIPNB_AUDIT_DIR: Directory for the audit log (default: ~/.ripnb)
"""
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

RIP_PORT_DEFAULT = 520


@dataclass
class DaemonSettings:
    """Settings of the northbound daemon."""
    rip_port: int = RIP_PORT_DEFAULT
    bind_address: str = "0.0.0.0"
    audit_dir: Optional[str] = None
    # Desired-state file applied at startup
    startup_config: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DaemonSettings":
        """Build settings from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_file(cls, path: Path) -> "DaemonSettings":
        """Load settings from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("daemon", data))

    def apply_env(self) -> "DaemonSettings":
        """Override fields from environment variables."""
        if "RIPNB_RIP_PORT" in os.environ:
            self.rip_port = int(os.environ["RIPNB_RIP_PORT"])
        if "RIPNB_BIND_ADDRESS" in os.environ:
            self.bind_address = os.environ["RIPNB_BIND_ADDRESS"]
        if "RIPNB_AUDIT_DIR" in os.environ:
            self.audit_dir = os.environ["RIPNB_AUDIT_DIR"]
        return self


def find_settings_file() -> Optional[Path]:
    """Find the ripnb.yaml settings file, if any."""
    env_path = os.environ.get("RIPNB_CONFIG")
    if env_path:
        return Path(env_path)

    search_paths = [
        Path.cwd() / "ripnb.yaml",
        Path.home() / ".config" / "ripnb" / "ripnb.yaml",
        Path("/etc/ripnb/ripnb.yaml"),
    ]
    for path in search_paths:
        if path.exists():
            return path
    return None


def load_settings(path: Optional[str] = None) -> DaemonSettings:
    """
    Load settings from `path`, the search path, or defaults.

    Environment variables always win over file values.
    """
    settings_path = Path(path) if path else find_settings_file()
    if settings_path is None:
        logger.info("No settings file found, using defaults")
        return DaemonSettings().apply_env()

    logger.info(f"Loading settings from {settings_path}")
    return DaemonSettings.from_file(settings_path).apply_env()
