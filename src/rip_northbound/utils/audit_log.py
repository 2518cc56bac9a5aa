"""Audit logging for configuration transactions.

Every commit (applied, aborted or dry-run) becomes one JSON line in a
separate audit log file.
"""
import json
import logging
import os
from dataclasses import dataclass, asdict, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Create dedicated audit logger
audit_logger = logging.getLogger("ripnb.audit")

DEFAULT_AUDIT_DIR = "~/.ripnb"


def setup_audit_logging(log_dir: Optional[str] = None) -> str:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.ripnb/

    Returns:
        Path of the audit log file
    """
    log_dir = os.path.expanduser(log_dir or DEFAULT_AUDIT_DIR)
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = os.path.join(log_dir, "audit.log")

    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
    )
    # JSON lines, no decoration
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)

    # Don't propagate to root logger
    audit_logger.propagate = False
    return audit_file


@dataclass
class ChangeRecord:
    """Record of one configuration transaction."""
    timestamp: str
    transaction_id: Optional[int]
    operation: str  # commit, dry_run, rpc
    user: str
    dry_run: bool
    success: bool
    changes: list[str] = field(default_factory=list)
    context: str = ""
    config_checksum: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), indent=None)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        """Parse from JSON string."""
        data = json.loads(json_str)
        return cls(**data)


def log_change(record: ChangeRecord) -> ChangeRecord:
    """Write a record to the audit log."""
    audit_logger.info(record.to_json())
    return record


def get_recent_changes(
    log_file: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent transactions from the audit log.

    Args:
        log_file: Path to audit log. Defaults to ~/.ripnb/audit.log
        operation: Filter by operation type
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    if log_file is None:
        log_file = os.path.join(os.path.expanduser(DEFAULT_AUDIT_DIR), "audit.log")

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if operation and record.operation != operation:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
