"""Main northbound engine - orchestrates the full commit workflow.

Provides a single entry point for:
1. Parsing desired state
2. Calculating the change list against the running tree
3. Running the transaction (validate, prepare, apply or abort)
4. Recording the outcome in the audit log

and, independently of transactions, for reading operational state and
invoking RPCs.
"""
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from ..utils import audit_log
from .callbacks import ModuleInfo
from .diff import DiffEngine, summarize_changes
from .errors import NorthboundError
from .oper import OperationalTree
from .parser import ConfigParser, compute_checksum
from .rpc import invoke_rpc
from .schema import Change, CommitResult, SchemaTable
from .transaction import TransactionCoordinator
from .tree import DataTree

logger = logging.getLogger(__name__)


class NorthboundEngine:
    """
    Apply desired-state configurations to a runtime model.

    Usage:
        engine = NorthboundEngine(daemon, RIPD_MODULE, RIPD_SCHEMA)
        result = engine.apply_config(config_dict)
    """

    def __init__(self, context: Any, module: ModuleInfo, schema: SchemaTable):
        """
        Initialize the engine.

        Args:
            context: Runtime context handed to every callback
            module: Callback table
            schema: Schema the configuration is parsed against
        """
        self.context = context
        self.module = module
        self.schema = schema
        self.parser = ConfigParser(schema)
        self.diff_engine = DiffEngine(schema, module)
        self.coordinator = TransactionCoordinator(module, context)
        self.oper = OperationalTree(schema, module, context)
        self.running = DataTree()
        self.running_config: dict[str, Any] = {}
        # one transaction at a time
        self._lock = threading.Lock()

    def apply_config(
        self,
        config: dict[str, Any],
        dry_run: bool = False,
        audit_context: str = "",
        user: Optional[str] = None,
    ) -> CommitResult:
        """
        Make the runtime model match a desired-state configuration.

        The whole configuration is given every time; nodes missing from it
        are deleted.

        Args:
            config: Desired state configuration dict
            dry_run: If True, only parse, diff and validate
            audit_context: Description for audit log
            user: User identifier for audit log

        Returns:
            CommitResult with success/failure and details
        """
        with self._lock:
            result = CommitResult(dry_run=dry_run)
            try:
                self._commit(config, dry_run, result)
            finally:
                self._audit(result, config, audit_context, user)
            return result

    def _commit(self, config: dict[str, Any], dry_run: bool, result: CommitResult) -> None:
        # Step 1: Parse
        logger.info("Parsing desired state configuration")
        try:
            candidate = self.parser.parse(config)
        except NorthboundError as e:
            result.error = f"Parse error: {e.message}"
            result.error_kind = e.kind
            result.error_xpath = e.xpath
            return

        # Step 2: Diff
        changes = self.diff_engine.calculate(self.running, candidate)
        if not changes:
            result.success = True
            result.changes_made = ["No changes needed - configuration already matches"]
            return
        logger.info(f"Found {len(changes)} changes")

        if dry_run:
            self._dry_run(changes, result)
            return

        # Step 3: Transaction
        outcome = self.coordinator.commit(changes, candidate)
        for name in ("success", "applied", "transaction_id", "changes_made",
                     "error", "error_kind", "error_xpath", "apply_errors"):
            setattr(result, name, getattr(outcome, name))

        # Step 4: Running tree follows whatever reached APPLY
        if result.applied:
            self.running = candidate
            self.running_config = config

    def _dry_run(self, changes: list[Change], result: CommitResult) -> None:
        """Validate only; nothing is acquired or applied."""
        try:
            self.coordinator.validate(changes)
        except NorthboundError as e:
            result.error = f"Validation failed: {e.message}"
            result.error_kind = e.kind
            result.error_xpath = e.xpath
            return

        result.success = True
        result.changes_made = [f"[PREVIEW] {c.describe()}" for c in changes]

    def load_file(self, path: str, **kwargs: Any) -> CommitResult:
        """Apply a desired-state YAML file."""
        with open(Path(path).expanduser()) as f:
            config = yaml.safe_load(f) or {}
        return self.apply_config(config, **kwargs)

    def preview(self, config: dict[str, Any]) -> str:
        """
        Preview changes without applying.

        Returns human-readable change summary.
        """
        candidate = self.parser.parse(config)
        return summarize_changes(self.diff_engine.calculate(self.running, candidate))

    # --- Read path ---

    def show_running(self, show_defaults: bool = False) -> str:
        """Render the running tree through the cli_show callbacks."""
        lines: list[str] = []
        for dnode in self.running:
            cli_show = self.module.get(dnode.schema_path).cli_show
            if cli_show is not None:
                lines.extend(cli_show(dnode, self.running, show_defaults))
        return "\n".join(lines)

    def get_state(self, list_path: str) -> Iterator[tuple[str, dict[str, Any]]]:
        """Lazily walk an operational list."""
        return self.oper.walk(list_path)

    def lookup_state(self, xpath: str) -> Optional[dict[str, Any]]:
        """Look up one operational list entry by data path."""
        return self.oper.get(xpath)

    def rpc(self, xpath: str, rpc_input: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Invoke an RPC. Safe to call while a transaction is running."""
        return invoke_rpc(self.module, self.context, xpath, rpc_input)

    def _audit(
        self,
        result: CommitResult,
        config: dict[str, Any],
        audit_context: str,
        user: Optional[str],
    ) -> None:
        try:
            checksum = compute_checksum(config)
        except (TypeError, ValueError):
            checksum = None
        audit_log.log_change(audit_log.ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            transaction_id=result.transaction_id,
            operation="dry_run" if result.dry_run else "commit",
            user=user or "system",
            dry_run=result.dry_run,
            success=result.success,
            changes=result.changes_made,
            context=audit_context,
            config_checksum=checksum,
            error=result.error,
            error_kind=result.error_kind,
        ))
