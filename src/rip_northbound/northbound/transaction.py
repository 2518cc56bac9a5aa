"""Transaction coordinator.

Drives every change of one configuration update through the callback
lifecycle:

1. VALIDATE all changes (pure checks)
2. PREPARE all changes (resource acquisition)
3. APPLY all changes, or ABORT every change that reached PREPARE
4. apply_finish once per interested ancestor

Errors in VALIDATE or PREPARE abort the whole transaction before anything is
applied. A DomainConflict in APPLY is reported for that node only; the
remaining changes are still applied.
"""
import logging
from typing import Any

from ..utils.logging_config import timed
from .callbacks import CallbackArgs, ModuleInfo
from .errors import NorthboundError, NotImplementedCallback, OrderingViolation
from .resources import HandleState
from .schema import (
    ApplyError,
    Change,
    CommitResult,
    Event,
    Operation,
    parent_xpath,
    schema_path,
)
from .tree import DataTree

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """Run change lists against a module's callbacks."""

    def __init__(self, module: ModuleInfo, context: Any):
        """
        Args:
            module: Callback table to dispatch to
            context: Object handed to every callback (runtime model, registry)
        """
        self.module = module
        self.context = context
        self._next_id = 1

    def next_id(self) -> int:
        transaction_id = self._next_id
        self._next_id += 1
        return transaction_id

    def validate(self, changes: list[Change]) -> None:
        """
        Run VALIDATE for every change.

        Raises:
            NorthboundError: First validation failure
        """
        for change in changes:
            self._ensure_args(change)
            self._invoke(change, Event.VALIDATE)

    @timed("transaction")
    def commit(self, changes: list[Change], candidate: DataTree) -> CommitResult:
        """
        Run a full transaction.

        Args:
            changes: Ordered changes from the diff engine
            candidate: Tree the changes lead to (for apply_finish)

        Returns:
            CommitResult describing the outcome

        Raises:
            OrderingViolation: If a handler found no bound list entry
        """
        result = CommitResult(transaction_id=self.next_id())
        logger.info(
            f"Transaction {result.transaction_id}: {len(changes)} changes"
        )

        # Step 1: Validate
        try:
            self.validate(changes)
        except OrderingViolation:
            raise
        except NorthboundError as e:
            return self._failed(result, e, "validation")

        # Step 2: Prepare
        for change in changes:
            try:
                self._invoke(change, Event.PREPARE)
            except NorthboundError as e:
                # the failing change may hold a partial acquisition
                change.prepared = True
                self._abort(changes)
                if isinstance(e, OrderingViolation):
                    raise
                return self._failed(result, e, "prepare")
            except Exception:
                change.prepared = True
                self._abort(changes)
                raise
            change.prepared = True

        # Step 3: Apply
        for index, change in enumerate(changes):
            try:
                self._invoke(change, Event.APPLY)
            except OrderingViolation:
                for rest in changes[index + 1:]:
                    self._release_leftover(rest)
                raise
            except NorthboundError as e:
                logger.warning(f"Apply failed, continuing: {e}")
                result.apply_errors.append(ApplyError(
                    xpath=change.dnode.xpath,
                    operation=change.operation.value,
                    message=e.message,
                ))
                continue
            finally:
                self._release_leftover(change)
            result.changes_made.append(change.describe())

        result.applied = True

        # Step 4: apply_finish
        self._apply_finish(changes, candidate)

        result.success = not result.apply_errors
        if result.apply_errors:
            first = result.apply_errors[0]
            result.error = f"Apply failed: {first.message}"
            result.error_kind = "domain-conflict"
            result.error_xpath = first.xpath
        logger.info(
            f"Transaction {result.transaction_id} applied "
            f"({len(result.changes_made)} ok, {len(result.apply_errors)} failed)"
        )
        return result

    def _invoke(self, change: Change, event: Event) -> None:
        callbacks = self.module.get(change.dnode.schema_path)
        callback = callbacks.for_operation(change.operation)
        if callback is None:
            return

        self._ensure_args(change)
        change.args.event = event
        try:
            callback(change.args)
        except NotImplementedCallback as e:
            logger.debug(f"{event.value} {change.dnode.xpath}: {e.message}")
        except NorthboundError as e:
            if e.xpath is None:
                e.xpath = change.dnode.xpath
            raise

    def _ensure_args(self, change: Change) -> None:
        if change.args is None:
            change.args = CallbackArgs(
                event=Event.VALIDATE,
                dnode=change.dnode,
                context=self.context,
            )

    def _abort(self, changes: list[Change]) -> None:
        """ABORT every change that reached PREPARE. Never raises."""
        for change in changes:
            if not change.prepared:
                continue
            try:
                self._invoke(change, Event.ABORT)
            except NorthboundError as e:
                logger.error(f"Abort callback failed: {e}")
            # a handler that forgot to release must not leak
            self._release_leftover(change)

    def _release_leftover(self, change: Change) -> None:
        handle = change.args.resource if change.args else None
        if handle is not None and handle.state == HandleState.ACQUIRED:
            logger.warning(f"Releasing unconsumed resource of {change.dnode.xpath}")
            self.context.resources.release(handle)

    def _apply_finish(self, changes: list[Change], candidate: DataTree) -> None:
        """Call each apply_finish callback at most once, ancestors included."""
        seen: list[str] = []
        for change in changes:
            xpath = change.dnode.xpath
            if change.operation == Operation.DELETE:
                xpath = parent_xpath(xpath)
            while xpath is not None:
                if xpath in candidate and xpath not in seen:
                    if self.module.get(schema_path(xpath)).apply_finish:
                        seen.append(xpath)
                xpath = parent_xpath(xpath)

        for xpath in seen:
            callback = self.module.get(schema_path(xpath)).apply_finish
            logger.debug(f"apply_finish {xpath}")
            callback(candidate.get(xpath), self.context)

    def _failed(self, result: CommitResult, error: NorthboundError, phase: str) -> CommitResult:
        logger.warning(f"Transaction {result.transaction_id} aborted in {phase}: {error}")
        result.success = False
        result.error = f"{phase.capitalize()} failed: {error.message}"
        result.error_kind = error.kind
        result.error_xpath = error.xpath
        return result
