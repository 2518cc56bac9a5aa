"""Error taxonomy for northbound callbacks.

Every error carries the kind (used in results and the audit log) and, once the
coordinator knows it, the data path of the offending node.
"""
from typing import Optional


class NorthboundError(Exception):
    """Base class for all errors raised by northbound callbacks."""

    kind = "error"

    def __init__(self, message: str, xpath: Optional[str] = None):
        self.message = message
        self.xpath = xpath
        super().__init__(message)

    def __str__(self) -> str:
        if self.xpath:
            return f"[{self.kind}] {self.xpath}: {self.message}"
        return f"[{self.kind}] {self.message}"


class SchemaInvalid(NorthboundError):
    """Value rejected by schema or domain constraints (VALIDATE)."""

    kind = "schema-invalid"


class ResourceUnavailable(NorthboundError):
    """A side-effecting acquisition failed (PREPARE only)."""

    kind = "resource-unavailable"


class DomainConflict(NorthboundError):
    """The routing engine refused a mutation (APPLY only)."""

    kind = "domain-conflict"


class NotImplementedCallback(NorthboundError):
    """Placeholder handler. The coordinator treats it as success."""

    kind = "not-implemented"


class OrderingViolation(NorthboundError):
    """A child node was processed before its bound list entry existed.

    This is a coordinator bug, never a user error, and is not converted into
    a transaction result.
    """

    kind = "ordering-violation"
