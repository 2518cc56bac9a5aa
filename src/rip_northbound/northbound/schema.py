"""Schema definitions for the northbound layer.

Data nodes, callback events, changes and commit results.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Event(str, Enum):
    """Transaction phase a callback is invoked for."""
    VALIDATE = "validate"
    PREPARE = "prepare"
    ABORT = "abort"
    APPLY = "apply"


class Operation(str, Enum):
    """Kind of change applied to a data node."""
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


class NodeKind(str, Enum):
    """Schema node kinds the differ knows about."""
    CONTAINER = "container"
    PRESENCE = "presence"
    LIST = "list"
    LEAF = "leaf"
    LEAF_LIST = "leaf-list"


# --- XPath helpers ---

def split_xpath(xpath: str) -> list[str]:
    """
    Split a data path into segments.

    Slashes inside predicates are kept, so prefixes can be used as keys:
        "/a/b[prefix='10.0.0.0/8']/c" -> ["a", "b[prefix='10.0.0.0/8']", "c"]
    """
    segments = []
    current = []
    depth = 0
    quote = None

    for ch in xpath:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"') and depth:
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "/" and depth == 0:
            if current:
                segments.append("".join(current))
            current = []
            continue
        current.append(ch)

    if current:
        segments.append("".join(current))
    return segments


def parse_segment(segment: str) -> tuple[str, dict[str, str]]:
    """Split "name[k1='v1'][k2='v2']" into the name and its predicates."""
    if "[" not in segment:
        return segment, {}

    name, _, rest = segment.partition("[")
    keys: dict[str, str] = {}
    for predicate in ("[" + rest).split("]["):
        predicate = predicate.strip("[]")
        key, _, value = predicate.partition("=")
        keys[key.strip()] = value.strip().strip("'\"")
    return name, keys


def build_segment(name: str, keys: Optional[dict[str, Any]] = None) -> str:
    """Inverse of parse_segment."""
    if not keys:
        return name
    predicates = "".join(f"[{k}='{v}']" for k, v in keys.items())
    return f"{name}{predicates}"


def join_xpath(parent: str, segment: str) -> str:
    return f"{parent.rstrip('/')}/{segment}"


def parent_xpath(xpath: str) -> Optional[str]:
    """Data path of the parent node, None for top-level nodes."""
    segments = split_xpath(xpath)
    if len(segments) <= 1:
        return None
    return "/" + "/".join(segments[:-1])


def schema_path(xpath: str) -> str:
    """Strip all predicates from a data path."""
    return "/" + "/".join(parse_segment(s)[0] for s in split_xpath(xpath))


# --- Data nodes ---

@dataclass(frozen=True)
class DataNode:
    """A node of a configuration tree.

    Identity is the data path (schema path plus list predicates). The value
    is only meaningful for leaves and leaf-list entries.
    """
    xpath: str
    value: Any = None

    @property
    def schema_path(self) -> str:
        return schema_path(self.xpath)

    @property
    def name(self) -> str:
        return parse_segment(split_xpath(self.xpath)[-1])[0]

    @property
    def parent(self) -> Optional[str]:
        return parent_xpath(self.xpath)

    @property
    def list_keys(self) -> dict[str, str]:
        """Predicates of this node's own segment."""
        return parse_segment(split_xpath(self.xpath)[-1])[1]

    def key(self, name: str) -> str:
        """
        Value of the nearest list key called `name`, searching this node
        first and then its ancestors ("./prefix", "../direction").

        Raises:
            KeyError: If no ancestor carries that key
        """
        for segment in reversed(split_xpath(self.xpath)):
            keys = parse_segment(segment)[1]
            if name in keys:
                return keys[name]
        raise KeyError(f"No key '{name}' in {self.xpath}")


# --- Commit results ---

@dataclass
class ApplyError:
    """A DomainConflict reported by one node during APPLY."""
    xpath: str
    operation: str
    message: str


@dataclass
class CommitResult:
    """Result of a configuration commit."""
    success: bool = False
    dry_run: bool = False
    applied: bool = False
    transaction_id: Optional[int] = None
    changes_made: list[str] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None
    error_xpath: Optional[str] = None
    apply_errors: list[ApplyError] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "applied": self.applied,
            "transaction_id": self.transaction_id,
            "changes_made": self.changes_made,
            "error": self.error,
            "error_kind": self.error_kind,
            "error_xpath": self.error_xpath,
            "apply_errors": [
                {"xpath": e.xpath, "operation": e.operation, "message": e.message}
                for e in self.apply_errors
            ],
        }


# --- Schema table ---

@dataclass(frozen=True)
class SchemaNode:
    """One node of the configuration schema."""
    path: str
    kind: NodeKind
    type: Optional[str] = None      # bool, uint8, uint16, uint32, string, enum, ipv4, ipv4-prefix
    default: Any = None
    keys: tuple[str, ...] = ()
    enum: tuple[str, ...] = ()
    # False for read-only operational nodes
    config: bool = True
    # leaf must be present whenever its parent is
    mandatory: bool = False
    # (sibling leaf, value) the sibling must hold for this node to exist
    when: Optional[tuple[str, Any]] = None

    @property
    def segment(self) -> str:
        return self.path.rsplit("/", 1)[1]

    @property
    def parent_path(self) -> str:
        return self.path.rsplit("/", 1)[0]


class SchemaTable:
    """Schema nodes indexed by path, kept in declaration order."""

    def __init__(self, nodes: list[SchemaNode]):
        self._nodes: dict[str, SchemaNode] = {}
        for node in nodes:
            self._nodes[node.path] = node

    def get(self, path: str) -> Optional[SchemaNode]:
        return self._nodes.get(path)

    def __getitem__(self, path: str) -> SchemaNode:
        return self._nodes[path]

    def __contains__(self, path: str) -> bool:
        return path in self._nodes

    def __iter__(self):
        return iter(self._nodes.values())

    def children(self, path: str) -> list[SchemaNode]:
        """Direct children of a schema path ("" is the root)."""
        return [n for n in self._nodes.values() if n.parent_path == path]

    def is_key(self, path: str) -> bool:
        """True if the path is a key leaf of its parent list."""
        node = self._nodes.get(path)
        if node is None:
            return False
        parent = self._nodes.get(node.parent_path)
        return (
            parent is not None
            and parent.kind == NodeKind.LIST
            and node.segment in parent.keys
        )


# --- Changes ---

@dataclass(eq=False)
class Change:
    """One node change in a transaction, in processing order."""
    operation: Operation
    dnode: DataNode
    prepared: bool = False
    args: Any = None

    def describe(self) -> str:
        """Human-readable one-liner."""
        if self.operation == Operation.MODIFY:
            return f"modify {self.dnode.xpath} = {self.dnode.value}"
        return f"{self.operation.value} {self.dnode.xpath}"
