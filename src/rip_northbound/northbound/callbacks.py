"""Per-node callback sets and the module registry.

A module maps schema paths to NodeCallbacks. Paths without an entry, and
callback slots left empty, behave as successful no-ops so the schema can grow
ahead of the handlers.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .entries import EntryRegistry
from .resources import ResourceHandle, ResourceManager
from .schema import DataNode, Event, Operation

logger = logging.getLogger(__name__)


class NorthboundContext:
    """State handed to every callback: the binding registry and resources.

    Daemons subclass this to carry their runtime model.
    """

    def __init__(
        self,
        registry: Optional[EntryRegistry] = None,
        resources: Optional[ResourceManager] = None,
    ):
        self.registry = registry or EntryRegistry()
        self.resources = resources or ResourceManager()


@dataclass(eq=False)
class CallbackArgs:
    """Arguments of one configuration callback invocation.

    One instance lives for the whole transaction of one change, so a handle
    stored in `resource` during PREPARE is seen by the matching APPLY or
    ABORT and by nothing else.
    """
    event: Event
    dnode: DataNode
    context: Any
    resource: Optional[ResourceHandle] = None


ConfigCallback = Callable[[CallbackArgs], None]
ApplyFinishCallback = Callable[[DataNode, Any], None]


@dataclass
class NodeCallbacks:
    """Callbacks registered for one schema path."""
    create: Optional[ConfigCallback] = None
    modify: Optional[ConfigCallback] = None
    delete: Optional[ConfigCallback] = None
    apply_finish: Optional[ApplyFinishCallback] = None
    get_next: Optional[Callable[[Any, Any], Any]] = None
    get_keys: Optional[Callable[[Any, Any], tuple]] = None
    lookup_entry: Optional[Callable[[Any, tuple], Any]] = None
    get_elem: Optional[Callable[[Any, Any], Any]] = None
    rpc: Optional[Callable[[Any, dict], dict]] = None
    cli_show: Optional[Callable[..., list[str]]] = None

    def for_operation(self, operation: Operation) -> Optional[ConfigCallback]:
        """Config callback for an operation, or None if not registered."""
        return {
            Operation.CREATE: self.create,
            Operation.MODIFY: self.modify,
            Operation.DELETE: self.delete,
        }[operation]

    def supports(self, operation: Operation) -> bool:
        return self.for_operation(operation) is not None


@dataclass
class ModuleInfo:
    """A named table of schema path -> callbacks."""
    name: str
    nodes: dict[str, NodeCallbacks] = field(default_factory=dict)

    def get(self, path: str) -> NodeCallbacks:
        """Callbacks for a schema path; an empty set if unknown."""
        callbacks = self.nodes.get(path)
        if callbacks is None:
            logger.debug(f"No callbacks registered for {path}")
            return NodeCallbacks()
        return callbacks
