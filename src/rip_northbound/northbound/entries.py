"""Entry Registry: binds list-entry data nodes to runtime objects.

Child nodes of a bound list entry find their runtime object through the
nearest bound ancestor instead of re-deriving it from keys, so several edits
to one entry always land on the same object.
"""
import logging
from typing import Any, Iterator, Optional, Union

from .errors import OrderingViolation
from .schema import DataNode, parent_xpath

logger = logging.getLogger(__name__)

NodeRef = Union[DataNode, str]


def _xpath(node: NodeRef) -> str:
    return node.xpath if isinstance(node, DataNode) else node


class EntryRegistry:
    """Owned mapping from list-entry data path to runtime object."""

    def __init__(self):
        self._entries: dict[str, Any] = {}

    def bind(self, node: NodeRef, obj: Any) -> None:
        """
        Record the runtime object backing a list entry.

        Raises:
            OrderingViolation: If the node is already bound
        """
        xpath = _xpath(node)
        if xpath in self._entries:
            raise OrderingViolation("list entry is already bound", xpath=xpath)
        self._entries[xpath] = obj
        logger.debug(f"Bound {xpath} -> {type(obj).__name__}")

    def lookup(self, node: NodeRef) -> Optional[Any]:
        """Object bound to this exact node, or None."""
        return self._entries.get(_xpath(node))

    def resolve(self, node: NodeRef) -> Any:
        """
        Object bound to the node or its nearest bound ancestor.

        Raises:
            OrderingViolation: If no ancestor is bound
        """
        xpath: Optional[str] = _xpath(node)
        while xpath is not None:
            if xpath in self._entries:
                return self._entries[xpath]
            xpath = parent_xpath(xpath)
        raise OrderingViolation(
            "no bound list entry above this node", xpath=_xpath(node)
        )

    def unbind(self, node: NodeRef) -> Any:
        """
        Clear a binding and return the object it pointed to.

        Raises:
            OrderingViolation: If the node was not bound
        """
        xpath = _xpath(node)
        try:
            obj = self._entries.pop(xpath)
        except KeyError:
            raise OrderingViolation("list entry is not bound", xpath=xpath)
        logger.debug(f"Unbound {xpath}")
        return obj

    def unbind_subtree(self, node: NodeRef) -> int:
        """Clear every binding at or below a node. Returns how many were cleared."""
        root = _xpath(node)
        doomed = [
            x for x in self._entries
            if x == root or x.startswith(root.rstrip("/") + "/")
        ]
        for xpath in doomed:
            del self._entries[xpath]
        if doomed:
            logger.debug(f"Unbound {len(doomed)} entries under {root}")
        return len(doomed)

    def __contains__(self, node: NodeRef) -> bool:
        return _xpath(node) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
