"""Diff engine for calculating changes between running and candidate trees.

Produces the ordered change list the transaction coordinator drives:
deletions first, then creations and modifications in document order so a
list entry is always created before any of its children are touched.
"""
from .callbacks import ModuleInfo
from .schema import (
    Change,
    DataNode,
    NodeKind,
    Operation,
    SchemaTable,
)
from .tree import DataTree


class DiffEngine:
    """Calculate the changes needed to turn one data tree into another."""

    def __init__(self, schema: SchemaTable, module: ModuleInfo):
        self.schema = schema
        self.module = module

    def calculate(self, running: DataTree, candidate: DataTree) -> list[Change]:
        """
        Calculate changes from the running tree to the candidate tree.

        Args:
            running: Currently applied configuration
            candidate: Desired configuration

        Returns:
            Ordered list of changes
        """
        deletions: list[Change] = []
        for node in running:
            if node.xpath in candidate:
                continue
            parent = node.parent
            if parent is not None and parent not in candidate:
                continue  # covered by an ancestor
            self._deleted(node, running, deletions)

        changes = list(reversed(deletions))

        for node in candidate:
            kind = self._kind(node)
            current = running.get(node.xpath)

            if current is not None:
                if kind == NodeKind.LEAF and current.value != node.value:
                    changes.append(Change(Operation.MODIFY, node))
                continue

            if kind == NodeKind.LEAF:
                changes.append(Change(Operation.MODIFY, node))
            elif kind in (NodeKind.LIST, NodeKind.PRESENCE, NodeKind.LEAF_LIST):
                changes.append(Change(Operation.CREATE, node))

        return changes

    def _deleted(self, node: DataNode, running: DataTree, out: list[Change]) -> None:
        """
        Record the deletion of a subtree.

        A node with a delete callback gets one DELETE and owns the cleanup of
        everything below it. Otherwise the walk continues into its children.
        """
        kind = self._kind(node)
        callbacks = self.module.get(node.schema_path)

        if kind != NodeKind.CONTAINER and callbacks.supports(Operation.DELETE):
            out.append(Change(Operation.DELETE, node))
            return

        if kind in (NodeKind.CONTAINER, NodeKind.PRESENCE, NodeKind.LIST):
            for child in running.children(node.xpath):
                self._deleted(child, running, out)

    def _kind(self, node: DataNode) -> NodeKind:
        schema_node = self.schema.get(node.schema_path)
        return schema_node.kind if schema_node else NodeKind.LEAF


def summarize_changes(changes: list[Change]) -> str:
    """
    Create a human-readable summary of a change list.

    Useful for dry-run output and logging.
    """
    if not changes:
        return "No changes needed - running configuration matches desired state"

    markers = {
        Operation.CREATE: "[+]",
        Operation.DELETE: "[-]",
        Operation.MODIFY: "[~]",
    }
    lines = [f"Changes to apply ({len(changes)} total):", ""]
    for change in changes:
        lines.append(f"  {markers[change.operation]} {change.describe()}")
    return "\n".join(lines)
