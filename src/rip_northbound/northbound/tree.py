"""Configuration data trees: data path -> DataNode in document order."""
from typing import Any, Iterator, Optional

from .schema import DataNode


class DataTree:
    """An ordered set of data nodes; parents always precede their children."""

    def __init__(self, nodes: Optional[list[DataNode]] = None):
        self._nodes: dict[str, DataNode] = {}
        for node in nodes or []:
            self.add(node)

    def add(self, node: DataNode) -> None:
        self._nodes[node.xpath] = node

    def get(self, xpath: str) -> Optional[DataNode]:
        return self._nodes.get(xpath)

    def value(self, xpath: str, default: Any = None) -> Any:
        """Value of a leaf, or `default` if the leaf is absent."""
        node = self._nodes.get(xpath)
        return default if node is None else node.value

    def children(self, xpath: str) -> list[DataNode]:
        return [n for n in self._nodes.values() if n.parent == xpath]

    def __contains__(self, xpath: str) -> bool:
        return xpath in self._nodes

    def __iter__(self) -> Iterator[DataNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def xpaths(self) -> list[str]:
        return list(self._nodes)
