"""Operational tree access.

Read-only lists are exposed through four callbacks per list: get_next,
get_keys, lookup_entry and one get_elem per leaf. This module turns them into
lazy iteration, keyed lookup and plain-dict rendering. Nothing here mutates
the runtime model or takes part in a transaction.
"""
import logging
from typing import Any, Iterator, Optional

from .callbacks import ModuleInfo
from .errors import SchemaInvalid
from .schema import (
    NodeKind,
    SchemaTable,
    build_segment,
    join_xpath,
    parent_xpath,
    parse_segment,
    schema_path,
    split_xpath,
)

logger = logging.getLogger(__name__)


class OperationalTree:
    """Query interface over the operational callbacks of a module."""

    def __init__(self, schema: SchemaTable, module: ModuleInfo, context: Any):
        self.schema = schema
        self.module = module
        self.context = context

    def iter_entries(self, list_path: str) -> Iterator[Any]:
        """
        Lazily enumerate the entries of a read-only list.

        Forward-only; stops at the first None returned by get_next.
        """
        callbacks = self._list_callbacks(list_path)
        if callbacks.get_next is None:
            return
        entry = callbacks.get_next(self.context, None)
        while entry is not None:
            yield entry
            entry = callbacks.get_next(self.context, entry)

    def get_keys(self, list_path: str, entry: Any) -> dict[str, str]:
        """Key tuple of an entry, named after the schema keys."""
        node = self.schema[list_path]
        values = self._list_callbacks(list_path).get_keys(self.context, entry)
        return dict(zip(node.keys, values))

    def lookup(self, list_path: str, keys: tuple) -> Optional[Any]:
        """Entry for a key tuple, or None if not found."""
        callbacks = self._list_callbacks(list_path)
        if callbacks.lookup_entry is None:
            return None
        return callbacks.lookup_entry(self.context, tuple(keys))

    def get_values(self, list_path: str, entry: Any) -> dict[str, Any]:
        """Leaf values of one entry. Inapplicable leaves are left out."""
        values: dict[str, Any] = {}
        for child in self.schema.children(list_path):
            if child.kind != NodeKind.LEAF:
                continue
            get_elem = self.module.get(child.path).get_elem
            if get_elem is None:
                continue
            value = get_elem(self.context, entry)
            if value is not None:
                values[child.segment] = value
        return values

    def walk(self, list_path: str) -> Iterator[tuple[str, dict[str, Any]]]:
        """
        Yield (data path, leaf values) for every entry of a list.

        Nothing is materialized ahead of the consumer.
        """
        node = self.schema[list_path]
        parent = parent_xpath(list_path) or ""
        for entry in self.iter_entries(list_path):
            keys = self.get_keys(list_path, entry)
            xpath = join_xpath(parent, build_segment(node.segment, keys))
            yield xpath, self.get_values(list_path, entry)

    def get(self, xpath: str) -> Optional[dict[str, Any]]:
        """
        Look up one entry by data path, e.g.
        "/frr-ripd:ripd/state/neighbors/neighbor[address='10.0.0.2']".

        Returns:
            Leaf values, or None if no such entry

        Raises:
            SchemaInvalid: If the path is not a list entry or keys are missing
        """
        list_path = schema_path(xpath)
        node = self.schema.get(list_path)
        if node is None or node.kind != NodeKind.LIST:
            raise SchemaInvalid("not an operational list entry", xpath=xpath)

        predicates = parse_segment(split_xpath(xpath)[-1])[1]
        try:
            keys = tuple(predicates[k] for k in node.keys)
        except KeyError as e:
            raise SchemaInvalid(f"missing key {e}", xpath=xpath)

        entry = self.lookup(list_path, keys)
        if entry is None:
            return None
        return self.get_values(list_path, entry)

    def _list_callbacks(self, list_path: str):
        return self.module.get(list_path)
