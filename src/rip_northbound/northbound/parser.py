"""Parser for desired state configuration.

Converts dict/YAML input into a DataTree using a SchemaTable. Leaves with a
schema default are filled in whenever their parent exists.
"""
import hashlib
import ipaddress
import json
from typing import Any

from .errors import SchemaInvalid
from .schema import (
    DataNode,
    NodeKind,
    SchemaNode,
    SchemaTable,
    build_segment,
    join_xpath,
)
from .tree import DataTree

_MISSING = object()

# Value ranges of the integer types
INT_RANGES = {
    "uint8": (0, 255),
    "uint16": (0, 65535),
    "uint32": (0, 4294967295),
}


class ParseError(SchemaInvalid):
    """Error parsing desired state configuration."""
    pass


class ConfigParser:
    """Parse desired state from dict/YAML format."""

    def __init__(self, schema: SchemaTable):
        self.schema = schema

    def parse(self, config: dict[str, Any] | None) -> DataTree:
        """
        Parse a configuration dict into a DataTree.

        Args:
            config: Nested dict following the schema; module prefixes on
                node names are optional ("ripd" or "frr-ripd:ripd")

        Returns:
            DataTree in document order

        Raises:
            ParseError: If the config does not match the schema
        """
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ParseError("Configuration must be a mapping")

        tree = DataTree()
        self._parse_children("", "", config, tree)
        return tree

    def _parse_children(
        self,
        schema_path: str,
        data_path: str,
        config: dict[str, Any],
        tree: DataTree,
    ) -> None:
        """Parse every schema child of `schema_path` out of `config`."""
        remaining = dict(config)
        conditional: list[SchemaNode] = []

        for child in self.schema.children(schema_path):
            if self.schema.is_key(child.path) or not child.config:
                continue
            raw = self._pop(remaining, child)
            if child.when is not None and raw not in (_MISSING, None, False, [], {}):
                conditional.append(child)

            if child.kind == NodeKind.CONTAINER:
                xpath = join_xpath(data_path, child.segment)
                tree.add(DataNode(xpath))
                self._parse_children(child.path, xpath, self._mapping(child, raw), tree)

            elif child.kind == NodeKind.PRESENCE:
                if raw is _MISSING or raw is False:
                    continue
                xpath = join_xpath(data_path, child.segment)
                tree.add(DataNode(xpath))
                body = {} if raw in (None, True) else self._mapping(child, raw)
                self._parse_children(child.path, xpath, body, tree)

            elif child.kind == NodeKind.LIST:
                if raw is _MISSING or raw is None:
                    continue
                self._parse_list(child, data_path, raw, tree)

            elif child.kind == NodeKind.LEAF_LIST:
                if raw is _MISSING or raw is None:
                    continue
                self._parse_leaf_list(child, data_path, raw, tree)

            else:
                xpath = join_xpath(data_path, child.segment)
                if raw is _MISSING or raw is None:
                    if child.default is not None:
                        tree.add(DataNode(xpath, child.default))
                    elif child.mandatory:
                        raise ParseError(f"Missing mandatory leaf '{child.segment}'", xpath=xpath)
                    continue
                tree.add(DataNode(xpath, coerce_value(child, raw)))

        for child in conditional:
            self._check_when(child, data_path, tree)

        if remaining:
            raise ParseError(
                f"Unknown node(s) under {schema_path or '/'}: "
                f"{', '.join(sorted(str(k) for k in remaining))}"
            )

    def _parse_list(
        self,
        node: SchemaNode,
        data_path: str,
        raw: Any,
        tree: DataTree,
    ) -> None:
        """Parse list entries given as a list of dicts or, for single-key
        lists, as a mapping of key -> body."""
        if isinstance(raw, dict):
            if len(node.keys) != 1:
                raise ParseError(
                    f"{node.path}: entries of a multi-key list must be given as a list"
                )
            items = []
            for key_value, body in raw.items():
                item = dict(body or {})
                item[node.keys[0]] = key_value
                items.append(item)
        elif isinstance(raw, list):
            items = raw
        else:
            raise ParseError(f"{node.path}: expected a list of entries")

        for item in items:
            if not isinstance(item, dict):
                raise ParseError(f"{node.path}: list entry must be a mapping, got {item!r}")
            body = dict(item)
            keys = {}
            for key in node.keys:
                if key not in body:
                    raise ParseError(f"{node.path}: list entry missing key '{key}'")
                key_node = self.schema[f"{node.path}/{key}"]
                keys[key] = coerce_value(key_node, body.pop(key))

            xpath = join_xpath(data_path, build_segment(node.segment, keys))
            if xpath in tree:
                raise ParseError(f"Duplicate list entry: {xpath}")
            tree.add(DataNode(xpath))
            self._parse_children(node.path, xpath, body, tree)

    def _parse_leaf_list(
        self,
        node: SchemaNode,
        data_path: str,
        raw: Any,
        tree: DataTree,
    ) -> None:
        values = raw if isinstance(raw, list) else [raw]
        for raw_value in values:
            value = coerce_value(node, raw_value)
            xpath = join_xpath(data_path, build_segment(node.segment, {".": value}))
            if xpath in tree:
                raise ParseError(f"Duplicate leaf-list entry: {xpath}")
            tree.add(DataNode(xpath, value))

    def _check_when(self, node: SchemaNode, data_path: str, tree: DataTree) -> None:
        """Reject a node whose sibling condition does not hold."""
        sibling, expected = node.when
        actual = tree.value(join_xpath(data_path, sibling))
        if actual != expected:
            shown = str(expected).lower() if isinstance(expected, bool) else expected
            raise ParseError(
                f"'{node.segment}' is only allowed when {sibling} is {shown}",
                xpath=join_xpath(data_path, node.segment),
            )

    def _mapping(self, node: SchemaNode, raw: Any) -> dict[str, Any]:
        if raw is _MISSING or raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ParseError(f"{node.path}: expected a mapping, got {raw!r}")
        return raw

    @staticmethod
    def _pop(config: dict[str, Any], node: SchemaNode) -> Any:
        """Pop a child by its full or unprefixed name."""
        segment = node.segment
        for name in (segment, segment.split(":", 1)[-1]):
            if name in config:
                return config.pop(name)
        return _MISSING


def coerce_value(node: SchemaNode, raw: Any) -> Any:
    """
    Convert a raw input value to the leaf's type.

    Raises:
        ParseError: If the value does not fit the type
    """
    kind = node.type

    try:
        if kind == "bool":
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str) and raw.lower() in ("true", "false"):
                return raw.lower() == "true"
            raise ValueError("expected a boolean")

        if kind in INT_RANGES:
            if isinstance(raw, bool):
                raise ValueError("expected an integer")
            value = int(raw)
            low, high = INT_RANGES[kind]
            if not low <= value <= high:
                raise ValueError(f"{value} out of {kind} range")
            return value

        if kind == "enum":
            value = str(raw)
            if value not in node.enum:
                raise ValueError(f"must be one of {', '.join(node.enum)}")
            return value

        if kind == "ipv4":
            return str(ipaddress.IPv4Address(str(raw)))

        if kind == "ipv4-prefix":
            return str(ipaddress.IPv4Network(str(raw), strict=True))

        return str(raw)

    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid value {raw!r} for {node.path}: {e}")


def compute_checksum(config: dict[str, Any]) -> str:
    """
    Compute SHA256 checksum of a config dict.

    Useful for integrity verification.
    """
    config_str = json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)
    hash_bytes = hashlib.sha256(config_str.encode()).hexdigest()
    return f"sha256:{hash_bytes[:16]}"
