"""Tests for the diff engine."""
import pytest

from rip_northbound.northbound import (
    ConfigParser,
    DiffEngine,
    Operation,
    summarize_changes,
)
from rip_northbound.northbound.tree import DataTree
from rip_northbound.ripd import RIPD_MODULE, RIPD_SCHEMA

INSTANCE = "/frr-ripd:ripd/instance"
SOURCE_A = f"{INSTANCE}/distance/source[prefix='10.0.0.0/8']"
SOURCE_B = f"{INSTANCE}/distance/source[prefix='172.16.0.0/12']"


@pytest.fixture
def parse():
    return ConfigParser(RIPD_SCHEMA).parse


@pytest.fixture
def diff():
    return DiffEngine(RIPD_SCHEMA, RIPD_MODULE).calculate


def ops(changes):
    return [(c.operation, c.dnode.xpath) for c in changes]


class TestDiffEngine:
    """Tests for change list calculation."""

    def test_no_changes(self, parse, diff):
        config = {"ripd": {"instance": {"network": ["10.0.0.0/8"]}}}
        assert diff(parse(config), parse(config)) == []

    def test_create_instance_parent_first(self, parse, diff):
        """The instance is created before any of its leaves are modified."""
        changes = diff(DataTree(), parse({"ripd": {"instance": {}}}))

        assert ops(changes)[0] == (Operation.CREATE, INSTANCE)
        assert all(c.operation == Operation.MODIFY for c in changes[1:])
        assert (Operation.MODIFY, f"{INSTANCE}/default-metric") in ops(changes)

    def test_containers_are_not_changes(self, parse, diff):
        """Non-presence containers never appear in the change list."""
        changes = diff(DataTree(), parse({"ripd": {"instance": {}}}))
        xpaths = [c.dnode.xpath for c in changes]

        assert "/frr-ripd:ripd" not in xpaths
        assert f"{INSTANCE}/timers" not in xpaths

    def test_key_leaves_are_not_nodes(self, parse, diff):
        """List keys are carried in predicates, not as leaf changes."""
        running = parse({"ripd": {"instance": {}}})
        candidate = parse({"ripd": {"instance": {
            "distance": {"source": [{"prefix": "10.0.0.0/8", "distance": 50}]},
        }}})

        assert ops(diff(running, candidate)) == [
            (Operation.CREATE, SOURCE_A),
            (Operation.MODIFY, f"{SOURCE_A}/distance"),
        ]

    def test_leaf_modify(self, parse, diff):
        running = parse({"ripd": {"instance": {"default-metric": 1}}})
        candidate = parse({"ripd": {"instance": {"default-metric": 5}}})

        changes = diff(running, candidate)

        assert ops(changes) == [(Operation.MODIFY, f"{INSTANCE}/default-metric")]
        assert changes[0].dnode.value == 5

    def test_removed_leaf_reverts_to_default(self, parse, diff):
        """Dropping a leaf with a default modifies it back."""
        running = parse({"ripd": {"instance": {"default-metric": 5}}})
        candidate = parse({"ripd": {"instance": {}}})

        changes = diff(running, candidate)

        assert ops(changes) == [(Operation.MODIFY, f"{INSTANCE}/default-metric")]
        assert changes[0].dnode.value == 1

    def test_deleted_list_entry_is_one_change(self, parse, diff):
        """The entry's delete owns its children."""
        running = parse({"ripd": {"instance": {
            "distance": {"source": [{"prefix": "10.0.0.0/8", "distance": 50, "access-list": "a"}]},
        }}})
        candidate = parse({"ripd": {"instance": {}}})

        assert ops(diff(running, candidate)) == [(Operation.DELETE, SOURCE_A)]

    def test_deleted_leaf_with_delete_callback(self, parse, diff):
        running = parse({"ripd": {"instance": {
            "distance": {"source": [{"prefix": "10.0.0.0/8", "distance": 50, "access-list": "a"}]},
        }}})
        candidate = parse({"ripd": {"instance": {
            "distance": {"source": [{"prefix": "10.0.0.0/8", "distance": 50}]},
        }}})

        assert ops(diff(running, candidate)) == [
            (Operation.DELETE, f"{SOURCE_A}/access-list"),
        ]

    def test_deletions_before_creations(self, parse, diff):
        running = parse({"ripd": {"instance": {
            "distance": {"source": [{"prefix": "10.0.0.0/8", "distance": 50}]},
        }}})
        candidate = parse({"ripd": {"instance": {
            "distance": {"source": [{"prefix": "172.16.0.0/12", "distance": 50}]},
        }}})

        assert ops(diff(running, candidate)) == [
            (Operation.DELETE, SOURCE_A),
            (Operation.CREATE, SOURCE_B),
            (Operation.MODIFY, f"{SOURCE_B}/distance"),
        ]

    def test_deletions_in_reverse_order(self, parse, diff):
        running = parse({"ripd": {"instance": {"network": ["10.0.0.0/8", "192.168.0.0/16"]}}})
        candidate = parse({"ripd": {"instance": {}}})

        assert ops(diff(running, candidate)) == [
            (Operation.DELETE, f"{INSTANCE}/network[.='192.168.0.0/16']"),
            (Operation.DELETE, f"{INSTANCE}/network[.='10.0.0.0/8']"),
        ]

    def test_instance_delete_owns_subtree(self, parse, diff):
        running = parse({"ripd": {"instance": {"network": ["10.0.0.0/8"]}}})

        assert ops(diff(running, parse({}))) == [(Operation.DELETE, INSTANCE)]

    def test_removed_leaf_in_kept_container(self, parse, diff):
        """A leaf dropped from a container that stays is deleted on its own."""
        running = parse({"lib": {"interface": {"eth0": {"rip": {"authentication-password": "x"}}}}})
        candidate = parse({"lib": {"interface": {"eth0": {}}}})

        assert ops(diff(running, candidate)) == [(
            Operation.DELETE,
            "/frr-interface:lib/interface[name='eth0']/frr-ripd:rip/authentication-password",
        )]


class TestSummarizeChanges:
    """Tests for summarize_changes."""

    def test_empty(self):
        assert "No changes needed" in summarize_changes([])

    def test_markers(self, parse, diff):
        running = parse({"ripd": {"instance": {"network": ["10.0.0.0/8"]}}})
        candidate = parse({"ripd": {"instance": {"network": ["192.168.0.0/16"], "default-metric": 2}}})

        summary = summarize_changes(diff(running, candidate))

        assert "(3 total)" in summary
        assert "[-] delete /frr-ripd:ripd/instance/network[.='10.0.0.0/8']" in summary
        assert "[+] create /frr-ripd:ripd/instance/network[.='192.168.0.0/16']" in summary
        assert "[~] modify /frr-ripd:ripd/instance/default-metric = 2" in summary
