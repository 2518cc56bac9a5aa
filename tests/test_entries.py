"""Tests for the Entry Registry."""
import pytest

from rip_northbound.northbound import DataNode, EntryRegistry, OrderingViolation

SOURCE = "/frr-ripd:ripd/instance/distance/source[prefix='10.0.0.0/8']"


class TestEntryRegistry:
    """Tests for bind/resolve/unbind."""

    def test_bind_and_lookup(self):
        """A bound node returns its object."""
        registry = EntryRegistry()
        obj = object()
        registry.bind(DataNode(SOURCE), obj)

        assert registry.lookup(SOURCE) is obj
        assert SOURCE in registry
        assert len(registry) == 1

    def test_bind_twice_is_fatal(self):
        """Binding an already bound node is an ordering violation."""
        registry = EntryRegistry()
        registry.bind(SOURCE, object())

        with pytest.raises(OrderingViolation) as exc:
            registry.bind(SOURCE, object())

        assert exc.value.xpath == SOURCE

    def test_resolve_from_child_leaf(self):
        """Child leaves resolve to the nearest bound ancestor."""
        registry = EntryRegistry()
        obj = object()
        registry.bind(SOURCE, obj)

        assert registry.resolve(DataNode(f"{SOURCE}/access-list", "acl1")) is obj
        assert registry.resolve(SOURCE) is obj

    def test_resolve_prefers_nearest_binding(self):
        """A binding closer to the node wins over one further up."""
        registry = EntryRegistry()
        outer, inner = object(), object()
        registry.bind("/a[k='1']", outer)
        registry.bind("/a[k='1']/b[k='2']", inner)

        assert registry.resolve("/a[k='1']/b[k='2']/leaf") is inner
        assert registry.resolve("/a[k='1']/leaf") is outer

    def test_resolve_without_binding(self):
        """Resolving with no bound ancestor is an ordering violation."""
        registry = EntryRegistry()

        with pytest.raises(OrderingViolation):
            registry.resolve(f"{SOURCE}/distance")

    def test_unbind_returns_object(self):
        """Unbind clears the binding and hands back the object."""
        registry = EntryRegistry()
        obj = object()
        registry.bind(SOURCE, obj)

        assert registry.unbind(SOURCE) is obj
        assert registry.lookup(SOURCE) is None
        assert len(registry) == 0

    def test_unbind_unknown_is_fatal(self):
        """Unbinding a node that was never bound is an ordering violation."""
        with pytest.raises(OrderingViolation):
            EntryRegistry().unbind(SOURCE)

    def test_create_then_delete_leaves_nothing(self):
        """Create immediately followed by delete leaves no dangling binding."""
        registry = EntryRegistry()
        registry.bind(SOURCE, object())
        registry.unbind(SOURCE)

        assert list(registry) == []

    def test_unbind_subtree(self):
        """Every binding at or below a node is cleared, siblings survive."""
        registry = EntryRegistry()
        registry.bind("/frr-ripd:ripd/instance", "instance")
        registry.bind(SOURCE, "source")
        registry.bind("/frr-interface:lib/interface[name='eth0']", "eth0")

        assert registry.unbind_subtree("/frr-ripd:ripd/instance") == 2
        assert list(registry) == ["/frr-interface:lib/interface[name='eth0']"]

    def test_unbind_subtree_does_not_match_prefix_names(self):
        """A sibling whose name merely starts with the path is kept."""
        registry = EntryRegistry()
        registry.bind("/a/instance-two", "x")

        assert registry.unbind_subtree("/a/instance") == 0
        assert "/a/instance-two" in registry
