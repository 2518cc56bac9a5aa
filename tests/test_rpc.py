"""Tests for RPC invocation."""
from ipaddress import IPv4Address, IPv4Network

import pytest

from rip_northbound.northbound import SchemaInvalid
from rip_northbound.ripd.instance import RouteSubType
from rip_northbound.ripd.yang import CLEAR_RIP_ROUTE


class TestClearRipRoute:
    """Tests for /frr-ripd:clear-rip-route."""

    def test_clears_learned_routes_only(self, engine, daemon):
        engine.apply_config({"ripd": {"instance": {"static-route": ["10.9.0.0/16"]}}})
        daemon.rip.route_learn(IPv4Network("10.1.0.0/16"), IPv4Address("192.0.2.1"), "eth0", 2)

        output = engine.rpc(CLEAR_RIP_ROUTE)

        assert output == {}
        routes = list(daemon.rip.routes.values())
        assert [r.sub_type for r in routes] == [RouteSubType.STATIC]

    def test_configuration_untouched(self, engine, daemon):
        """The RPC does not change the running tree."""
        engine.apply_config({"ripd": {"instance": {"network": ["10.0.0.0/8"]}}})
        before = engine.running.xpaths()

        engine.rpc(CLEAR_RIP_ROUTE)

        assert engine.running.xpaths() == before
        assert daemon.rip.networks == {IPv4Network("10.0.0.0/8")}

    def test_without_instance(self, engine):
        assert engine.rpc(CLEAR_RIP_ROUTE) == {}

    def test_unknown_rpc(self, engine):
        with pytest.raises(SchemaInvalid) as exc_info:
            engine.rpc("/frr-ripd:no-such-rpc")
        assert exc_info.value.xpath == "/frr-ripd:no-such-rpc"
