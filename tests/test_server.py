"""Tests for the MCP tool handlers."""
import json
import os
import tempfile
from ipaddress import IPv4Address, IPv4Network

import pytest

# server configures file logging on import
os.environ.setdefault("RIPNB_LOG_FILE", os.path.join(tempfile.gettempdir(), "ripnb-test", "ripnb.log"))

from rip_northbound import server  # noqa: E402
from rip_northbound.utils.audit_log import audit_logger, setup_audit_logging  # noqa: E402


def payload(content):
    assert len(content) == 1
    return json.loads(content[0].text)


@pytest.fixture
def mcp_engine(engine, tmp_path, monkeypatch):
    """Server globals pointing at the fake-socket engine."""
    monkeypatch.setattr(server, "engine", engine)
    monkeypatch.setattr(server, "audit_file", setup_audit_logging(str(tmp_path)))
    yield engine
    for handler in list(audit_logger.handlers):
        handler.close()
        audit_logger.removeHandler(handler)


class TestApplyConfig:
    """Tests for the apply_config tool."""

    @pytest.mark.asyncio
    async def test_apply(self, mcp_engine):
        result = payload(await server.handle_apply_config(
            mcp_engine, {"ripd": {"instance": {"network": ["10.0.0.0/8"]}}}, False, "test",
        ))

        assert result["success"]
        assert result["applied"]
        assert any("network" in line for line in result["changes_made"])
        assert mcp_engine.context.rip is not None

    @pytest.mark.asyncio
    async def test_dry_run(self, mcp_engine):
        result = payload(await server.handle_apply_config(
            mcp_engine, {"ripd": {"instance": {}}}, True, "",
        ))

        assert result["success"]
        assert result["dry_run"]
        assert mcp_engine.context.rip is None

    @pytest.mark.asyncio
    async def test_apply_errors_explained(self, mcp_engine):
        mcp_engine.apply_config({"ripd": {"instance": {}}})
        mcp_engine.context.rip.neighbor_add(IPv4Address("192.0.2.1"))

        result = payload(await server.handle_apply_config(
            mcp_engine, {"ripd": {"instance": {"explicit-neighbor": ["192.0.2.1"]}}}, False, "",
        ))

        assert not result["success"]
        assert result["error_kind"] == "domain-conflict"
        assert "message" in result


class TestReadTools:
    """Tests for the read-only tools."""

    @pytest.mark.asyncio
    async def test_show_running(self, mcp_engine):
        content = await server.handle_show_running_config(mcp_engine, False)
        assert content[0].text == "! no RIP configuration"

        mcp_engine.apply_config({"ripd": {"instance": {}}})
        content = await server.handle_show_running_config(mcp_engine, False)
        assert content[0].text == "!\nrouter rip"

    @pytest.mark.asyncio
    async def test_get_state_limit(self, mcp_engine):
        mcp_engine.apply_config({"ripd": {"instance": {}}})
        for i in range(1, 4):
            mcp_engine.context.rip.peer_update(IPv4Address(f"192.0.2.{i}"))

        result = payload(await server.handle_get_state(mcp_engine, "neighbors", 2))

        assert result["count"] == 2
        assert result["entries"][0]["address"] == "192.0.2.1"

    @pytest.mark.asyncio
    async def test_get_state_unknown_list(self, mcp_engine):
        content = await server.handle_get_state(mcp_engine, "interfaces", 10)
        assert "Unknown state list" in content[0].text

    @pytest.mark.asyncio
    async def test_lookup_state(self, mcp_engine):
        mcp_engine.apply_config({"ripd": {"instance": {}}})
        mcp_engine.context.rip.peer_update(IPv4Address("192.0.2.1"))
        xpath = "/frr-ripd:ripd/state/neighbors/neighbor[address='192.0.2.1']"

        result = payload(await server.handle_lookup_state(mcp_engine, xpath))

        assert result["found"]
        assert result["values"]["address"] == "192.0.2.1"

    @pytest.mark.asyncio
    async def test_call_tool_reports_errors(self, mcp_engine):
        content = await server.call_tool("lookup_state", {"xpath": "/frr-ripd:ripd/state/neighbors"})
        assert content[0].text.startswith("Error:")

    @pytest.mark.asyncio
    async def test_call_tool_unknown(self, mcp_engine):
        content = await server.call_tool("reboot", {})
        assert content[0].text == "Unknown tool: reboot"


class TestRpcAndAudit:
    """Tests for clear_rip_route and the audit log tool."""

    @pytest.mark.asyncio
    async def test_clear_rip_route_audited(self, mcp_engine):
        mcp_engine.apply_config({"ripd": {"instance": {}}})
        mcp_engine.context.rip.route_learn(
            IPv4Network("10.1.0.0/16"), IPv4Address("192.0.2.1"), "eth0", 2,
        )

        result = payload(await server.handle_clear_rip_route(mcp_engine))
        assert result["success"]
        assert len(mcp_engine.context.rip.routes) == 0

        audit = payload(await server.handle_get_audit_log("rpc", 10))
        assert audit["total_records"] == 1
        assert audit["records"][0]["changes"] == ["/frr-ripd:clear-rip-route"]

    @pytest.mark.asyncio
    async def test_audit_log_lists_commits(self, mcp_engine):
        mcp_engine.apply_config({"ripd": {"instance": {}}}, audit_context="first")
        mcp_engine.apply_config({"ripd": {"instance": {"default-metric": 3}}}, audit_context="second")

        audit = payload(await server.handle_get_audit_log(None, 10))

        assert [r["context"] for r in audit["records"]] == ["second", "first"]
