"""MCP Server for the RIP northbound configuration layer.

Exposes the northbound engine of a RIP daemon:
- Desired-state configuration is applied as one transaction
- Operational state (neighbors, routes) is read through lazy iterators
- RPCs run directly against the runtime model

Tools exposed:
- apply_config: Apply a desired-state frr-ripd configuration (declarative)
- show_running_config: Render the running configuration as CLI lines
- get_state: Walk an operational list
- lookup_state: Look up one operational list entry by data path
- clear_rip_route: Remove every route learned from neighbors
- get_audit_log: Recent configuration transactions
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    TextContent,
    Tool,
    Resource,
)
from pydantic import AnyUrl

from .config.settings import load_settings
from .northbound import NorthboundEngine, NorthboundError
from .ripd import RIPD_MODULE, RIPD_SCHEMA, RipDaemon
from .ripd.yang import CLEAR_RIP_ROUTE, NEIGHBOR_LIST, ROUTE_LIST
from .utils.audit_log import ChangeRecord, get_recent_changes, log_change, setup_audit_logging
from .utils.logging_config import setup_logging, timed_section, timed_section_sync

# Configure logging - file output and performance tracking
setup_logging()
logger = logging.getLogger(__name__)

# Global engine (initialized on first use)
engine: Optional[NorthboundEngine] = None
audit_file: Optional[str] = None

STATE_LISTS = {
    "neighbors": NEIGHBOR_LIST,
    "routes": ROUTE_LIST,
}


def get_engine() -> NorthboundEngine:
    """Get or create the northbound engine."""
    global engine, audit_file
    if engine is None:
        settings = load_settings()
        audit_file = setup_audit_logging(settings.audit_dir)
        daemon = RipDaemon(settings)
        engine = NorthboundEngine(daemon, RIPD_MODULE, RIPD_SCHEMA)
        if settings.startup_config:
            result = engine.load_file(settings.startup_config, audit_context="startup")
            if not result.success:
                logger.error(f"Startup configuration failed: {result.error}")
    return engine


# Create MCP server
server = Server("rip-northbound")


# === TOOLS ===

@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    return [
        Tool(
            name="apply_config",
            description=(
                "Apply a desired-state RIP configuration. The whole configuration is "
                "given every time; nodes missing from it are deleted. Use dry_run=true "
                "to validate and preview changes without applying."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "config": {
                        "type": "object",
                        "description": (
                            "Desired state, e.g. {\"ripd\": {\"instance\": {\"network\": "
                            "[\"10.0.0.0/8\"], \"timers\": {\"update-interval\": 30}}}}"
                        )
                    },
                    "dry_run": {
                        "type": "boolean",
                        "description": "Preview changes without applying",
                        "default": False
                    },
                    "audit_context": {
                        "type": "string",
                        "description": "Reason for the change (recorded in the audit log)",
                        "default": ""
                    }
                },
                "required": ["config"]
            }
        ),
        Tool(
            name="show_running_config",
            description="Show the running RIP configuration as ripd CLI lines",
            inputSchema={
                "type": "object",
                "properties": {
                    "show_defaults": {
                        "type": "boolean",
                        "description": "Include leaves still at their default value",
                        "default": False
                    }
                },
                "required": []
            }
        ),
        Tool(
            name="get_state",
            description="List operational state: RIP neighbors or the RIP routing table",
            inputSchema={
                "type": "object",
                "properties": {
                    "list": {
                        "type": "string",
                        "enum": list(STATE_LISTS),
                        "description": "Which operational list to walk"
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of entries to return",
                        "default": 100
                    }
                },
                "required": ["list"]
            }
        ),
        Tool(
            name="lookup_state",
            description="Look up one operational entry by data path",
            inputSchema={
                "type": "object",
                "properties": {
                    "xpath": {
                        "type": "string",
                        "description": (
                            "e.g. /frr-ripd:ripd/state/neighbors/neighbor[address='10.0.0.2']"
                        )
                    }
                },
                "required": ["xpath"]
            }
        ),
        Tool(
            name="clear_rip_route",
            description="Remove every route learned from RIP neighbors",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="get_audit_log",
            description="Get recent configuration transactions from the audit log",
            inputSchema={
                "type": "object",
                "properties": {
                    "operation": {
                        "type": "string",
                        "description": "Filter by operation (commit, dry_run, rpc)"
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of records",
                        "default": 20
                    }
                },
                "required": []
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    async with timed_section(f"tool:{name}"):
        try:
            eng = get_engine()

            if name == "apply_config":
                return await handle_apply_config(
                    eng,
                    arguments["config"],
                    arguments.get("dry_run", False),
                    arguments.get("audit_context", "")
                )

            elif name == "show_running_config":
                return await handle_show_running_config(
                    eng,
                    arguments.get("show_defaults", False)
                )

            elif name == "get_state":
                return await handle_get_state(
                    eng,
                    arguments["list"],
                    arguments.get("limit", 100)
                )

            elif name == "lookup_state":
                return await handle_lookup_state(eng, arguments["xpath"])

            elif name == "clear_rip_route":
                return await handle_clear_rip_route(eng)

            elif name == "get_audit_log":
                return await handle_get_audit_log(
                    arguments.get("operation"),
                    arguments.get("limit", 20)
                )

            else:
                return [TextContent(type="text", text=f"Unknown tool: {name}")]

        except NorthboundError as e:
            logger.warning(f"Tool {name} rejected: {e}")
            return [TextContent(type="text", text=f"Error: {e}")]
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            return [TextContent(type="text", text=f"Error: {str(e)}")]


# === TOOL HANDLERS ===

async def handle_apply_config(
    eng: NorthboundEngine,
    config: dict,
    dry_run: bool,
    audit_context: str
) -> list[TextContent]:
    """
    Apply a desired-state configuration.

    This is the primary tool for making changes. It:
    1. Parses the config against the frr-ripd schema
    2. Calculates the change list against the running configuration
    3. Runs the transaction (validate, prepare, apply or abort)
    4. Returns detailed results

    Use dry_run=True to preview changes without applying.
    """
    result = await asyncio.to_thread(
        eng.apply_config,
        config,
        dry_run=dry_run,
        audit_context=audit_context,
    )

    response = result.to_dict()
    if result.apply_errors:
        response["message"] = (
            "Some changes were refused by the routing engine. The running "
            "configuration now includes them; fix the listed nodes and re-apply."
        )

    return [TextContent(
        type="text",
        text=json.dumps(response, indent=2)
    )]


async def handle_show_running_config(
    eng: NorthboundEngine,
    show_defaults: bool
) -> list[TextContent]:
    """Render the running configuration."""
    text = eng.show_running(show_defaults=show_defaults)
    return [TextContent(type="text", text=text or "! no RIP configuration")]


async def handle_get_state(
    eng: NorthboundEngine,
    list_name: str,
    limit: int
) -> list[TextContent]:
    """Walk an operational list, stopping after `limit` entries."""
    if list_name not in STATE_LISTS:
        return [TextContent(type="text", text=f"Unknown state list: {list_name}")]

    entries = []
    with timed_section_sync("oper_walk", label=list_name):
        for xpath, values in eng.get_state(STATE_LISTS[list_name]):
            if len(entries) >= limit:
                break
            entries.append({"xpath": xpath, **values})

    return [TextContent(
        type="text",
        text=json.dumps({
            "list": list_name,
            "count": len(entries),
            "entries": entries,
        }, indent=2)
    )]


async def handle_lookup_state(eng: NorthboundEngine, xpath: str) -> list[TextContent]:
    """Look up one operational entry."""
    values = eng.lookup_state(xpath)
    return [TextContent(
        type="text",
        text=json.dumps({
            "xpath": xpath,
            "found": values is not None,
            "values": values,
        }, indent=2)
    )]


async def handle_clear_rip_route(eng: NorthboundEngine) -> list[TextContent]:
    """Run the clear-rip-route RPC and record it in the audit log."""
    output = eng.rpc(CLEAR_RIP_ROUTE)
    log_change(ChangeRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        transaction_id=None,
        operation="rpc",
        user="system",
        dry_run=False,
        success=True,
        changes=[CLEAR_RIP_ROUTE],
    ))
    return [TextContent(
        type="text",
        text=json.dumps({"rpc": CLEAR_RIP_ROUTE, "success": True, "output": output}, indent=2)
    )]


async def handle_get_audit_log(
    operation: Optional[str] = None,
    limit: int = 20
) -> list[TextContent]:
    """Get recent transactions from the audit log."""
    records = get_recent_changes(
        log_file=audit_file,
        operation=operation,
        limit=limit
    )

    # Format for display
    formatted_records = []
    for r in records:
        formatted_records.append({
            "timestamp": r.timestamp,
            "transaction_id": r.transaction_id,
            "operation": r.operation,
            "dry_run": r.dry_run,
            "success": r.success,
            "changes": r.changes,
            "context": r.context,
            "error": r.error,
            "error_kind": r.error_kind,
        })

    return [TextContent(
        type="text",
        text=json.dumps({
            "total_records": len(formatted_records),
            "filters": {
                "operation": operation,
                "limit": limit,
            },
            "records": formatted_records,
        }, indent=2)
    )]


# === RESOURCES ===

@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("ripd://running-config"),
            name="RIP running configuration",
            description="Running RIP configuration as ripd CLI lines",
            mimeType="text/plain",
        )
    ]


@server.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource."""
    if str(uri).rstrip("/") == "ripd://running-config":
        return get_engine().show_running()

    return json.dumps({"error": f"Unknown resource: {uri}"})


def main():
    """Run the MCP server."""

    async def run():
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
    finally:
        # Cleanup
        if engine and engine.context.rip is not None:
            engine.context.rip.clean()


if __name__ == "__main__":
    main()
