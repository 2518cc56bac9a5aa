"""Action invoker for RPCs.

RPCs have no node in the configuration tree. Their handlers work directly on
the runtime model through the same methods configuration callbacks use.
"""
import logging
from typing import Any, Optional

from .callbacks import ModuleInfo
from .errors import SchemaInvalid

logger = logging.getLogger(__name__)


def invoke_rpc(
    module: ModuleInfo,
    context: Any,
    xpath: str,
    rpc_input: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """
    Run the RPC registered at `xpath`.

    Args:
        module: Callback table
        context: Runtime context handed to the handler
        xpath: RPC path, e.g. "/frr-ripd:clear-rip-route"
        rpc_input: Input leaves

    Returns:
        Output leaves (empty for RPCs without output)

    Raises:
        SchemaInvalid: If no RPC is registered at that path
    """
    handler = module.get(xpath).rpc
    if handler is None:
        raise SchemaInvalid("unknown RPC", xpath=xpath)

    logger.info(f"Invoking RPC {xpath}")
    output = handler(context, dict(rpc_input or {}))
    return output or {}
