"""RPC handlers of the frr-ripd module."""
import logging

from .instance import RipDaemon

logger = logging.getLogger(__name__)


def clear_rip_route(daemon: RipDaemon, rpc_input: dict) -> dict:
    """Remove every route learned from neighbors. A no-op without an instance."""
    rip = daemon.rip
    if rip is None:
        logger.debug("clear-rip-route: no RIP instance")
        return {}
    rip.clear_learned_routes()
    return {}
