"""Northbound layer - transactional configuration of a daemon's runtime model.

A desired-state configuration is parsed into a data tree, diffed against the
running tree and applied through per-node callbacks:
- VALIDATE checks every change without side effects
- PREPARE acquires resources (sockets) into per-change handles
- APPLY mutates the runtime model, or ABORT releases what PREPARE acquired
- apply_finish runs once per interested ancestor

Usage:
    from rip_northbound.northbound import NorthboundEngine
    from rip_northbound.ripd import RIPD_MODULE, RIPD_SCHEMA, RipDaemon

    engine = NorthboundEngine(RipDaemon(), RIPD_MODULE, RIPD_SCHEMA)
    result = engine.apply_config({
        "ripd": {
            "instance": {
                "network": ["10.0.0.0/8"],
                "distance": {"source": [{"prefix": "10.0.0.0/8", "distance": 50}]},
            }
        }
    }, dry_run=True)
"""

from .engine import NorthboundEngine
from .errors import (
    NorthboundError,
    SchemaInvalid,
    ResourceUnavailable,
    DomainConflict,
    NotImplementedCallback,
    OrderingViolation,
)
from .schema import (
    Event,
    Operation,
    NodeKind,
    DataNode,
    Change,
    ApplyError,
    CommitResult,
    SchemaNode,
    SchemaTable,
)
from .callbacks import CallbackArgs, ModuleInfo, NodeCallbacks, NorthboundContext
from .entries import EntryRegistry
from .resources import HandleState, ResourceHandle, ResourceKind, ResourceManager
from .tree import DataTree
from .parser import ConfigParser, ParseError, compute_checksum
from .diff import DiffEngine, summarize_changes
from .transaction import TransactionCoordinator
from .oper import OperationalTree
from .rpc import invoke_rpc

__all__ = [
    # Main engine
    "NorthboundEngine",
    # Errors
    "NorthboundError",
    "SchemaInvalid",
    "ResourceUnavailable",
    "DomainConflict",
    "NotImplementedCallback",
    "OrderingViolation",
    # Schema classes
    "Event",
    "Operation",
    "NodeKind",
    "DataNode",
    "Change",
    "ApplyError",
    "CommitResult",
    "SchemaNode",
    "SchemaTable",
    # Callbacks
    "CallbackArgs",
    "ModuleInfo",
    "NodeCallbacks",
    "NorthboundContext",
    "EntryRegistry",
    "HandleState",
    "ResourceHandle",
    "ResourceKind",
    "ResourceManager",
    # Components (for advanced use)
    "DataTree",
    "ConfigParser",
    "ParseError",
    "compute_checksum",
    "DiffEngine",
    "summarize_changes",
    "TransactionCoordinator",
    "OperationalTree",
    "invoke_rpc",
]
