"""The frr-ripd module: RIP runtime model and its northbound callbacks."""
from .instance import RipDaemon, RipInstance
from .northbound import RIPD_MODULE
from .yang import RIPD_SCHEMA

__all__ = [
    "RipDaemon",
    "RipInstance",
    "RIPD_MODULE",
    "RIPD_SCHEMA",
]
