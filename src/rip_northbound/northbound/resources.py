"""Resource Handles: transaction-scoped tokens acquired during PREPARE.

A handle belongs to exactly one change. PREPARE acquires it, APPLY consumes
it (ownership moves to the runtime model) and ABORT releases it. Release is
idempotent and tolerates handles whose acquisition never completed.
"""
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..utils.retry import with_retry, is_transient_os_error
from .errors import ResourceUnavailable

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Kinds of resources a PREPARE step may acquire."""
    SOCKET = "socket"


class HandleState(str, Enum):
    """Lifecycle of a resource handle."""
    PENDING = "pending"
    ACQUIRED = "acquired"
    CONSUMED = "consumed"
    RELEASED = "released"


@dataclass(eq=False)
class ResourceHandle:
    """A resource acquired for one change of one transaction."""
    kind: ResourceKind
    value: Any = None
    state: HandleState = HandleState.PENDING

    @property
    def fd(self) -> int:
        """File descriptor of a socket handle, -1 if none."""
        if self.kind != ResourceKind.SOCKET or self.value is None:
            return -1
        return self.value.fileno()


Opener = Callable[..., Any]


@with_retry(max_attempts=3, retry_if=is_transient_os_error)
def open_udp_socket(address: str = "0.0.0.0", port: int = 520) -> socket.socket:
    """Open the non-blocking UDP socket a RIP instance listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setblocking(False)
        sock.bind((address, port))
    except OSError:
        sock.close()
        raise
    return sock


def _close_socket(sock: Any) -> None:
    sock.close()


class ResourceManager:
    """Acquire and release resource handles by kind."""

    def __init__(
        self,
        openers: Optional[dict[ResourceKind, Opener]] = None,
        closers: Optional[dict[ResourceKind, Callable[[Any], None]]] = None,
    ):
        """
        Args:
            openers: Factory per resource kind (defaults to open_udp_socket)
            closers: Release function per resource kind
        """
        self.openers = {ResourceKind.SOCKET: open_udp_socket}
        self.openers.update(openers or {})
        self.closers = {ResourceKind.SOCKET: _close_socket}
        self.closers.update(closers or {})
        self.outstanding = 0

    def acquire(self, kind: ResourceKind, **params: Any) -> ResourceHandle:
        """
        Acquire a new handle.

        Raises:
            ResourceUnavailable: If the opener fails
        """
        handle = ResourceHandle(kind=kind)
        try:
            handle.value = self.openers[kind](**params)
        except OSError as e:
            logger.warning(f"Failed to acquire {kind.value}: {e}")
            raise ResourceUnavailable(f"cannot acquire {kind.value}: {e}")
        handle.state = HandleState.ACQUIRED
        self.outstanding += 1
        logger.debug(f"Acquired {kind.value} handle {handle.value!r}")
        return handle

    def consume(self, handle: ResourceHandle) -> Any:
        """Transfer ownership of an acquired value to the caller."""
        if handle.state != HandleState.ACQUIRED:
            raise ValueError(f"cannot consume a {handle.state.value} handle")
        handle.state = HandleState.CONSUMED
        self.outstanding -= 1
        return handle.value

    def release(self, handle: Optional[ResourceHandle]) -> None:
        """Release a handle. Safe on None, pending, consumed or released handles."""
        if handle is None or handle.state != HandleState.ACQUIRED:
            return
        try:
            self.closers[handle.kind](handle.value)
        except OSError as e:
            logger.warning(f"Error releasing {handle.kind.value}: {e}")
        handle.state = HandleState.RELEASED
        handle.value = None
        self.outstanding -= 1
        logger.debug(f"Released {handle.kind.value} handle")
