"""Shared fixtures: a RIP daemon whose sockets are fakes."""
import errno
import os

import pytest

from rip_northbound.northbound import NorthboundEngine, ResourceKind, ResourceManager
from rip_northbound.ripd import RIPD_MODULE, RIPD_SCHEMA, RipDaemon


class FakeSocket:
    """Stands in for the RIP UDP socket."""

    _next_fd = 100

    def __init__(self, address: str, port: int):
        self.address = address
        self.port = port
        self.closed = 0
        FakeSocket._next_fd += 1
        self.fd = FakeSocket._next_fd

    def fileno(self) -> int:
        return self.fd

    def close(self) -> None:
        self.closed += 1


class SocketFactory:
    """Opener that records every socket it hands out."""

    def __init__(self):
        self.opened: list[FakeSocket] = []
        self.fail_errno = None

    def __call__(self, address: str = "0.0.0.0", port: int = 520) -> FakeSocket:
        if self.fail_errno is not None:
            raise OSError(self.fail_errno, os.strerror(self.fail_errno))
        sock = FakeSocket(address, port)
        self.opened.append(sock)
        return sock

    def exhaust(self) -> None:
        """Make every further open fail like a full descriptor table."""
        self.fail_errno = errno.EMFILE


@pytest.fixture
def sockets():
    """Fake socket opener."""
    return SocketFactory()


@pytest.fixture
def daemon(sockets):
    """RIP daemon using fake sockets."""
    resources = ResourceManager(openers={ResourceKind.SOCKET: sockets})
    return RipDaemon(resources=resources)


@pytest.fixture
def engine(daemon):
    """Northbound engine bound to the frr-ripd module."""
    return NorthboundEngine(daemon, RIPD_MODULE, RIPD_SCHEMA)

