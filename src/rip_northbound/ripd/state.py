"""Operational callbacks for the neighbor and route lists.

Iteration resumes from the previous entry's key, so entries added or removed
between steps never break the walk. The instance lock is held for one index
step at a time only.
"""
from ipaddress import IPv4Address, IPv4Network
from typing import Optional

from .instance import RipDaemon, RipPeer, RipRoute


# --- neighbors/neighbor[address] ---

def neighbor_get_next(daemon: RipDaemon, prev: Optional[RipPeer]) -> Optional[RipPeer]:
    rip = daemon.rip
    if rip is None:
        return None
    with rip.lock:
        return rip.peers.next_after(None if prev is None else prev.address)


def neighbor_get_keys(daemon: RipDaemon, peer: RipPeer) -> tuple:
    return (str(peer.address),)


def neighbor_lookup_entry(daemon: RipDaemon, keys: tuple) -> Optional[RipPeer]:
    rip = daemon.rip
    if rip is None:
        return None
    try:
        address = IPv4Address(keys[0])
    except ValueError:
        return None
    return rip.peers.get(address)


def neighbor_address(daemon: RipDaemon, peer: RipPeer) -> str:
    return str(peer.address)


def neighbor_last_update(daemon: RipDaemon, peer: RipPeer) -> str:
    return peer.last_update.isoformat()


def neighbor_bad_packets(daemon: RipDaemon, peer: RipPeer) -> int:
    return peer.recv_badpackets


def neighbor_bad_routes(daemon: RipDaemon, peer: RipPeer) -> int:
    return peer.recv_badroutes


# --- routes/route[prefix next-hop interface] ---

def route_get_next(daemon: RipDaemon, prev: Optional[RipRoute]) -> Optional[RipRoute]:
    rip = daemon.rip
    if rip is None:
        return None
    with rip.lock:
        return rip.routes.next_after(None if prev is None else prev.key)


def route_get_keys(daemon: RipDaemon, route: RipRoute) -> tuple:
    return (str(route.prefix), str(route.nexthop), route.ifname)


def route_lookup_entry(daemon: RipDaemon, keys: tuple) -> Optional[RipRoute]:
    rip = daemon.rip
    if rip is None:
        return None
    try:
        key = (IPv4Network(keys[0]), IPv4Address(keys[1]), keys[2])
    except (ValueError, IndexError):
        return None
    return rip.routes.get(key)


def route_prefix(daemon: RipDaemon, route: RipRoute) -> str:
    return str(route.prefix)


def route_next_hop(daemon: RipDaemon, route: RipRoute) -> str:
    return str(route.nexthop)


def route_interface(daemon: RipDaemon, route: RipRoute) -> Optional[str]:
    # routes without an outgoing interface leave the leaf out
    return route.ifname or None


def route_metric(daemon: RipDaemon, route: RipRoute) -> int:
    return route.metric
