"""RIP runtime model.

RipDaemon is the context every ripd callback receives. It owns at most one
RipInstance, created when the instance node is applied on the socket
acquired during PREPARE and destroyed when the node is deleted.

RipInstance holds what the protocol engine consults while running:
configuration fields, the distance and offset-list tables, the RIB and the
peer table. Its methods are the routing-engine operations the configuration
callbacks call; domain failures raise DomainConflict.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from ipaddress import IPv4Address, IPv4Network, ip_network
from typing import Any, Callable, Optional

from ..config.settings import DaemonSettings
from ..northbound.callbacks import NorthboundContext
from ..northbound.entries import EntryRegistry
from ..northbound.errors import DomainConflict, OrderingViolation
from ..northbound.resources import ResourceManager
from .table import SortedIndex

logger = logging.getLogger(__name__)

RIP_METRIC_INFINITY = 16
RIP_DEFAULT_METRIC = 1

DEFAULT_ROUTE = IPv4Network("0.0.0.0/0")
ANY_ADDRESS = IPv4Address("0.0.0.0")


class RouteType(str, Enum):
    """Origin protocol of a route."""
    RIP = "rip"
    KERNEL = "kernel"
    CONNECTED = "connected"
    STATIC = "static"
    OSPF = "ospf"
    ISIS = "isis"
    BGP = "bgp"
    EIGRP = "eigrp"
    NHRP = "nhrp"
    TABLE = "table"
    VNC = "vnc"
    BABEL = "babel"
    SHARP = "sharp"
    OPENFABRIC = "openfabric"


class RouteSubType(str, Enum):
    """How a route entered the RIP table."""
    NORMAL = "normal"          # learned from a neighbor
    STATIC = "static"          # "route" command
    DEFAULT = "default"        # default-information originate
    REDISTRIBUTE = "redistribute"
    INTERFACE = "interface"


class OffsetDirection(str, Enum):
    IN = "in"
    OUT = "out"


@dataclass(eq=False)
class RipRoute:
    """One route in the RIP table."""
    prefix: IPv4Network
    type: RouteType
    sub_type: RouteSubType
    nexthop: IPv4Address = ANY_ADDRESS
    ifname: str = ""
    metric: int = RIP_DEFAULT_METRIC
    distance: int = 0
    from_address: Optional[IPv4Address] = None

    @property
    def key(self) -> tuple[IPv4Network, IPv4Address, str]:
        return (self.prefix, self.nexthop, self.ifname)


@dataclass(eq=False)
class RipPeer:
    """A neighbor we have received packets from."""
    address: IPv4Address
    last_update: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    recv_badpackets: int = 0
    recv_badroutes: int = 0


@dataclass(eq=False)
class RipDistance:
    """Administrative distance override for routes from a source prefix."""
    prefix: IPv4Network
    distance: int = 0
    access_list: Optional[str] = None


@dataclass
class OffsetEntry:
    access_list: Optional[str] = None
    metric: int = 0


@dataclass(eq=False)
class RipOffsetList:
    """Per-interface metric offsets, one slot per direction."""
    ifname: str
    direct: dict[OffsetDirection, OffsetEntry] = field(
        default_factory=lambda: {d: OffsetEntry() for d in OffsetDirection}
    )

    def is_empty(self) -> bool:
        return all(e.access_list is None for e in self.direct.values())


@dataclass(eq=False)
class RedistConfig:
    """Redistribution settings for one source protocol."""
    protocol: str
    route_map: Optional[str] = None
    metric_config: bool = False
    metric: int = 0
    enabled: bool = False


@dataclass(eq=False)
class RipInterfaceParams:
    """Per-interface RIP settings."""
    ifname: str
    split_horizon: str = "simple"
    v2_broadcast: bool = False
    version_receive: Optional[str] = None
    version_send: Optional[str] = None
    auth_mode: str = "none"
    md5_auth_length: Optional[int] = None
    auth_password: Optional[str] = None
    key_chain: Optional[str] = None


@dataclass
class UpdateTimer:
    """The periodic update timer as last armed."""
    interval: Optional[int] = None
    armed_at: Optional[float] = None
    generation: int = 0

    @property
    def armed(self) -> bool:
        return self.armed_at is not None


AccessListFilter = Callable[[str, IPv4Network], bool]


class RipInstance:
    """The running RIP instance."""

    def __init__(
        self,
        sock: Any,
        clock: Callable[[], float] = time.monotonic,
        access_list_filter: Optional[AccessListFilter] = None,
    ):
        """
        Args:
            sock: UDP socket consumed from the PREPARE handle
            clock: Monotonic clock used for timers
            access_list_filter: Evaluates an access-list against a prefix;
                unknown lists permit everything when None
        """
        self.sock = sock
        self.clock = clock
        self.access_list_filter = access_list_filter
        # Guards multi-step table mutations against readers and RPCs
        self.lock = threading.RLock()

        self.ecmp = False
        self.default_metric = RIP_DEFAULT_METRIC
        self.distance = 0
        self.passive_default = False
        self.version_receive = "1-2"
        self.version_send = "2"
        self.update_time = 30
        self.timeout_time = 180
        self.garbage_time = 240

        self.distance_table: SortedIndex[IPv4Network, RipDistance] = SortedIndex()
        self.offset_lists: dict[str, RipOffsetList] = {}
        self.networks: set[IPv4Network] = set()
        self.enable_interfaces: set[str] = set()
        self.passive_nondefault: set[str] = set()
        self.neighbors: set[IPv4Address] = set()
        self.redist: dict[str, RedistConfig] = {}
        self.routes: SortedIndex[tuple, RipRoute] = SortedIndex()
        self.peers: SortedIndex[IPv4Address, RipPeer] = SortedIndex()
        self.update_timer = UpdateTimer()

    # --- Lifecycle ---

    def clean(self) -> None:
        """Tear down all state and close the socket."""
        with self.lock:
            self.distance_table.clear()
            self.offset_lists.clear()
            self.networks.clear()
            self.enable_interfaces.clear()
            self.passive_nondefault.clear()
            self.neighbors.clear()
            self.redist.clear()
            self.routes.clear()
            self.peers.clear()
            self.update_timer = UpdateTimer()
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def event_update(self) -> bool:
        """
        Re-arm the periodic update timer.

        Only re-arms when the interval differs from the armed one, so
        repeated calls without timer changes have no effect.

        Returns:
            True if the timer was re-armed
        """
        timer = self.update_timer
        if timer.armed and timer.interval == self.update_time:
            return False
        self.update_timer = UpdateTimer(
            interval=self.update_time,
            armed_at=self.clock(),
            generation=timer.generation + 1,
        )
        logger.debug(f"Update timer armed: every {self.update_time}s")
        return True

    # --- Routes ---

    def redistribute_add(
        self,
        route_type: RouteType,
        sub_type: RouteSubType,
        prefix: IPv4Network,
        nexthop: IPv4Address = ANY_ADDRESS,
        ifname: str = "",
        metric: int = RIP_DEFAULT_METRIC,
        distance: int = 0,
    ) -> RipRoute:
        """Add or replace a route in the RIP table."""
        route = RipRoute(
            prefix=prefix,
            type=route_type,
            sub_type=sub_type,
            nexthop=nexthop,
            ifname=ifname,
            metric=metric,
            distance=distance,
        )
        with self.lock:
            self.routes.insert(route.key, route)
        return route

    def redistribute_delete(
        self,
        route_type: RouteType,
        sub_type: RouteSubType,
        prefix: IPv4Network,
    ) -> int:
        """Remove routes of one origin for a prefix. Returns how many."""
        with self.lock:
            doomed = [
                r for r in self.routes.values()
                if r.prefix == prefix and r.type == route_type and r.sub_type == sub_type
            ]
            for route in doomed:
                self.routes.remove(route.key)
        return len(doomed)

    def default_information_set(self, originate: bool) -> None:
        if originate:
            existing = self.routes.get((DEFAULT_ROUTE, ANY_ADDRESS, ""))
            if existing is not None and existing.sub_type != RouteSubType.DEFAULT:
                raise DomainConflict(
                    f"{DEFAULT_ROUTE} is already a {existing.sub_type.value} route"
                )
            self.redistribute_add(RouteType.RIP, RouteSubType.DEFAULT, DEFAULT_ROUTE)
        else:
            self.redistribute_delete(RouteType.RIP, RouteSubType.DEFAULT, DEFAULT_ROUTE)

    def static_route_add(self, prefix: IPv4Network) -> RipRoute:
        """Add a static route. Raises DomainConflict if any route holds its key."""
        existing = self.routes.get((prefix, ANY_ADDRESS, ""))
        if existing is not None:
            if existing.sub_type == RouteSubType.STATIC:
                raise DomainConflict(f"static route {prefix} already exists")
            raise DomainConflict(f"{prefix} is already a {existing.sub_type.value} route")
        return self.redistribute_add(RouteType.RIP, RouteSubType.STATIC, prefix)

    def static_route_delete(self, prefix: IPv4Network) -> None:
        if not self.redistribute_delete(RouteType.RIP, RouteSubType.STATIC, prefix):
            raise DomainConflict(f"static route {prefix} does not exist")

    def route_learn(
        self,
        prefix: IPv4Network,
        nexthop: IPv4Address,
        ifname: str,
        metric: int,
    ) -> RipRoute:
        """Install a route received from a neighbor (protocol engine hook)."""
        with self.lock:
            self.peer_update(nexthop)
            if not self.ecmp:
                for other in [r for r in self.routes.values() if r.prefix == prefix
                              and r.sub_type == RouteSubType.NORMAL]:
                    self.routes.remove(other.key)
            route = RipRoute(
                prefix=prefix,
                type=RouteType.RIP,
                sub_type=RouteSubType.NORMAL,
                nexthop=nexthop,
                ifname=ifname,
                metric=min(metric, RIP_METRIC_INFINITY),
                distance=self.distance_apply(nexthop, prefix),
                from_address=nexthop,
            )
            self.routes.insert(route.key, route)
        return route

    def clear_learned_routes(self) -> int:
        """Drop every route learned from neighbors. Returns how many."""
        with self.lock:
            doomed = [r for r in self.routes.values() if r.sub_type == RouteSubType.NORMAL]
            for route in doomed:
                self.routes.remove(route.key)
        logger.info(f"Cleared {len(doomed)} learned routes")
        return len(doomed)

    def ecmp_disable(self) -> int:
        """Keep only the best route per prefix. Returns routes removed."""
        removed = 0
        with self.lock:
            by_prefix: dict[IPv4Network, list[RipRoute]] = {}
            for route in self.routes.values():
                by_prefix.setdefault(route.prefix, []).append(route)
            for routes in by_prefix.values():
                if len(routes) < 2:
                    continue
                best = min(routes, key=lambda r: r.metric)
                for route in routes:
                    if route is not best:
                        self.routes.remove(route.key)
                        removed += 1
        return removed

    # --- Peers ---

    def peer_update(self, address: IPv4Address) -> RipPeer:
        with self.lock:
            peer = self.peers.get(address)
            if peer is None:
                peer = RipPeer(address=address)
                self.peers.insert(address, peer)
            else:
                peer.last_update = datetime.now(timezone.utc)
        return peer

    def peer_bad_packet(self, address: IPv4Address, bad_routes: int = 0) -> None:
        peer = self.peer_update(address)
        peer.recv_badpackets += 1
        peer.recv_badroutes += bad_routes

    # --- Distance ---

    def distance_source_add(self, prefix: IPv4Network) -> RipDistance:
        with self.lock:
            if prefix in self.distance_table:
                raise DomainConflict(f"distance source {prefix} already exists")
            rdistance = RipDistance(prefix=prefix)
            self.distance_table.insert(prefix, rdistance)
        return rdistance

    def distance_source_delete(self, rdistance: RipDistance) -> None:
        """Free a distance record and its access-list name."""
        with self.lock:
            rdistance.access_list = None
            self.distance_table.remove(rdistance.prefix)

    def distance_apply(self, source: IPv4Address, prefix: IPv4Network) -> int:
        """
        Administrative distance for a route from `source`.

        Longest matching distance source wins; 0 means protocol default.
        """
        for length in range(32, -1, -1):
            rdistance = self.distance_table.get(ip_network(f"{source}/{length}", strict=False))
            if rdistance is None:
                continue
            if rdistance.access_list and not self._permits(rdistance.access_list, prefix):
                break
            return rdistance.distance
        return self.distance

    # --- Offset lists ---

    def offset_list_get(self, ifname: str) -> RipOffsetList:
        """Existing offset list for an interface, or a new one."""
        with self.lock:
            offset = self.offset_lists.get(ifname)
            if offset is None:
                offset = RipOffsetList(ifname=ifname)
                self.offset_lists[ifname] = offset
        return offset

    def offset_list_delete(self, offset: RipOffsetList) -> None:
        with self.lock:
            if self.offset_lists.get(offset.ifname) is offset:
                del self.offset_lists[offset.ifname]

    def offset_list_apply(
        self,
        direction: OffsetDirection,
        ifname: str,
        prefix: IPv4Network,
        metric: int,
    ) -> int:
        """Metric after applying the interface (or wildcard) offset list."""
        for name in (ifname, "*"):
            offset = self.offset_lists.get(name)
            if offset is None:
                continue
            entry = offset.direct[direction]
            if entry.access_list and self._permits(entry.access_list, prefix):
                return min(metric + entry.metric, RIP_METRIC_INFINITY)
        return metric

    def _permits(self, access_list: str, prefix: IPv4Network) -> bool:
        if self.access_list_filter is None:
            return True
        return self.access_list_filter(access_list, prefix)

    # --- Neighbors, networks, interfaces ---

    def neighbor_add(self, address: IPv4Address) -> None:
        with self.lock:
            if address in self.neighbors:
                raise DomainConflict(f"neighbor {address} already configured")
            self.neighbors.add(address)

    def neighbor_delete(self, address: IPv4Address) -> None:
        with self.lock:
            if address not in self.neighbors:
                raise DomainConflict(f"neighbor {address} is not configured")
            self.neighbors.discard(address)

    def enable_network_add(self, prefix: IPv4Network) -> None:
        with self.lock:
            if prefix in self.networks:
                raise DomainConflict(f"network {prefix} already enabled")
            self.networks.add(prefix)

    def enable_network_delete(self, prefix: IPv4Network) -> None:
        with self.lock:
            if prefix not in self.networks:
                raise DomainConflict(f"network {prefix} is not enabled")
            self.networks.discard(prefix)

    def enable_if_add(self, ifname: str) -> None:
        with self.lock:
            if ifname in self.enable_interfaces:
                raise DomainConflict(f"interface {ifname} already enabled")
            self.enable_interfaces.add(ifname)

    def enable_if_delete(self, ifname: str) -> None:
        with self.lock:
            if ifname not in self.enable_interfaces:
                raise DomainConflict(f"interface {ifname} is not enabled")
            self.enable_interfaces.discard(ifname)

    # --- Passive interfaces ---

    def passive_nondefault_set(self, ifname: str) -> None:
        with self.lock:
            if ifname in self.passive_nondefault:
                raise DomainConflict(f"interface {ifname} already in the passive exception list")
            self.passive_nondefault.add(ifname)

    def passive_nondefault_unset(self, ifname: str) -> None:
        with self.lock:
            if ifname not in self.passive_nondefault:
                raise DomainConflict(f"interface {ifname} not in the passive exception list")
            self.passive_nondefault.discard(ifname)

    def passive_nondefault_clean(self) -> None:
        with self.lock:
            self.passive_nondefault.clear()

    def is_passive(self, ifname: str) -> bool:
        return self.passive_default != (ifname in self.passive_nondefault)

    # --- Redistribution ---

    def redistribute_conf_set(self, protocol: str) -> RedistConfig:
        with self.lock:
            if protocol in self.redist:
                raise DomainConflict(f"redistribution of {protocol} already configured")
            config = RedistConfig(protocol=protocol)
            self.redist[protocol] = config
        return config

    def redistribute_conf_update(self, protocol: str) -> None:
        """Start (or keep) redistributing routes of `protocol`."""
        config = self.redist.get(protocol)
        if config is not None and not config.enabled:
            config.enabled = True
            logger.info(f"Redistributing {protocol} routes")

    def redistribute_conf_delete(self, protocol: str) -> None:
        """Stop redistributing `protocol` and withdraw its routes."""
        with self.lock:
            self.redist.pop(protocol, None)
            doomed = [
                r for r in self.routes.values()
                if r.type.value == protocol and r.sub_type == RouteSubType.REDISTRIBUTE
            ]
            for route in doomed:
                self.routes.remove(route.key)


class RipDaemon(NorthboundContext):
    """Context handed to every ripd callback."""

    def __init__(
        self,
        settings: Optional[DaemonSettings] = None,
        registry: Optional[EntryRegistry] = None,
        resources: Optional[ResourceManager] = None,
        access_list_filter: Optional[AccessListFilter] = None,
    ):
        super().__init__(registry, resources)
        self.settings = settings or DaemonSettings()
        self.access_list_filter = access_list_filter
        self.rip: Optional[RipInstance] = None
        self.interfaces: dict[str, RipInterfaceParams] = {}

    def create_instance(self, sock: Any) -> RipInstance:
        if self.rip is not None:
            raise DomainConflict("RIP instance already running")
        self.rip = RipInstance(sock, access_list_filter=self.access_list_filter)
        logger.info("RIP instance created")
        return self.rip

    def destroy_instance(self, xpath: str) -> None:
        """Clean the instance and drop every binding under its node."""
        if self.rip is None:
            return
        self.rip.clean()
        self.rip = None
        self.registry.unbind_subtree(xpath)
        logger.info("RIP instance destroyed")

    def require_instance(self, xpath: Optional[str] = None) -> RipInstance:
        if self.rip is None:
            raise OrderingViolation("RIP instance does not exist", xpath=xpath)
        return self.rip

    def interface(self, ifname: str) -> RipInterfaceParams:
        """RIP parameters of an interface, created on first use."""
        params = self.interfaces.get(ifname)
        if params is None:
            params = RipInterfaceParams(ifname=ifname)
            self.interfaces[ifname] = params
        return params
