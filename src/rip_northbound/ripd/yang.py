"""Schema of the frr-ripd module and the RIP leaves of frr-interface."""
from ..northbound.schema import NodeKind, SchemaNode, SchemaTable

RIPD = "/frr-ripd:ripd"
INSTANCE = f"{RIPD}/instance"
STATE = f"{RIPD}/state"
INTERFACE = "/frr-interface:lib/interface"
IF_RIP = f"{INTERFACE}/frr-ripd:rip"

NEIGHBOR_LIST = f"{STATE}/neighbors/neighbor"
ROUTE_LIST = f"{STATE}/routes/route"
CLEAR_RIP_ROUTE = "/frr-ripd:clear-rip-route"

REDIST_PROTOCOLS = (
    "kernel", "connected", "static", "ospf", "isis", "bgp", "eigrp",
    "nhrp", "table", "vnc", "babel", "sharp", "openfabric",
)
VERSIONS_RECEIVE = ("1", "2", "1-2")
VERSIONS_SEND = ("1", "2")

# Value ranges checked during VALIDATE
METRIC_RANGE = (0, 16)
DEFAULT_METRIC_RANGE = (1, 16)
DISTANCE_RANGE = (1, 255)
TIMER_RANGE = (5, 2147483647)
MD5_AUTH_LENGTHS = (16, 20)

C = NodeKind.CONTAINER
P = NodeKind.PRESENCE
L = NodeKind.LIST
F = NodeKind.LEAF
LL = NodeKind.LEAF_LIST

RIPD_SCHEMA = SchemaTable([
    SchemaNode(RIPD, C),
    SchemaNode(INSTANCE, P),
    SchemaNode(f"{INSTANCE}/allow-ecmp", F, "bool", default=False),
    SchemaNode(f"{INSTANCE}/default-information-originate", F, "bool", default=False),
    SchemaNode(f"{INSTANCE}/default-metric", F, "uint8", default=1),
    SchemaNode(f"{INSTANCE}/distance", C),
    SchemaNode(f"{INSTANCE}/distance/default", F, "uint8", default=0),
    SchemaNode(f"{INSTANCE}/distance/source", L, keys=("prefix",)),
    SchemaNode(f"{INSTANCE}/distance/source/prefix", F, "ipv4-prefix"),
    SchemaNode(f"{INSTANCE}/distance/source/distance", F, "uint8", mandatory=True),
    SchemaNode(f"{INSTANCE}/distance/source/access-list", F, "string"),
    SchemaNode(f"{INSTANCE}/explicit-neighbor", LL, "ipv4"),
    SchemaNode(f"{INSTANCE}/network", LL, "ipv4-prefix"),
    SchemaNode(f"{INSTANCE}/interface", LL, "string"),
    SchemaNode(f"{INSTANCE}/offset-list", L, keys=("interface", "direction")),
    SchemaNode(f"{INSTANCE}/offset-list/interface", F, "string"),
    SchemaNode(f"{INSTANCE}/offset-list/direction", F, "enum", enum=("in", "out")),
    SchemaNode(f"{INSTANCE}/offset-list/access-list", F, "string", mandatory=True),
    SchemaNode(f"{INSTANCE}/offset-list/metric", F, "uint8", mandatory=True),
    SchemaNode(f"{INSTANCE}/passive-default", F, "bool", default=False),
    SchemaNode(f"{INSTANCE}/passive-interface", LL, "string", when=("passive-default", False)),
    SchemaNode(f"{INSTANCE}/non-passive-interface", LL, "string", when=("passive-default", True)),
    SchemaNode(f"{INSTANCE}/redistribute", L, keys=("protocol",)),
    SchemaNode(f"{INSTANCE}/redistribute/protocol", F, "enum", enum=REDIST_PROTOCOLS),
    SchemaNode(f"{INSTANCE}/redistribute/route-map", F, "string"),
    SchemaNode(f"{INSTANCE}/redistribute/metric", F, "uint8"),
    SchemaNode(f"{INSTANCE}/static-route", LL, "ipv4-prefix"),
    SchemaNode(f"{INSTANCE}/timers", C),
    SchemaNode(f"{INSTANCE}/timers/flush-interval", F, "uint32", default=240),
    SchemaNode(f"{INSTANCE}/timers/holddown-interval", F, "uint32", default=180),
    SchemaNode(f"{INSTANCE}/timers/update-interval", F, "uint32", default=30),
    SchemaNode(f"{INSTANCE}/version", C),
    SchemaNode(f"{INSTANCE}/version/receive", F, "enum", default="1-2", enum=VERSIONS_RECEIVE),
    SchemaNode(f"{INSTANCE}/version/send", F, "enum", default="2", enum=VERSIONS_SEND),

    # Operational state
    SchemaNode(STATE, C, config=False),
    SchemaNode(f"{STATE}/neighbors", C, config=False),
    SchemaNode(NEIGHBOR_LIST, L, keys=("address",), config=False),
    SchemaNode(f"{NEIGHBOR_LIST}/address", F, "ipv4", config=False),
    SchemaNode(f"{NEIGHBOR_LIST}/last-update", F, "string", config=False),
    SchemaNode(f"{NEIGHBOR_LIST}/bad-packets-rcvd", F, "uint32", config=False),
    SchemaNode(f"{NEIGHBOR_LIST}/bad-routes-rcvd", F, "uint32", config=False),
    SchemaNode(f"{STATE}/routes", C, config=False),
    SchemaNode(ROUTE_LIST, L, keys=("prefix", "next-hop", "interface"), config=False),
    SchemaNode(f"{ROUTE_LIST}/prefix", F, "ipv4-prefix", config=False),
    SchemaNode(f"{ROUTE_LIST}/next-hop", F, "ipv4", config=False),
    SchemaNode(f"{ROUTE_LIST}/interface", F, "string", config=False),
    SchemaNode(f"{ROUTE_LIST}/metric", F, "uint8", config=False),

    # Interface RIP settings
    SchemaNode("/frr-interface:lib", C),
    SchemaNode(INTERFACE, L, keys=("name",)),
    SchemaNode(f"{INTERFACE}/name", F, "string"),
    SchemaNode(IF_RIP, C),
    SchemaNode(f"{IF_RIP}/split-horizon", F, "enum", default="simple",
               enum=("disabled", "simple", "poison-reverse")),
    SchemaNode(f"{IF_RIP}/v2-broadcast", F, "bool", default=False),
    SchemaNode(f"{IF_RIP}/version-receive", F, "enum", enum=VERSIONS_RECEIVE),
    SchemaNode(f"{IF_RIP}/version-send", F, "enum", enum=VERSIONS_SEND),
    SchemaNode(f"{IF_RIP}/authentication-scheme", C),
    SchemaNode(f"{IF_RIP}/authentication-scheme/mode", F, "enum", default="none",
               enum=("none", "plain-text", "md5")),
    SchemaNode(f"{IF_RIP}/authentication-scheme/md5-auth-length", F, "uint8"),
    SchemaNode(f"{IF_RIP}/authentication-password", F, "string"),
    SchemaNode(f"{IF_RIP}/authentication-key-chain", F, "string"),
])
