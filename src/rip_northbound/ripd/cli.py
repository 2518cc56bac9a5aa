"""Render the running configuration as ripd CLI lines.

Each function renders one data node. Leaves still at their schema default are
left out unless show_defaults is set.
"""
from ..northbound.schema import DataNode, join_xpath
from ..northbound.tree import DataTree
from .yang import RIPD_SCHEMA

Lines = list[str]


def _is_default(dnode: DataNode) -> bool:
    node = RIPD_SCHEMA.get(dnode.schema_path)
    return node is not None and node.default == dnode.value


def _child(tree: DataTree, dnode: DataNode, name: str):
    return tree.value(join_xpath(dnode.xpath, name))


# --- router rip ---

def show_router_rip(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return ["!", "router rip"]


def show_allow_ecmp(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value:
        return [" allow-ecmp"]
    return [" no allow-ecmp"] if show_defaults else []


def show_default_information_originate(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value:
        return [" default-information originate"]
    return [" no default-information originate"] if show_defaults else []


def show_default_metric(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if _is_default(dnode) and not show_defaults:
        return []
    return [f" default-metric {dnode.value}"]


def show_distance_default(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value == 0:
        return [" no distance"] if show_defaults else []
    return [f" distance {dnode.value}"]


def show_distance_source(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    line = f" distance {_child(tree, dnode, 'distance')} {dnode.key('prefix')}"
    access_list = _child(tree, dnode, "access-list")
    if access_list:
        line += f" {access_list}"
    return [line]


def show_neighbor(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" neighbor {dnode.value}"]


def show_network(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" network {dnode.value}"]


def show_network_interface(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" network {dnode.value}"]


def show_offset_list(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    line = (
        f" offset-list {_child(tree, dnode, 'access-list')}"
        f" {dnode.key('direction')} {_child(tree, dnode, 'metric')}"
    )
    ifname = dnode.key("interface")
    if ifname != "*":
        line += f" {ifname}"
    return [line]


def show_passive_default(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value:
        return [" passive-interface default"]
    return [" no passive-interface default"] if show_defaults else []


def show_passive_interface(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" passive-interface {dnode.value}"]


def show_non_passive_interface(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" no passive-interface {dnode.value}"]


def show_redistribute(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    line = f" redistribute {dnode.key('protocol')}"
    metric = _child(tree, dnode, "metric")
    if metric is not None:
        line += f" metric {metric}"
    route_map = _child(tree, dnode, "route-map")
    if route_map:
        line += f" route-map {route_map}"
    return [line]


def show_static_route(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" route {dnode.value}"]


def show_timers(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    leaves = [
        tree.get(join_xpath(dnode.xpath, name))
        for name in ("update-interval", "holddown-interval", "flush-interval")
    ]
    if not show_defaults and all(leaf is None or _is_default(leaf) for leaf in leaves):
        return []
    update, holddown, flush = (leaf.value if leaf else None for leaf in leaves)
    return [f" timers basic {update} {holddown} {flush}"]


def show_version(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    receive = _child(tree, dnode, "receive")
    send = _child(tree, dnode, "send")
    if receive == "1-2" and send == "2":
        return [" no version"] if show_defaults else []
    return [f" version {send}"]


# --- interface ---

def show_interface(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return ["!", f"interface {dnode.key('name')}"]


def show_split_horizon(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value == "disabled":
        return [" no ip rip split-horizon"]
    if dnode.value == "poison-reverse":
        return [" ip rip split-horizon poisoned-reverse"]
    return [" ip rip split-horizon"] if show_defaults else []


def show_v2_broadcast(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value:
        return [" ip rip v2-broadcast"]
    return [" no ip rip v2-broadcast"] if show_defaults else []


def show_if_version_receive(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" ip rip receive version {dnode.value.replace('-', ' ')}"]


def show_if_version_send(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" ip rip send version {dnode.value}"]


def show_authentication_scheme(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    if dnode.value == "plain-text":
        return [" ip rip authentication mode text"]
    if dnode.value == "md5":
        line = " ip rip authentication mode md5"
        length = tree.value(join_xpath(dnode.parent, "md5-auth-length"))
        if length == 16:
            line += " auth-length rfc"
        elif length == 20:
            line += " auth-length old-ripd"
        return [line]
    return []


def show_authentication_password(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" ip rip authentication string {dnode.value}"]


def show_authentication_key_chain(dnode: DataNode, tree: DataTree, show_defaults: bool) -> Lines:
    return [f" ip rip authentication key-chain {dnode.value}"]
