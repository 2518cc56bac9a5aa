"""Configuration callbacks of the frr-ripd module.

Every handler receives a CallbackArgs. Most of them only act during APPLY;
handlers with value ranges also check the value during VALIDATE, and the
instance handler acquires its socket during PREPARE.

List entries (distance sources, offset lists, redistribution records,
interfaces) are bound to their runtime objects on create, and their child
leaves find them with registry.resolve().
"""
import functools
import logging
from ipaddress import IPv4Address, IPv4Network
from typing import Callable

from ..northbound.callbacks import CallbackArgs, ModuleInfo, NodeCallbacks
from ..northbound.errors import DomainConflict, NotImplementedCallback, SchemaInvalid
from ..northbound.resources import ResourceKind
from ..northbound.schema import DataNode, Event
from . import cli, rpcs, state
from .instance import OffsetDirection, OffsetEntry, RipDaemon, RipInstance
from .yang import (
    CLEAR_RIP_ROUTE,
    DEFAULT_METRIC_RANGE,
    DISTANCE_RANGE,
    IF_RIP,
    INSTANCE,
    INTERFACE,
    MD5_AUTH_LENGTHS,
    METRIC_RANGE,
    NEIGHBOR_LIST,
    ROUTE_LIST,
    TIMER_RANGE,
)

logger = logging.getLogger(__name__)

Handler = Callable[[CallbackArgs], None]


def apply_only(func: Handler) -> Handler:
    """Run the handler during APPLY only; other phases succeed untouched."""
    @functools.wraps(func)
    def wrapper(args: CallbackArgs) -> None:
        if args.event == Event.APPLY:
            func(args)
    return wrapper


def ranged(low: int, high: int) -> Callable[[Handler], Handler]:
    """APPLY-only handler whose value is range-checked during VALIDATE."""
    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        def wrapper(args: CallbackArgs) -> None:
            if args.event == Event.VALIDATE:
                value = args.dnode.value
                if not low <= value <= high:
                    raise SchemaInvalid(f"{value} is out of range {low}..{high}")
            elif args.event == Event.APPLY:
                func(args)
        return wrapper
    return decorator


def _rip(args: CallbackArgs) -> RipInstance:
    daemon: RipDaemon = args.context
    return daemon.require_instance(args.dnode.xpath)


# --- /frr-ripd:ripd/instance ---

def instance_create(args: CallbackArgs) -> None:
    daemon: RipDaemon = args.context
    if args.event == Event.PREPARE:
        args.resource = daemon.resources.acquire(
            ResourceKind.SOCKET,
            address=daemon.settings.bind_address,
            port=daemon.settings.rip_port,
        )
    elif args.event == Event.ABORT:
        daemon.resources.release(args.resource)
    elif args.event == Event.APPLY:
        if daemon.rip is not None:
            # the unconsumed socket is released by the coordinator
            raise DomainConflict("RIP instance already running")
        daemon.create_instance(daemon.resources.consume(args.resource))


@apply_only
def instance_delete(args: CallbackArgs) -> None:
    args.context.destroy_instance(args.dnode.xpath)


@apply_only
def allow_ecmp_modify(args: CallbackArgs) -> None:
    rip = _rip(args)
    rip.ecmp = args.dnode.value
    if not rip.ecmp:
        rip.ecmp_disable()


@apply_only
def default_information_originate_modify(args: CallbackArgs) -> None:
    _rip(args).default_information_set(args.dnode.value)


@ranged(*DEFAULT_METRIC_RANGE)
def default_metric_modify(args: CallbackArgs) -> None:
    _rip(args).default_metric = args.dnode.value


@apply_only
def distance_default_modify(args: CallbackArgs) -> None:
    _rip(args).distance = args.dnode.value


# --- distance/source ---

@apply_only
def distance_source_create(args: CallbackArgs) -> None:
    prefix = IPv4Network(args.dnode.key("prefix"))
    rdistance = _rip(args).distance_source_add(prefix)
    args.context.registry.bind(args.dnode, rdistance)


@apply_only
def distance_source_delete(args: CallbackArgs) -> None:
    rdistance = args.context.registry.unbind(args.dnode)
    _rip(args).distance_source_delete(rdistance)


@ranged(*DISTANCE_RANGE)
def distance_source_distance_modify(args: CallbackArgs) -> None:
    args.context.registry.resolve(args.dnode).distance = args.dnode.value


@apply_only
def distance_source_access_list_modify(args: CallbackArgs) -> None:
    args.context.registry.resolve(args.dnode).access_list = args.dnode.value


@apply_only
def distance_source_access_list_delete(args: CallbackArgs) -> None:
    args.context.registry.resolve(args.dnode).access_list = None


# --- leaf-lists ---

@apply_only
def explicit_neighbor_create(args: CallbackArgs) -> None:
    _rip(args).neighbor_add(IPv4Address(args.dnode.value))


@apply_only
def explicit_neighbor_delete(args: CallbackArgs) -> None:
    _rip(args).neighbor_delete(IPv4Address(args.dnode.value))


@apply_only
def network_create(args: CallbackArgs) -> None:
    _rip(args).enable_network_add(IPv4Network(args.dnode.value))


@apply_only
def network_delete(args: CallbackArgs) -> None:
    _rip(args).enable_network_delete(IPv4Network(args.dnode.value))


@apply_only
def interface_create(args: CallbackArgs) -> None:
    _rip(args).enable_if_add(args.dnode.value)


@apply_only
def interface_delete(args: CallbackArgs) -> None:
    _rip(args).enable_if_delete(args.dnode.value)


# --- offset-list ---

def _direction(dnode: DataNode) -> OffsetDirection:
    return OffsetDirection(dnode.key("direction"))


@apply_only
def offset_list_create(args: CallbackArgs) -> None:
    # in and out entries of one interface share a record
    offset = _rip(args).offset_list_get(args.dnode.key("interface"))
    args.context.registry.bind(args.dnode, offset)


@apply_only
def offset_list_delete(args: CallbackArgs) -> None:
    offset = args.context.registry.unbind(args.dnode)
    offset.direct[_direction(args.dnode)] = OffsetEntry()
    if offset.is_empty():
        _rip(args).offset_list_delete(offset)


@apply_only
def offset_list_access_list_modify(args: CallbackArgs) -> None:
    offset = args.context.registry.resolve(args.dnode)
    offset.direct[_direction(args.dnode)].access_list = args.dnode.value


@ranged(*METRIC_RANGE)
def offset_list_metric_modify(args: CallbackArgs) -> None:
    offset = args.context.registry.resolve(args.dnode)
    offset.direct[_direction(args.dnode)].metric = args.dnode.value


# --- passive interfaces ---

@apply_only
def passive_default_modify(args: CallbackArgs) -> None:
    rip = _rip(args)
    rip.passive_default = args.dnode.value
    rip.passive_nondefault_clean()


@apply_only
def passive_interface_create(args: CallbackArgs) -> None:
    _rip(args).passive_nondefault_set(args.dnode.value)


@apply_only
def passive_interface_delete(args: CallbackArgs) -> None:
    _rip(args).passive_nondefault_unset(args.dnode.value)


# non-passive-interface is used when passive-default is on; both lists hold
# the exceptions to the default
non_passive_interface_create = passive_interface_create
non_passive_interface_delete = passive_interface_delete


# --- redistribute ---

@apply_only
def redistribute_create(args: CallbackArgs) -> None:
    config = _rip(args).redistribute_conf_set(args.dnode.key("protocol"))
    args.context.registry.bind(args.dnode, config)


@apply_only
def redistribute_delete(args: CallbackArgs) -> None:
    config = args.context.registry.unbind(args.dnode)
    _rip(args).redistribute_conf_delete(config.protocol)


def redistribute_apply_finish(dnode: DataNode, daemon: RipDaemon) -> None:
    daemon.require_instance(dnode.xpath).redistribute_conf_update(dnode.key("protocol"))


@apply_only
def redistribute_route_map_modify(args: CallbackArgs) -> None:
    args.context.registry.resolve(args.dnode).route_map = args.dnode.value


@apply_only
def redistribute_route_map_delete(args: CallbackArgs) -> None:
    args.context.registry.resolve(args.dnode).route_map = None


@ranged(*METRIC_RANGE)
def redistribute_metric_modify(args: CallbackArgs) -> None:
    config = args.context.registry.resolve(args.dnode)
    config.metric_config = True
    config.metric = args.dnode.value


@apply_only
def redistribute_metric_delete(args: CallbackArgs) -> None:
    config = args.context.registry.resolve(args.dnode)
    config.metric_config = False
    config.metric = 0


# --- static-route ---

@apply_only
def static_route_create(args: CallbackArgs) -> None:
    _rip(args).static_route_add(IPv4Network(args.dnode.value))


@apply_only
def static_route_delete(args: CallbackArgs) -> None:
    _rip(args).static_route_delete(IPv4Network(args.dnode.value))


# --- timers ---

def timers_apply_finish(dnode: DataNode, daemon: RipDaemon) -> None:
    daemon.require_instance(dnode.xpath).event_update()


@ranged(*TIMER_RANGE)
def timers_flush_interval_modify(args: CallbackArgs) -> None:
    _rip(args).garbage_time = args.dnode.value


@ranged(*TIMER_RANGE)
def timers_holddown_interval_modify(args: CallbackArgs) -> None:
    _rip(args).timeout_time = args.dnode.value


@ranged(*TIMER_RANGE)
def timers_update_interval_modify(args: CallbackArgs) -> None:
    _rip(args).update_time = args.dnode.value


# --- version ---

@apply_only
def version_receive_modify(args: CallbackArgs) -> None:
    _rip(args).version_receive = args.dnode.value


@apply_only
def version_send_modify(args: CallbackArgs) -> None:
    _rip(args).version_send = args.dnode.value


# --- /frr-interface:lib/interface ---

@apply_only
def lib_interface_create(args: CallbackArgs) -> None:
    daemon: RipDaemon = args.context
    daemon.registry.bind(args.dnode, daemon.interface(args.dnode.key("name")))


@apply_only
def lib_interface_delete(args: CallbackArgs) -> None:
    daemon: RipDaemon = args.context
    params = daemon.registry.unbind(args.dnode)
    daemon.interfaces.pop(params.ifname, None)


def _interface_setter(attribute: str, clear: bool = False) -> Handler:
    """Handler storing the leaf value, or None if `clear`, on the bound interface."""
    @apply_only
    def handler(args: CallbackArgs) -> None:
        params = args.context.registry.resolve(args.dnode)
        setattr(params, attribute, None if clear else args.dnode.value)
    return handler


def lib_interface_rip_md5_auth_length_modify(args: CallbackArgs) -> None:
    if args.event == Event.VALIDATE:
        if args.dnode.value not in MD5_AUTH_LENGTHS:
            raise SchemaInvalid(f"md5 auth length must be one of {MD5_AUTH_LENGTHS}")
    elif args.event == Event.APPLY:
        args.context.registry.resolve(args.dnode).md5_auth_length = args.dnode.value


def lib_interface_rip_key_chain(args: CallbackArgs) -> None:
    raise NotImplementedCallback("key-chain authentication is not supported")


RIPD_MODULE = ModuleInfo(name="frr-ripd", nodes={
    INSTANCE: NodeCallbacks(
        create=instance_create,
        delete=instance_delete,
        cli_show=cli.show_router_rip,
    ),
    f"{INSTANCE}/allow-ecmp": NodeCallbacks(
        modify=allow_ecmp_modify,
        cli_show=cli.show_allow_ecmp,
    ),
    f"{INSTANCE}/default-information-originate": NodeCallbacks(
        modify=default_information_originate_modify,
        cli_show=cli.show_default_information_originate,
    ),
    f"{INSTANCE}/default-metric": NodeCallbacks(
        modify=default_metric_modify,
        cli_show=cli.show_default_metric,
    ),
    f"{INSTANCE}/distance/default": NodeCallbacks(
        modify=distance_default_modify,
        cli_show=cli.show_distance_default,
    ),
    f"{INSTANCE}/distance/source": NodeCallbacks(
        create=distance_source_create,
        delete=distance_source_delete,
        cli_show=cli.show_distance_source,
    ),
    f"{INSTANCE}/distance/source/distance": NodeCallbacks(
        modify=distance_source_distance_modify,
    ),
    f"{INSTANCE}/distance/source/access-list": NodeCallbacks(
        modify=distance_source_access_list_modify,
        delete=distance_source_access_list_delete,
    ),
    f"{INSTANCE}/explicit-neighbor": NodeCallbacks(
        create=explicit_neighbor_create,
        delete=explicit_neighbor_delete,
        cli_show=cli.show_neighbor,
    ),
    f"{INSTANCE}/network": NodeCallbacks(
        create=network_create,
        delete=network_delete,
        cli_show=cli.show_network,
    ),
    f"{INSTANCE}/interface": NodeCallbacks(
        create=interface_create,
        delete=interface_delete,
        cli_show=cli.show_network_interface,
    ),
    f"{INSTANCE}/offset-list": NodeCallbacks(
        create=offset_list_create,
        delete=offset_list_delete,
        cli_show=cli.show_offset_list,
    ),
    f"{INSTANCE}/offset-list/access-list": NodeCallbacks(
        modify=offset_list_access_list_modify,
    ),
    f"{INSTANCE}/offset-list/metric": NodeCallbacks(
        modify=offset_list_metric_modify,
    ),
    f"{INSTANCE}/passive-default": NodeCallbacks(
        modify=passive_default_modify,
        cli_show=cli.show_passive_default,
    ),
    f"{INSTANCE}/passive-interface": NodeCallbacks(
        create=passive_interface_create,
        delete=passive_interface_delete,
        cli_show=cli.show_passive_interface,
    ),
    f"{INSTANCE}/non-passive-interface": NodeCallbacks(
        create=non_passive_interface_create,
        delete=non_passive_interface_delete,
        cli_show=cli.show_non_passive_interface,
    ),
    f"{INSTANCE}/redistribute": NodeCallbacks(
        create=redistribute_create,
        delete=redistribute_delete,
        apply_finish=redistribute_apply_finish,
        cli_show=cli.show_redistribute,
    ),
    f"{INSTANCE}/redistribute/route-map": NodeCallbacks(
        modify=redistribute_route_map_modify,
        delete=redistribute_route_map_delete,
    ),
    f"{INSTANCE}/redistribute/metric": NodeCallbacks(
        modify=redistribute_metric_modify,
        delete=redistribute_metric_delete,
    ),
    f"{INSTANCE}/static-route": NodeCallbacks(
        create=static_route_create,
        delete=static_route_delete,
        cli_show=cli.show_static_route,
    ),
    f"{INSTANCE}/timers": NodeCallbacks(
        apply_finish=timers_apply_finish,
        cli_show=cli.show_timers,
    ),
    f"{INSTANCE}/timers/flush-interval": NodeCallbacks(
        modify=timers_flush_interval_modify,
    ),
    f"{INSTANCE}/timers/holddown-interval": NodeCallbacks(
        modify=timers_holddown_interval_modify,
    ),
    f"{INSTANCE}/timers/update-interval": NodeCallbacks(
        modify=timers_update_interval_modify,
    ),
    f"{INSTANCE}/version": NodeCallbacks(
        cli_show=cli.show_version,
    ),
    f"{INSTANCE}/version/receive": NodeCallbacks(
        modify=version_receive_modify,
    ),
    f"{INSTANCE}/version/send": NodeCallbacks(
        modify=version_send_modify,
    ),

    INTERFACE: NodeCallbacks(
        create=lib_interface_create,
        delete=lib_interface_delete,
        cli_show=cli.show_interface,
    ),
    f"{IF_RIP}/split-horizon": NodeCallbacks(
        modify=_interface_setter("split_horizon"),
        cli_show=cli.show_split_horizon,
    ),
    f"{IF_RIP}/v2-broadcast": NodeCallbacks(
        modify=_interface_setter("v2_broadcast"),
        cli_show=cli.show_v2_broadcast,
    ),
    f"{IF_RIP}/version-receive": NodeCallbacks(
        modify=_interface_setter("version_receive"),
        delete=_interface_setter("version_receive", clear=True),
        cli_show=cli.show_if_version_receive,
    ),
    f"{IF_RIP}/version-send": NodeCallbacks(
        modify=_interface_setter("version_send"),
        delete=_interface_setter("version_send", clear=True),
        cli_show=cli.show_if_version_send,
    ),
    f"{IF_RIP}/authentication-scheme/mode": NodeCallbacks(
        modify=_interface_setter("auth_mode"),
        cli_show=cli.show_authentication_scheme,
    ),
    f"{IF_RIP}/authentication-scheme/md5-auth-length": NodeCallbacks(
        modify=lib_interface_rip_md5_auth_length_modify,
        delete=_interface_setter("md5_auth_length", clear=True),
    ),
    f"{IF_RIP}/authentication-password": NodeCallbacks(
        modify=_interface_setter("auth_password"),
        delete=_interface_setter("auth_password", clear=True),
        cli_show=cli.show_authentication_password,
    ),
    f"{IF_RIP}/authentication-key-chain": NodeCallbacks(
        modify=lib_interface_rip_key_chain,
        delete=lib_interface_rip_key_chain,
        cli_show=cli.show_authentication_key_chain,
    ),

    # Operational state
    NEIGHBOR_LIST: NodeCallbacks(
        get_next=state.neighbor_get_next,
        get_keys=state.neighbor_get_keys,
        lookup_entry=state.neighbor_lookup_entry,
    ),
    f"{NEIGHBOR_LIST}/address": NodeCallbacks(get_elem=state.neighbor_address),
    f"{NEIGHBOR_LIST}/last-update": NodeCallbacks(get_elem=state.neighbor_last_update),
    f"{NEIGHBOR_LIST}/bad-packets-rcvd": NodeCallbacks(get_elem=state.neighbor_bad_packets),
    f"{NEIGHBOR_LIST}/bad-routes-rcvd": NodeCallbacks(get_elem=state.neighbor_bad_routes),
    ROUTE_LIST: NodeCallbacks(
        get_next=state.route_get_next,
        get_keys=state.route_get_keys,
        lookup_entry=state.route_lookup_entry,
    ),
    f"{ROUTE_LIST}/prefix": NodeCallbacks(get_elem=state.route_prefix),
    f"{ROUTE_LIST}/next-hop": NodeCallbacks(get_elem=state.route_next_hop),
    f"{ROUTE_LIST}/interface": NodeCallbacks(get_elem=state.route_interface),
    f"{ROUTE_LIST}/metric": NodeCallbacks(get_elem=state.route_metric),

    CLEAR_RIP_ROUTE: NodeCallbacks(rpc=rpcs.clear_rip_route),
})
