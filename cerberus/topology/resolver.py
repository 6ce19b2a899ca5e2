"""Topology resolution: which nodes exist and what they start after.

Dependency edges are inferred from upstream strings by substring match, the
same rule operators' existing configs are written against:

1. A proxy whose default upstream or any route upstream contains ``anubis``
   depends on the Anubis node (when Anubis is part of the topology).
2. A proxy whose default upstream contains another materialized proxy's
   name depends on that proxy.
3. When materialized proxies span more than one layer and Anubis is
   present, Anubis depends on the first proxy of the highest layer.

Upstreams matching neither rule create no edge; they are classified as
external addresses or internal names instead.
"""

import logging
from dataclasses import dataclass

from cerberus.config.loader import validate_config
from cerberus.config.types import Config, ProxyDeclaration, ServiceDeclaration
from cerberus.errors import TopologyError
from cerberus.topology.classifier import (
    Eligibility,
    classify_upstream,
    is_ddos_aware,
    proxy_eligibility,
)
from cerberus.topology.kinds import ANUBIS_NODE_NAME, SERVICE_IMAGE, kind_profile
from cerberus.topology.scaling import effective_instances, replica_name
from cerberus.topology.types import NodeKind, ResolvedNode, topological_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Base nodes before scaling and network allocation."""

    nodes: tuple[ResolvedNode, ...]
    suppressed: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()


def materialized_proxies(config: Config) -> list[ProxyDeclaration]:
    return [p for p in config.proxies if proxy_eligibility(p, config.anubis.enabled) == Eligibility.MATERIALIZE]


def anubis_included(config: Config, proxies: list[ProxyDeclaration]) -> bool:
    """Anubis exists only when enabled and some materialized proxy routes through it."""
    return config.anubis.enabled and any(is_ddos_aware(p.kind) for p in proxies)


def references_anubis(proxy: ProxyDeclaration) -> bool:
    return any(ANUBIS_NODE_NAME in upstream for upstream in proxy.upstreams())


def referenced_proxies(proxy: ProxyDeclaration, proxies: list[ProxyDeclaration]) -> list[str]:
    if not proxy.default_upstream:
        return []
    return [other.name for other in proxies if other.name != proxy.name and other.name in proxy.default_upstream]


def planned_replica_names(config: Config, proxies: list[ProxyDeclaration]) -> set[str]:
    """Names the scaling expander will give replicas 2..N, known before it runs."""
    return {
        replica_name(p.name, index)
        for p in proxies
        for index in range(2, effective_instances(config, p.instances) + 1)
    }


def back_layer_proxy(proxies: list[ProxyDeclaration]) -> ProxyDeclaration | None:
    """First-declared proxy of the highest layer, or None for a single-layer setup."""
    layers = {p.layer for p in proxies}
    if len(layers) < 2:
        return None
    top = max(layers)
    return next(p for p in proxies if p.layer == top)


def proxy_dependencies(proxy: ProxyDeclaration, proxies: list[ProxyDeclaration], anubis_present: bool) -> tuple[str, ...]:
    deps = []
    if anubis_present and references_anubis(proxy):
        deps.append(ANUBIS_NODE_NAME)
    for name in referenced_proxies(proxy, proxies):
        if name not in deps:
            deps.append(name)
    return tuple(deps)


def _target(upstream: str, owner: str, kind_override: str | None = None) -> dict:
    cls = classify_upstream(upstream, owner)
    port = cls.port if cls.port is not None else 80
    return {
        "raw": upstream,
        "host": cls.host,
        "port": port,
        "scheme": cls.scheme,
        "address": f"{cls.host}:{port}",
        "url": f"{cls.scheme}://{cls.host}:{port}",
        "kind": kind_override or cls.kind.value,
    }


def _upstream_kind(upstream: str, proxy: ProxyDeclaration, proxy_names: set[str], anubis_present: bool) -> str | None:
    if anubis_present and ANUBIS_NODE_NAME in upstream:
        return "anubis"
    if any(name != proxy.name and name in upstream for name in proxy_names):
        return "proxy"
    return None


def _service_data(service: ServiceDeclaration) -> dict:
    return {
        "name": service.name,
        "domain": service.domain,
        "upstream": _target(service.upstream, f"Service {service.name}"),
        "websocket": service.websocket,
        "compress": service.compress,
        "max_body_size": service.max_body_size,
        "headers": dict(service.headers),
        "response_headers": dict(service.response_headers),
    }


def _proxy_data(config, proxy, proxy_names, anubis_present, serves_services) -> dict:
    owner = f"Proxy {proxy.name}"
    profile = kind_profile(proxy.kind)

    default = None
    if proxy.default_upstream:
        override = _upstream_kind(proxy.default_upstream, proxy, proxy_names, anubis_present)
        default = _target(proxy.default_upstream, owner, override)

    routes = []
    claimed = set()
    for route in proxy.routes:
        override = _upstream_kind(route.upstream, proxy, proxy_names, anubis_present)
        routes.append(
            {
                "type": route.type.value,
                "domain": route.domain,
                "upstream": _target(route.upstream, owner, override),
                "bypass_paths": list(route.bypass_paths),
            }
        )
        claimed.add(route.domain)

    services = []
    if serves_services:
        services = [_service_data(s) for s in config.services if s.domain not in claimed]

    return {
        "kind": proxy.kind.value,
        "layer": proxy.layer,
        "image": profile.image,
        "config_file": profile.config_file,
        "internal_port": proxy.internal_port,
        "default_upstream": default,
        "routes": routes,
        "services": services,
        "algorithm": proxy.algorithm,
        "max_connections": proxy.max_connections,
        "build_context": proxy.build_context,
        "build_dockerfile": proxy.build_dockerfile,
        "environment": dict(proxy.environment),
        "labels": dict(proxy.labels),
        "restart": proxy.restart,
        "anubis_enabled": anubis_present,
    }


def _anubis_data(config: Config) -> dict:
    anubis = config.anubis
    return {
        "bind": anubis.bind,
        "port": anubis.port,
        "metrics_bind": anubis.metrics_bind,
        "metrics_port": anubis.metrics_port,
        "target": _target(anubis.target, "Anubis"),
        "difficulty": anubis.difficulty,
        "image": anubis.image,
        "serve_robots_txt": anubis.serve_robots_txt,
        "policy_fname": anubis.policy_fname,
        "restart": anubis.restart,
    }


def resolve(config: Config) -> Resolution:
    """Build the base nodes of the topology with their dependency edges.

    Raises ConfigError for invalid declarations or malformed upstreams and
    TopologyError for name collisions and dependency cycles.
    """
    validate_config(config)

    notes = []
    proxies = materialized_proxies(config)
    suppressed = tuple(p.name for p in config.proxies if p not in proxies)
    for name in suppressed:
        note = f"Proxy {name} requires Anubis, which is disabled; skipping it"
        logger.info(note)
        notes.append(note)

    anubis_present = anubis_included(config, proxies)
    proxy_names = {p.name for p in proxies}
    if anubis_present and ANUBIS_NODE_NAME in config.declared_names():
        raise TopologyError(f"Node name '{ANUBIS_NODE_NAME}' is reserved for the Anubis node")

    top_layer = max((p.layer for p in proxies), default=None)
    nodes = []
    for proxy in proxies:
        nodes.append(
            ResolvedNode(
                kind=NodeKind.PROXY,
                name=proxy.name,
                declaration=proxy.name,
                depends_on=proxy_dependencies(proxy, proxies, anubis_present),
                data=_proxy_data(config, proxy, proxy_names, anubis_present, proxy.layer == top_layer),
                layer=proxy.layer,
                external_port=proxy.external_port,
            )
        )

    if anubis_present:
        back = back_layer_proxy(proxies)
        nodes.append(
            ResolvedNode(
                kind=NodeKind.ANUBIS,
                name=ANUBIS_NODE_NAME,
                declaration=ANUBIS_NODE_NAME,
                depends_on=(back.name,) if back else (),
                data=_anubis_data(config),
            )
        )

    existing = proxy_names | planned_replica_names(config, proxies)
    if anubis_present:
        existing.add(ANUBIS_NODE_NAME)
    nodes.extend(_service_nodes(config, existing, notes))

    # Fails on the first edge that closes a cycle.
    topological_order([(n.name, n.depends_on) for n in nodes])

    known_hosts = existing | {n.name for n in nodes} | {n.data.get("alias") for n in nodes if n.kind == NodeKind.SERVICE}
    for node in nodes:
        if node.kind != NodeKind.PROXY:
            continue
        targets = [node.data["default_upstream"]] if node.data["default_upstream"] else []
        targets += [r["upstream"] for r in node.data["routes"]]
        for target in targets:
            if target["kind"] == "internal" and target["host"] not in known_hosts:
                note = f"Proxy {node.name}: upstream host '{target['host']}' is not a node of this deployment"
                logger.warning(note)
                notes.append(note)

    return Resolution(nodes=tuple(nodes), suppressed=suppressed, notes=tuple(notes))


def _service_nodes(config: Config, existing: set[str], notes: list[str]) -> list[ResolvedNode]:
    """Synthesize a generic container for each service behind an internal name.

    Every container answers to its service name plus, when different, the
    upstream host as a network alias, and no name is answered twice. A host
    that is an existing node (proxy, replica, Anubis) needs no container. A
    host that names another service refers to that service's container.
    """
    service_names = {s.name for s in config.services}
    nodes = []
    hosts = {}  # host -> service whose container answers to it
    pointing_at_services = []

    for service in config.services:
        target = _target(service.upstream, f"Service {service.name}")
        if target["kind"] == "external":
            logger.debug(f"Service {service.name}: {target['host']} is an external address, no container")
            continue
        host = target["host"]
        if host in existing:
            logger.debug(f"Service {service.name}: upstream {host} is an existing node")
            continue
        if host != service.name and host in service_names:
            pointing_at_services.append((service, host))
            continue
        if host in hosts:
            note = f"Service {service.name} shares upstream host '{host}' with {hosts[host]}; reusing its container"
            logger.info(note)
            notes.append(note)
            continue
        hosts[host] = service.name
        nodes.append(
            ResolvedNode(
                kind=NodeKind.SERVICE,
                name=service.name,
                declaration=service.name,
                data={
                    "image": SERVICE_IMAGE,
                    "domain": service.domain,
                    "port": target["port"],
                    "alias": host if host != service.name else None,
                    "restart": "unless-stopped",
                },
            )
        )

    containers = {n.name for n in nodes}
    for service, host in pointing_at_services:
        if host in containers:
            logger.debug(f"Service {service.name}: upstream {host} is the container of service {host}")
            continue
        note = f"Service {service.name}: upstream host '{host}' names service {host}, which has no container"
        logger.warning(note)
        notes.append(note)
    return nodes
