"""Topology resolution: classification, dependency edges, scaling, networks."""

from cerberus.config.types import Config
from cerberus.topology.classifier import (
    REQUIRES_ANUBIS,
    Eligibility,
    UpstreamClass,
    UpstreamKind,
    classify_upstream,
    proxy_eligibility,
)
from cerberus.topology.network import (
    BACK,
    FIXED_VOLUMES,
    FRONT,
    allocate_segments,
    attached_networks,
    segment_for,
    volume_set,
)
from cerberus.topology.resolver import resolve
from cerberus.topology.scaling import expand
from cerberus.topology.types import NamedVolume, NetworkSegment, NodeKind, ResolvedNode, Topology


def resolve_topology(config: Config) -> Topology:
    """Run the full pipeline: resolve edges, expand replicas, assign networks."""
    volumes = volume_set(config)
    resolution = resolve(config)
    nodes, scaling_notes = expand(config, resolution.nodes)
    nodes = allocate_segments(nodes)
    return Topology(
        project=config.project.name,
        nodes=tuple(nodes),
        networks=(FRONT, BACK),
        volumes=volumes,
        notes=resolution.notes + tuple(scaling_notes),
    )


__all__ = [
    "BACK",
    "FIXED_VOLUMES",
    "FRONT",
    "REQUIRES_ANUBIS",
    "Eligibility",
    "NamedVolume",
    "NetworkSegment",
    "NodeKind",
    "ResolvedNode",
    "Topology",
    "UpstreamClass",
    "UpstreamKind",
    "attached_networks",
    "classify_upstream",
    "proxy_eligibility",
    "resolve_topology",
    "segment_for",
]
