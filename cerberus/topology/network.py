"""Network segment assignment and the named volume set.

Both segments and their subnets are constants, so regenerating from the
same config always yields byte-identical network sections.
"""

from dataclasses import replace

from cerberus.config.types import Config
from cerberus.errors import ConfigError
from cerberus.topology.types import NamedVolume, NetworkSegment, NodeKind, ResolvedNode

FRONT = NetworkSegment(name="front-net", role="front", subnet="10.100.0.0/16")
BACK = NetworkSegment(name="back-net", role="back", subnet="10.101.0.0/16")
SEGMENTS = (FRONT, BACK)

# Declared whether or not any node mounts them, so operators can attach to
# stable names without regenerating.
FIXED_VOLUMES = (
    NamedVolume(name="postgres_data"),
    NamedVolume(name="redis_data"),
    NamedVolume(name="nginx_logs"),
)


def segment_for(node: ResolvedNode) -> NetworkSegment:
    """Layer-1 proxies and anything with an external port face the internet."""
    if node.external_port is not None:
        return FRONT
    if node.kind == NodeKind.PROXY and node.layer == 1:
        return FRONT
    return BACK


def attached_networks(node: ResolvedNode) -> list[str]:
    """Networks a node joins in the compose file.

    Front nodes also join the back segment to reach their upstreams; their
    segment membership is still the front one.
    """
    if node.segment == FRONT.name:
        return [FRONT.name, BACK.name]
    return [node.segment]


def allocate_segments(nodes: list[ResolvedNode]) -> list[ResolvedNode]:
    return [replace(node, segment=segment_for(node).name) for node in nodes]


def volume_set(config: Config) -> tuple[NamedVolume, ...]:
    """Fixed volumes first, then the operator's extra volumes in declaration order."""
    fixed = {v.name for v in FIXED_VOLUMES}
    extra = []
    for volume in config.volumes:
        if volume.name in fixed:
            raise ConfigError(f"Volume '{volume.name}' is always declared and cannot be redefined")
        extra.append(
            NamedVolume(
                name=volume.name,
                driver=volume.driver,
                external=volume.external,
                external_name=volume.external_name,
            )
        )
    return FIXED_VOLUMES + tuple(extra)
