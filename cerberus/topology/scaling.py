"""Replica expansion for proxies that declare more than one instance."""

import copy
import logging
from dataclasses import replace

from cerberus.config.types import Config
from cerberus.errors import TopologyError
from cerberus.topology.types import NodeKind, ResolvedNode

logger = logging.getLogger(__name__)


def replica_name(base: str, index: int) -> str:
    """Name of replica ``index`` (1-based); the first replica keeps the base name."""
    return base if index == 1 else f"{base}-{index}"


def effective_instances(config: Config, declared: int) -> int:
    return declared if config.project.scaling else 1


def expand_replicas(node: ResolvedNode, count: int) -> list[ResolvedNode]:
    """Turn one proxy node into ``count`` individually addressable replicas.

    Only the first replica keeps the external port. Replicas 2..N carry
    ``INSTANCE_ID`` and share the base node's dependency edges. Each replica gets
    its own copy of the render data.
    """
    replicas = [node]
    for index in range(2, count + 1):
        data = copy.deepcopy(node.data)
        data.setdefault("environment", {})["INSTANCE_ID"] = str(index)
        replicas.append(
            replace(
                node,
                name=replica_name(node.name, index),
                external_port=None,
                instance_id=index,
                data=data,
            )
        )
    return replicas


def expand(config: Config, nodes: tuple[ResolvedNode, ...]) -> tuple[list[ResolvedNode], list[str]]:
    """Expand every proxy node according to its declaration and the scaling flag.

    Runs after dependency edges are final. Returns the expanded node list and
    the generation-time notes produced along the way.
    """
    declared = {p.name: p.instances for p in config.proxies}
    taken = config.declared_names() | {n.name for n in nodes}
    notes = []
    result = []

    for node in nodes:
        if node.kind != NodeKind.PROXY:
            result.append(node)
            continue

        wanted = declared.get(node.declaration, 1)
        count = effective_instances(config, wanted)
        if wanted > 1 and count == 1:
            note = f"Proxy {node.name} declares {wanted} instances but project scaling is disabled; generating 1"
            logger.warning(note)
            notes.append(note)

        replicas = expand_replicas(node, count)
        for replica in replicas[1:]:
            if replica.name in taken:
                raise TopologyError(f"Replica name '{replica.name}' of proxy {node.name} collides with another node")
            taken.add(replica.name)
        if count > 1:
            logger.debug(f"Proxy {node.name}: {count} replicas")
        result.extend(replicas)

    return result, notes
