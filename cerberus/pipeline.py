"""Generation pipeline: load, resolve, render, write."""

import logging
from dataclasses import dataclass

from cerberus.config import Config, load_config
from cerberus.render import render_artifacts
from cerberus.render.templates import TemplateRegistry
from cerberus.topology import NodeKind, Topology, resolve_topology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResult:
    topology: Topology
    paths: tuple[str, ...]


def build(config: Config, registry: TemplateRegistry | None = None) -> tuple[Topology, dict[str, str]]:
    """Resolve and render without touching the filesystem."""
    topology = resolve_topology(config)
    artifacts = render_artifacts(topology, config, registry)
    return topology, artifacts


def summarize(topology: Topology):
    """Log the node graph in startup order."""
    proxies = topology.nodes_of(NodeKind.PROXY)
    services = topology.nodes_of(NodeKind.SERVICE)
    logger.info(f"Project: {topology.project}")
    logger.info(f"Proxies: {len(proxies)}")
    logger.info(f"Anubis: {'enabled' if topology.has_anubis else 'disabled'}")
    logger.info(f"Backend containers: {len(services)}")
    for name in topology.startup_order():
        node = topology.node(name)
        deps = f" (after {', '.join(node.depends_on)})" if node.depends_on else ""
        logger.debug(f"  {node.name} [{node.kind.value}, {node.segment}]{deps}")
    for note in topology.notes:
        logger.info(f"Note: {note}")


async def run_generate(config: Config, write_file, registry: TemplateRegistry | None = None) -> GenerateResult:
    """Shared generate orchestration.

    Args:
        config: validated Config dataclass
        write_file: async callable(path, content) -> None - writes one artifact
        registry: template registry; the shared default when None

    Every artifact is rendered before the first write, so a config, topology
    or template error leaves the output directory untouched.
    """
    topology, artifacts = build(config, registry)
    summarize(topology)

    for path, content in artifacts.items():
        await write_file(path, content)
        logger.info(f"  {path}")

    logger.info(f"Generated {len(artifacts)} files")
    return GenerateResult(topology=topology, paths=tuple(artifacts))


async def generate(config_path, write_file, environment=None) -> GenerateResult:
    """Load a config file and generate every artifact through write_file."""
    config = load_config(config_path, environment=environment)
    return await run_generate(config, write_file)
