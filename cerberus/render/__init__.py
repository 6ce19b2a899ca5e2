"""Artifact rendering: compose descriptor, proxy configs, Dockerfiles, bot policy."""

import logging

from cerberus.config.types import Config
from cerberus.render.bot_policy import build_bot_policy
from cerberus.render.compose import BOT_POLICY_FILE, COMPOSE_FILE, build_compose, proxy_config_path
from cerberus.render.dockerfile import dockerfile_path, render_dockerfiles
from cerberus.render.proxy_config import render_proxy_config
from cerberus.render.templates import TemplateRegistry, default_registry
from cerberus.topology.types import NodeKind, Topology

logger = logging.getLogger(__name__)


def render_artifacts(topology: Topology, config: Config, registry: TemplateRegistry | None = None) -> dict[str, str]:
    """Render every artifact in memory, keyed by path relative to the output directory.

    Raises RenderError on the first template failure; nothing is returned
    partially.
    """
    registry = registry or default_registry()
    artifacts = {}

    artifacts[COMPOSE_FILE] = registry.render(
        "compose",
        {"project": topology.project, "document": build_compose(topology)},
        artifact=COMPOSE_FILE,
    )

    for node in topology.nodes_of(NodeKind.PROXY):
        path, content = render_proxy_config(registry, topology, config, node)
        artifacts[path] = content

    for path, content in render_dockerfiles(registry, topology):
        artifacts[path] = content

    if topology.has_anubis:
        artifacts[BOT_POLICY_FILE] = registry.render(
            "bot_policy",
            {"policy": build_bot_policy(config)},
            artifact=BOT_POLICY_FILE,
        )

    logger.debug(f"Rendered {len(artifacts)} artifacts")
    return artifacts


__all__ = [
    "BOT_POLICY_FILE",
    "COMPOSE_FILE",
    "TemplateRegistry",
    "build_bot_policy",
    "build_compose",
    "dockerfile_path",
    "proxy_config_path",
    "render_artifacts",
]
