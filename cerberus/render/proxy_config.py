"""Per-node proxy configuration rendering."""

from cerberus.config.types import Config
from cerberus.render.compose import proxy_config_path
from cerberus.render.templates import TemplateRegistry
from cerberus.topology.kinds import kind_profile
from cerberus.topology.types import ResolvedNode, Topology


def proxy_context(topology: Topology, config: Config, node: ResolvedNode) -> dict:
    """Flattened template data for one proxy node."""
    profile = kind_profile(node.data["kind"])
    return {
        "project": topology.project,
        "node": {
            "name": node.name,
            "instance_id": node.instance_id,
            "segment": node.segment,
            "external_port": node.external_port,
        },
        "proxy": node.data,
        "settings": config.global_settings,
        "tls": config.tls,
        "logging": config.logging,
        "log_dir": profile.log_dir,
        "health_path": profile.health_path,
        "config_target": profile.config_target,
    }


def render_proxy_config(registry: TemplateRegistry, topology: Topology, config: Config, node: ResolvedNode):
    """Return (relative path, content) for one proxy node's native config."""
    path = proxy_config_path(node)
    template_id = kind_profile(node.data["kind"]).template_id
    return path, registry.render(template_id, proxy_context(topology, config, node), artifact=path)
