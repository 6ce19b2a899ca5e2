"""One Dockerfile per materialized proxy kind."""

from cerberus.render.templates import TemplateRegistry
from cerberus.topology.kinds import kind_profile
from cerberus.topology.types import NodeKind, Topology


def dockerfile_path(kind: str) -> str:
    return f"dockerfiles/{kind}/Dockerfile"


def kinds_in_order(topology: Topology) -> list[str]:
    """Materialized proxy kinds in order of first appearance."""
    kinds = []
    for node in topology.nodes_of(NodeKind.PROXY):
        if node.data["kind"] not in kinds:
            kinds.append(node.data["kind"])
    return kinds


def render_dockerfiles(registry: TemplateRegistry, topology: Topology) -> list[tuple[str, str]]:
    results = []
    for kind in kinds_in_order(topology):
        profile = kind_profile(kind)
        ports = sorted({n.data["internal_port"] for n in topology.nodes_of(NodeKind.PROXY) if n.data["kind"] == kind})
        path = dockerfile_path(kind)
        context = {
            "project": topology.project,
            "kind": kind,
            "image": profile.image,
            "log_dir": profile.log_dir,
            "user": profile.user,
            "ports": ports,
            "health_path": profile.health_path,
        }
        results.append((path, registry.render("dockerfile", context, artifact=path)))
    return results
