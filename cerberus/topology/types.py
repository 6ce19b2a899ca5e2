"""Resolved topology types."""

from dataclasses import dataclass, field
from enum import Enum

from cerberus.errors import TopologyError


class NodeKind(str, Enum):
    PROXY = "proxy"
    ANUBIS = "anubis"
    SERVICE = "service"


@dataclass(frozen=True)
class NetworkSegment:
    """A named, address-blocked network."""

    name: str
    role: str
    subnet: str
    driver: str = "bridge"


@dataclass(frozen=True)
class NamedVolume:
    name: str
    driver: str | None = None
    external: bool = False
    external_name: str | None = None


@dataclass(frozen=True)
class ResolvedNode:
    """A deployable unit after classification, dependency resolution and scaling.

    ``declaration`` is the proxy/service name the node was built from; for
    scaled replicas it differs from ``name``. ``segment`` stays empty until
    the network allocator runs.
    """

    kind: NodeKind
    name: str
    declaration: str
    depends_on: tuple[str, ...] = ()
    data: dict = field(default_factory=dict)
    segment: str = ""
    layer: int | None = None
    external_port: int | None = None
    instance_id: int | None = None


@dataclass(frozen=True)
class Topology:
    """Everything the renderer needs. Built once per run, never mutated."""

    project: str
    nodes: tuple[ResolvedNode, ...]
    networks: tuple[NetworkSegment, ...]
    volumes: tuple[NamedVolume, ...]
    notes: tuple[str, ...] = ()

    def node(self, name: str) -> ResolvedNode:
        for node in self.nodes:
            if node.name == name:
                return node
        raise KeyError(name)

    def nodes_of(self, kind: NodeKind) -> list[ResolvedNode]:
        return [n for n in self.nodes if n.kind == kind]

    @property
    def has_anubis(self) -> bool:
        return any(n.kind == NodeKind.ANUBIS for n in self.nodes)

    def network(self, name: str) -> NetworkSegment:
        for segment in self.networks:
            if segment.name == name:
                return segment
        raise KeyError(name)

    def startup_order(self) -> list[str]:
        """Node names ordered so every node comes after its dependencies.

        Ties keep declaration order, so the result is stable across runs.
        """
        return topological_order([(n.name, n.depends_on) for n in self.nodes])


def topological_order(edges: list[tuple[str, tuple[str, ...]]]) -> list[str]:
    """Order (name, depends_on) pairs dependencies-first.

    Raises TopologyError naming the two nodes on the edge that closes a cycle.
    """
    deps = dict(edges)
    order = []
    state = {}  # name -> "visiting" | "done"

    def visit(name, parent):
        mark = state.get(name)
        if mark == "done":
            return
        if mark == "visiting":
            raise TopologyError(f"Dependency cycle between '{parent}' and '{name}'")
        state[name] = "visiting"
        for dep in deps.get(name, ()):
            visit(dep, name)
        state[name] = "done"
        order.append(name)

    for name, _ in edges:
        visit(name, None)
    return order
