"""Docker Compose document assembly from a resolved Topology."""

from cerberus.render.templates import Quoted
from cerberus.topology.kinds import kind_profile
from cerberus.topology.network import attached_networks
from cerberus.topology.types import NodeKind, ResolvedNode, Topology

COMPOSE_FILE = "docker-compose.yaml"
BOT_POLICY_FILE = "anubis/botPolicy.json"

HEALTHCHECK_TIMING = {
    "interval": "30s",
    "timeout": "10s",
    "retries": 3,
    "start_period": "10s",
}


def proxy_config_path(node: ResolvedNode) -> str:
    """Generated config file of a proxy node, relative to the output directory."""
    return f"proxy-configs/{node.name}/{node.data['config_file']}"


def _proxy_service(topology: Topology, node: ResolvedNode) -> dict:
    data = node.data
    profile = kind_profile(data["kind"])

    service = {"container_name": node.name}
    if data["build_context"]:
        build = {"context": data["build_context"]}
        if data["build_dockerfile"]:
            build["dockerfile"] = data["build_dockerfile"]
        service["build"] = build
    else:
        service["image"] = data["image"]
    service["restart"] = data["restart"]

    if node.external_port is not None:
        service["ports"] = [Quoted(f"{node.external_port}:{data['internal_port']}")]
    service["expose"] = [Quoted(str(data["internal_port"]))]

    environment = [
        f"PROXY_LAYER={data['layer']}",
        f"MAX_CONNECTIONS={data['max_connections']}",
    ]
    environment += [f"{key}={value}" for key, value in data["environment"].items()]
    service["environment"] = environment

    service["volumes"] = [
        f"./{proxy_config_path(node)}:{profile.config_target}:ro",
        f"./logs/{node.name}:{profile.log_dir}:rw",
    ]
    service["networks"] = attached_networks(node)
    if node.depends_on:
        service["depends_on"] = list(node.depends_on)

    service["healthcheck"] = {
        "test": [
            "CMD-SHELL",
            f"wget -q --spider http://localhost:{data['internal_port']}{profile.health_path} || exit 1",
        ],
        **HEALTHCHECK_TIMING,
    }

    labels = [
        "cerberus.service=proxy",
        f"cerberus.layer={data['layer']}",
        f"cerberus.type={data['kind']}",
        f"cerberus.project={topology.project}",
    ]
    if node.instance_id is not None:
        labels.append(f"cerberus.instance={node.instance_id}")
    labels += [f"{key}={value}" for key, value in data["labels"].items()]
    service["labels"] = labels
    return service


def anubis_environment(data: dict) -> list[str]:
    return [
        f"BIND={data['bind']}",
        f"DIFFICULTY={data['difficulty']}",
        f"TARGET={data['target']['raw']}",
        f"METRICS_BIND={data['metrics_bind']}",
        f"SERVE_ROBOTS_TXT={'true' if data['serve_robots_txt'] else 'false'}",
        f"POLICY_FNAME={data['policy_fname']}",
    ]


def _anubis_service(topology: Topology, node: ResolvedNode) -> dict:
    data = node.data
    service = {
        "container_name": node.name,
        "image": data["image"],
        "restart": data["restart"],
        "environment": anubis_environment(data),
        "volumes": [f"./{BOT_POLICY_FILE}:{data['policy_fname']}:ro"],
        "expose": [Quoted(str(data["port"])), Quoted(str(data["metrics_port"]))],
        "networks": attached_networks(node),
    }
    if node.depends_on:
        service["depends_on"] = list(node.depends_on)
    service["labels"] = [
        "cerberus.service=anubis",
        f"cerberus.project={topology.project}",
    ]
    return service


def _backend_service(topology: Topology, node: ResolvedNode) -> dict:
    data = node.data
    alias = data.get("alias")
    if alias:
        networks = {name: {"aliases": [alias]} for name in attached_networks(node)}
    else:
        networks = attached_networks(node)
    service = {
        "container_name": node.name,
        "image": data["image"],
        "restart": data["restart"],
        "command": ["sleep", "infinity"],
        "expose": [Quoted(str(data["port"]))],
        "networks": networks,
    }
    if node.depends_on:
        service["depends_on"] = list(node.depends_on)
    service["healthcheck"] = {"test": ["CMD", "true"], **HEALTHCHECK_TIMING}
    service["labels"] = [
        "cerberus.service=backend",
        f"cerberus.domain={data['domain']}",
        f"cerberus.project={topology.project}",
    ]
    return service


_SERVICE_BUILDERS = {
    NodeKind.PROXY: _proxy_service,
    NodeKind.ANUBIS: _anubis_service,
    NodeKind.SERVICE: _backend_service,
}


def build_compose(topology: Topology) -> dict:
    """Compose document as plain dicts and lists, keys in emission order.

    Services appear in topology order: proxies and their replicas, Anubis,
    then synthesized backends.
    """
    services = {node.name: _SERVICE_BUILDERS[node.kind](topology, node) for node in topology.nodes}

    networks = {}
    for segment in topology.networks:
        networks[segment.name] = {
            "name": f"{topology.project}-{segment.role}",
            "driver": segment.driver,
            "ipam": {"config": [{"subnet": segment.subnet}]},
        }

    volumes = {}
    for volume in topology.volumes:
        entry = {}
        if volume.driver:
            entry["driver"] = volume.driver
        if volume.external:
            entry["external"] = True
            if volume.external_name:
                entry["name"] = volume.external_name
        volumes[volume.name] = entry

    return {
        "name": topology.project,
        "services": services,
        "networks": networks,
        "volumes": volumes,
    }
