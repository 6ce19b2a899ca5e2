"""Per-kind container profiles: image, config file, mount targets."""

from dataclasses import dataclass

from cerberus.config.types import ProxyKind


@dataclass(frozen=True)
class KindProfile:
    image: str
    config_file: str    # file name under proxy-configs/<node>/
    config_target: str  # where the container reads it
    log_dir: str
    template_id: str
    health_path: str = "/health"
    user: str | None = None  # non-root user the stock image runs as


KIND_PROFILES = {
    ProxyKind.CADDY: KindProfile(
        image="caddy:alpine",
        config_file="Caddyfile",
        config_target="/etc/caddy/Caddyfile",
        log_dir="/var/log/caddy",
        template_id="caddy",
    ),
    ProxyKind.NGINX: KindProfile(
        image="nginx:alpine",
        config_file="nginx.conf",
        config_target="/etc/nginx/nginx.conf",
        log_dir="/var/log/nginx",
        template_id="nginx",
    ),
    ProxyKind.HAPROXY: KindProfile(
        image="haproxy:alpine",
        config_file="haproxy.cfg",
        config_target="/usr/local/etc/haproxy/haproxy.cfg",
        log_dir="/var/log/haproxy",
        template_id="haproxy",
        user="haproxy",
    ),
    ProxyKind.TRAEFIK: KindProfile(
        image="traefik:v3.0",
        config_file="traefik.yml",
        config_target="/etc/traefik/traefik.yml",
        log_dir="/var/log/traefik",
        template_id="traefik",
        health_path="/ping",
    ),
}

SERVICE_IMAGE = "alpine:latest"
ANUBIS_NODE_NAME = "anubis"


def kind_profile(kind) -> KindProfile:
    return KIND_PROFILES[ProxyKind(kind)]
