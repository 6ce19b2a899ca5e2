"""The full artifact set: paths, Dockerfiles and the bot policy."""

import json

import pytest

from cerberus.config import Config
from cerberus.errors import RenderError
from cerberus.render import build_bot_policy, render_artifacts
from cerberus.render.templates import TEMPLATES, TemplateRegistry
from cerberus.topology import resolve_topology


def _artifacts(config, registry=None):
    return render_artifacts(resolve_topology(config), config, registry)


def test_single_caddy_paths(single_caddy):
    assert list(_artifacts(single_caddy)) == [
        "docker-compose.yaml",
        "proxy-configs/proxy/Caddyfile",
        "dockerfiles/caddy/Dockerfile",
    ]


def test_two_layer_paths(two_layer):
    assert list(_artifacts(two_layer)) == [
        "docker-compose.yaml",
        "proxy-configs/proxy/nginx.conf",
        "proxy-configs/proxy-2/Caddyfile",
        "dockerfiles/nginx/Dockerfile",
        "dockerfiles/caddy/Dockerfile",
        "anubis/botPolicy.json",
    ]


def test_suppressed_layer_renders_no_proxy_files():
    config = Config.from_dict({"project": {"name": "acme"}, "proxies": [{"name": "proxy", "type": "nginx"}]})
    assert list(_artifacts(config)) == ["docker-compose.yaml"]


def test_rendering_is_deterministic(two_layer):
    assert _artifacts(two_layer) == _artifacts(two_layer)


def test_compose_header(single_caddy):
    compose = _artifacts(single_caddy)["docker-compose.yaml"]
    assert compose.startswith("# Generated by cerberus for project acme.")


# ── Dockerfiles ─────────────────────────────────────────────────────


def test_one_dockerfile_per_kind():
    config = Config.from_dict(
        {
            "project": {"name": "acme", "scaling": True},
            "proxies": [
                {"name": "a", "type": "caddy", "instances": 2},
                {"name": "b", "type": "caddy", "internal_port": 8080},
            ],
        }
    )
    artifacts = _artifacts(config)
    dockerfiles = [path for path in artifacts if path.startswith("dockerfiles/")]
    assert dockerfiles == ["dockerfiles/caddy/Dockerfile"]
    dockerfile = artifacts["dockerfiles/caddy/Dockerfile"]
    assert "FROM caddy:alpine" in dockerfile
    assert "EXPOSE 80\nEXPOSE 8080" in dockerfile
    assert "RUN mkdir -p /var/log/caddy\n" in dockerfile
    assert "USER" not in dockerfile


def test_haproxy_dockerfile_switches_user():
    config = Config.from_dict({"project": {"name": "acme"}, "proxies": [{"name": "lb", "type": "haproxy"}]})
    dockerfile = _artifacts(config)["dockerfiles/haproxy/Dockerfile"]
    assert "USER root\nRUN mkdir -p /var/log/haproxy && chown haproxy /var/log/haproxy\nUSER haproxy" in dockerfile


def test_traefik_dockerfile_healthcheck_uses_ping():
    config = Config.from_dict({"project": {"name": "acme"}, "proxies": [{"name": "t", "type": "traefik"}]})
    dockerfile = _artifacts(config)["dockerfiles/traefik/Dockerfile"]
    assert "http://localhost:80/ping" in dockerfile


# ── Bot policy ──────────────────────────────────────────────────────


def test_bot_policy(two_layer_dict):
    two_layer_dict["anubis"]["difficulty"] = 7
    config = Config.from_dict(two_layer_dict)
    policy = json.loads(_artifacts(config)["anubis/botPolicy.json"])
    assert set(policy) == {"ALLOW", "CHALLENGE", "BLOCK", "config", "metadata"}
    assert policy["config"]["difficulty"] == 7
    assert policy["metadata"]["project_name"] == "acme"
    assert policy["metadata"]["anubis_enabled"] is True
    assert {"path": "/robots.txt", "description": "Allow robots.txt"} in policy["ALLOW"]


def test_bot_policy_document_matches_builder(two_layer):
    rendered = json.loads(_artifacts(two_layer)["anubis/botPolicy.json"])
    assert rendered == build_bot_policy(two_layer)


# ── Render errors ───────────────────────────────────────────────────


def test_render_error_names_the_artifact(single_caddy):
    registry = TemplateRegistry({**TEMPLATES, "caddy": "{{ proxy.no_such_field }}"})
    with pytest.raises(RenderError) as exc_info:
        _artifacts(single_caddy, registry)
    assert exc_info.value.artifact == "proxy-configs/proxy/Caddyfile"
    assert exc_info.value.template_id == "caddy"
