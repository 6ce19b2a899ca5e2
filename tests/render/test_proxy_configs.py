"""Rendered proxy configs for each proxy kind."""

import yaml

from cerberus.config import Config
from cerberus.render import render_artifacts
from cerberus.topology import resolve_topology


def _render(data):
    config = Config.from_dict(data)
    return render_artifacts(resolve_topology(config), config)


def _single(kind, **extra):
    """One proxy of ``kind`` with a conditional route, a default upstream and one service."""
    proxy = {
        "name": "edge",
        "type": kind,
        "external_port": 80,
        "default_upstream": "http://10.0.0.5:8080",
        "routes": [
            {
                "domain": "app.example.com",
                "upstream": "http://10.0.0.6:80",
                "type": "conditional",
                "bypass_paths": ["/api*", "/streaming*"],
            }
        ],
        **extra,
    }
    return {
        "project": {"name": "acme"},
        "anubis": {"enabled": kind == "nginx"},
        "proxies": [proxy],
        "services": [
            {
                "name": "blog",
                "domain": "blog.example.com",
                "upstream": "http://10.0.0.7:2368",
                "max_body_size": "10m",
                "headers": {"request": {"X-Origin": "edge"}, "response": {"X-Frame-Options": "DENY"}},
            }
        ],
    }


# ── Caddy ───────────────────────────────────────────────────────────


def test_caddy_two_layer_services(two_layer_dict):
    artifacts = _render(two_layer_dict)
    caddyfile = artifacts["proxy-configs/proxy-2/Caddyfile"]
    assert "auto_https off" in caddyfile
    assert "admin off" in caddyfile
    assert "output file /var/log/caddy/access.log" in caddyfile
    assert "http://app.example.com:80 {" in caddyfile
    assert "reverse_proxy http://app-backend:3000 {" in caddyfile
    assert "max_size 100MB" in caddyfile
    assert "reverse_proxy http://192.168.1.101:8080 {" in caddyfile
    assert "encode gzip zstd" in caddyfile
    assert 'respond "Not Found" 404' in caddyfile


def test_caddy_conditional_route():
    caddyfile = _render(_single("caddy"))["proxy-configs/edge/Caddyfile"]
    assert "@bypass path /api* /streaming*" in caddyfile
    assert "handle @bypass {\n        reverse_proxy http://10.0.0.6:80" in caddyfile
    assert "handle {\n        reverse_proxy http://10.0.0.5:8080" in caddyfile
    assert "handle /health {" in caddyfile


def test_caddy_service_headers():
    caddyfile = _render(_single("caddy"))["proxy-configs/edge/Caddyfile"]
    assert 'header_up X-Origin "edge"' in caddyfile
    assert 'header X-Frame-Options "DENY"' in caddyfile
    assert "max_size 10M" in caddyfile


def test_caddy_global_settings_on_are_omitted():
    data = _single("caddy")
    data["global"] = {"auto_https": True, "admin": "localhost:2019"}
    caddyfile = _render(data)["proxy-configs/edge/Caddyfile"]
    assert "auto_https" not in caddyfile
    assert "admin localhost:2019" in caddyfile


def test_caddy_tls_sites_use_certificates():
    data = _single("caddy")
    data["tls"] = {
        "enabled": True,
        "certificates": [{"domain": "*.example.com", "cert_file": "/etc/ssl/w.crt", "key_file": "/etc/ssl/w.key"}],
    }
    caddyfile = _render(data)["proxy-configs/edge/Caddyfile"]
    assert "app.example.com:80 {" in caddyfile
    assert "http://app.example.com" not in caddyfile
    assert "tls /etc/ssl/w.crt /etc/ssl/w.key" in caddyfile


# ── nginx ───────────────────────────────────────────────────────────


def test_nginx_layer_one(two_layer_dict):
    conf = _render(two_layer_dict)["proxy-configs/proxy/nginx.conf"]
    assert "worker_connections 1024;" in conf
    assert "server_name media.example.com;" in conf
    assert "server_name app.example.com;" in conf
    assert "location /api {" in conf
    assert "location /streaming {" in conf
    assert "proxy_pass http://proxy-2:80;" in conf
    assert "proxy_pass http://anubis:8080;" in conf
    assert "listen 80 default_server;" in conf
    assert "location = /health {" in conf
    assert "error_log /var/log/nginx/error.log info;" in conf


def test_nginx_service_headers_override_defaults():
    data = _single("nginx")
    data["services"][0]["headers"] = {"request": {"Host": "s3.example.com"}}
    conf = _render(data)["proxy-configs/edge/nginx.conf"]
    assert 'proxy_set_header Host "s3.example.com";' in conf
    assert "client_max_body_size 10m;" in conf
    # other server blocks keep the default Host header
    assert "proxy_set_header Host $host;" in conf


def test_nginx_response_headers():
    conf = _render(_single("nginx"))["proxy-configs/edge/nginx.conf"]
    assert 'add_header X-Frame-Options "DENY" always;' in conf
    assert 'proxy_set_header X-Origin "edge";' in conf


def test_nginx_max_connections():
    conf = _render(_single("nginx", max_connections=4096))["proxy-configs/edge/nginx.conf"]
    assert "worker_connections 4096;" in conf


# ── HAProxy ─────────────────────────────────────────────────────────


def test_haproxy_routes_and_backends():
    cfg = _render(_single("haproxy", algorithm="leastconn", max_connections=2048))["proxy-configs/edge/haproxy.cfg"]
    assert "maxconn 2048" in cfg
    assert "bind *:80" in cfg
    assert "acl route_1_host hdr(host) -i app.example.com app.example.com:80" in cfg
    assert "acl route_1_bypass path_beg /api /streaming" in cfg
    assert "use_backend route_1 if route_1_host route_1_bypass" in cfg
    assert "use_backend default_upstream if route_1_host" in cfg
    assert "balance leastconn" in cfg
    assert "server route_1 10.0.0.6:80 check" in cfg
    assert "server default 10.0.0.5:8080 check" in cfg
    assert "default_backend default_upstream" in cfg


def test_haproxy_service_backend():
    cfg = _render(_single("haproxy"))["proxy-configs/edge/haproxy.cfg"]
    assert "use_backend service_1 if service_1_host" in cfg
    assert "balance roundrobin" in cfg
    assert 'http-request set-header X-Origin "edge"' in cfg
    assert 'http-response set-header X-Frame-Options "DENY"' in cfg
    assert "req.body_size gt 10485760" in cfg


def test_haproxy_without_default_upstream():
    data = _single("haproxy")
    del data["proxies"][0]["default_upstream"]
    data["proxies"][0]["routes"] = []
    cfg = _render(data)["proxy-configs/edge/haproxy.cfg"]
    assert "default_backend not_found" in cfg
    assert "backend not_found" in cfg


def test_haproxy_https_upstream():
    data = _single("haproxy")
    data["services"][0]["upstream"] = "https://10.0.0.7"
    cfg = _render(data)["proxy-configs/edge/haproxy.cfg"]
    assert "server service_1 10.0.0.7:443 ssl verify none check" in cfg


# ── Traefik ─────────────────────────────────────────────────────────


def test_traefik_config_is_yaml():
    text = _render(_single("traefik"))["proxy-configs/edge/traefik.yml"]
    doc = yaml.safe_load(text)
    assert doc["entryPoints"]["web"]["address"] == ":80"
    assert doc["ping"]["entryPoint"] == "web"
    assert doc["providers"]["file"]["filename"] == "/etc/traefik/traefik.yml"

    routers = doc["http"]["routers"]
    assert routers["route-1-bypass"]["rule"] == (
        "Host(`app.example.com`) && (PathPrefix(`/api`) || PathPrefix(`/streaming`))"
    )
    assert routers["route-1-bypass"]["service"] == "route-1"
    assert routers["route-1"]["service"] == "default-upstream"
    assert routers["service-1"]["middlewares"] == ["service-1-limits", "service-1-compress", "service-1-headers"]
    assert routers["default"]["priority"] == 1

    middlewares = doc["http"]["middlewares"]
    assert middlewares["service-1-limits"]["buffering"]["maxRequestBodyBytes"] == 10 * 1024**2
    assert middlewares["service-1-headers"]["headers"]["customResponseHeaders"] == {"X-Frame-Options": "DENY"}

    services = doc["http"]["services"]
    assert services["default-upstream"]["loadBalancer"]["servers"] == [{"url": "http://10.0.0.5:8080"}]


def test_traefik_console_log_format():
    data = _single("traefik")
    data["logging"] = {"level": "warn", "format": "console"}
    doc = yaml.safe_load(_render(data)["proxy-configs/edge/traefik.yml"])
    assert doc["log"]["level"] == "WARN"
    assert doc["accessLog"]["format"] == "common"


def test_traefik_without_routes_has_no_http_section():
    data = {"project": {"name": "acme"}, "proxies": [{"name": "edge", "type": "traefik", "external_port": 80}]}
    doc = yaml.safe_load(_render(data)["proxy-configs/edge/traefik.yml"])
    assert "http" not in doc


# ── Replicas ────────────────────────────────────────────────────────


def test_each_replica_gets_its_own_config():
    data = _single("caddy", instances=3)
    data["project"]["scaling"] = True
    artifacts = _render(data)
    for name in ("edge", "edge-2", "edge-3"):
        assert f"proxy-configs/{name}/Caddyfile" in artifacts
    assert "edge-3 (layer 1)" in artifacts["proxy-configs/edge-3/Caddyfile"]
