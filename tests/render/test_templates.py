"""Unit tests for the template registry and its filters."""

import pytest
import yaml

from cerberus.config import CertificateDeclaration
from cerberus.errors import RenderError
from cerberus.render.templates import (
    FORWARD_HEADERS,
    Quoted,
    TemplateRegistry,
    cert_for,
    log_level,
    merge_headers,
    path_prefix,
    quote,
    to_yaml,
    traefik_path,
)

# ── Filters ─────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "path,expected",
    [("/api*", "/api"), ("/api/*", "/api/"), ("/*", "/"), ("/health", "/health")],
)
def test_path_prefix(path, expected):
    assert path_prefix(path) == expected


def test_traefik_path():
    assert traefik_path("/streaming*") == "PathPrefix(`/streaming`)"


def test_log_level_per_flavor():
    assert log_level("warn", "haproxy") == "warning"
    assert log_level("ERROR", "haproxy") == "err"
    assert log_level("INFO", "nginx") == "info"
    assert log_level("WARNING", "caddy") == "WARN"


def test_cert_for_prefers_exact_match():
    wildcard = CertificateDeclaration("*.example.com", "/w.crt", "/w.key")
    exact = CertificateDeclaration("app.example.com", "/a.crt", "/a.key")
    assert cert_for("app.example.com", (wildcard, exact)) is exact
    assert cert_for("media.example.com", (wildcard, exact)) is wildcard
    assert cert_for("other.org", (wildcard, exact)) is None


def test_merge_headers_overrides_case_insensitively():
    merged = dict(merge_headers(FORWARD_HEADERS, {"host": "s3.example.com"}))
    assert "Host" not in merged
    assert merged["host"] == '"s3.example.com"'
    assert merged["X-Real-IP"] == "$remote_addr"


def test_quote_keeps_ampersands_and_escapes_quotes():
    assert quote("a && b") == '"a && b"'
    assert quote('say "hi"') == '"say \\"hi\\""'


def test_to_yaml_quotes_booleans_and_port_mappings():
    text = to_yaml({"ports": [Quoted("80:80")], "external": True, "retries": 3})
    assert '- "80:80"' in text
    assert 'external: "true"' in text
    assert "retries: 3" in text
    assert yaml.safe_load(text) == {"ports": ["80:80"], "external": "true", "retries": 3}


def test_to_yaml_keeps_insertion_order():
    text = to_yaml({"services": {}, "networks": {}, "volumes": {}})
    assert text.index("services") < text.index("networks") < text.index("volumes")


# ── Registry ────────────────────────────────────────────────────────


def test_registry_compiles_builtin_templates():
    registry = TemplateRegistry()
    for template_id in ("caddy", "nginx", "haproxy", "traefik", "dockerfile", "compose", "bot_policy"):
        assert template_id in registry


def test_unknown_template():
    with pytest.raises(RenderError, match="template 'apache'") as exc_info:
        TemplateRegistry().render("apache", {}, artifact="proxy-configs/x/httpd.conf")
    assert exc_info.value.artifact == "proxy-configs/x/httpd.conf"


def test_missing_variable_names_template_and_artifact():
    registry = TemplateRegistry({"greeting": "hello {{ name }}"})
    with pytest.raises(RenderError) as exc_info:
        registry.render("greeting", {}, artifact="out.txt")
    assert exc_info.value.template_id == "greeting"
    assert "Failed to render out.txt (template 'greeting')" in str(exc_info.value)


def test_syntax_error_at_registry_build():
    with pytest.raises(RenderError, match="broken"):
        TemplateRegistry({"broken": "{% if %}"})


def test_render_custom_template():
    registry = TemplateRegistry({"greeting": "hello {{ name }}\n"})
    assert registry.render("greeting", {"name": "world"}) == "hello world\n"
