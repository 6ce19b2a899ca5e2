"""Template registry: compiled once, shared read-only by every render call."""

import fnmatch
import json
import logging

import jinja2
import yaml

from cerberus.config.types import parse_size
from cerberus.errors import RenderError
from cerberus.render.template_text import TEMPLATES

logger = logging.getLogger(__name__)

# Forwarding headers every nginx location sets unless a service overrides one.
FORWARD_HEADERS = (
    ("Host", "$host"),
    ("X-Real-IP", "$remote_addr"),
    ("X-Forwarded-For", "$proxy_add_x_forwarded_for"),
    ("X-Forwarded-Proto", "$scheme"),
    ("Upgrade", "$http_upgrade"),
    ("Connection", "$connection_upgrade"),
)

LOG_LEVELS = {
    "caddy": {"DEBUG": "DEBUG", "INFO": "INFO", "WARN": "WARN", "WARNING": "WARN", "ERROR": "ERROR"},
    "nginx": {"DEBUG": "debug", "INFO": "info", "WARN": "warn", "WARNING": "warn", "ERROR": "error"},
    "haproxy": {"DEBUG": "debug", "INFO": "info", "WARN": "warning", "WARNING": "warning", "ERROR": "err"},
    "traefik": {"DEBUG": "DEBUG", "INFO": "INFO", "WARN": "WARN", "WARNING": "WARN", "ERROR": "ERROR"},
}

LOG_FORMATS = {
    "caddy": {"json": "json", "console": "console"},
    "traefik": {"json": "json", "console": "common"},
}


class Quoted(str):
    """String always emitted double-quoted, e.g. port mappings like "80:80"."""


class ComposeDumper(yaml.SafeDumper):
    """Safe dumper that indents block sequences under their parent key."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def _represent_quoted(dumper, data):
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style='"')


ComposeDumper.add_representer(Quoted, _represent_quoted)


def _quote_booleans(value):
    """Booleans anywhere in the tree become quoted "true"/"false" strings."""
    if isinstance(value, bool):
        return Quoted("true" if value else "false")
    if isinstance(value, dict):
        return {k: _quote_booleans(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_quote_booleans(v) for v in value]
    return value


def to_yaml(value):
    return yaml.dump(
        _quote_booleans(value),
        Dumper=ComposeDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096,
    )


def to_json(value):
    return json.dumps(value, indent=2)


def quote(value):
    """Double-quoted string literal with JSON escapes, understood by every proxy syntax."""
    return json.dumps(str(value))


def path_prefix(path):
    """/api/* -> /api/, /health* -> /health"""
    stripped = path.rstrip("*")
    return stripped or "/"


def traefik_path(path):
    return f"PathPrefix(`{path_prefix(path)}`)"


def log_level(level, flavor):
    return LOG_LEVELS[flavor][str(level).upper()]


def log_format(fmt, flavor):
    return LOG_FORMATS[flavor][str(fmt).lower()]


def size_bytes(value):
    return parse_size(value)


def cert_for(domain, certificates):
    """Certificate declared for a domain, exact names before wildcards."""
    for cert in certificates:
        if cert.domain == domain:
            return cert
    for cert in certificates:
        if fnmatch.fnmatch(domain, cert.domain):
            return cert
    return None


def merge_headers(defaults, overrides):
    """Default header pairs with case-insensitive overrides applied, overrides quoted."""
    overrides = overrides or {}
    lowered = {name.lower() for name in overrides}
    merged = [(name, value) for name, value in defaults if name.lower() not in lowered]
    merged.extend((name, quote(value)) for name, value in overrides.items())
    return merged


class TemplateRegistry:
    """Compiled templates keyed by template id."""

    def __init__(self, templates=None):
        self.env = jinja2.Environment(
            loader=jinja2.DictLoader(templates if templates is not None else TEMPLATES),
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.env.filters.update(
            to_yaml=to_yaml,
            to_json=to_json,
            quote=quote,
            path_prefix=path_prefix,
            traefik_path=traefik_path,
            log_level=log_level,
            log_format=log_format,
            size_bytes=size_bytes,
            cert_for=cert_for,
            merge_headers=merge_headers,
        )
        self.env.globals["forward_headers"] = FORWARD_HEADERS

        self._templates = {}
        for template_id in self.env.list_templates():
            try:
                self._templates[template_id] = self.env.get_template(template_id)
            except jinja2.TemplateSyntaxError as e:
                raise RenderError(template_id, "<registry>", f"line {e.lineno}: {e.message}") from e
        logger.debug(f"Compiled {len(self._templates)} templates")

    def __contains__(self, template_id):
        return template_id in self._templates

    def render(self, template_id, data, artifact=None):
        """Render one template. Any failure becomes a RenderError naming both ids."""
        artifact = artifact or template_id
        template = self._templates.get(template_id)
        if template is None:
            raise RenderError(template_id, artifact, "unknown template")
        try:
            return template.render(**data)
        except (jinja2.TemplateError, KeyError, ValueError, TypeError) as e:
            raise RenderError(template_id, artifact, str(e) or type(e).__name__) from e


_default_registry = None


def default_registry():
    global _default_registry
    if _default_registry is None:
        _default_registry = TemplateRegistry()
    return _default_registry
