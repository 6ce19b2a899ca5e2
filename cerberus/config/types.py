"""Config dataclass types."""

import re
from dataclasses import dataclass, field
from enum import Enum

from cerberus.errors import ConfigError

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([kmg]?)b?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}


def parse_size(value) -> int:
    """Body size like "1m", "100MB" or "512k" in bytes. Raises ValueError."""
    match = _SIZE_RE.match(str(value))
    if not match:
        raise ValueError(f"invalid size '{value}'")
    number, unit = match.groups()
    return int(number) * _SIZE_UNITS[unit.lower()]


class ProxyKind(str, Enum):
    """Proxy software kinds. The set is closed."""

    CADDY = "caddy"
    NGINX = "nginx"
    HAPROXY = "haproxy"
    TRAEFIK = "traefik"

    @classmethod
    def parse(cls, value: str, owner: str) -> "ProxyKind":
        try:
            return cls(str(value).lower())
        except ValueError:
            known = ", ".join(k.value for k in cls)
            raise ConfigError(f"Proxy {owner}: unknown type '{value}' (expected one of: {known})") from None


class RouteType(str, Enum):
    """Direct routes skip DDoS protection; conditional ones skip it for bypass paths only."""

    DIRECT = "direct"
    CONDITIONAL = "conditional"


@dataclass(frozen=True)
class ProjectSpec:
    """Project-level settings."""

    name: str
    scaling: bool = False


@dataclass(frozen=True)
class RouteDeclaration:
    """Domain-specific routing on a proxy layer."""

    domain: str
    upstream: str
    type: RouteType = RouteType.DIRECT
    bypass_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProxyDeclaration:
    """One declared proxy layer member."""

    name: str
    kind: ProxyKind
    external_port: int | None = None
    internal_port: int = 80
    layer: int = 1
    instances: int = 1
    default_upstream: str | None = None
    routes: tuple[RouteDeclaration, ...] = ()
    algorithm: str | None = None
    max_connections: int = 1024
    build_context: str | None = None
    build_dockerfile: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    restart: str = "unless-stopped"

    def upstreams(self) -> list[str]:
        """Default upstream followed by every route upstream."""
        result = [self.default_upstream] if self.default_upstream else []
        result.extend(route.upstream for route in self.routes)
        return result


@dataclass(frozen=True)
class ServiceDeclaration:
    """Backend service reachable through the proxy layers."""

    name: str
    domain: str
    upstream: str
    websocket: bool = False
    compress: bool = True
    max_body_size: str = "1m"
    headers: dict[str, str] = field(default_factory=dict)
    response_headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AnubisDeclaration:
    """Anubis bot-mitigation settings."""

    enabled: bool = False
    bind: str = ":8080"
    target: str = "http://proxy-2:80"
    difficulty: int = 5
    metrics_bind: str = ":9090"
    image: str = "ghcr.io/techarohq/anubis:latest"
    serve_robots_txt: bool = True
    policy_fname: str = "/data/cfg/botPolicy.json"
    restart: str = "always"

    @property
    def port(self) -> int:
        """Listening port taken from the bind address."""
        return int(self.bind.rsplit(":", 1)[-1])

    @property
    def metrics_port(self) -> int:
        return int(self.metrics_bind.rsplit(":", 1)[-1])


@dataclass(frozen=True)
class GlobalSettings:
    """Global proxy switches rendered into every config."""

    auto_https: str = "off"
    admin: str = "off"


@dataclass(frozen=True)
class CertificateDeclaration:
    domain: str
    cert_file: str
    key_file: str


@dataclass(frozen=True)
class TlsSettings:
    enabled: bool = False
    certificates: tuple[CertificateDeclaration, ...] = ()


@dataclass(frozen=True)
class LoggingSettings:
    """Access-log settings for the generated proxy configs."""

    level: str = "INFO"
    format: str = "json"
    output: str = "/var/log/cerberus.log"


@dataclass(frozen=True)
class VolumeDeclaration:
    """Extra named volume declared by the operator."""

    name: str
    driver: str | None = None
    external: bool = False
    external_name: str | None = None


def _on_off(value) -> str:
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def _table(value, what: str) -> dict:
    """A TOML table (YAML mapping); absent means empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{what} must be a table, got {type(value).__name__}")
    return value


def _tables(value, what: str) -> list[dict]:
    """An array of tables, e.g. [[proxies]]."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be an array of tables, got {type(value).__name__}")
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigError(f"{what} entry {index + 1} must be a table, got {type(item).__name__}")
    return value


def _str_list(value, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"{what} must be a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def _str_map(value, what: str) -> dict[str, str]:
    return {str(k): str(v) for k, v in _table(value, what).items()}


def _certificate(c: dict, index: int) -> CertificateDeclaration:
    missing = [key for key in ("domain", "cert_file", "key_file") if key not in c]
    if missing:
        raise ConfigError(f"TLS certificate {index + 1} is missing {', '.join(missing)}")
    return CertificateDeclaration(str(c["domain"]), str(c["cert_file"]), str(c["key_file"]))


_SERVICE_FIELDS = {"name", "domain", "upstream", "websocket", "compress", "max_body_size", "headers"}


@dataclass(frozen=True)
class Config:
    """Complete loaded configuration."""

    project: ProjectSpec
    proxies: tuple[ProxyDeclaration, ...] = ()
    services: tuple[ServiceDeclaration, ...] = ()
    anubis: AnubisDeclaration = field(default_factory=AnubisDeclaration)
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    tls: TlsSettings = field(default_factory=TlsSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    volumes: tuple[VolumeDeclaration, ...] = ()

    @classmethod
    def from_dict(cls, d: dict) -> "Config":
        """Build a Config from a parsed TOML/YAML document.

        Missing keys fall back to the dataclass defaults. Structural checks
        (empty names, port ranges, difficulty) are left to validate_config().
        """
        if not isinstance(d, dict):
            raise ConfigError(f"Config document must be a table, got {type(d).__name__}")
        if "project" not in d:
            raise ConfigError("Missing [project] section")
        project_dict = _table(d["project"], "[project]")
        project = ProjectSpec(
            name=str(project_dict.get("name", "")),
            scaling=bool(project_dict.get("scaling", False)),
        )

        proxies = tuple(_proxy_from_dict(p) for p in _tables(d.get("proxies"), "[[proxies]]"))
        services = tuple(_service_from_dict(s) for s in _tables(d.get("services"), "[[services]]"))

        anubis_dict = _table(d.get("anubis"), "[anubis]")
        anubis = AnubisDeclaration(**{k: v for k, v in anubis_dict.items() if k in AnubisDeclaration.__dataclass_fields__})

        global_dict = _table(d.get("global"), "[global]")
        global_settings = GlobalSettings(
            auto_https=_on_off(global_dict.get("auto_https", "off")),
            admin=_on_off(global_dict.get("admin", "off")),
        )

        tls_dict = _table(d.get("tls"), "[tls]")
        tls = TlsSettings(
            enabled=bool(tls_dict.get("enabled", False)),
            certificates=tuple(
                _certificate(c, index)
                for index, c in enumerate(_tables(tls_dict.get("certificates"), "[[tls.certificates]]"))
            ),
        )

        logging_dict = _table(d.get("logging"), "[logging]")
        logging_settings = LoggingSettings(
            level=str(logging_dict.get("level", "INFO")),
            format=str(logging_dict.get("format", "json")),
            output=str(logging_dict.get("output", "/var/log/cerberus.log")),
        )

        volumes = []
        for name, v in _table(d.get("volumes"), "[volumes]").items():
            v = _table(v, f"[volumes.{name}]")
            volumes.append(
                VolumeDeclaration(
                    name=name,
                    driver=v.get("driver"),
                    external=bool(v.get("external", False)),
                    external_name=v.get("name"),
                )
            )

        return cls(
            project=project,
            proxies=proxies,
            services=services,
            anubis=anubis,
            global_settings=global_settings,
            tls=tls,
            logging=logging_settings,
            volumes=tuple(volumes),
        )

    def declared_names(self) -> set[str]:
        """Every proxy and service name declared in the document."""
        return {p.name for p in self.proxies} | {s.name for s in self.services}


def _route_type(value, owner: str) -> RouteType:
    try:
        return RouteType(str(value).lower())
    except ValueError:
        raise ConfigError(f"Proxy {owner}: unknown route type '{value}'") from None


def _proxy_from_dict(d: dict) -> ProxyDeclaration:
    name = str(d.get("name", ""))
    owner = f"Proxy {name or '<unnamed>'}"
    if "type" not in d:
        raise ConfigError(f"{owner}: missing type")
    routes = tuple(
        RouteDeclaration(
            domain=str(r.get("domain", "")),
            upstream=str(r.get("upstream", "")),
            type=_route_type(r.get("type", "direct"), name),
            bypass_paths=_str_list(r.get("bypass_paths"), f"{owner} route bypass_paths"),
        )
        for r in _tables(d.get("routes"), f"{owner} routes")
    )
    layer = d.get("layer")
    return ProxyDeclaration(
        name=name,
        kind=ProxyKind.parse(d["type"], name),
        external_port=d.get("external_port"),
        internal_port=d.get("internal_port", 80),
        layer=1 if layer is None else layer,
        instances=d.get("instances", 1),
        default_upstream=d.get("default_upstream"),
        routes=routes,
        algorithm=d.get("algorithm"),
        max_connections=d.get("max_connections", 1024),
        build_context=d.get("build_context"),
        build_dockerfile=d.get("build_dockerfile"),
        environment=_str_map(d.get("environment"), f"{owner} environment"),
        labels=_str_map(d.get("labels"), f"{owner} labels"),
        restart=d.get("restart") or "unless-stopped",
    )


def _service_from_dict(d: dict) -> ServiceDeclaration:
    owner = f"Service {d.get('name') or '<unnamed>'}"
    request, response = {}, {}
    for key, value in _table(d.get("headers"), f"{owner} headers").items():
        if key in ("request", "response") and isinstance(value, dict):
            (request if key == "request" else response).update(_str_map(value, f"{owner} headers.{key}"))
        else:
            request[str(key)] = str(value)

    # Unknown keys are flattened headers, e.g. headers_response_cache_control.
    for key, value in d.items():
        if key in _SERVICE_FIELDS:
            continue
        if key.startswith("headers_response_"):
            response[_header_name(key[len("headers_response_"):])] = str(value)
        elif key.startswith("headers_request_"):
            request[_header_name(key[len("headers_request_"):])] = str(value)
        else:
            request[key] = str(value)

    return ServiceDeclaration(
        name=str(d.get("name", "")),
        domain=str(d.get("domain", "")),
        upstream=str(d.get("upstream", "")),
        websocket=bool(d.get("websocket", False)),
        compress=bool(d.get("compress", True)),
        max_body_size=str(d.get("max_body_size", "1m")),
        headers=request,
        response_headers=response,
    )


def _header_name(key: str) -> str:
    """cache_control -> Cache-Control"""
    return "-".join(part.capitalize() for part in key.split("_") if part)
