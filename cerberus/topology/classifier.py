"""Node classification: upstream addresses and proxy eligibility.

An upstream whose host is a literal IP address is assumed to be reachable
already, so no container is generated for it. Any other host names a node
that the topology has to provide.

Proxy eligibility is a fixed table keyed by proxy kind: kinds whose generated
config routes through Anubis only materialize when Anubis is enabled.
"""

import ipaddress
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from cerberus.config.types import ProxyDeclaration, ProxyKind
from cerberus.errors import ConfigError, TopologyError


class UpstreamKind(str, Enum):
    EXTERNAL = "external"
    INTERNAL = "internal"


class Eligibility(str, Enum):
    MATERIALIZE = "materialize"
    SUPPRESS = "suppress"


# Which proxy kinds sit in front of Anubis and need it to be enabled.
REQUIRES_ANUBIS = {
    ProxyKind.CADDY: False,
    ProxyKind.NGINX: True,
    ProxyKind.HAPROXY: False,
    ProxyKind.TRAEFIK: False,
}

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class UpstreamClass:
    """Parsed and classified upstream address."""

    kind: UpstreamKind
    host: str
    port: int | None
    scheme: str

    @property
    def is_external(self) -> bool:
        return self.kind == UpstreamKind.EXTERNAL


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def classify_upstream(upstream: str, owner: str) -> UpstreamClass:
    """Classify an upstream string (URL, host:port or bare host).

    ``owner`` names the declaration the upstream belongs to; it is used in the
    ConfigError raised for strings without a host.
    """
    text = (upstream or "").strip()
    if "://" not in text:
        text = f"http://{text}"
        scheme = ""
    else:
        scheme = text.split("://", 1)[0].lower()

    try:
        parts = urlsplit(text)
        host = parts.hostname
        port = parts.port
    except ValueError as e:
        raise ConfigError(f"{owner}: malformed upstream '{upstream}': {e}") from e

    if not host:
        raise ConfigError(f"{owner}: upstream '{upstream}' has no host")

    if port is None:
        port = DEFAULT_PORTS.get(scheme)

    kind = UpstreamKind.EXTERNAL if _is_ip_literal(host) else UpstreamKind.INTERNAL
    return UpstreamClass(kind=kind, host=host, port=port, scheme=scheme or "http")


def proxy_eligibility(proxy: ProxyDeclaration, anubis_enabled: bool) -> Eligibility:
    """Decide whether a declared proxy appears in the topology."""
    try:
        requires_anubis = REQUIRES_ANUBIS[ProxyKind(proxy.kind)]
    except (KeyError, ValueError):
        raise TopologyError(f"Proxy {proxy.name}: unknown proxy kind '{proxy.kind}'") from None
    if requires_anubis and not anubis_enabled:
        return Eligibility.SUPPRESS
    return Eligibility.MATERIALIZE


def is_ddos_aware(kind: ProxyKind) -> bool:
    return REQUIRES_ANUBIS.get(kind, False)
