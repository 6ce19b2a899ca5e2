"""Config loading and declaration types."""

from cerberus.config.loader import deep_merge, load_config, validate_config
from cerberus.config.types import (
    AnubisDeclaration,
    CertificateDeclaration,
    Config,
    GlobalSettings,
    LoggingSettings,
    ProjectSpec,
    ProxyDeclaration,
    ProxyKind,
    RouteDeclaration,
    RouteType,
    ServiceDeclaration,
    TlsSettings,
    VolumeDeclaration,
    parse_size,
)

__all__ = [
    "AnubisDeclaration",
    "CertificateDeclaration",
    "Config",
    "GlobalSettings",
    "LoggingSettings",
    "ProjectSpec",
    "ProxyDeclaration",
    "ProxyKind",
    "RouteDeclaration",
    "RouteType",
    "ServiceDeclaration",
    "TlsSettings",
    "VolumeDeclaration",
    "deep_merge",
    "load_config",
    "parse_size",
    "validate_config",
]
