"""Config loading, environment overlays, and validation."""

import logging
import os
import tomllib

import yaml

from cerberus.errors import ConfigError
from cerberus.config.types import Config, RouteType, parse_size

logger = logging.getLogger(__name__)

MAX_PORT = 65535
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
LOG_LEVELS = ("DEBUG", "INFO", "WARN", "WARNING", "ERROR")
LOG_FORMATS = ("json", "console")


def deep_merge(base, override):
    """Recursive dict merge. Override wins for scalars."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_document(path):
    with open(path, "rb") as f:
        raw = f.read()
    ext = os.path.splitext(path)[1].lower()
    try:
        if ext in (".yaml", ".yml"):
            data = yaml.safe_load(raw.decode("utf-8")) or {}
        else:
            data = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Failed to parse {path}: top level must be a table")
    return data


def _check_port(value, what):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{what} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigError(f"{what} must be greater than 0")
    if value > MAX_PORT:
        raise ConfigError(f"{what} must be at most {MAX_PORT}")


def _check_bind(value, what):
    if not isinstance(value, str):
        raise ConfigError(f"{what} must be a string like ':8080', got {value!r}")
    port = value.rsplit(":", 1)[-1]
    if ":" not in value or not port.isdigit():
        raise ConfigError(f"{what} must look like '[host]:port', got '{value}'")
    _check_port(int(port), what)


def validate_config(config: Config) -> None:
    """Raise ConfigError on the first structural problem found.

    Called by the loader and again by the resolver before any node is built.
    """
    if not config.project.name.strip():
        raise ConfigError("Project name cannot be empty")

    seen = set()
    for index, proxy in enumerate(config.proxies):
        if not proxy.name.strip():
            raise ConfigError(f"Proxy {index} name cannot be empty")
        if proxy.name in seen:
            raise ConfigError(f"Proxy name '{proxy.name}' is declared more than once")
        seen.add(proxy.name)

        if proxy.external_port is not None:
            _check_port(proxy.external_port, f"Proxy {proxy.name} external_port")
        _check_port(proxy.internal_port, f"Proxy {proxy.name} internal_port")

        if isinstance(proxy.instances, bool) or not isinstance(proxy.instances, int) or proxy.instances < 1:
            raise ConfigError(f"Proxy {proxy.name} instances must be greater than 0")
        if isinstance(proxy.layer, bool) or not isinstance(proxy.layer, int) or proxy.layer < 1:
            raise ConfigError(f"Proxy {proxy.name} layer must be a positive integer")
        if proxy.default_upstream is not None and not str(proxy.default_upstream).strip():
            raise ConfigError(f"Proxy {proxy.name} default_upstream cannot be empty")

        for route in proxy.routes:
            if not route.domain.strip():
                raise ConfigError(f"Proxy {proxy.name} has a route with an empty domain")
            if not route.upstream.strip():
                raise ConfigError(f"Proxy {proxy.name} route {route.domain} upstream cannot be empty")
            if route.type == RouteType.CONDITIONAL:
                if not route.bypass_paths:
                    raise ConfigError(f"Proxy {proxy.name} conditional route {route.domain} needs bypass_paths")
                if not proxy.default_upstream:
                    raise ConfigError(
                        f"Proxy {proxy.name} conditional route {route.domain} needs a default_upstream "
                        f"for non-bypassed paths"
                    )

    for index, service in enumerate(config.services):
        if not service.name.strip():
            raise ConfigError(f"Service {index} name cannot be empty")
        if service.name in seen:
            raise ConfigError(f"Service name '{service.name}' collides with another declaration")
        seen.add(service.name)
        if not service.domain.strip():
            raise ConfigError(f"Service {service.name} domain cannot be empty")
        if not service.upstream.strip():
            raise ConfigError(f"Service {service.name} upstream cannot be empty")
        try:
            parse_size(service.max_body_size)
        except ValueError:
            raise ConfigError(
                f"Service {service.name} max_body_size '{service.max_body_size}' is not a size like 1m or 100MB"
            ) from None

    if config.logging.level.upper() not in LOG_LEVELS:
        raise ConfigError(f"Logging level must be one of {', '.join(LOG_LEVELS)}, got '{config.logging.level}'")
    if config.logging.format.lower() not in LOG_FORMATS:
        raise ConfigError(f"Logging format must be one of {', '.join(LOG_FORMATS)}, got '{config.logging.format}'")

    anubis = config.anubis
    if anubis.enabled:
        if (
            isinstance(anubis.difficulty, bool)
            or not isinstance(anubis.difficulty, int)
            or not MIN_DIFFICULTY <= anubis.difficulty <= MAX_DIFFICULTY
        ):
            raise ConfigError(f"Anubis difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}")
        _check_bind(anubis.bind, "Anubis bind")
        _check_bind(anubis.metrics_bind, "Anubis metrics_bind")
        if not isinstance(anubis.target, str) or not anubis.target.strip():
            raise ConfigError("Anubis target cannot be empty")


def load_config(path, environment=None):
    """Load a TOML (or YAML) config file, optionally deep-merging an environment overlay.

    Returns a validated Config dataclass.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    data = _parse_document(path)
    environments = data.pop("environments", None) or {}
    if not isinstance(environments, dict):
        raise ConfigError(f"[environments] in {path} must be a table")

    if environment is not None:
        if environment not in environments:
            available = ", ".join(sorted(environments.keys())) if environments else "none"
            raise ConfigError(f"Unknown environment '{environment}'. Available environments: {available}")
        overlay = environments[environment]
        if not isinstance(overlay, dict):
            raise ConfigError(f"[environments.{environment}] in {path} must be a table")
        data = deep_merge(data, overlay)
        logger.debug(f"Applied environment overlay '{environment}'")

    config = Config.from_dict(data)
    validate_config(config)
    return config
