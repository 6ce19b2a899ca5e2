"""Shared pytest fixtures for all test modules."""

import copy
import os
import subprocess
import sys

import pytest
import yaml

from cerberus.config import Config

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))
EXAMPLE_CONFIG = os.path.join(PROJECT_ROOT, "config.example.toml")


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def example_config_path():
    return EXAMPLE_CONFIG


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the cerberus CLI as a subprocess."""

    def _run(*args, cwd=None):
        result = subprocess.run(
            [sys.executable, "-m", "cerberus.cerberus", *args],
            capture_output=True,
            text=True,
            cwd=cwd or project_root,
            env={**os.environ, "PYTHONPATH": project_root},
        )
        return result.returncode, result.stdout, result.stderr

    return _run


@pytest.fixture
def make_config_file():
    """Return a factory that writes a config dict as YAML into a temp dir."""

    def _make(tmp_dir, data, name="config.yaml"):
        path = os.path.join(str(tmp_dir), name)
        with open(path, "w") as f:
            yaml.dump(data, f)
        return path

    return _make


# ── Unit-test fixtures ──────────────────────────────────────────────


SINGLE_CADDY = {
    "project": {"name": "acme"},
    "proxies": [
        {"name": "proxy", "type": "caddy", "external_port": 80, "internal_port": 80},
    ],
}

TWO_LAYER = {
    "project": {"name": "acme", "scaling": True},
    "anubis": {"enabled": True, "target": "http://proxy-2:80", "difficulty": 5},
    "proxies": [
        {
            "name": "proxy",
            "type": "nginx",
            "external_port": 80,
            "internal_port": 80,
            "layer": 1,
            "default_upstream": "http://anubis:8080",
            "routes": [
                {"domain": "media.example.com", "upstream": "http://proxy-2:80"},
                {
                    "domain": "app.example.com",
                    "upstream": "http://proxy-2:80",
                    "type": "conditional",
                    "bypass_paths": ["/api*", "/streaming*"],
                },
            ],
        },
        {"name": "proxy-2", "type": "caddy", "internal_port": 80, "layer": 2},
    ],
    "services": [
        {
            "name": "app",
            "domain": "app.example.com",
            "upstream": "http://app-backend:3000",
            "max_body_size": "100MB",
            "websocket": True,
        },
        {"name": "media", "domain": "media.example.com", "upstream": "http://192.168.1.101:8080"},
    ],
}


@pytest.fixture
def single_caddy_dict():
    return copy.deepcopy(SINGLE_CADDY)


@pytest.fixture
def two_layer_dict():
    return copy.deepcopy(TWO_LAYER)


@pytest.fixture
def single_caddy(single_caddy_dict):
    return Config.from_dict(single_caddy_dict)


@pytest.fixture
def two_layer(two_layer_dict):
    return Config.from_dict(two_layer_dict)
