"""Validate command: check the config resolves and renders, and that existing output parses."""

import logging
import os
import sys

import yaml

from cerberus.commands import load_or_exit
from cerberus.errors import CerberusError
from cerberus.pipeline import build, summarize
from cerberus.render import COMPOSE_FILE

logger = logging.getLogger(__name__)


def check_compose_file(path):
    """Parse a previously generated compose file. Returns an error message or None."""
    try:
        with open(path) as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return f"{path} is not valid YAML: {e}"
    if not isinstance(document, dict) or "services" not in document:
        return f"{path} has no services section"
    return None


def handle_validate(args):
    """Handle the validate command."""
    logger.info("Validating configuration...")
    config = load_or_exit(args)
    try:
        topology, artifacts = build(config)
    except CerberusError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    summarize(topology)
    logger.info(f"{len(artifacts)} files would be generated")

    compose_path = os.path.join(args.output, COMPOSE_FILE)
    if os.path.exists(compose_path):
        problem = check_compose_file(compose_path)
        if problem:
            logger.error(f"Error: {problem}")
            sys.exit(1)
        logger.info(f"Existing {compose_path} parses")

    logger.info("Configuration is valid")


def register_validate_command(subparsers):
    """Register the validate command."""
    parser = subparsers.add_parser("validate", help="Validate configuration and generated files")
    parser.set_defaults(func=handle_validate)
