"""CLI subcommands and the helpers they share."""

import logging
import sys

from cerberus.config import load_config
from cerberus.errors import CerberusError

logger = logging.getLogger(__name__)


def load_or_exit(args):
    """Load the config named on the command line, exiting with status 1 on error."""
    try:
        return load_config(args.config, environment=args.env)
    except (FileNotFoundError, CerberusError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
