"""Generate command: render every artifact into the output directory."""

import asyncio
import logging
import os
import sys

from cerberus.commands import load_or_exit
from cerberus.errors import CerberusError
from cerberus.pipeline import run_generate
from cerberus.render import COMPOSE_FILE
from cerberus.storage import make_write_file

logger = logging.getLogger(__name__)


def handle_generate(args):
    """Handle the generate command."""
    config = load_or_exit(args)
    output_dir = os.path.abspath(args.output)

    existing = os.path.join(output_dir, COMPOSE_FILE)
    if os.path.exists(existing) and not args.force and not args.dry_run:
        logger.error(f"Error: {existing} already exists (use --force to overwrite)")
        sys.exit(1)

    write_file = make_write_file(output_dir, dry_run=args.dry_run)
    logger.info(f"Generating configuration files in {output_dir}...")
    try:
        asyncio.run(run_generate(config, write_file))
    except CerberusError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Error: failed to write output: {e}")
        sys.exit(1)


def register_generate_command(subparsers):
    """Register the generate command."""
    parser = subparsers.add_parser("generate", help="Generate all configuration files")
    parser.add_argument("--force", action="store_true", help="Overwrite existing files")
    parser.add_argument("--dry-run", action="store_true", help="List the files without writing them")
    parser.set_defaults(func=handle_generate)
