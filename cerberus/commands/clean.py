"""Clean command: remove the output directory."""

import logging

from cerberus.storage import remove_output

logger = logging.getLogger(__name__)


def handle_clean(args):
    """Handle the clean command."""
    logger.info("Cleaning output directory...")
    if remove_output(args.output, dry_run=args.dry_run):
        if not args.dry_run:
            logger.info(f"Removed {args.output}")
    else:
        logger.info(f"Output directory {args.output} does not exist")


def register_clean_command(subparsers):
    """Register the clean command."""
    parser = subparsers.add_parser("clean", help="Remove the output directory")
    parser.add_argument("--dry-run", action="store_true", help="Print what would be removed")
    parser.set_defaults(func=handle_clean)
