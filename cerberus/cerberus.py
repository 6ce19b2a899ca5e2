#!/usr/bin/env python3
"""Multi-layer proxy deployment generator: CLI entrypoint."""

import argparse

from cerberus.commands.clean import register_clean_command
from cerberus.commands.generate import register_generate_command
from cerberus.commands.validate import register_validate_command
from cerberus.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(prog="cerberus", description="Multi-layer proxy architecture generator")
    parser.add_argument("-c", "--config", default="config.toml", help="Configuration file path")
    parser.add_argument("-o", "--output", default="built", help="Output directory for generated files")
    parser.add_argument("--env", default=None, help="Environment overlay to apply (e.g. production)")
    parser.add_argument("--verbose", action="store_true", help="Log resolution details")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_generate_command(subparsers)
    register_validate_command(subparsers)
    register_clean_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose, quiet=args.quiet)
    args.func(args)


if __name__ == "__main__":
    main()
