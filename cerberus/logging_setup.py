"""CLI logging: plain stdout messages, with the level only where it matters."""

import logging
import sys


class CliFormatter(logging.Formatter):
    """Messages as-is; warnings are prefixed and debug lines name their module."""

    def format(self, record):
        message = super().format(record)
        if record.levelno == logging.WARNING:
            return f"Warning: {message}"
        if record.levelno == logging.DEBUG:
            return f"[{record.name}] {message}"
        return message


def setup_cli_logging(verbose=False, quiet=False):
    """Configure the root logger for CLI commands.

    --verbose adds the DEBUG detail from the resolver and renderer; --quiet
    keeps only warnings and errors. Errors go to stdout like everything else
    so the whole run reads as one transcript.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CliFormatter("%(message)s"))
    root.addHandler(handler)
