"""Arguments and helpers shared by the cmdtree subcommands."""

import argparse
from pathlib import Path

from cmdtree.app import CommandApp
from cmdtree.config import DEFAULT_CONFIG_FILENAME, load_app
from cmdtree.logging import configure_logging


def build_common_parent() -> argparse.ArgumentParser:
    """Parent parser carrying --config and --verbose."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        '--config',
        default=DEFAULT_CONFIG_FILENAME,
        help='Path to the command tree configuration (default: %(default)s)',
    )
    parent.add_argument(
        '-v',
        '--verbose',
        action='store_true',
        help='Enable verbose logging',
    )
    return parent


def load_configured_app(namespace: argparse.Namespace) -> CommandApp:
    """Configure logging and load the app described by --config."""
    configure_logging(verbose=namespace.verbose)
    return load_app(Path(namespace.config))
