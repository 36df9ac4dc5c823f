"""Subparser registrations for the cmdtree CLI."""

import argparse

from . import check, overview, run


def register_all(subparsers: argparse._SubParsersAction) -> None:
    """Register all cmdtree subcommands."""
    run.register(subparsers)
    overview.register(subparsers)
    check.register(subparsers)
