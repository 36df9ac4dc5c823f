"""cmdtree overview subcommand."""

import argparse

from . import _shared


def _handle(namespace: argparse.Namespace) -> int:
    app = _shared.load_configured_app(namespace)
    app.print_overview()
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the overview subcommand."""
    parent = _shared.build_common_parent()
    parser = subparsers.add_parser(
        'overview',
        parents=[parent],
        aliases=['ls'],
        help='List every command of the configured tree, grouped',
    )
    parser.set_defaults(handler=_handle)
