"""cmdtree run subcommand."""

import argparse

from . import _shared


def _handle(namespace: argparse.Namespace) -> int:
    app = _shared.load_configured_app(namespace)
    args = list(namespace.args)
    if args[:1] == ['--']:
        args = args[1:]
    return app.run(args)


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the run subcommand."""
    parent = _shared.build_common_parent()
    parser = subparsers.add_parser(
        'run',
        parents=[parent],
        aliases=['exec'],
        help='Run arguments against the configured command tree',
    )
    parser.add_argument(
        'args',
        nargs=argparse.REMAINDER,
        help='Arguments passed to the command tree',
    )
    parser.set_defaults(handler=_handle)
