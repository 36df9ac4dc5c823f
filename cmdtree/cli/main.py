"""Entry point for the cmdtree CLI."""

import argparse
import sys

from cmdtree import __version__
from cmdtree.cli.subparsers import register_all
from cmdtree.errors import ConfigurationError
from cmdtree.logging import get_logger

logger = get_logger(__name__)

EXIT_CONFIG = 78


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog='cmdtree',
        description='Run and inspect command trees declared in YAML',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', required=True)
    register_all(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the cmdtree CLI."""
    parser = build_parser()
    namespace = parser.parse_args(argv)

    handler = getattr(namespace, 'handler', None)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(namespace)
    except ConfigurationError as exc:
        logger.error('configuration_error', error=str(exc))
        sys.stderr.write(f'Error: {exc}\n')
        return EXIT_CONFIG


if __name__ == '__main__':
    sys.exit(main())
