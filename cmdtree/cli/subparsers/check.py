"""cmdtree check subcommand."""

import argparse

from cmdtree.logging import get_logger
from cmdtree.models import ModuleNode
from cmdtree.tasks import count_actions, task_paths

from . import _shared

logger = get_logger(__name__)


def _count_modules(node: ModuleNode) -> int:
    return 1 + sum(_count_modules(child) for child in node.children.values() if isinstance(child, ModuleNode))


def _handle(namespace: argparse.Namespace) -> int:
    app = _shared.load_configured_app(namespace)
    root = app.tree.root
    actions = count_actions(root)
    logger.info(
        'configuration_ok',
        config=namespace.config,
        modules=_count_modules(root),
        actions=actions,
        task_mode=app.tree.task_mode,
    )
    if app.tree.tasks is not None:
        logger.debug('task_paths', paths=[path for path, _ in task_paths(root, app.tree.tasks.separator)])
    app.console.print(f'{namespace.config}: {actions} action(s), task mode {"on" if app.tree.task_mode else "off"}')
    return 0


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the check subcommand."""
    parent = _shared.build_common_parent()
    parser = subparsers.add_parser(
        'check',
        parents=[parent],
        help='Build the configured tree and report configuration errors',
    )
    parser.set_defaults(handler=_handle)
