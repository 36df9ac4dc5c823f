"""Translation between hierarchical paths and flat task paths."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from cmdtree.errors import UnknownCommandError
from cmdtree.models import ActionNode, ModuleNode


def flatten(segments: Sequence[str], separator: str = '.') -> str:
    """Join hierarchical segments into a flat task path."""
    return separator.join(segments)


def explode(token: str, separator: str = '.') -> list[str] | None:
    """Split a flat task token into segments.

    Returns ``None`` for tokens that are not in flat form: tokens without the
    separator and option-like tokens.
    """
    if token.startswith('-') or separator not in token:
        return None
    return token.split(separator)


def split_task_path(token: str, separator: str = '.', *, path: Sequence[str] = ()) -> list[str]:
    """Split a flat path, rejecting empty segments such as ``git..clone``."""
    segments = token.split(separator)
    for segment in segments:
        if not segment:
            raise UnknownCommandError(token, path=path)
    return segments


def iter_actions(
    node: ModuleNode | ActionNode,
    prefix: tuple[str, ...] = (),
) -> Iterator[tuple[tuple[str, ...], ActionNode]]:
    """Yield ``(path, action)`` for every action below ``node`` in tree order."""
    if isinstance(node, ActionNode):
        yield prefix, node
        return
    for name, child in node.children.items():
        yield from iter_actions(child, (*prefix, name))


def task_paths(root: ModuleNode, separator: str = '.') -> list[tuple[str, ActionNode]]:
    """Flat path of every action reachable from ``root``."""
    return [(flatten(path, separator), action) for path, action in iter_actions(root)]


def count_actions(node: ModuleNode | ActionNode) -> int:
    return sum(1 for _ in iter_actions(node))
