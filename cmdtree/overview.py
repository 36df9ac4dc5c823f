"""Grouped overview listing of every action, for task mode."""

from __future__ import annotations

from dataclasses import dataclass, field

from cmdtree.models import ActionNode, ModuleNode
from cmdtree.tasks import flatten, iter_actions


@dataclass(frozen=True)
class OverviewEntry:
    path: str
    doc: str = ''


@dataclass
class OverviewGroup:
    """A labelled run of actions; ``label`` is the flat prefix, empty for the root."""

    label: str
    entries: list[OverviewEntry] = field(default_factory=list)
    depth: int = 0

    def __len__(self) -> int:
        return len(self.entries)


def _entry(path: tuple[str, ...], action: ActionNode, separator: str) -> OverviewEntry:
    return OverviewEntry(path=flatten(path, separator), doc=action.doc.short_doc)


def _group(
    node: ModuleNode,
    prefix: tuple[str, ...],
    depth: int,
    *,
    max_groupsize: int,
    max_depth: int,
    separator: str,
) -> list[OverviewGroup]:
    own = OverviewGroup(label=flatten(prefix, separator), depth=depth)
    actions = list(iter_actions(node, prefix))
    if len(actions) <= max_groupsize or depth >= max_depth:
        own.entries.extend(_entry(path, action, separator) for path, action in actions)
        return [own] if own.entries else []

    nested: list[OverviewGroup] = []
    for name, child in node.children.items():
        path = (*prefix, name)
        if isinstance(child, ActionNode):
            own.entries.append(_entry(path, child, separator))
            continue
        for group in _group(
            child,
            path,
            depth + 1,
            max_groupsize=max_groupsize,
            max_depth=max_depth,
            separator=separator,
        ):
            if len(group) == 1:
                own.entries.extend(group.entries)
            else:
                nested.append(group)

    if own.entries:
        return [own, *nested]
    return nested


def build_overview(
    root: ModuleNode,
    *,
    max_groupsize: int = 5,
    max_depth: int = 20,
    separator: str = '.',
) -> list[OverviewGroup]:
    """Group every action below ``root`` for display.

    A node whose actions fit in ``max_groupsize`` (or that sits at
    ``max_depth``) becomes one group. Larger nodes are split into one group
    per child module, and any group left with a single action is folded into
    its parent's group. Only the root's own group may hold a single action.
    """
    return _group(
        root,
        (),
        0,
        max_groupsize=max(max_groupsize, 0),
        max_depth=max(max_depth, 0),
        separator=separator,
    )
