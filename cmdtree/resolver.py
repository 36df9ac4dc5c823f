"""Map an argument vector onto a path through a command tree."""

from __future__ import annotations

import difflib
from collections import deque
from collections.abc import Sequence

from cmdtree.errors import MissingCommandError, UnknownCommandError, UsageError
from cmdtree.logging import get_logger
from cmdtree.models import ActionNode, ModuleNode
from cmdtree.parsing import Window, parse_window, split_window, wants_help
from cmdtree.scope import HelpRequest, ParameterScope, ResolvedInvocation
from cmdtree.tasks import explode, split_task_path
from cmdtree.tree import HELP_PREFIX, CommandTree

logger = get_logger(__name__)

Resolution = ResolvedInvocation | HelpRequest


class PathResolver:
    """Resolve argument vectors against a built :class:`CommandTree`.

    Hierarchical addressing (``git clone URL``) is always available. When the
    tree was built with task settings, a segment token containing the
    separator (``git.clone URL``) is exploded into its segments before lookup,
    so both forms walk the same code path and cannot resolve differently.
    """

    def __init__(self, tree: CommandTree, *, prog: str | None = None) -> None:
        self.tree = tree
        self.prog = prog or tree.name

    def resolve(self, argv: Sequence[str]) -> Resolution:
        """Resolve ``argv`` to an invocation, or to a help request.

        Raises:
            UnresolvedPathError: The tokens do not address an action.
            ArgumentParseError: A module-level flag window failed to parse.
        """
        tokens = list(argv)
        help_prefix = self.tree.task_mode and bool(tokens) and tokens[0] == HELP_PREFIX
        if help_prefix:
            tokens = tokens[1:]

        try:
            resolution = self._walk(tokens)
        except UsageError as exc:
            if help_prefix or wants_help(tokens):
                logger.debug('help_after_failed_resolution', path=list(exc.path), error=exc.message)
                return HelpRequest(node=self._deepest(exc.path), path=exc.path, error=exc)
            raise

        if help_prefix and isinstance(resolution, ResolvedInvocation):
            return HelpRequest(node=resolution.action, path=resolution.path)
        return resolution

    def _prog(self, path: Sequence[str]) -> str:
        return ' '.join((self.prog, *path))

    def _deepest(self, path: Sequence[str]) -> ModuleNode | ActionNode:
        node: ModuleNode | ActionNode = self.tree.root
        for segment in path:
            if not isinstance(node, ModuleNode) or segment not in node.children:
                break
            node = node.children[segment]
        return node

    def _bind(
        self,
        node: ModuleNode,
        window: Window,
        path: list[str],
        scope: ParameterScope | None,
    ) -> ParameterScope:
        values = parse_window(node, window, prog=self._prog(path), path=path)
        logger.debug('bound_scope', node=node.name, _verbose_values=values)
        if scope is None:
            return ParameterScope.root(node.name, values)
        return scope.child(node.name, values)

    def _walk(self, tokens: Sequence[str]) -> Resolution:
        node = self.tree.root
        scope: ParameterScope | None = None
        path: list[str] = []
        queue: deque[str] = deque(tokens)
        # exploded segments still at the front of the queue
        pending = 0

        while True:
            if pending:
                window = Window(tokens=(), rest=tuple(queue))
            else:
                window = split_window(node, list(queue))
            if window.help_requested:
                return HelpRequest(node=node, path=tuple(path))
            scope = self._bind(node, window, path, scope)
            queue = deque(window.rest)

            if not queue:
                default = node.default_action
                if default is None:
                    raise MissingCommandError(path=path)
                logger.debug('using_default_handler', path=list(path), handler=node.default)
                return self._invoke(default, [*path, default.name], scope, ())

            segment = queue.popleft()
            separator = self.tree.tasks.separator if self.tree.tasks is not None else None
            if pending:
                pending -= 1
            elif separator is not None and (segments := explode(segment, separator)) is not None:
                if segments[0] not in node.children and node.allow_external_subcommands:
                    return self._passthrough(node, path, scope, (segment, *queue))
                head, *more = split_task_path(segment, separator, path=path)
                logger.debug('exploded_task_path', token=segment, segments=[head, *more])
                segment = head
                queue.extendleft(reversed(more))
                pending = len(more)

            logger.debug('resolving_segment', segment=segment, path=list(path))
            child = node.children.get(segment)
            if child is None:
                if node.allow_external_subcommands:
                    return self._passthrough(node, path, scope, (segment, *queue))
                suggestions = difflib.get_close_matches(segment, list(node.children), n=3)
                raise UnknownCommandError(segment, path=path, suggestions=suggestions)

            path.append(segment)
            if isinstance(child, ActionNode):
                if pending:
                    raise UnknownCommandError(queue[0], path=path)
                rest = tuple(queue)
                if not child.accepts_external and wants_help(rest):
                    return HelpRequest(node=child, path=tuple(path))
                return self._invoke(child, path, scope, rest)
            node = child

    def _passthrough(
        self,
        node: ModuleNode,
        path: Sequence[str],
        scope: ParameterScope,
        external: tuple[str, ...],
    ) -> ResolvedInvocation:
        default = node.default_action
        if default is None:  # pragma: no cover - rejected when the tree is built
            raise MissingCommandError(path=path)
        logger.debug('external_passthrough', path=list(path), external_args=list(external))
        return ResolvedInvocation(
            action=default,
            path=(*path, default.name),
            scope=scope,
            external_args=external,
        )

    def _invoke(
        self,
        action: ActionNode,
        path: Sequence[str],
        scope: ParameterScope,
        rest: tuple[str, ...],
    ) -> ResolvedInvocation:
        if action.accepts_external:
            resolved = ResolvedInvocation(action=action, path=tuple(path), scope=scope, external_args=rest)
        else:
            resolved = ResolvedInvocation(action=action, path=tuple(path), scope=scope, remaining_args=rest)
        logger.debug(
            'resolved_invocation',
            path=list(resolved.path),
            remaining_args=list(resolved.remaining_args),
            _verbose_scopes=scope.as_dict(),
        )
        return resolved
