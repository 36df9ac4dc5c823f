"""Run an argument vector against a command tree and return an exit status."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console

from cmdtree.dispatch import DEFAULT_FAILURE_STATUS, Dispatcher
from cmdtree.errors import UsageError
from cmdtree.logging import get_logger
from cmdtree.overview import OverviewGroup, build_overview
from cmdtree.rendering import render_help, render_overview, render_usage_error
from cmdtree.resolver import PathResolver, Resolution
from cmdtree.scope import HelpRequest
from cmdtree.tree import HELP_PREFIX, CommandTree

logger = get_logger(__name__)


class CommandApp:
    """Invocation surface for a built :class:`CommandTree`.

    ``run`` never raises for user mistakes: unresolved paths and parse errors
    are printed and mapped to status 2. Exceptions raised by handlers are not
    caught.
    """

    def __init__(
        self,
        tree: CommandTree,
        *,
        prog: str | None = None,
        failure_status: int = DEFAULT_FAILURE_STATUS,
        console: Console | None = None,
        error_console: Console | None = None,
    ) -> None:
        self.tree = tree
        self.prog = prog or tree.name
        self.resolver = PathResolver(tree, prog=self.prog)
        self.dispatcher = Dispatcher(failure_status=failure_status, prog=self.prog)
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)

    def resolve(self, argv: Sequence[str]) -> Resolution:
        return self.resolver.resolve(argv)

    def overview(self) -> list[OverviewGroup]:
        """Grouped listing of all actions using the tree's task settings."""
        tasks = self.tree.tasks
        if tasks is None:
            return build_overview(self.tree.root)
        return build_overview(
            self.tree.root,
            max_groupsize=tasks.max_groupsize,
            max_depth=tasks.max_depth,
            separator=tasks.separator,
        )

    def print_overview(self) -> None:
        self.console.print(render_overview(self.overview(), prog=self.prog))

    def print_help(self, request: HelpRequest) -> None:
        self.console.print(render_help(request.node, request.path, prog=self.prog))

    def run(self, argv: Sequence[str]) -> int:
        """Resolve and dispatch ``argv``, returning an exit status in 0..255."""
        tokens = list(argv)
        if self.tree.task_mode and (not tokens or tokens == [HELP_PREFIX]):
            logger.debug('showing_overview', prog=self.prog)
            self.print_overview()
            return 0

        try:
            resolution = self.resolver.resolve(tokens)
            if isinstance(resolution, HelpRequest):
                return self._help(resolution)
            arguments = self.dispatcher.parse(resolution)
        except UsageError as exc:
            logger.debug('usage_error', error=exc.message, path=list(exc.path))
            self.error_console.print(render_usage_error(exc, prog=self.prog))
            return exc.exit_status
        return self.dispatcher.invoke(resolution, arguments)

    def _help(self, request: HelpRequest) -> int:
        self.print_help(request)
        if request.error is None:
            return 0
        self.error_console.print(render_usage_error(request.error, prog=self.prog))
        return request.error.exit_status
