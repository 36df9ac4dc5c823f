from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from rich.console import Console

from cmdtree import CommandApp, CommandRegistry, CommandTree, TaskSettings, flag, option, positional
from cmdtree.scope import ParameterScope


@dataclass
class Call:
    name: str
    scope: ParameterScope
    arguments: dict[str, Any]


@dataclass
class Recorder:
    """Collects handler invocations."""

    calls: list[Call] = field(default_factory=list)

    def handler(self, name: str, result: Any = None):
        def _handler(scope: ParameterScope, **arguments: Any):
            self.calls.append(Call(name=name, scope=scope, arguments=arguments))
            return result

        _handler.__doc__ = f'Run {name}.'
        return _handler

    @property
    def last(self) -> Call:
        assert self.calls, 'no handler was called'
        return self.calls[-1]


def build_database_tree(recorder: Recorder, *, tasks: TaskSettings | None = None) -> CommandTree:
    """tool{verbose} -> database{connection, default=status} -> status, migrate(version), advanced{optimize}."""
    cli = CommandRegistry('tool', parameters=[flag('verbose', '-v', '--verbose', help='Talk more')], tasks=tasks)
    cli.module(
        'database',
        parameters=[option('connection', '--connection', '-c', help='Connection name')],
        default='status',
        about='Database maintenance',
    )
    cli.action('database status')(recorder.handler('status'))
    cli.action('database migrate', parameters=[positional('version')])(recorder.handler('migrate'))
    cli.module('database advanced', about='Advanced operations')
    cli.action('database advanced optimize')(recorder.handler('optimize'))
    return cli.build()


def build_git_tree(recorder: Recorder, *, separator: str = '.') -> CommandTree:
    cli = CommandRegistry('tasks', tasks=TaskSettings(separator=separator))
    cli.module('git', about='Version control')
    cli.action('git clone', parameters=[positional('url')])(recorder.handler('clone'))
    cli.action('git commit', parameters=[option('message', '-m', '--message')])(recorder.handler('commit'))
    return cli.build()


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def database_tree(recorder: Recorder) -> CommandTree:
    return build_database_tree(recorder)


@pytest.fixture()
def git_tree(recorder: Recorder) -> CommandTree:
    return build_git_tree(recorder)


@pytest.fixture()
def make_app():
    def _make(tree: CommandTree, **kwargs: Any) -> CommandApp:
        return CommandApp(
            tree,
            console=Console(width=200, no_color=True),
            error_console=Console(width=200, no_color=True, stderr=True),
            **kwargs,
        )

    return _make
