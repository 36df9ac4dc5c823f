from dataclasses import dataclass
from pathlib import Path

import pytest

from cmdtree import __version__
from cmdtree.cli.main import EXIT_CONFIG
from tests import sample_handlers

from .conftest import CliCommand, assert_contains_all, write_config

TOOL_CONFIG = """
name: tool
parameters:
  - name: verbose
    kind: flag
    flags: ['-v', '--verbose']
commands:
  database:
    about: Database maintenance
    default: status
    parameters:
      - name: connection
        flags: ['-c', '--connection']
    commands:
      status:
        handler: tests.sample_handlers:status
      migrate:
        handler: tests.sample_handlers:migrate
        parameters:
          - name: version
            kind: positional
      check:
        handler: tests.sample_handlers:check
        parameters:
          - name: level
            kind: positional
            type: int
"""

TASKS_CONFIG = """
name: tasks
tasks:
  max_groupsize: 2
commands:
  build:
    about: Build the project
    handler: tests.sample_handlers:status
  git:
    commands:
      clone:
        handler: tests.sample_handlers:remote_add
        parameters:
          - name: name
            kind: positional
      push:
        handler: tests.sample_handlers:status
"""


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    write_config(tmp_path, TOOL_CONFIG)
    return tmp_path


@pytest.fixture
def tasks_dir(tmp_path: Path) -> Path:
    write_config(tmp_path, TASKS_CONFIG)
    return tmp_path


def test_version(run_cmdtree: CliCommand, tmp_path: Path) -> None:
    result = run_cmdtree(['--version'], tmp_path)
    assert result.returncode == 0
    assert f'cmdtree {__version__}' in result.stdout


def test_run_resolves_nested_action(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['run', 'database', '-c', 'c1', 'migrate', 'v2'], tool_dir)

    assert result.returncode == 0, result.all_output
    assert sample_handlers.CALLS == [
        ('migrate', {'version': 'v2', 'tool': {'verbose': False}, 'database': {'connection': 'c1'}}),
    ]


def test_run_passes_root_flags_after_separator(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['run', '--', '-v', 'database'], tool_dir)

    assert result.returncode == 0, result.all_output
    assert sample_handlers.CALLS == [('status', {'tool': {'verbose': True}, 'database': {'connection': None}})]


def test_run_returns_handler_status(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['exec', 'database', 'check', '5'], tool_dir)
    assert result.returncode == 5


@dataclass
class UsageErrorCase:
    name: str
    args: list[str]
    expected_messages: list[str]


@pytest.mark.parametrize(
    'errcase',
    [
        UsageErrorCase(
            name='unknown_command',
            args=['database', 'migrat'],
            expected_messages=['tool database: error: unknown subcommand `migrat`', 'did you mean: migrate?'],
        ),
        UsageErrorCase(
            name='missing_command',
            args=[],
            expected_messages=['tool: error: no command given, subcommands exist'],
        ),
        UsageErrorCase(
            name='missing_argument',
            args=['database', 'migrate'],
            expected_messages=['usage: tool database migrate version', 'required: version'],
        ),
        UsageErrorCase(
            name='bad_module_flag',
            args=['database', '--bogus'],
            expected_messages=['unrecognized arguments: --bogus'],
        ),
    ],
    ids=lambda case: case.name,
)
def test_run_usage_errors(run_cmdtree: CliCommand, tool_dir: Path, errcase: UsageErrorCase) -> None:
    result = run_cmdtree(['run', *errcase.args], tool_dir)

    assert result.returncode == 2
    assert_contains_all(result.stderr, errcase.expected_messages, errcase.name)
    assert sample_handlers.CALLS == []


def test_run_help(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['run', 'database', '--help'], tool_dir)

    assert result.returncode == 0
    assert_contains_all(
        result.stdout,
        ['usage: tool database [OPTIONS] [COMMAND]', 'Database maintenance', 'migrate', '(default)'],
        'module help',
    )


def test_verbose_logs_resolution(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['run', '--verbose', 'database', 'status'], tool_dir)

    assert result.returncode == 0
    assert_contains_all(result.stderr, ['resolved_invocation', 'dispatching_handler'], 'verbose logs')


def test_quiet_by_default(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['run', 'database', 'status'], tool_dir)

    assert result.returncode == 0
    assert 'resolved_invocation' not in result.stderr


def test_check(run_cmdtree: CliCommand, tool_dir: Path) -> None:
    result = run_cmdtree(['check'], tool_dir)

    assert result.returncode == 0
    assert 'cmdtree.config.yaml: 3 action(s), task mode off' in result.stdout
    assert 'configuration_ok' in result.stderr


def test_check_explicit_config(run_cmdtree: CliCommand, tool_dir: Path, tmp_path_factory: pytest.TempPathFactory) -> None:
    elsewhere = tmp_path_factory.mktemp('elsewhere')
    config = tool_dir / 'cmdtree.config.yaml'

    result = run_cmdtree(['check', '--config', str(config)], elsewhere)

    assert result.returncode == 0
    assert f'{config}: 3 action(s)' in result.stdout


def test_check_lists_task_paths(run_cmdtree: CliCommand, tasks_dir: Path) -> None:
    result = run_cmdtree(['check', '--verbose'], tasks_dir)

    assert result.returncode == 0
    assert 'task mode on' in result.stdout
    assert_contains_all(result.stderr, ['task_paths', 'git.clone', 'git.push'], 'task path listing')


def test_overview(run_cmdtree: CliCommand, tasks_dir: Path) -> None:
    result = run_cmdtree(['ls'], tasks_dir)

    assert result.returncode == 0
    assert_contains_all(result.stdout, ['usage: tasks <TASK> [ARGS]...', 'build', 'git.clone', 'git.push'], 'overview')


def test_task_mode_run(run_cmdtree: CliCommand, tasks_dir: Path) -> None:
    result = run_cmdtree(['run', 'git.clone', 'origin'], tasks_dir)

    assert result.returncode == 0, result.all_output
    assert sample_handlers.CALLS == [('remote_add', {'name': 'origin', 'path': ('tasks', 'git')})]


def test_task_mode_empty_run_shows_overview(run_cmdtree: CliCommand, tasks_dir: Path) -> None:
    result = run_cmdtree(['run'], tasks_dir)

    assert result.returncode == 0
    assert 'git.clone' in result.stdout


def test_task_help_prefix(run_cmdtree: CliCommand, tasks_dir: Path) -> None:
    result = run_cmdtree(['run', 'h', 'git.clone'], tasks_dir)

    assert result.returncode == 0
    assert 'usage: tasks git clone name' in result.stdout
    assert sample_handlers.CALLS == []


def test_missing_config(run_cmdtree: CliCommand, tmp_path: Path) -> None:
    result = run_cmdtree(['check'], tmp_path)

    assert result.returncode == EXIT_CONFIG
    assert 'Error: configuration file not found: cmdtree.config.yaml' in result.stderr


def test_invalid_tree(run_cmdtree: CliCommand, tmp_path: Path) -> None:
    write_config(
        tmp_path,
        """
        default: missing
        commands:
          status:
            handler: tests.sample_handlers:status
        """,
    )

    result = run_cmdtree(['run', 'status'], tmp_path)

    assert result.returncode == EXIT_CONFIG
    assert "default handler 'missing' of <root> is not a child" in result.stderr
