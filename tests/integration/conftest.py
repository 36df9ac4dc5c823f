import logging
import os
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import BaseModel

from cmdtree.cli.main import main as cmdtree_main
from cmdtree.config import DEFAULT_CONFIG_FILENAME
from tests import sample_handlers


def strip_ansi(text: str) -> str:
    """Remove ANSI color codes from text."""
    return re.sub(r'\x1b\[[0-9;]*m', '', text)


class Result(BaseModel):
    returncode: int
    stdout: str
    stderr: str

    @property
    def all_output(self) -> str:
        """Combine stdout and stderr for unified output checking."""
        return (self.stdout or '') + (self.stderr or '')


@dataclass
class RunCommandContext:
    main_func: Callable[[list[str]], int]
    args: list[str]
    cwd: Path
    capsys: pytest.CaptureFixture


def _run_command(ctx: RunCommandContext) -> Result:
    """Helper for CLI main function execution with pytest fixtures."""
    old_cwd = Path.cwd()
    try:
        os.chdir(ctx.cwd)
        try:
            exit_code = ctx.main_func(ctx.args)
        except SystemExit as e:
            exit_code = e.code if isinstance(e.code, int) else 1
        captured = ctx.capsys.readouterr()
        return Result(
            returncode=exit_code,
            stdout=strip_ansi(captured.out),
            stderr=strip_ansi(captured.err),
        )
    finally:
        os.chdir(old_cwd)


CliCommand = Callable[[list[str], Path], Result]


@pytest.fixture(autouse=True)
def isolate_cli(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Wide consoles, a clean call log and the root log level restored."""
    monkeypatch.setenv('COLUMNS', '200')
    sample_handlers.CALLS.clear()
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    root_logger.setLevel(level)


@pytest.fixture
def run_cmdtree(capsys: pytest.CaptureFixture) -> CliCommand:
    def _run(args: list[str], cwd: Path) -> Result:
        ctx = RunCommandContext(main_func=cmdtree_main, args=args, cwd=cwd, capsys=capsys)
        return _run_command(ctx)

    return _run


def write_config(directory: Path, content: str) -> Path:
    path = directory / DEFAULT_CONFIG_FILENAME
    path.write_text(dedent(content).lstrip())
    return path


def assert_contains_all(output: str, snippets: list[str], context: str = '') -> None:
    missing = [s for s in snippets if s not in output]
    if missing:
        pytest.fail(
            f'Missing expected snippet(s) in {context}: {missing}\nActual output:\n{output}',
        )
