"""Tests for cmdtree logging functionality."""

import io
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

import cmdtree.logging as cmdtree_logging
from cmdtree.logging import (
    cli_renderer,
    configure_logging,
    filter_context_by_prefix,
    format_context_yaml,
    get_logger,
    strip_prefixes_from_keys,
)


@pytest.fixture
def root_level() -> Iterator[None]:
    """Restore the root logger level changed by configure_logging."""
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    root_logger.setLevel(level)


@pytest.fixture
def captured_console(mocker: MockerFixture) -> io.StringIO:
    buffer = io.StringIO()
    mocker.patch.object(cmdtree_logging, 'console', Console(file=buffer, width=200, no_color=True))
    return buffer


class TestFormatContextYaml:
    """Tests for format_context_yaml function."""

    def test_format_context_yaml_empty(self) -> None:
        """Test formatting an empty event dict."""
        assert format_context_yaml({}, indent=0) == ''

    def test_format_context_yaml_with_data(self) -> None:
        """Test formatting an event dict with data."""
        result = format_context_yaml({'path': ['database', 'migrate'], 'status': 0}, indent=2)

        assert '  path:' in result
        assert '  - database' in result
        assert '  status: 0' in result

    def test_format_context_yaml_sorts_keys(self) -> None:
        result = format_context_yaml({'segment': 'git', 'path': []}, indent=0)
        assert result.index('path') < result.index('segment')


class TestFilterContextByPrefix:
    """Tests for filter_context_by_prefix function."""

    def test_filter_hidden_prefixes(self) -> None:
        """Hidden keys are dropped outside verbose mode."""
        event_dict = {
            '_verbose_scopes': {'tool': {'verbose': True}},
            'path': ['database'],
            '_debug_tokens': ['-v'],
            '_perf_elapsed': 0.1,
        }

        result = filter_context_by_prefix(event_dict)

        assert result == {'path': ['database']}

    def test_filter_no_prefixes(self) -> None:
        event_dict = {'segment': 'migrate', 'path': ['database']}
        assert filter_context_by_prefix(event_dict) == event_dict


class TestStripPrefixesFromKeys:
    """Tests for strip_prefixes_from_keys function."""

    def test_strip_prefixes(self) -> None:
        """Test stripping every visibility prefix."""
        event_dict = {
            '_verbose_scopes': {'tool': {}},
            '_debug_tokens': ['x'],
            '_perf_elapsed': 1,
            'path': [],
        }

        result = strip_prefixes_from_keys(event_dict)

        assert result == {'scopes': {'tool': {}}, 'tokens': ['x'], 'elapsed': 1, 'path': []}

    def test_prefix_only_stripped_at_start(self) -> None:
        assert strip_prefixes_from_keys({'value_verbose_': 1}) == {'value_verbose_': 1}


class TestCliRenderer:
    """Tests for the rich based renderer."""

    def test_renders_event_and_context(self, captured_console: io.StringIO, root_level: None) -> None:
        logging.getLogger().setLevel(logging.INFO)

        result = cli_renderer(None, 'info', {'event': 'tree_built', 'commands': 2, '_verbose_names': ['a']})

        output = captured_console.getvalue()
        assert result == ''
        assert '[INFO] tree_built' in output
        assert 'commands: 2' in output
        assert 'names' not in output

    def test_verbose_shows_hidden_keys(self, captured_console: io.StringIO, root_level: None) -> None:
        logging.getLogger().setLevel(logging.DEBUG)

        cli_renderer(None, 'debug', {'event': 'resolved_invocation', '_verbose_scopes': {'tool': {'v': True}}})

        output = captured_console.getvalue()
        assert '[DEBUG] resolved_invocation' in output
        assert 'scopes:' in output

    def test_non_yaml_values_are_stringified(self, captured_console: io.StringIO, root_level: None) -> None:
        logging.getLogger().setLevel(logging.INFO)

        cli_renderer(None, 'info', {'event': 'bound_scope', 'values': {'root': Path('/tmp/x'), 'tags': ('a',)}})

        output = captured_console.getvalue()
        assert 'root: /tmp/x' in output
        assert '- a' in output

    def test_drops_structlog_metadata(self, captured_console: io.StringIO, root_level: None) -> None:
        logging.getLogger().setLevel(logging.INFO)

        cli_renderer(None, 'warning', {'event': 'x', 'timestamp': 'now', 'level': 'warning', 'logger': 'cmdtree'})

        output = captured_console.getvalue()
        assert 'timestamp' not in output
        assert 'logger' not in output


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_verbose(self, root_level: None) -> None:
        """Test configuring logging with verbose=True."""
        configure_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_non_verbose(self, root_level: None) -> None:
        """Test configuring logging with verbose=False."""
        configure_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_logger(self) -> None:
        """Test that get_logger returns a logger instance."""
        logger = get_logger('test_module')
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'debug')
