"""Delegated flag parsing: one argparse parser per command node."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

from cmdtree.errors import ArgumentParseError
from cmdtree.models import ActionNode, ModuleNode, ParameterSpec

HELP_FLAGS = frozenset({'-h', '--help'})
END_OF_OPTIONS = '--'

TYPE_CONVERTERS: dict[str, Any] = {
    'str': str,
    'int': int,
    'float': float,
    'path': Path,
}


class CommandArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises :class:`ArgumentParseError` instead of exiting."""

    def __init__(self, *args: Any, path: Sequence[str] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.command_path = tuple(path)

    def error(self, message: str) -> NoReturn:
        raise ArgumentParseError(message, usage=self.format_usage(), path=self.command_path)


@dataclass(frozen=True)
class Window:
    """Leading tokens that belong to one module level's flags."""

    tokens: tuple[str, ...]
    rest: tuple[str, ...]
    help_requested: bool = False


def _converter(parameter: ParameterSpec) -> Any:
    if callable(parameter.type):
        return parameter.type
    return TYPE_CONVERTERS[parameter.type]


def add_parameter(parser: argparse.ArgumentParser, parameter: ParameterSpec) -> None:
    """Translate a parameter declaration into an argparse argument."""
    if parameter.kind == 'flag':
        parser.add_argument(
            *parameter.option_strings,
            dest=parameter.name,
            action='store_true',
            default=bool(parameter.default),
            help=parameter.help,
        )
        return

    if parameter.kind == 'count':
        parser.add_argument(
            *parameter.option_strings,
            dest=parameter.name,
            action='count',
            default=parameter.default or 0,
            help=parameter.help,
        )
        return

    kwargs: dict[str, Any] = {
        'type': _converter(parameter),
        'help': parameter.help,
    }
    if parameter.choices is not None:
        kwargs['choices'] = parameter.choices
    if parameter.metavar is not None:
        kwargs['metavar'] = parameter.metavar

    if parameter.kind == 'option':
        parser.add_argument(
            *parameter.option_strings,
            dest=parameter.name,
            action='append' if parameter.multiple else 'store',
            default=parameter.default,
            required=parameter.is_required,
            **kwargs,
        )
        return

    if parameter.multiple:
        kwargs['nargs'] = '+' if parameter.is_required else '*'
        kwargs['default'] = parameter.default if parameter.default is not None else []
    elif not parameter.is_required:
        kwargs['nargs'] = '?'
        kwargs['default'] = parameter.default
    parser.add_argument(parameter.name, **kwargs)


def build_parser(
    node: ModuleNode | ActionNode,
    *,
    prog: str,
    path: Sequence[str] = (),
) -> CommandArgumentParser:
    """Build the argparse parser for a node's own parameters."""
    parser = CommandArgumentParser(
        prog=prog,
        description=node.doc.long_about or node.doc.about,
        add_help=False,
        allow_abbrev=False,
        path=path,
    )
    for parameter in node.parameters:
        add_parameter(parser, parameter)
    return parser


def split_window(node: ModuleNode, tokens: Sequence[str]) -> Window:
    """Split the flag tokens of a module level from the tokens that follow.

    The window ends at the first positional token, which is the next
    subcommand segment. A ``--`` ends the window and is consumed. Unknown
    option-like tokens stay in the window so the parser can reject them.
    """
    takes_value = {
        flag: parameter.takes_value
        for parameter in node.parameters
        for flag in parameter.option_strings
    }
    help_requested = False
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == END_OF_OPTIONS:
            return Window(tuple(tokens[:index]), tuple(tokens[index + 1 :]), help_requested)
        if not token.startswith('-') or token == '-':
            break
        flag, has_inline, _ = token.partition('=')
        if flag in HELP_FLAGS:
            help_requested = True
        index += 1
        if flag in takes_value:
            needs_value = takes_value[flag] and not has_inline
        else:
            needs_value = _cluster_needs_value(token, takes_value)
        if needs_value and index < len(tokens):
            index += 1
    return Window(tuple(tokens[:index]), tuple(tokens[index:]), help_requested)


def _cluster_needs_value(token: str, takes_value: dict[str, bool]) -> bool:
    """Whether a cluster of short flags such as ``-vc`` ends in an option.

    An option inside the cluster takes the rest of the token as its value
    (``-cc1``), so only an option in the last position reads the next token.
    """
    if token.startswith('--') or len(token) < 3:
        return False
    for position, char in enumerate(token[1:], start=2):
        option = takes_value.get(f'-{char}')
        if option is None:
            return False
        if option:
            return position == len(token)
    return False


def wants_help(tokens: Sequence[str]) -> bool:
    """Whether a help flag appears before the end-of-options marker."""
    for token in tokens:
        if token == END_OF_OPTIONS:
            return False
        if token in HELP_FLAGS:
            return True
    return False


def parse_tokens(parser: argparse.ArgumentParser, tokens: Sequence[str]) -> dict[str, Any]:
    """Parse tokens into a mapping of parameter name to typed value."""
    namespace = parser.parse_args(list(tokens))
    return vars(namespace)


def parse_window(node: ModuleNode, window: Window, *, prog: str, path: Sequence[str] = ()) -> dict[str, Any]:
    parser = build_parser(node, prog=prog, path=path)
    tokens = [token for token in window.tokens if token not in HELP_FLAGS]
    return parse_tokens(parser, tokens)


def parse_action_arguments(
    action: ActionNode,
    tokens: Sequence[str],
    *,
    prog: str,
    path: Sequence[str] = (),
) -> dict[str, Any]:
    """Parse an action's remaining tokens against its declared parameters."""
    return parse_tokens(build_parser(action, prog=prog, path=path), tokens)
