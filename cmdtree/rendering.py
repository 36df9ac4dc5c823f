"""Rich renderables for help pages, the task overview and usage errors."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from cmdtree.errors import ArgumentParseError, UnknownCommandError, UsageError
from cmdtree.models import ActionNode, ModuleNode, ParameterSpec
from cmdtree.overview import OverviewGroup
from cmdtree.parsing import build_parser


def _usage(node: ModuleNode | ActionNode, prog: str) -> str:
    if isinstance(node, ActionNode):
        return build_parser(node, prog=prog).format_usage().strip()
    parts = [prog]
    if node.parameters:
        parts.append('[OPTIONS]')
    parts.append('[COMMAND]' if node.default else '<COMMAND>')
    return 'usage: ' + ' '.join(parts)


def _describe(parameter: ParameterSpec) -> str:
    if parameter.kind == 'positional':
        return parameter.metavar or parameter.name.upper()
    names = ', '.join(parameter.option_strings)
    if parameter.takes_value:
        names += f' {parameter.metavar or parameter.name.upper()}'
    return names


def _parameter_table(title: str, parameters: Sequence[ParameterSpec]) -> Table:
    table = Table(title=title, title_justify='left', show_header=False, box=None, padding=(0, 2))
    table.add_column(style='bold cyan', no_wrap=True)
    table.add_column()
    for parameter in parameters:
        text = parameter.help or ''
        if parameter.default not in (None, False, 0) and parameter.kind != 'positional':
            text = f'{text} (default: {parameter.default})'.strip()
        table.add_row(Text(_describe(parameter)), Text(text))
    return table


def render_help(node: ModuleNode | ActionNode, path: Sequence[str], *, prog: str) -> RenderableType:
    """Help page for a module or an action."""
    full_prog = ' '.join((prog, *path))
    parts: list[RenderableType] = [Text(_usage(node, full_prog), style='bold')]

    about = node.doc.long_about or node.doc.about
    if about:
        parts.append(Text(''))
        parts.append(Text(about.strip()))
    if node.doc.version:
        parts.append(Text(f'version {node.doc.version}', style='dim'))
    if node.doc.author:
        parts.append(Text(f'by {node.doc.author}', style='dim'))

    if isinstance(node, ModuleNode) and node.children:
        commands = Table(title='Commands', title_justify='left', show_header=False, box=None, padding=(0, 2))
        commands.add_column(style='bold green', no_wrap=True)
        commands.add_column()
        for name, child in node.children.items():
            doc = child.doc.short_doc
            if name == node.default:
                doc = f'{doc} (default)'.strip()
            commands.add_row(Text(name), Text(doc))
        parts.extend((Text(''), commands))

    positionals = [parameter for parameter in node.parameters if parameter.kind == 'positional']
    options = [parameter for parameter in node.parameters if parameter.kind != 'positional']
    if positionals:
        parts.extend((Text(''), _parameter_table('Arguments', positionals)))
    if options:
        parts.extend((Text(''), _parameter_table('Options', options)))
    return Group(*parts)


def render_overview(groups: Sequence[OverviewGroup], *, prog: str) -> RenderableType:
    """Grouped listing of every action, indented by group depth."""
    parts: list[RenderableType] = [Text(f'usage: {prog} <TASK> [ARGS]...', style='bold')]
    for group in groups:
        indent = '  ' * group.depth
        parts.append(Text(''))
        parts.append(Text(f'{indent}{group.label or prog}:', style='bold underline'))
        table = Table(show_header=False, box=None, padding=(0, 2, 0, 2 + 2 * group.depth))
        table.add_column(style='bold green', no_wrap=True)
        table.add_column()
        for entry in group.entries:
            table.add_row(Text(entry.path), Text(entry.doc))
        parts.append(table)
    return Group(*parts)


def render_usage_error(error: UsageError, *, prog: str) -> RenderableType:
    """Corrective message for an unresolved path or a parse error."""
    parts: list[RenderableType] = []
    if isinstance(error, ArgumentParseError) and error.usage:
        parts.append(Text(error.usage.strip()))
    where = ' '.join((prog, *error.path))
    parts.append(Text(f'{where}: error: {error.message}', style='red'))
    if isinstance(error, UnknownCommandError) and error.suggestions:
        parts.append(Text(f'did you mean: {", ".join(error.suggestions)}?', style='yellow'))
    return Group(*parts)
