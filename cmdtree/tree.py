"""Assemble declarations into an immutable command tree."""

from __future__ import annotations

import inspect
import types
import typing
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from cmdtree.errors import (
    ConfigurationError,
    DefaultHandlerError,
    DuplicateCommandError,
    IncludeCycleError,
    ReservedNameError,
    UnknownCommandError,
)
from cmdtree.logging import get_logger
from cmdtree.models import (
    ActionNode,
    Declaration,
    DocMeta,
    ModuleNode,
    ParameterSpec,
    ResultContract,
    TaskSettings,
)
from cmdtree.parsing import HELP_FLAGS

logger = get_logger(__name__)

HELP_PREFIX = 'h'
RESERVED_PARAMETER_NAMES = frozenset({'parent', 'external_args'})
RESERVED_FLAGS = HELP_FLAGS


@dataclass(frozen=True)
class CommandTree:
    """A built command tree and the task settings it was built with."""

    root: ModuleNode
    tasks: TaskSettings | None = None

    @property
    def name(self) -> str:
        return self.root.name

    @property
    def task_mode(self) -> bool:
        return self.tasks is not None

    def find(self, path: Sequence[str]) -> ModuleNode | ActionNode:
        """Return the node at a hierarchical ``path`` below the root."""
        node: ModuleNode | ActionNode = self.root
        for index, segment in enumerate(path):
            if not isinstance(node, ModuleNode) or segment not in node.children:
                raise UnknownCommandError(segment, path=path[:index])
            node = node.children[segment]
        return node


@dataclass
class _Draft:
    name: str
    kind: str
    origin: str
    explicit: bool = False
    parameters: tuple[ParameterSpec, ...] = ()
    handler: Callable[..., Any] | None = None
    default: str | None = None
    allow_external_subcommands: bool = False
    doc: DocMeta = field(default_factory=DocMeta)
    returns: ResultContract | None = None
    children: dict[str, _Draft] = field(default_factory=dict)

    def fill(self, declaration: Declaration) -> None:
        self.explicit = True
        self.origin = declaration.label
        self.parameters = declaration.parameters
        self.handler = declaration.handler
        self.default = declaration.default
        self.allow_external_subcommands = declaration.allow_external_subcommands
        self.doc = declaration.doc
        self.returns = declaration.returns


def infer_result_contract(handler: Callable[..., Any]) -> ResultContract:
    """Derive a handler's result contract from its return annotation.

    ``int`` means an explicit status, ``int | None`` means an optional status
    where ``None`` signals failure, anything else means no status at all.
    """
    try:
        hints = typing.get_type_hints(handler)
    except (NameError, TypeError):
        return 'none'
    annotation = hints.get('return')
    if annotation is int:
        return 'status'
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        if set(typing.get_args(annotation)) == {int, type(None)}:
            return 'optional'
    return 'none'


def _validate_command_name(name: str, origin: str, tasks: TaskSettings | None) -> None:
    if not name or any(ch.isspace() for ch in name):
        msg = f'invalid command name {name!r} in {origin}'
        raise ReservedNameError(msg)
    if name.startswith('-'):
        msg = f'command name {name!r} in {origin} would be read as a flag'
        raise ReservedNameError(msg)
    if tasks is not None:
        if tasks.separator in name:
            msg = f'command name {name!r} in {origin} contains the task separator {tasks.separator!r}'
            raise ReservedNameError(msg)
        if name == HELP_PREFIX:
            msg = f'command name {name!r} in {origin} is reserved for help in task mode'
            raise ReservedNameError(msg)


def _validate_parameters(draft: _Draft) -> None:
    names: set[str] = set()
    flags: set[str] = set()
    for parameter in draft.parameters:
        if parameter.name in RESERVED_PARAMETER_NAMES:
            msg = f'parameter name {parameter.name!r} in {draft.origin} is reserved'
            raise ReservedNameError(msg)
        if parameter.name in names:
            msg = f'parameter {parameter.name!r} declared twice in {draft.origin}'
            raise ConfigurationError(msg)
        names.add(parameter.name)
        for flag in parameter.option_strings:
            if flag in RESERVED_FLAGS:
                msg = f'flag {flag!r} in {draft.origin} is reserved for help'
                raise ReservedNameError(msg)
            if flag in flags:
                msg = f'flag {flag!r} declared twice in {draft.origin}'
                raise ConfigurationError(msg)
            flags.add(flag)
        if draft.kind == 'module' and parameter.kind == 'positional':
            msg = f'module {draft.origin} cannot declare positional parameter {parameter.name!r}'
            raise ConfigurationError(msg)


def _check_signature(draft: _Draft, *, external: bool, is_default: bool) -> None:
    try:
        signature = inspect.signature(draft.handler)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return
    arguments = {parameter.name: None for parameter in draft.parameters}
    if external:
        arguments['external_args'] = []
    try:
        signature.bind(None, **arguments)
    except TypeError as exc:
        error = DefaultHandlerError if is_default else ConfigurationError
        msg = f'handler of {draft.origin} cannot be called as handler(scope, {", ".join(arguments)}): {exc}'
        raise error(msg) from exc


def _validate_module(draft: _Draft) -> None:
    if draft.handler is not None:
        msg = f'module {draft.origin} cannot have a handler'
        raise ConfigurationError(msg)
    if draft.default is not None:
        target = draft.children.get(draft.default)
        if target is None:
            msg = f'default handler {draft.default!r} of {draft.origin} is not a child'
            raise DefaultHandlerError(msg)
        if target.kind != 'action':
            msg = f'default handler {draft.default!r} of {draft.origin} must be an action'
            raise DefaultHandlerError(msg)
        if target.parameters:
            msg = f'default handler {draft.default!r} of {draft.origin} cannot declare parameters'
            raise DefaultHandlerError(msg)
    if draft.allow_external_subcommands and draft.default is None:
        msg = f'module {draft.origin} allows external subcommands but has no default handler'
        raise DefaultHandlerError(msg)


def _freeze(
    draft: _Draft,
    tasks: TaskSettings | None,
    *,
    accepts_external: bool = False,
    is_default: bool = False,
) -> ModuleNode | ActionNode:
    _validate_parameters(draft)
    if draft.kind == 'action':
        if draft.handler is None:
            msg = f'action {draft.origin} has no handler'
            raise ConfigurationError(msg)
        if draft.default is not None or draft.allow_external_subcommands:
            msg = f'action {draft.origin} cannot have a default handler or external subcommands'
            raise ConfigurationError(msg)
        _check_signature(draft, external=accepts_external, is_default=is_default)
        return ActionNode(
            name=draft.name,
            parameters=draft.parameters,
            doc=draft.doc,
            handler=draft.handler,
            returns=draft.returns or infer_result_contract(draft.handler),
            accepts_external=accepts_external,
        )

    _validate_module(draft)
    children = {}
    for name, child in draft.children.items():
        _validate_command_name(name, child.origin, tasks)
        is_child_default = name == draft.default
        children[name] = _freeze(
            child,
            tasks,
            accepts_external=is_child_default and draft.allow_external_subcommands,
            is_default=is_child_default,
        )
    return ModuleNode(
        name=draft.name,
        parameters=draft.parameters,
        doc=draft.doc,
        children=children,
        default=draft.default,
        allow_external_subcommands=draft.allow_external_subcommands,
    )


class _Assembler:
    def __init__(self, name: str, units: Mapping[str, Sequence[Declaration]]) -> None:
        self.root = _Draft(name=name, kind='module', origin='<root>')
        self.units = units

    def add(self, declaration: Declaration, *, prefix: tuple[str, ...] = (), stack: tuple[str, ...] = ()) -> None:
        path = prefix + declaration.path
        if declaration.kind == 'mount':
            self._mount(declaration, path, stack)
            return

        if not path:
            if declaration.kind != 'module':
                msg = 'the root command must be a module'
                raise ConfigurationError(msg)
            if self.root.explicit:
                msg = 'the root module is declared twice'
                raise DuplicateCommandError(msg)
            self.root.fill(declaration.model_copy(update={'path': path}))
            return

        parent = self._parent(path)
        name = path[-1]
        existing = parent.children.get(name)
        if existing is None:
            draft = _Draft(name=name, kind=declaration.kind, origin=' '.join(path))
            parent.children[name] = draft
        elif existing.explicit:
            msg = f'command {" ".join(path)!r} is declared twice'
            raise DuplicateCommandError(msg)
        elif existing.kind != declaration.kind:
            msg = f'action {" ".join(path)!r} cannot have subcommands'
            raise ConfigurationError(msg)
        else:
            draft = existing
        draft.fill(declaration.model_copy(update={'path': path}))

    def _parent(self, path: tuple[str, ...]) -> _Draft:
        draft = self.root
        for index, segment in enumerate(path[:-1]):
            child = draft.children.get(segment)
            if child is None:
                child = _Draft(name=segment, kind='module', origin=' '.join(path[: index + 1]))
                draft.children[segment] = child
            elif child.kind != 'module':
                msg = f'command {" ".join(path)!r} is nested under action {child.origin!r}'
                raise ConfigurationError(msg)
            draft = child
        return draft

    def _mount(self, declaration: Declaration, path: tuple[str, ...], stack: tuple[str, ...]) -> None:
        unit = declaration.include
        if unit is None:
            msg = f'mount at {declaration.label} names no unit'
            raise ConfigurationError(msg)
        if unit in stack:
            raise IncludeCycleError([*stack, unit])
        if unit not in self.units:
            msg = f'mount at {declaration.label} includes unknown unit {unit!r}'
            raise ConfigurationError(msg)

        logger.debug('mounting_unit', unit=unit, path=list(path))
        declarations = list(self.units[unit])
        if path and not any(item.kind == 'module' and not item.path for item in declarations):
            declarations.insert(0, Declaration(path=(), kind='module', doc=declaration.doc))
        for item in declarations:
            self.add(item, prefix=path, stack=(*stack, unit))


def build_tree(
    declarations: Iterable[Declaration],
    *,
    name: str = 'root',
    units: Mapping[str, Sequence[Declaration]] | None = None,
    tasks: TaskSettings | None = None,
) -> CommandTree:
    """Build a command tree, failing fast on any malformed declaration."""
    assembler = _Assembler(name, units or {})
    for declaration in declarations:
        assembler.add(declaration)

    root = _freeze(assembler.root, tasks)
    if not isinstance(root, ModuleNode):  # pragma: no cover - the root draft is always a module
        msg = 'the root command must be a module'
        raise ConfigurationError(msg)
    logger.debug(
        'tree_built',
        name=name,
        commands=len(root.children),
        task_mode=tasks is not None,
    )
    return CommandTree(root=root, tasks=tasks)


__all__ = [
    'HELP_PREFIX',
    'RESERVED_FLAGS',
    'RESERVED_PARAMETER_NAMES',
    'CommandTree',
    'build_tree',
    'infer_result_contract',
]
