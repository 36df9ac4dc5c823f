"""Decorator based registration of command trees."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

from cmdtree.errors import DuplicateCommandError
from cmdtree.models import Declaration, DocMeta, ParameterSpec, ResultContract, TaskSettings
from cmdtree.tree import CommandTree, build_tree

HandlerT = TypeVar('HandlerT', bound=Callable[..., Any])

PathLike = str | Sequence[str]


def _path(path: PathLike) -> tuple[str, ...]:
    if isinstance(path, str):
        return tuple(path.split())
    return tuple(path)


def flag(name: str, *flags: str, help: str | None = None, default: bool = False) -> ParameterSpec:  # noqa: A002
    return ParameterSpec(name=name, kind='flag', flags=flags, help=help, default=default)


def count(name: str, *flags: str, help: str | None = None) -> ParameterSpec:  # noqa: A002
    return ParameterSpec(name=name, kind='count', flags=flags, help=help, default=0)


def option(name: str, *flags: str, **kwargs: Any) -> ParameterSpec:
    return ParameterSpec(name=name, kind='option', flags=flags, **kwargs)


def positional(name: str, **kwargs: Any) -> ParameterSpec:
    return ParameterSpec(name=name, kind='positional', **kwargs)


class CommandRegistry:
    """Collects declarations and builds them into a :class:`CommandTree`.

    Example::

        cli = CommandRegistry('tool', parameters=[flag('verbose', '-v')])
        cli.module('database', parameters=[option('connection')], default='status')

        @cli.action('database status')
        def status(scope): ...
    """

    def __init__(
        self,
        name: str = 'root',
        *,
        parameters: Iterable[ParameterSpec] = (),
        about: str | None = None,
        version: str | None = None,
        author: str | None = None,
        default: str | None = None,
        allow_external_subcommands: bool = False,
        tasks: TaskSettings | None = None,
    ) -> None:
        self.name = name
        self.tasks = tasks
        self._declarations: list[Declaration] = [
            Declaration(
                path=(),
                kind='module',
                parameters=tuple(parameters),
                default=default,
                allow_external_subcommands=allow_external_subcommands,
                doc=DocMeta(about=about, version=version, author=author),
            ),
        ]
        self._units: dict[str, list[Declaration]] = {}

    @property
    def declarations(self) -> list[Declaration]:
        return list(self._declarations)

    @property
    def units(self) -> dict[str, list[Declaration]]:
        return {name: list(declarations) for name, declarations in self._units.items()}

    def module(
        self,
        path: PathLike,
        *,
        parameters: Iterable[ParameterSpec] = (),
        default: str | None = None,
        allow_external_subcommands: bool = False,
        about: str | None = None,
        long_about: str | None = None,
        version: str | None = None,
        author: str | None = None,
    ) -> CommandRegistry:
        """Declare a module; returns the registry for chaining."""
        self._declarations.append(
            Declaration(
                path=_path(path),
                kind='module',
                parameters=tuple(parameters),
                default=default,
                allow_external_subcommands=allow_external_subcommands,
                doc=DocMeta(about=about, long_about=long_about, version=version, author=author),
            ),
        )
        return self

    def action(
        self,
        path: PathLike,
        *,
        parameters: Iterable[ParameterSpec] = (),
        about: str | None = None,
        long_about: str | None = None,
        returns: ResultContract | None = None,
    ) -> Callable[[HandlerT], HandlerT]:
        """Declare an action bound to the decorated handler.

        The handler's docstring is used as ``about`` when none is given.
        """

        def decorator(handler: HandlerT) -> HandlerT:
            doc = inspect.getdoc(handler)
            self._declarations.append(
                Declaration(
                    path=_path(path),
                    kind='action',
                    parameters=tuple(parameters),
                    handler=handler,
                    returns=returns,
                    doc=DocMeta(about=about or doc, long_about=long_about),
                ),
            )
            return handler

        return decorator

    def add(self, declaration: Declaration) -> CommandRegistry:
        self._declarations.append(declaration)
        return self

    def mount(self, path: PathLike, unit: str | CommandRegistry, *, about: str | None = None) -> CommandRegistry:
        """Splice a separately declared unit in at ``path``.

        ``unit`` is either the name of a unit registered with :meth:`unit` or
        another registry, whose root declaration becomes the mounted module.
        A registry is stored under its name and mount path, so registries
        sharing a name can be mounted side by side.
        """
        mount_path = _path(path)
        if isinstance(unit, CommandRegistry):
            for name, declarations in unit.units.items():
                self._store_unit(name, declarations)
            key = f'{unit.name}@{" ".join(mount_path)}'
            self._store_unit(key, unit.declarations)
            unit = key
        self._declarations.append(
            Declaration(path=mount_path, kind='mount', include=unit, doc=DocMeta(about=about)),
        )
        return self

    def unit(self, name: str, declarations: Iterable[Declaration]) -> CommandRegistry:
        self._store_unit(name, list(declarations))
        return self

    def _store_unit(self, name: str, declarations: list[Declaration]) -> None:
        existing = self._units.get(name)
        if existing is not None and existing != declarations:
            msg = f'unit {name!r} is already registered with different commands'
            raise DuplicateCommandError(msg)
        self._units[name] = declarations

    def build(self) -> CommandTree:
        """Build the tree; raises :class:`ConfigurationError` if it is malformed."""
        return build_tree(
            self._declarations,
            name=self.name,
            units=self._units,
            tasks=self.tasks,
        )
