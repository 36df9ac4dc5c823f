"""Per-invocation parameter scopes and resolution results."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from cmdtree.errors import ScopeDepthError, UsageError
from cmdtree.models import ActionNode, ModuleNode

_MISSING = object()


@dataclass(frozen=True)
class ParameterScope:
    """Bound parameter values of one tree level, linked to the enclosing level.

    The chain always ends at a root scope whose ``parent`` is ``None``. A
    module that declares no parameters still contributes an empty layer, so
    ``depth`` matches the owning node's depth in the tree.
    """

    name: str
    values: Mapping[str, Any] = field(default_factory=dict)
    parent: ParameterScope | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'values', MappingProxyType(dict(self.values)))

    @classmethod
    def root(cls, name: str, values: Mapping[str, Any] | None = None) -> ParameterScope:
        return cls(name=name, values=values or {})

    def child(self, name: str, values: Mapping[str, Any] | None = None) -> ParameterScope:
        """Create the scope of a nested level."""
        return ParameterScope(name=name, values=values or {}, parent=self)

    @property
    def depth(self) -> int:
        depth = 0
        scope = self.parent
        while scope is not None:
            depth += 1
            scope = scope.parent
        return depth

    @property
    def path(self) -> tuple[str, ...]:
        """Names of the scopes from the root down to this one."""
        return tuple(scope.name for scope in self.chain())

    def chain(self) -> tuple[ParameterScope, ...]:
        """Return every scope from the root down to this one."""
        scopes = []
        scope: ParameterScope | None = self
        while scope is not None:
            scopes.append(scope)
            scope = scope.parent
        return tuple(reversed(scopes))

    def up(self, levels: int = 1) -> ParameterScope:
        """Return the ancestor ``levels`` steps above this scope."""
        if levels < 0:
            msg = f'levels must be non-negative, got {levels}'
            raise ValueError(msg)
        scope = self
        for _ in range(levels):
            if scope.parent is None:
                msg = f'scope {self.name!r} has no ancestor {levels} level(s) up'
                raise ScopeDepthError(msg)
            scope = scope.parent
        return scope

    def at_depth(self, depth: int) -> ParameterScope:
        """Return the scope at absolute ``depth`` (the root is depth 0)."""
        own_depth = self.depth
        if depth < 0 or depth > own_depth:
            msg = f'no scope at depth {depth} above {self.name!r} (depth {own_depth})'
            raise ScopeDepthError(msg)
        return self.up(own_depth - depth)

    def value(self, name: str, *, depth: int | None = None) -> Any:
        """Value of parameter ``name`` owned by the scope at ``depth``.

        Without ``depth`` the value is read from this scope.
        """
        scope = self if depth is None else self.at_depth(depth)
        return scope[name]

    def lookup(self, name: str, default: Any = _MISSING) -> Any:
        """Value of ``name`` from the nearest scope that binds it."""
        scope: ParameterScope | None = self
        while scope is not None:
            if name in scope.values:
                return scope.values[name]
            scope = scope.parent
        if default is _MISSING:
            raise KeyError(name)
        return default

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        try:
            return self.values[name]
        except KeyError:
            msg = f'scope {self.name!r} has no parameter {name!r}'
            raise KeyError(msg) from None

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        """Values of the whole chain keyed by scope name, root first."""
        return {scope.name: dict(scope.values) for scope in self.chain()}


@dataclass(frozen=True)
class ResolvedInvocation:
    """The action selected for an argument vector, ready for dispatch."""

    action: ActionNode
    path: tuple[str, ...]
    scope: ParameterScope
    remaining_args: tuple[str, ...] = ()
    external_args: tuple[str, ...] | None = None

    @property
    def is_external(self) -> bool:
        return self.external_args is not None

    @property
    def scope_chain(self) -> tuple[ParameterScope, ...]:
        return self.scope.chain()


@dataclass(frozen=True)
class HelpRequest:
    """Help was asked for; ``node`` is the deepest node reached."""

    node: ModuleNode | ActionNode
    path: tuple[str, ...]
    error: UsageError | None = None
