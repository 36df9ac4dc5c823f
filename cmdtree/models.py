"""Pydantic models for cmdtree declarations and command nodes."""

from __future__ import annotations

import keyword
from collections.abc import Callable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ParameterKind = Literal['flag', 'count', 'option', 'positional']
TypeTag = Literal['str', 'int', 'float', 'path']
ResultContract = Literal['none', 'status', 'optional']
DeclarationKind = Literal['module', 'action', 'mount']


class ParameterSpec(BaseModel):
    """A single parameter declared on a command node."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: ParameterKind = 'option'
    type: TypeTag | Callable[[str], Any] = 'str'
    flags: tuple[str, ...] = ()
    help: str | None = None
    default: Any = None
    required: bool | None = None
    multiple: bool = False
    choices: tuple[Any, ...] | None = None
    metavar: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that the name can be used as a keyword argument."""
        if not v.isidentifier() or keyword.iskeyword(v):
            msg = f'Parameter name must be a Python identifier: {v!r}'
            raise ValueError(msg)
        return v

    @field_validator('flags')
    @classmethod
    def validate_flags(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Validate that every flag looks like an option string."""
        for flag in v:
            if len(flag) < 2 or not flag.startswith('-') or flag == '--':  # noqa: PLR2004
                msg = f'Invalid option string: {flag!r}'
                raise ValueError(msg)
        return v

    @model_validator(mode='after')
    def validate_kind(self) -> ParameterSpec:
        """Positionals take no option strings; switches take no values."""
        if self.kind == 'positional' and self.flags:
            msg = f'Positional parameter {self.name!r} cannot declare flags'
            raise ValueError(msg)
        if self.kind in ('flag', 'count') and (self.choices or self.multiple):
            msg = f'Switch parameter {self.name!r} cannot take choices or repeat values'
            raise ValueError(msg)
        return self

    @property
    def option_strings(self) -> tuple[str, ...]:
        """Option strings for the parameter, defaulting to ``--<name>``."""
        if self.kind == 'positional':
            return ()
        if self.flags:
            return self.flags
        return (f'--{self.name.replace("_", "-")}',)

    @property
    def is_required(self) -> bool:
        """Positionals are required unless they carry a default; options are optional unless marked."""
        if self.required is not None:
            return self.required
        return self.kind == 'positional' and self.default is None

    @property
    def takes_value(self) -> bool:
        """Whether the option consumes the following token as its value."""
        return self.kind == 'option'


class DocMeta(BaseModel):
    """Descriptive metadata shown in help output."""

    model_config = ConfigDict(frozen=True)

    about: str | None = None
    long_about: str | None = None
    version: str | None = None
    author: str | None = None

    @property
    def short_doc(self) -> str:
        """First line of ``about``, or an empty string."""
        if not self.about:
            return ''
        return self.about.strip().splitlines()[0]


class TaskSettings(BaseModel):
    """Settings for flat task addressing and the grouped overview."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    separator: str = Field(default='.', min_length=1)
    max_groupsize: int = Field(default=5, ge=0)
    max_depth: int = Field(default=20, ge=0)

    @field_validator('separator')
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Validate that the separator can appear inside a single token."""
        if any(ch.isspace() for ch in v) or v.startswith('-'):
            msg = f'Invalid task separator: {v!r}'
            raise ValueError(msg)
        return v


class Declaration(BaseModel):
    """One registration entry, addressed by its path from the root."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: tuple[str, ...]
    kind: DeclarationKind
    parameters: tuple[ParameterSpec, ...] = ()
    handler: Callable[..., Any] | None = None
    default: str | None = None
    allow_external_subcommands: bool = False
    doc: DocMeta = Field(default_factory=DocMeta)
    include: str | None = None
    returns: ResultContract | None = None

    @property
    def label(self) -> str:
        """Human readable path of the declaration."""
        return ' '.join(self.path) or '<root>'


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    parameters: tuple[ParameterSpec, ...] = ()
    doc: DocMeta = Field(default_factory=DocMeta)


class ActionNode(_Node):
    """A leaf bound to a handler."""

    kind: Literal['action'] = 'action'
    handler: Callable[..., Any]
    returns: ResultContract = 'none'
    accepts_external: bool = False


class ModuleNode(_Node):
    """An internal node grouping child commands."""

    kind: Literal['module'] = 'module'
    children: dict[str, CommandNode] = Field(default_factory=dict)
    default: str | None = None
    allow_external_subcommands: bool = False

    @property
    def default_action(self) -> ActionNode | None:
        """The child action used when no further segment is given."""
        if self.default is None:
            return None
        child = self.children.get(self.default)
        return child if isinstance(child, ActionNode) else None


CommandNode = Annotated[ModuleNode | ActionNode, Field(discriminator='kind')]

ModuleNode.model_rebuild()
