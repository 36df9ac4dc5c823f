"""Utilities for reading command trees from YAML configuration."""

from __future__ import annotations

import importlib
import inspect
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cmdtree.app import CommandApp
from cmdtree.dispatch import DEFAULT_FAILURE_STATUS
from cmdtree.errors import ConfigurationError
from cmdtree.logging import get_logger
from cmdtree.models import (
    Declaration,
    DocMeta,
    ParameterKind,
    ParameterSpec,
    ResultContract,
    TaskSettings,
    TypeTag,
)
from cmdtree.tree import CommandTree, build_tree

logger = get_logger(__name__)

DEFAULT_CONFIG_FILENAME = 'cmdtree.config.yaml'


class ParameterConfig(BaseModel):
    """A parameter as written in the configuration file."""

    model_config = ConfigDict(extra='forbid')

    name: str
    kind: ParameterKind = 'option'
    type: TypeTag = 'str'
    parser: str | None = None
    flags: list[str] = Field(default_factory=list)
    help: str | None = None
    default: Any = None
    required: bool | None = None
    multiple: bool = False
    choices: list[Any] | None = None
    metavar: str | None = None


class CommandConfig(BaseModel):
    """A module, action or mount; actions are the entries with a handler."""

    model_config = ConfigDict(extra='forbid')

    about: str | None = None
    long_about: str | None = None
    version: str | None = None
    author: str | None = None
    handler: str | None = None
    returns: ResultContract | None = None
    include: str | None = None
    parameters: list[ParameterConfig] = Field(default_factory=list)
    default: str | None = None
    allow_external_subcommands: bool = False
    commands: dict[str, CommandConfig] = Field(default_factory=dict)

    @property
    def doc(self) -> DocMeta:
        return DocMeta(
            about=self.about,
            long_about=self.long_about,
            version=self.version,
            author=self.author,
        )


class CmdtreeConfig(CommandConfig):
    """Top-level configuration documented in cmdtree.config.yaml."""

    name: str = 'root'
    failure_status: int = Field(default=DEFAULT_FAILURE_STATUS, ge=0, le=255)
    tasks: TaskSettings | None = None
    units: dict[str, CommandConfig] = Field(default_factory=dict)


CommandConfig.model_rebuild()
CmdtreeConfig.model_rebuild()


def import_object(reference: str, *, context_label: str) -> Any:
    """Import ``package.module:attribute`` references used for handlers and parsers."""
    module_name, sep, attribute = reference.partition(':')
    if not sep or not module_name or not attribute:
        msg = f'invalid reference "{reference}" for {context_label}, expected "module:attribute"'
        raise ConfigurationError(msg)
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f'cannot import module "{module_name}" for {context_label}'
        raise ConfigurationError(msg) from exc
    for part in attribute.split('.'):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            msg = f'"{reference}" for {context_label} does not exist'
            raise ConfigurationError(msg) from exc
    return target


def _parameter(config: ParameterConfig, *, context_label: str) -> ParameterSpec:
    data = config.model_dump(exclude={'parser'})
    data['flags'] = tuple(config.flags)
    if config.choices is not None:
        data['choices'] = tuple(config.choices)
    if config.parser is not None:
        data['type'] = import_object(config.parser, context_label=f'{context_label} parameter {config.name}')
    try:
        return ParameterSpec.model_validate(data)
    except ValidationError as exc:
        msg = f'invalid parameter "{config.name}" in {context_label}'
        raise ConfigurationError(msg) from exc


def _declare(
    path: tuple[str, ...],
    config: CommandConfig,
    declarations: list[Declaration],
) -> None:
    label = ' '.join(path) or '<root>'
    parameters = tuple(_parameter(item, context_label=label) for item in config.parameters)

    if config.include is not None:
        if config.handler or config.commands or parameters:
            msg = f'{label} includes unit "{config.include}" and cannot declare a handler, parameters or commands'
            raise ConfigurationError(msg)
        declarations.append(Declaration(path=path, kind='mount', include=config.include, doc=config.doc))
        return

    if config.handler is not None:
        if config.commands:
            msg = f'{label} has a handler and cannot declare commands'
            raise ConfigurationError(msg)
        handler = import_object(config.handler, context_label=label)
        if not callable(handler):
            msg = f'handler "{config.handler}" for {label} is not callable'
            raise ConfigurationError(msg)
        declarations.append(
            Declaration(
                path=path,
                kind='action',
                parameters=parameters,
                handler=handler,
                returns=config.returns,
                doc=config.doc.model_copy(update={'about': config.about or inspect.getdoc(handler)}),
            ),
        )
        return

    declarations.append(
        Declaration(
            path=path,
            kind='module',
            parameters=parameters,
            default=config.default,
            allow_external_subcommands=config.allow_external_subcommands,
            doc=config.doc,
        ),
    )
    for name, child in config.commands.items():
        _declare((*path, name), child, declarations)


def declarations_from_config(config: CommandConfig) -> list[Declaration]:
    """Flatten a nested command configuration into declarations."""
    declarations: list[Declaration] = []
    _declare((), config, declarations)
    return declarations


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        msg = f'configuration file not found: {config_path}'
        raise ConfigurationError(msg)

    logger.debug('loading_config', config=str(config_path))
    try:
        with config_path.open() as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        msg = f'failed to parse YAML: {exc}'
        raise ConfigurationError(msg) from exc

    if not isinstance(data, dict):
        msg = f'configuration root must be a mapping in {config_path}'
        raise ConfigurationError(msg)

    return data


def load_config(config_path: Path) -> CmdtreeConfig:
    """Load and validate a cmdtree configuration file."""
    config_data = _load_yaml_config(config_path)
    try:
        return CmdtreeConfig.model_validate(config_data)
    except ValidationError as exc:
        logger.error('config_validation_failed', config=str(config_path), errors=exc.errors(include_url=False))
        msg = f'invalid cmdtree configuration in {config_path}'
        raise ConfigurationError(msg) from exc


def build_tree_from_config(config: CmdtreeConfig) -> CommandTree:
    """Build the command tree described by a configuration."""
    if config.handler is not None or config.include is not None:
        msg = 'the root of the configuration must be a module'
        raise ConfigurationError(msg)
    units = {name: declarations_from_config(unit) for name, unit in config.units.items()}
    return build_tree(
        declarations_from_config(config),
        name=config.name,
        units=units,
        tasks=config.tasks,
    )


def load_app(config_path: Path, **kwargs: Any) -> CommandApp:
    """Load a configuration file and wrap its tree in a :class:`CommandApp`."""
    config = load_config(config_path)
    tree = build_tree_from_config(config)
    logger.debug('app_loaded', config=str(config_path), name=config.name)
    return CommandApp(tree, prog=config.name, failure_status=config.failure_status, **kwargs)
