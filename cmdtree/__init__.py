"""Compose hierarchical command trees into command-line interfaces."""

from cmdtree.app import CommandApp
from cmdtree.dispatch import Dispatcher, normalize_status
from cmdtree.errors import (
    ArgumentParseError,
    CmdtreeError,
    ConfigurationError,
    DefaultHandlerError,
    DuplicateCommandError,
    HandlerResultError,
    IncludeCycleError,
    MissingCommandError,
    ReservedNameError,
    ScopeDepthError,
    UnknownCommandError,
    UnresolvedPathError,
    UsageError,
)
from cmdtree.models import ActionNode, Declaration, DocMeta, ModuleNode, ParameterSpec, TaskSettings
from cmdtree.overview import OverviewEntry, OverviewGroup, build_overview
from cmdtree.registry import CommandRegistry, count, flag, option, positional
from cmdtree.resolver import PathResolver
from cmdtree.scope import HelpRequest, ParameterScope, ResolvedInvocation
from cmdtree.tree import CommandTree, build_tree

__version__ = '0.1.0'

__all__ = [
    'ActionNode',
    'ArgumentParseError',
    'CmdtreeError',
    'CommandApp',
    'CommandRegistry',
    'CommandTree',
    'ConfigurationError',
    'Declaration',
    'DefaultHandlerError',
    'Dispatcher',
    'DocMeta',
    'DuplicateCommandError',
    'HandlerResultError',
    'HelpRequest',
    'IncludeCycleError',
    'MissingCommandError',
    'ModuleNode',
    'OverviewEntry',
    'OverviewGroup',
    'ParameterScope',
    'ParameterSpec',
    'PathResolver',
    'ReservedNameError',
    'ResolvedInvocation',
    'ScopeDepthError',
    'TaskSettings',
    'UnknownCommandError',
    'UnresolvedPathError',
    'UsageError',
    '__version__',
    'build_overview',
    'build_tree',
    'count',
    'flag',
    'normalize_status',
    'option',
    'positional',
]
