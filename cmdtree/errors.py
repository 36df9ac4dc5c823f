"""Exception hierarchy for cmdtree."""

from __future__ import annotations

from collections.abc import Sequence


class CmdtreeError(Exception):
    """Base class for every error raised by cmdtree."""


class ConfigurationError(CmdtreeError):
    """Raised when a command tree or its configuration is malformed.

    These are raised while the tree is built, before any argument is parsed.
    """


class DuplicateCommandError(ConfigurationError):
    """Raised when two siblings share a name."""


class ReservedNameError(ConfigurationError):
    """Raised when a command, parameter or flag uses a reserved name."""


class DefaultHandlerError(ConfigurationError):
    """Raised when a module's default handler is missing or malformed."""


class IncludeCycleError(ConfigurationError):
    """Raised when a mounted unit includes itself, directly or indirectly."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f'unit include cycle: {" -> ".join(self.cycle)}')


class UsageError(CmdtreeError):
    """Raised for user input that cannot be resolved or parsed."""

    exit_status = 2

    def __init__(self, message: str, *, path: Sequence[str] = ()) -> None:
        self.message = message
        self.path = tuple(path)
        super().__init__(message)


class UnresolvedPathError(UsageError):
    """Raised when the argument vector does not address an action."""


class UnknownCommandError(UnresolvedPathError):
    """Raised for a subcommand segment that names no child."""

    def __init__(
        self,
        segment: str,
        *,
        path: Sequence[str] = (),
        suggestions: Sequence[str] = (),
    ) -> None:
        self.segment = segment
        self.suggestions = tuple(suggestions)
        super().__init__(f'unknown subcommand `{segment}`', path=path)


class MissingCommandError(UnresolvedPathError):
    """Raised when input ends at a module without a default handler."""

    def __init__(self, *, path: Sequence[str] = ()) -> None:
        super().__init__('no command given, subcommands exist', path=path)


class ArgumentParseError(UsageError):
    """Raised by the delegated argument parser; the message is passed through verbatim."""

    def __init__(self, message: str, *, usage: str = '', path: Sequence[str] = ()) -> None:
        self.usage = usage
        super().__init__(message, path=path)


class ScopeDepthError(CmdtreeError, LookupError):
    """Raised when a scope lookup walks past the root scope."""


class HandlerResultError(CmdtreeError, TypeError):
    """Raised when a handler returns something that is not an exit status."""


__all__ = [
    'ArgumentParseError',
    'CmdtreeError',
    'ConfigurationError',
    'DefaultHandlerError',
    'DuplicateCommandError',
    'HandlerResultError',
    'IncludeCycleError',
    'MissingCommandError',
    'ReservedNameError',
    'ScopeDepthError',
    'UnknownCommandError',
    'UnresolvedPathError',
    'UsageError',
]
