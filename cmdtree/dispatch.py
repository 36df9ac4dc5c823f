"""Invoke resolved actions and normalize their results to exit statuses."""

from __future__ import annotations

from typing import Any

from cmdtree.errors import HandlerResultError
from cmdtree.logging import get_logger
from cmdtree.models import ResultContract
from cmdtree.parsing import parse_action_arguments
from cmdtree.scope import ResolvedInvocation

logger = get_logger(__name__)

DEFAULT_FAILURE_STATUS = 1
MAX_STATUS = 255


def normalize_status(
    result: Any,
    contract: ResultContract = 'none',
    *,
    failure_status: int = DEFAULT_FAILURE_STATUS,
) -> int:
    """Map a handler result to an exit status.

    ``None`` is success, unless the handler's contract is ``optional`` where
    it means "failed without a code" and maps to ``failure_status``. Integers
    in 0..255 are used as is.
    """
    if result is None:
        return failure_status if contract == 'optional' else 0
    if isinstance(result, bool) or not isinstance(result, int):
        msg = f'handler returned {type(result).__name__}, expected an exit status or None'
        raise HandlerResultError(msg)
    if not 0 <= result <= MAX_STATUS:
        msg = f'handler returned exit status {result}, expected 0..{MAX_STATUS}'
        raise HandlerResultError(msg)
    return result


class Dispatcher:
    """Call the handler of a resolved invocation."""

    def __init__(self, *, failure_status: int = DEFAULT_FAILURE_STATUS, prog: str = '') -> None:
        if not 0 <= failure_status <= MAX_STATUS:
            msg = f'failure status must be in 0..{MAX_STATUS}, got {failure_status}'
            raise ValueError(msg)
        self.failure_status = failure_status
        self.prog = prog

    def parse(self, resolved: ResolvedInvocation) -> dict[str, Any]:
        """Parse the action's own arguments out of the remaining tokens."""
        prog = ' '.join(part for part in (self.prog, *resolved.path) if part)
        return parse_action_arguments(
            resolved.action,
            resolved.remaining_args,
            prog=prog,
            path=resolved.path,
        )

    def dispatch(self, resolved: ResolvedInvocation) -> int:
        """Parse the action's arguments and run its handler."""
        return self.invoke(resolved, self.parse(resolved))

    def invoke(self, resolved: ResolvedInvocation, arguments: dict[str, Any]) -> int:
        """Run the handler with parsed arguments; its exceptions propagate unchanged."""
        arguments = dict(arguments)
        if resolved.action.accepts_external:
            arguments['external_args'] = list(resolved.external_args or ())

        logger.debug(
            'dispatching_handler',
            path=list(resolved.path),
            _verbose_arguments=arguments,
        )
        result = resolved.action.handler(resolved.scope, **arguments)
        status = normalize_status(
            result,
            resolved.action.returns,
            failure_status=self.failure_status,
        )
        logger.debug('handler_returned', path=list(resolved.path), status=status)
        return status
