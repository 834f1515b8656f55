"""Shared cancellation for the concurrent fan-out of one gathering run."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Iterable, List, Optional

from common.errors import OperationCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """One per run; triggered once by the first fatal error.

    The first fatal error is kept as ``cause`` so that whoever joins the
    run can re-raise it, even when the task that raised it was cancelled
    before its result was collected.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._cause: Optional[BaseException] = None

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled

    @property
    def cause(self) -> Optional[BaseException]:
        """First fatal error reported through cancel(), if any."""
        return self._cause

    def cancel(self, cause: Optional[BaseException] = None) -> None:
        """Trigger the token. Calling it again has no effect.

        Args:
            cause: Error that triggered the cancellation. Only the first
                one is kept; OperationCancelled is never recorded.
        """
        if not self._cancelled:
            logger.debug("Cancellation requested")
        self._cancelled = True
        if self._cause is None and cause is not None and not isinstance(cause, OperationCancelled):
            self._cause = cause

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled when the token was triggered."""
        if self._cancelled:
            raise OperationCancelled("Operation cancelled after a failure elsewhere")


async def run_all(coroutines: Iterable[Awaitable[Any]], token: CancellationToken) -> List[Any]:
    """Run coroutines concurrently and fail fast.

    On the first failure the token is triggered, every task still running
    is cancelled and drained, and the first fatal error of the run is
    re-raised.

    Args:
        coroutines: Work to schedule.
        token: Shared token of the run.

    Returns:
        Results in submission order.
    """
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    if not tasks:
        return []
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        token.cancel()
        await _cancel_and_drain(tasks)
        raise

    errors = [
        task.exception()
        for task in tasks
        if task.done() and not task.cancelled() and task.exception() is not None
    ]
    if errors:
        fatal = next((error for error in errors if not isinstance(error, OperationCancelled)), None)
        # Record before draining: siblings may finish with OperationCancelled meanwhile.
        token.cancel(fatal)
        await _cancel_and_drain(tasks)
        if token.cause is not None:
            raise token.cause
        raise errors[0]
    return [task.result() for task in tasks]


async def _cancel_and_drain(tasks: List["asyncio.Future[Any]"]) -> None:
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
