"""
Execution contexts — separate WHAT (the login flow) from HOW it is run.

A login flow describes WHAT happens and returns Result[VaultToken]; the
context decides HOW it runs: timing and outcome logging around it, with the
same contract for blocking and asyncio callers.

    ctx = LoggingExecutionContext(operation="JWT")
    result = ctx.execute(executor.try_login)
    result = await ctx.execute_async(operator.try_get_vault_token)
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable, Protocol, TypeVar, runtime_checkable

import structlog

from vault_login.railway.failure import ErrorCode, FailureDescription
from vault_login.railway.result import Failure, Result

T = TypeVar("T")
log = structlog.get_logger()


@runtime_checkable
class ExecutionContext(Protocol):
    """Any class implementing execute(computation) satisfies this protocol."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...

    async def execute_async(self, computation: Callable[[], Awaitable[Result[T]]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Passthrough execution context: runs the computation as-is."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()

    async def execute_async(self, computation: Callable[[], Awaitable[Result[T]]]) -> Result[T]:
        return await computation()


class LoggingExecutionContext:
    """
    Execution context that logs entry, exit, duration, and result state.

    An exception escaping the computation is logged and turned into an
    UNKNOWN_ERROR failure so callers only ever see a Result.

        ctx = LoggingExecutionContext(operation="Kubernetes")
    """

    def __init__(self, operation: str = "unknown") -> None:
        self._operation = operation

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        log.debug("execution.started", operation=self._operation)
        start = time.monotonic()
        try:
            result = computation()
        except Exception as e:
            return self._crashed(e, time.monotonic() - start)
        return self._completed(result, time.monotonic() - start)

    async def execute_async(self, computation: Callable[[], Awaitable[Result[T]]]) -> Result[T]:
        log.debug("execution.started", operation=self._operation)
        start = time.monotonic()
        try:
            result = await computation()
        except Exception as e:
            return self._crashed(e, time.monotonic() - start)
        return self._completed(result, time.monotonic() - start)

    def _completed(self, result: Result[T], elapsed: float) -> Result[T]:
        if result.is_success():
            log.info("execution.completed", operation=self._operation, elapsed=round(elapsed, 3), state="SUCCESS")
        else:
            log.warning(
                "execution.completed",
                operation=self._operation,
                elapsed=round(elapsed, 3),
                state="FAILURE",
                code=result.error().code.value,
                failure=result.error().message,
            )
        return result

    def _crashed(self, error: Exception, elapsed: float) -> Result[T]:
        log.error("execution.failed", operation=self._operation, elapsed=round(elapsed, 3), error=str(error))
        return Failure(FailureDescription(ErrorCode.UNKNOWN_ERROR, f"Execution failed: {error}", error))
