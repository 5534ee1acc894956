"""
Railway-Oriented Programming support for login flows.

Every login step returns a Result and failures short-circuit the rest
of the flow.

    from vault_login.railway import Result, ErrorCode

    result = (
        Result.success({"role": "demo"})
        .flat_map(lambda body: post_login(body))
        .map(VaultToken.from_auth)
    )
"""

from vault_login.railway.assertions import ResultAssertions
from vault_login.railway.execution import (
    ExecutionContext,
    LoggingExecutionContext,
    NoOpExecutionContext,
)
from vault_login.railway.failure import ErrorCode, FailureDescription
from vault_login.railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]
