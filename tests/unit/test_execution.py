"""Tests for ExecutionContext implementations."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from vault_login.railway import (
    ErrorCode,
    ExecutionContext,
    LoggingExecutionContext,
    NoOpExecutionContext,
    Result,
)


class TestNoOpExecutionContext:
    def test_passthrough(self):
        assert NoOpExecutionContext().execute(lambda: Result.success(42)).value() == 42

    def test_passthrough_failure(self):
        result = NoOpExecutionContext().execute(lambda: Result.failure(ErrorCode.TIMEOUT_ERROR, "slow"))
        assert result.is_failure()

    @pytest.mark.asyncio
    async def test_passthrough_async(self):
        async def computation():
            return Result.success("ok")

        assert (await NoOpExecutionContext().execute_async(computation)).value() == "ok"

    def test_satisfies_protocol(self):
        assert isinstance(NoOpExecutionContext(), ExecutionContext)
        assert isinstance(LoggingExecutionContext(), ExecutionContext)


class TestLoggingExecutionContext:
    def test_logs_success(self):
        ctx = LoggingExecutionContext(operation="JWT")
        with capture_logs() as logs:
            result = ctx.execute(lambda: Result.success("ok"))
        assert result.value() == "ok"
        completed = [entry for entry in logs if entry["event"] == "execution.completed"]
        assert completed[0]["operation"] == "JWT"
        assert completed[0]["state"] == "SUCCESS"

    def test_logs_failure_with_code(self):
        ctx = LoggingExecutionContext(operation="AppRole")
        with capture_logs() as logs:
            result = ctx.execute(lambda: Result.failure(ErrorCode.AUTHENTICATION_ERROR, "invalid role"))
        assert result.is_failure()
        completed = [entry for entry in logs if entry["event"] == "execution.completed"]
        assert completed[0]["state"] == "FAILURE"
        assert completed[0]["code"] == "AUTHENTICATION_ERROR"
        assert completed[0]["log_level"] == "warning"

    def test_catches_exception(self):
        def failing():
            raise RuntimeError("exploded")

        with capture_logs() as logs:
            result = LoggingExecutionContext(operation="Boom").execute(failing)
        assert result.error().code is ErrorCode.UNKNOWN_ERROR
        assert "exploded" in result.error().message
        assert any(entry["event"] == "execution.failed" for entry in logs)

    @pytest.mark.asyncio
    async def test_execute_async(self):
        async def computation():
            return Result.success(99)

        with capture_logs() as logs:
            result = await LoggingExecutionContext(operation="Kubernetes").execute_async(computation)
        assert result.value() == 99
        assert any(entry["event"] == "execution.completed" for entry in logs)
