"""
Test assertions for Result values.

    from vault_login.railway import ResultAssertions

    def test_login():
        token = ResultAssertions.assert_success(executor.try_login())
        assert token.token == "s.123"

    def test_missing_auth():
        result = executor.try_login()
        ResultAssertions.assert_failure(result, ErrorCode.PROTOCOL_ERROR)
        ResultAssertions.assert_failure_message_contains(result, "auth")
"""

from __future__ import annotations

from typing import TypeVar

from vault_login.railway.failure import ErrorCode, FailureDescription
from vault_login.railway.result import Result

T = TypeVar("T")


class ResultAssertions:
    """Expressive test assertions for Result values."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Assert the Result is a Success and return the value."""
        context = f" — {message}" if message else ""
        assert result.is_success(), (
            f"Expected Success but got Failure("
            f"{result.error().code.value}: {result.error().message!r}){context}"
        )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Assert the Result is a Failure, optionally checking the error code."""
        context = f" — {message}" if message else ""
        assert result.is_failure(), f"Expected Failure but got {result!r}{context}"
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} "
                f"but got {error.code.value}: {error.message!r}{context}"
            )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Assert that the failure message contains the given substring (case-insensitive)."""
        assert result.is_failure(), f"Expected Failure but got {result!r}"
        error = result.error()
        assert substring.lower() in error.message.lower(), (
            f"Expected failure message to contain {substring!r} "
            f"but message was: {error.message!r}"
        )
