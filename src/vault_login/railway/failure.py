"""
Failure description — structured error information for the failure track.

Every login step either succeeds with a new state value or fails with a
FailureDescription. The description records WHAT went wrong (ErrorCode),
a human-readable message, the triggering exception and the step that was
executing when the failure occurred.

Enum + frozen dataclass gives us __eq__, __hash__ and __repr__ for free,
and Enum members are singleton-comparable with `is`.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Failure taxonomy for token acquisition.

    - CONFIGURATION_ERROR: invalid steps or options, detected at build time
    - AUTHENTICATION_ERROR: the backend rejected the login (4xx)
    - EXTERNAL_SERVICE_ERROR: the backend or a metadata service failed (5xx)
    - TRANSPORT_ERROR: connection could not be established or was dropped
    - TIMEOUT_ERROR: the transport gave up waiting for a response
    - PROTOCOL_ERROR: a response or a step callable did not yield usable state
    - UNKNOWN_ERROR: anything else
    """

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Conflicting URI specification, missing required option."""

    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    """Backend answered with a client error (400, 403, ...)."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Backend answered with a server error (500, 503, ...)."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Connection refused, DNS failure, connection reset."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    """Connect/read/write/pool timeout."""

    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    """Missing "auth" section, unexpected terminal state, raising transform."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unexpected/unclassified failures."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception,
    the offending step and a timestamp.

    >>> desc = FailureDescription(ErrorCode.PROTOCOL_ERROR, "Auth field must not be null")
    >>> desc.code
    <ErrorCode.PROTOCOL_ERROR: 'PROTOCOL_ERROR'>
    >>> desc.message
    'Auth field must not be null'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    step: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
        step: Optional[str] = None,
    ) -> FailureDescription:
        return FailureDescription(code=code, message=message, exception=exception, step=step)

    def with_context(self, prefix: str) -> FailureDescription:
        """
        Prefix the message with caller context, keeping code, cause and step.

            failure.with_context("Cannot login using JWT")
            # → "Cannot login using JWT: HTTP request ... failed ..."
        """
        return replace(self, message=f"{prefix}: {self.message}")

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__)
        )
        return f"{self.message}\n{tb}"
