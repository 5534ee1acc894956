"""
Exceptions raised at the public boundary.

Inside a login flow every failure travels as a Result; only the outermost
calls (login(), get_session_token(), get_vault_token()) raise. Callers see
one type, VaultLoginError, which keeps the structured FailureDescription
and chains the triggering exception as __cause__.
"""

from __future__ import annotations

from vault_login.railway.failure import ErrorCode, FailureDescription


class VaultError(Exception):
    """Base class for errors raised by this package."""


class InvalidAuthenticationStepsError(VaultError, ValueError):
    """A step or option object was configured inconsistently (raised at build time)."""


class VaultLoginError(VaultError):
    """A token could not be obtained."""

    def __init__(self, failure: FailureDescription) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def code(self) -> ErrorCode:
        return self.failure.code

    @property
    def step(self) -> str | None:
        return self.failure.step

    @staticmethod
    def from_failure(failure: FailureDescription) -> VaultLoginError:
        return VaultLoginError(failure)
