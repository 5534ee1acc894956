"""
Helpers shared by the authentication method adapters.

Every method describes its flow once, as AuthenticationSteps. The direct
login() of each adapter runs that description through the blocking
interpreter inside a LoggingExecutionContext; asyncio callers hand the
same steps to AuthenticationStepsOperator via create_operator().
"""

from __future__ import annotations

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import AsyncHttpTransport, HttpTransport
from vault_login.exceptions import InvalidAuthenticationStepsError, VaultLoginError
from vault_login.pipeline import AuthenticationStepsExecutor, AuthenticationStepsOperator
from vault_login.railway.execution import LoggingExecutionContext
from vault_login.steps import AuthenticationSteps


def login_path(mount: str) -> str:
    """Login endpoint of an auth mount: "jwt" → "auth/jwt/login"."""
    return f"auth/{mount}/login"


def require_text(value: str | None, name: str) -> str:
    if not value:
        raise InvalidAuthenticationStepsError(f"{name} must not be empty")
    return value


def login_with_steps(method: str, steps: AuthenticationSteps, transport: HttpTransport) -> VaultToken:
    """Execute `steps` on the calling thread; failures are prefixed with the method name."""
    executor = AuthenticationStepsExecutor(steps, transport, method)
    return (
        LoggingExecutionContext(operation=method)
        .execute(executor.try_login)
        .or_raise(VaultLoginError.from_failure)
    )


def create_operator(
    method: str,
    steps: AuthenticationSteps,
    transport: AsyncHttpTransport,
) -> AuthenticationStepsOperator:
    return AuthenticationStepsOperator(steps, transport, method)
