"""
JWT/OIDC authentication: exchange a signed JWT for a Vault token.

    JWT supplier → {"jwt": ..., "role": ...} → POST auth/{mount}/login
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.exceptions import InvalidAuthenticationStepsError
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps

DEFAULT_JWT_AUTHENTICATION_PATH = "jwt"


@dataclass(frozen=True, slots=True)
class JwtAuthenticationOptions:
    """
    Exactly one of `jwt` (a fixed token) or `jwt_supplier` (called on every
    login) must be set. `role` may be omitted when the mount has a default role.
    """

    role: str | None = None
    jwt: str | None = None
    jwt_supplier: Callable[[], str] | None = None
    path: str = DEFAULT_JWT_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        if (self.jwt is None) == (self.jwt_supplier is None):
            raise InvalidAuthenticationStepsError("Exactly one of jwt or jwt_supplier must be set")
        if self.jwt is not None:
            require_text(self.jwt, "JWT")
        require_text(self.path, "Path")


def _login_body(role: str | None) -> Callable[[str], dict[str, str]]:
    def body(jwt: str) -> dict[str, str]:
        if role is None:
            return {"jwt": jwt}
        return {"jwt": jwt, "role": role}

    return body


class JwtAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "JWT"

    def __init__(self, options: JwtAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: JwtAuthenticationOptions) -> AuthenticationSteps:
        start = (
            AuthenticationSteps.from_value(options.jwt)
            if options.jwt is not None
            else AuthenticationSteps.from_supplier(options.jwt_supplier)
        )
        return start.map(_login_body(options.role)).login(login_path("{mount}"), options.path)

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
