"""
AppRole authentication: log in with a RoleID and an optional SecretID.

RoleID sources:

  role_id                   given directly
  pull (role_name + initial_token):
      GET auth/{mount}/role/{role_name}/role-id (X-Vault-Token: initial token)

SecretID sources:

  secret_id                 given directly
  secret_id_wrapping_token  response-wrapped SecretID, unwrapped first:
      POST sys/wrapping/unwrap (X-Vault-Token: wrapping token)
  pull_secret_id            generated on demand (role_name + initial_token):
      POST auth/{mount}/role/{role_name}/secret-id (X-Vault-Token: initial token)

Each flow then posts {"role_id", "secret_id"?} to auth/{mount}/login. Flows
are linear, so at most one of the two identifiers may come from Vault.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from vault_login.adapters.http_client import VAULT_TOKEN_HEADER
from vault_login.domain.models import VaultResponse, VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.exceptions import InvalidAuthenticationStepsError
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps, HttpRequest, HttpRequestBuilder

DEFAULT_APPROLE_AUTHENTICATION_PATH = "approle"


@dataclass(frozen=True, slots=True)
class AppRoleAuthenticationOptions:
    role_id: str | None = None
    secret_id: str | None = field(default=None, repr=False)
    secret_id_wrapping_token: str | None = field(default=None, repr=False)
    pull_secret_id: bool = False
    role_name: str | None = None
    initial_token: str | None = field(default=None, repr=False)
    path: str = DEFAULT_APPROLE_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        require_text(self.path, "Path")
        if self.role_id is not None:
            require_text(self.role_id, "RoleId")
        secret_sources = [self.secret_id is not None, self.secret_id_wrapping_token is not None, self.pull_secret_id]
        if sum(secret_sources) > 1:
            raise InvalidAuthenticationStepsError(
                "secret_id, secret_id_wrapping_token and pull_secret_id are mutually exclusive"
            )
        if self.pulls_role_id or self.pull_secret_id:
            require_text(self.role_name, "Role name")
            require_text(self.initial_token, "Initial token")
        if self.pulls_role_id and (self.pull_secret_id or self.secret_id_wrapping_token is not None):
            raise InvalidAuthenticationStepsError(
                "A pulled RoleId can only be combined with a given or absent SecretId"
            )

    @property
    def pulls_role_id(self) -> bool:
        return self.role_id is None


def _data_value(key: str) -> Callable[[VaultResponse], str]:
    def read(response: VaultResponse) -> str:
        value = (response.data or {}).get(key)
        if not value:
            raise ValueError(f"Response does not contain a {key}")
        return value

    read.__qualname__ = f"read_{key}"
    return read


def _login_body(role_id: str, secret_id: str | None) -> dict[str, Any]:
    body: dict[str, Any] = {"role_id": role_id}
    if secret_id is not None:
        body["secret_id"] = secret_id
    return body


def _with_token(builder: HttpRequestBuilder, token: str | None) -> HttpRequest[VaultResponse]:
    return builder.with_headers({VAULT_TOKEN_HEADER: token or ""}).as_type(VaultResponse)


class AppRoleAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "AppRole"

    def __init__(self, options: AppRoleAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: AppRoleAuthenticationOptions) -> AuthenticationSteps:
        login = login_path("{mount}")

        if options.pulls_role_id:
            pull_role_id = _with_token(
                HttpRequestBuilder.get("auth/{mount}/role/{role}/role-id", options.path, options.role_name or ""),
                options.initial_token,
            )
            secret_id = options.secret_id
            return (
                AuthenticationSteps.from_http_request(pull_role_id)
                .map(_data_value("role_id"))
                .map(lambda role_id: _login_body(role_id, secret_id))
                .login(login, options.path)
            )

        role_id = options.role_id or ""
        if options.secret_id_wrapping_token is not None:
            unwrap = HttpRequestBuilder.post("sys/wrapping/unwrap")
            secret_request = _with_token(unwrap, options.secret_id_wrapping_token)
        elif options.pull_secret_id:
            secret_request = _with_token(
                HttpRequestBuilder.post("auth/{mount}/role/{role}/secret-id", options.path, options.role_name or ""),
                options.initial_token,
            )
        else:
            return AuthenticationSteps.from_value(_login_body(role_id, options.secret_id)).login(login, options.path)

        return (
            AuthenticationSteps.from_http_request(secret_request)
            .map(_data_value("secret_id"))
            .map(lambda secret_id: _login_body(role_id, secret_id))
            .login(login, options.path)
        )

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
