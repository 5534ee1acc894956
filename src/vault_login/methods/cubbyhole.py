"""
Cubbyhole authentication: obtain a token through a one-time initial token.

Two modes:

  wrapped   the initial token is a response-wrapping token around a login:
              POST sys/wrapping/unwrap (X-Vault-Token: initial) → auth section
  direct    the token is stored in the initial token's cubbyhole:
              GET cubbyhole/token (X-Vault-Token: initial) → data has exactly
              one entry whose value is the token
"""

from __future__ import annotations

from dataclasses import dataclass

from vault_login.adapters.http_client import VAULT_TOKEN_HEADER
from vault_login.domain.models import VaultResponse, VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.exceptions import InvalidAuthenticationStepsError
from vault_login.methods.common import login_with_steps, require_text
from vault_login.steps import AuthenticationSteps, HttpRequestBuilder

UNWRAP_PATH = "sys/wrapping/unwrap"
DEFAULT_CUBBYHOLE_PATH = "cubbyhole/token"


@dataclass(frozen=True, slots=True)
class CubbyholeAuthenticationOptions:
    initial_token: VaultToken
    path: str = DEFAULT_CUBBYHOLE_PATH
    wrapped: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.initial_token, VaultToken):
            raise InvalidAuthenticationStepsError("Initial token must be a VaultToken")
        require_text(self.path, "Path")

    @staticmethod
    def wrapped_token(initial_token: VaultToken) -> CubbyholeAuthenticationOptions:
        return CubbyholeAuthenticationOptions(initial_token=initial_token, path=UNWRAP_PATH, wrapped=True)


def token_from_cubbyhole(response: VaultResponse) -> VaultToken:
    """The cubbyhole secret must hold exactly one entry: the token."""
    data = response.data or {}
    if len(data) != 1:
        raise ValueError(f"Cannot retrieve token from cubbyhole: expected one entry, got {len(data)}")
    (token,) = data.values()
    if not isinstance(token, str):
        raise ValueError("Cannot retrieve token from cubbyhole: entry is not a string")
    return VaultToken.of(token)


class CubbyholeAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "Cubbyhole"

    def __init__(self, options: CubbyholeAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: CubbyholeAuthenticationOptions) -> AuthenticationSteps:
        headers = {VAULT_TOKEN_HEADER: options.initial_token.token}
        if options.wrapped:
            unwrap = HttpRequestBuilder.post(options.path).with_headers(headers).as_type(VaultResponse)
            return AuthenticationSteps.just(unwrap)

        read = HttpRequestBuilder.get(options.path).with_headers(headers).as_type(VaultResponse)
        return AuthenticationSteps.from_http_request(read).login_map(token_from_cubbyhole)

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
