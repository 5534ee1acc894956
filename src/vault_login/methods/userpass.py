"""
Username and password authentication (userpass, ldap, okta, radius mounts).

    {"password": ...} → POST auth/{mount}/login/{username}
"""

from __future__ import annotations

from dataclasses import dataclass, field

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps

DEFAULT_USERPASS_AUTHENTICATION_PATH = "userpass"


@dataclass(frozen=True, slots=True)
class UsernamePasswordAuthenticationOptions:
    username: str
    password: str = field(repr=False)
    totp: str | None = field(default=None, repr=False)
    path: str = DEFAULT_USERPASS_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        require_text(self.username, "Username")
        require_text(self.password, "Password")
        require_text(self.path, "Path")


class UsernamePasswordAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "username and password"

    def __init__(self, options: UsernamePasswordAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: UsernamePasswordAuthenticationOptions) -> AuthenticationSteps:
        body = {"password": options.password}
        if options.totp is not None:
            body["totp"] = options.totp
        return AuthenticationSteps.from_value(body).login(
            login_path("{mount}") + "/{username}", options.path, options.username
        )

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
