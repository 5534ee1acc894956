"""
GitHub authentication: log in with a GitHub personal access token.

    token supplier → {"token": ...} → POST auth/{mount}/login
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.exceptions import InvalidAuthenticationStepsError
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps

DEFAULT_GITHUB_AUTHENTICATION_PATH = "github"


@dataclass(frozen=True, slots=True)
class GitHubAuthenticationOptions:
    token_supplier: Callable[[], str]
    path: str = DEFAULT_GITHUB_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        if not callable(self.token_supplier):
            raise InvalidAuthenticationStepsError("GitHub token supplier must be callable")
        require_text(self.path, "Path")

    @staticmethod
    def of_token(token: str, path: str = DEFAULT_GITHUB_AUTHENTICATION_PATH) -> GitHubAuthenticationOptions:
        require_text(token, "GitHub token")
        return GitHubAuthenticationOptions(token_supplier=lambda: token, path=path)


class GitHubAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "GitHub"

    def __init__(self, options: GitHubAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: GitHubAuthenticationOptions) -> AuthenticationSteps:
        return (
            AuthenticationSteps.from_supplier(options.token_supplier)
            .map(lambda token: {"token": token})
            .login(login_path("{mount}"), options.path)
        )

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
