"""
Token authentication: use a token that was issued out of band.

No backend call is made: the flow yields the configured token as-is.
"""

from __future__ import annotations

from vault_login.domain.models import VaultToken
from vault_login.steps import AuthenticationSteps


class TokenAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory for a static token."""

    def __init__(self, token: str | VaultToken) -> None:
        self._token = token if isinstance(token, VaultToken) else VaultToken.of(token)

    @staticmethod
    def create_authentication_steps(token: VaultToken) -> AuthenticationSteps:
        return AuthenticationSteps.just(token)

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._token)

    def login(self) -> VaultToken:
        return self._token
