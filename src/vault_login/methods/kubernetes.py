"""
Kubernetes authentication: log in with the pod's service account token.

    service account JWT (file) → {"role": ..., "jwt": ...} → POST auth/{mount}/login

The token file is read on every login so projected, rotating tokens work.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps
from vault_login.suppliers import kubernetes_service_account_token

DEFAULT_KUBERNETES_AUTHENTICATION_PATH = "kubernetes"


@dataclass(frozen=True, slots=True)
class KubernetesAuthenticationOptions:
    role: str
    jwt_supplier: Callable[[], str] = field(default_factory=kubernetes_service_account_token)
    path: str = DEFAULT_KUBERNETES_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        require_text(self.role, "Role")
        require_text(self.path, "Path")


class KubernetesAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "Kubernetes"

    def __init__(self, options: KubernetesAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: KubernetesAuthenticationOptions) -> AuthenticationSteps:
        role = options.role
        return (
            AuthenticationSteps.from_supplier(options.jwt_supplier)
            .map(lambda jwt: {"role": role, "jwt": jwt})
            .login(login_path("{mount}"), options.path)
        )

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
