"""
GCP-GCE authentication: log in with a Compute Engine identity token.

    GET metadata server identity JWT (Metadata-Flavor: Google)
      → {"role": ..., "jwt": ...}
      → POST auth/{mount}/login
"""

from __future__ import annotations

from dataclasses import dataclass

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps, HttpRequestBuilder

DEFAULT_GCP_AUTHENTICATION_PATH = "gcp"
COMPUTE_METADATA_URL_TEMPLATE = (
    "http://metadata/computeMetadata/v1/instance/service-accounts/{serviceAccount}"
    "/identity?audience={audience}&format={format}"
)


@dataclass(frozen=True, slots=True)
class GcpComputeAuthenticationOptions:
    role: str
    service_account: str = "default"
    path: str = DEFAULT_GCP_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        require_text(self.role, "Role")
        require_text(self.service_account, "Service account")
        require_text(self.path, "Path")

    @property
    def audience(self) -> str:
        return f"https://localhost:8200/vault/{self.role}"


class GcpComputeAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "GCP-GCE"

    def __init__(self, options: GcpComputeAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: GcpComputeAuthenticationOptions) -> AuthenticationSteps:
        role = options.role
        identity = (
            HttpRequestBuilder.get(COMPUTE_METADATA_URL_TEMPLATE, options.service_account, options.audience, "full")
            .with_headers({"Metadata-Flavor": "Google"})
            .as_type(str)
        )
        return (
            AuthenticationSteps.from_http_request(identity)
            .map(lambda jwt: {"role": role, "jwt": jwt})
            .login(login_path("{mount}"), options.path)
        )

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
