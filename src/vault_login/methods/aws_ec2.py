"""
AWS-EC2 authentication: log in with the instance's signed identity document.

    GET PKCS#7 identity document (instance metadata service)
      → {"role": ..., "pkcs7": ..., "nonce": ...}   (pkcs7 left out when the document is empty)
      → POST auth/{mount}/login, logging the instance_id Vault reports

Vault binds the first login of an instance to its nonce; every later login
must present the same one. The nonce is therefore generated once per
AwsEc2Authentication and reused for the lifetime of the process, unless one
is configured explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from vault_login.domain.models import VaultResponse, VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps, HttpRequestBuilder
from vault_login.suppliers import NonceCache, create_nonce

log = structlog.get_logger()

DEFAULT_AWS_EC2_AUTHENTICATION_PATH = "aws-ec2"
DEFAULT_IDENTITY_DOCUMENT_URI = "http://169.254.169.254/latest/dynamic/instance-identity/pkcs7"


@dataclass(frozen=True, slots=True)
class AwsEc2AuthenticationOptions:
    role: str | None = None
    nonce: str | None = None
    identity_document_uri: str = DEFAULT_IDENTITY_DOCUMENT_URI
    path: str = DEFAULT_AWS_EC2_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        require_text(self.identity_document_uri, "Identity document URI")
        require_text(self.path, "Path")
        if self.nonce is not None:
            require_text(self.nonce, "Nonce")


class AwsEc2Authentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "AWS-EC2"

    def __init__(self, options: AwsEc2AuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport
        self._nonce: NonceCache[str] = NonceCache()

    @property
    def nonce(self) -> str:
        if self._options.nonce is not None:
            return self._options.nonce
        return self._nonce.ensure(create_nonce)

    def _login_body(self, pkcs7: str | None) -> dict[str, Any]:
        body: dict[str, Any] = {"nonce": self.nonce}
        if pkcs7:
            body["pkcs7"] = pkcs7.replace("\r", "").replace("\n", "")
        if self._options.role is not None:
            body["role"] = self._options.role
        log.debug("aws_ec2.identity_document_loaded", role=self._options.role, empty=not pkcs7)
        return body

    def get_authentication_steps(self) -> AuthenticationSteps:
        identity_document = HttpRequestBuilder.get_uri(self._options.identity_document_uri).as_type(str)
        login = HttpRequestBuilder.post(login_path("{mount}"), self._options.path).as_type(VaultResponse)
        return (
            AuthenticationSteps.from_http_request(identity_document)
            .map(self._login_body)
            .request(login)
            .on_next(_log_instance)
            .login_map(_token_from_login)
        )

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)


def _log_instance(response: VaultResponse) -> None:
    if response.auth is not None:
        log.info("aws_ec2.logged_in", instance_id=response.auth_metadata.get("instance_id"))


def _token_from_login(response: VaultResponse) -> VaultToken:
    if response.auth is None:
        raise ValueError("Auth field must not be null")
    return VaultToken.from_auth(response.auth)
