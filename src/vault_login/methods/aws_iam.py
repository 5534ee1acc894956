"""
AWS-IAM authentication: prove an IAM identity with a signed STS request.

The client never calls STS itself. It signs (SigV4) a
sts:GetCallerIdentity request and hands the signed request to Vault,
which replays it against STS:

    AWS credentials (boto3 credential chain, resolved on every login)
      → sign POST https://sts.amazonaws.com/ Action=GetCallerIdentity
      → {"iam_http_request_method", "iam_request_url", "iam_request_body",
         "iam_request_headers", "role"?}   (values base64-encoded)
      → POST auth/{mount}/login

When the Vault role requires it, server_id is sent as the signed
X-Vault-AWS-IAM-Server-ID header.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import boto3
import structlog
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import HttpTransport
from vault_login.methods.common import login_path, login_with_steps, require_text
from vault_login.steps import AuthenticationSteps

log = structlog.get_logger()

DEFAULT_AWS_IAM_AUTHENTICATION_PATH = "aws"
DEFAULT_STS_ENDPOINT = "https://sts.amazonaws.com/"
DEFAULT_STS_REGION = "us-east-1"
GET_CALLER_IDENTITY = "Action=GetCallerIdentity&Version=2011-06-15"
SERVER_ID_HEADER = "X-Vault-AWS-IAM-Server-ID"


def default_credentials() -> Credentials:
    """Resolve credentials through boto3's standard chain (env, profile, instance role, ...)."""
    credentials = boto3.Session().get_credentials()
    if credentials is None:
        raise ValueError("No AWS credentials found in the boto3 credential chain")
    return credentials


@dataclass(frozen=True, slots=True)
class AwsIamAuthenticationOptions:
    role: str | None = None
    server_id: str | None = None
    credentials_supplier: Callable[[], Credentials] = default_credentials
    endpoint_uri: str = DEFAULT_STS_ENDPOINT
    region: str = DEFAULT_STS_REGION
    path: str = DEFAULT_AWS_IAM_AUTHENTICATION_PATH

    def __post_init__(self) -> None:
        require_text(self.endpoint_uri, "Endpoint URI")
        require_text(self.region, "Region")
        require_text(self.path, "Path")


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def signed_headers(options: AwsIamAuthenticationOptions, credentials: Credentials) -> dict[str, list[str]]:
    """Sign the GetCallerIdentity request; returns its headers in Vault's {name: [value]} form."""
    headers = {
        "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
        "Content-Length": str(len(GET_CALLER_IDENTITY)),
    }
    if options.server_id:
        headers[SERVER_ID_HEADER] = options.server_id
    request = AWSRequest(method="POST", url=options.endpoint_uri, data=GET_CALLER_IDENTITY, headers=headers)
    SigV4Auth(credentials, "sts", options.region).add_auth(request)
    return {name: [value] for name, value in request.headers.items()}


def create_login_body(options: AwsIamAuthenticationOptions, credentials: Credentials) -> dict[str, Any]:
    body: dict[str, Any] = {
        "iam_http_request_method": "POST",
        "iam_request_url": _b64(options.endpoint_uri),
        "iam_request_body": _b64(GET_CALLER_IDENTITY),
        "iam_request_headers": _b64(json.dumps(signed_headers(options, credentials))),
    }
    if options.role:
        body["role"] = options.role
    log.debug("aws_iam.request_signed", role=options.role, region=options.region)
    return body


class AwsIamAuthentication:
    """Implements ClientAuthentication and AuthenticationStepsFactory."""

    METHOD = "AWS-IAM"

    def __init__(self, options: AwsIamAuthenticationOptions, transport: HttpTransport) -> None:
        self._options = options
        self._transport = transport

    @staticmethod
    def create_authentication_steps(options: AwsIamAuthenticationOptions) -> AuthenticationSteps:
        return (
            AuthenticationSteps.from_supplier(options.credentials_supplier)
            .map(lambda credentials: create_login_body(options, credentials))
            .login(login_path("{mount}"), options.path)
        )

    def get_authentication_steps(self) -> AuthenticationSteps:
        return self.create_authentication_steps(self._options)

    def login(self) -> VaultToken:
        return login_with_steps(self.METHOD, self.get_authentication_steps(), self._transport)
