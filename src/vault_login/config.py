"""
Configuration: typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from VAULT_* environment variables
  - Fall back to a .env file
  - Validate types and constraints at startup

Only VaultSettings is a BaseSettings instance. Per-method settings are plain
BaseModel classes populated through env_nested_delimiter="__", so
VAULT_KUBERNETES__ROLE maps to kubernetes.role, VAULT_APPROLE__ROLE_ID to
approle.role_id, and so on. Only the section of the selected
authentication method is required.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vault_login.methods.aws_ec2 import DEFAULT_IDENTITY_DOCUMENT_URI
from vault_login.methods.aws_iam import DEFAULT_STS_ENDPOINT, DEFAULT_STS_REGION
from vault_login.methods.cubbyhole import DEFAULT_CUBBYHOLE_PATH
from vault_login.suppliers import DEFAULT_KUBERNETES_SERVICE_ACCOUNT_TOKEN_FILE

_ENV_FILE = Path.cwd() / ".env"

# VAULT_TOKEN is the Vault CLI token variable; the token section lives under VAULT_STATIC_TOKEN__*.
_SECTIONS = {"token": "static_token"}


class AuthenticationMethod(StrEnum):
    TOKEN = "token"
    JWT = "jwt"
    KUBERNETES = "kubernetes"
    APPROLE = "approle"
    USERPASS = "userpass"
    GITHUB = "github"
    CUBBYHOLE = "cubbyhole"
    AWS_EC2 = "aws_ec2"
    AWS_IAM = "aws_iam"
    GCP_GCE = "gcp_gce"


def _section_name(method: AuthenticationMethod) -> str:
    return _SECTIONS.get(method.value, method.value)


class TokenSettings(BaseModel):
    token: SecretStr = Field(description="Static Vault token")


class JwtSettings(BaseModel):
    """
    JWT/OIDC login. Provide the JWT inline (VAULT_JWT__JWT) or as a file
    that is re-read on every login (VAULT_JWT__JWT_FILE).
    """

    role: str | None = Field(default=None, description="Role to log in with; mount default when unset")
    jwt: SecretStr | None = Field(default=None, description="Inline JWT")
    jwt_file: Path | None = Field(default=None, description="File containing the JWT")
    path: str = Field(default="jwt", description="Auth mount path")

    @model_validator(mode="after")
    def require_one_jwt_source(self) -> JwtSettings:
        if (self.jwt is None) == (self.jwt_file is None):
            raise ValueError("Set exactly one of VAULT_JWT__JWT or VAULT_JWT__JWT_FILE")
        return self


class KubernetesSettings(BaseModel):
    role: str = Field(description="Kubernetes auth role")
    service_account_token_file: Path = Field(
        default=Path(DEFAULT_KUBERNETES_SERVICE_ACCOUNT_TOKEN_FILE),
        description="Projected service account token",
    )
    path: str = Field(default="kubernetes", description="Auth mount path")


class AppRoleSettings(BaseModel):
    role_id: str | None = Field(default=None, description="AppRole RoleID; pulled from Vault when unset")
    secret_id: SecretStr | None = Field(default=None, description="AppRole SecretID")
    secret_id_wrapping_token: SecretStr | None = Field(
        default=None,
        description="Response-wrapping token around the SecretID",
    )
    pull_secret_id: bool = Field(default=False, description="Generate a SecretID through the role's secret-id endpoint")
    role_name: str | None = Field(default=None, description="Role name, required to pull the RoleID or SecretID")
    initial_token: SecretStr | None = Field(default=None, description="Token allowed to read the role")
    path: str = Field(default="approle", description="Auth mount path")


class UserPassSettings(BaseModel):
    username: str = Field(description="Username")
    password: SecretStr = Field(description="Password")
    totp: SecretStr | None = Field(default=None, description="One-time passcode, if MFA is enforced")
    path: str = Field(default="userpass", description="Auth mount path (userpass, ldap, okta, radius)")


class GitHubSettings(BaseModel):
    token: SecretStr = Field(description="GitHub personal access token")
    path: str = Field(default="github", description="Auth mount path")


class CubbyholeSettings(BaseModel):
    initial_token: SecretStr = Field(description="One-time token granting access to the cubbyhole")
    wrapped: bool = Field(default=False, description="Initial token is a response-wrapping token")
    path: str = Field(default=DEFAULT_CUBBYHOLE_PATH, description="Cubbyhole secret path (direct mode)")


class AwsEc2Settings(BaseModel):
    role: str | None = Field(default=None, description="AWS-EC2 auth role")
    nonce: SecretStr | None = Field(default=None, description="Fixed client nonce; generated when unset")
    identity_document_uri: str = Field(default=DEFAULT_IDENTITY_DOCUMENT_URI)
    path: str = Field(default="aws-ec2", description="Auth mount path")


class AwsIamSettings(BaseModel):
    role: str | None = Field(default=None, description="AWS-IAM auth role; Vault infers it when unset")
    server_id: str | None = Field(default=None, description="Value of the X-Vault-AWS-IAM-Server-ID header")
    endpoint_uri: str = Field(default=DEFAULT_STS_ENDPOINT, description="STS endpoint Vault replays the request to")
    region: str = Field(default=DEFAULT_STS_REGION, description="Signing region of the STS endpoint")
    path: str = Field(default="aws", description="Auth mount path")


class GcpGceSettings(BaseModel):
    role: str = Field(description="GCP auth role")
    service_account: str = Field(default="default", description="Compute Engine service account")
    path: str = Field(default="gcp", description="Auth mount path")


class VaultSettings(BaseSettings):
    """
    Root settings.

    Load order (highest priority first):
      1. Environment variables (VAULT_URI, VAULT_AUTHENTICATION, ...)
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    uri: str = Field(description="Vault base URI, e.g. https://vault.example.com:8200")
    namespace: str | None = Field(default=None, description="Vault Enterprise namespace")
    authentication: AuthenticationMethod = Field(default=AuthenticationMethod.TOKEN)

    static_token: TokenSettings | None = None
    jwt: JwtSettings | None = None
    kubernetes: KubernetesSettings | None = None
    approle: AppRoleSettings | None = None
    userpass: UserPassSettings | None = None
    github: GitHubSettings | None = None
    cubbyhole: CubbyholeSettings | None = None
    aws_ec2: AwsEc2Settings | None = None
    aws_iam: AwsIamSettings | None = None
    gcp_gce: GcpGceSettings | None = None

    http_timeout_seconds: int = Field(default=60, ge=1)
    max_attempts: int = Field(default=1, ge=1, description="Transport attempts per request; 1 disables retry")
    log_level: str = Field(default="INFO")

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, value: str) -> str:
        """Reject URIs without an http(s) scheme."""
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Vault URI must start with http:// or https://, got {value!r}")
        return value.rstrip("/")

    @model_validator(mode="after")
    def require_selected_method(self) -> VaultSettings:
        """The settings section of the selected authentication method must be present."""
        if getattr(self, _section_name(self.authentication)) is None:
            section = _section_name(self.authentication).upper()
            raise ValueError(
                f"Authentication method {self.authentication.value!r} selected "
                f"but no VAULT_{section}__* settings were provided"
            )
        return self

    def method_settings(self) -> BaseModel:
        section = getattr(self, _section_name(self.authentication))
        if section is None:
            raise ValueError(f"No settings for authentication method {self.authentication.value!r}")
        return section
