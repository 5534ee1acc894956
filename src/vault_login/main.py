"""
Command-line entry point: log in to Vault and print the session token.

Composition root: loads VaultSettings, creates the httpx transport and the
configured authentication method, and obtains a token through a
SimpleSessionManager.

    $ export VAULT_URI=https://vault:8200 VAULT_AUTHENTICATION=kubernetes
    $ export VAULT_KUBERNETES__ROLE=my-role
    $ export VAULT_TOKEN=$(vault-login)

Only the token is written to stdout; logs go to stderr.
"""

from __future__ import annotations

import logging
import sys

import structlog
from pydantic import SecretStr

from vault_login import __version__
from vault_login.adapters.http_client import HttpxTransport, create_client
from vault_login.config import (
    AppRoleSettings,
    AwsEc2Settings,
    AwsIamSettings,
    CubbyholeSettings,
    GcpGceSettings,
    GitHubSettings,
    JwtSettings,
    KubernetesSettings,
    TokenSettings,
    UserPassSettings,
    VaultSettings,
)
from vault_login.domain.models import VaultToken
from vault_login.domain.ports import ClientAuthentication, HttpTransport
from vault_login.exceptions import VaultLoginError
from vault_login.methods.approle import AppRoleAuthentication, AppRoleAuthenticationOptions
from vault_login.methods.aws_ec2 import AwsEc2Authentication, AwsEc2AuthenticationOptions
from vault_login.methods.aws_iam import AwsIamAuthentication, AwsIamAuthenticationOptions
from vault_login.methods.cubbyhole import CubbyholeAuthentication, CubbyholeAuthenticationOptions
from vault_login.methods.gcp_gce import GcpComputeAuthentication, GcpComputeAuthenticationOptions
from vault_login.methods.github import GitHubAuthentication, GitHubAuthenticationOptions
from vault_login.methods.jwt import JwtAuthentication, JwtAuthenticationOptions
from vault_login.methods.kubernetes import KubernetesAuthentication, KubernetesAuthenticationOptions
from vault_login.methods.token import TokenAuthentication
from vault_login.methods.userpass import UsernamePasswordAuthentication, UsernamePasswordAuthenticationOptions
from vault_login.session import SimpleSessionManager
from vault_login.suppliers import ResourceCredentialSupplier


def configure_structlog(log_level: str = "INFO") -> None:
    """Configure structlog for human-readable console output on stderr."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _secret(value: SecretStr | None) -> str | None:
    return value.get_secret_value() if value is not None else None


def create_client_authentication(settings: VaultSettings, transport: HttpTransport) -> ClientAuthentication:
    """Map the selected method's settings onto its authentication adapter."""
    match settings.method_settings():
        case TokenSettings(token=token):
            return TokenAuthentication(token.get_secret_value())
        case JwtSettings() as jwt:
            options = JwtAuthenticationOptions(
                role=jwt.role,
                jwt=_secret(jwt.jwt),
                jwt_supplier=ResourceCredentialSupplier(jwt.jwt_file) if jwt.jwt_file else None,
                path=jwt.path,
            )
            return JwtAuthentication(options, transport)
        case KubernetesSettings() as kubernetes:
            options = KubernetesAuthenticationOptions(
                role=kubernetes.role,
                jwt_supplier=ResourceCredentialSupplier(kubernetes.service_account_token_file),
                path=kubernetes.path,
            )
            return KubernetesAuthentication(options, transport)
        case AppRoleSettings() as approle:
            options = AppRoleAuthenticationOptions(
                role_id=approle.role_id,
                secret_id=_secret(approle.secret_id),
                secret_id_wrapping_token=_secret(approle.secret_id_wrapping_token),
                pull_secret_id=approle.pull_secret_id,
                role_name=approle.role_name,
                initial_token=_secret(approle.initial_token),
                path=approle.path,
            )
            return AppRoleAuthentication(options, transport)
        case UserPassSettings() as userpass:
            options = UsernamePasswordAuthenticationOptions(
                username=userpass.username,
                password=userpass.password.get_secret_value(),
                totp=_secret(userpass.totp),
                path=userpass.path,
            )
            return UsernamePasswordAuthentication(options, transport)
        case GitHubSettings() as github:
            options = GitHubAuthenticationOptions.of_token(github.token.get_secret_value(), github.path)
            return GitHubAuthentication(options, transport)
        case CubbyholeSettings() as cubbyhole:
            initial_token = VaultToken.of(cubbyhole.initial_token.get_secret_value())
            options = (
                CubbyholeAuthenticationOptions.wrapped_token(initial_token)
                if cubbyhole.wrapped
                else CubbyholeAuthenticationOptions(initial_token=initial_token, path=cubbyhole.path)
            )
            return CubbyholeAuthentication(options, transport)
        case AwsEc2Settings() as aws:
            options = AwsEc2AuthenticationOptions(
                role=aws.role,
                nonce=_secret(aws.nonce),
                identity_document_uri=aws.identity_document_uri,
                path=aws.path,
            )
            return AwsEc2Authentication(options, transport)
        case AwsIamSettings() as iam:
            options = AwsIamAuthenticationOptions(
                role=iam.role,
                server_id=iam.server_id,
                endpoint_uri=iam.endpoint_uri,
                region=iam.region,
                path=iam.path,
            )
            return AwsIamAuthentication(options, transport)
        case GcpGceSettings() as gcp:
            options = GcpComputeAuthenticationOptions(
                role=gcp.role,
                service_account=gcp.service_account,
                path=gcp.path,
            )
            return GcpComputeAuthentication(options, transport)
    raise ValueError(f"Unsupported authentication method: {settings.authentication}")


def main() -> None:
    """Log in with the configured method and print the token."""
    try:
        settings = VaultSettings()
    except Exception as e:
        print(f"FATAL: Configuration error: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        uri=settings.uri,
        namespace=settings.namespace,
        authentication=settings.authentication.value,
    )

    with create_client(settings.uri, settings.http_timeout_seconds, settings.namespace) as client:
        transport = HttpxTransport(client, max_attempts=settings.max_attempts)
        try:
            session = SimpleSessionManager(create_client_authentication(settings, transport))
            token = session.get_session_token()
        except VaultLoginError as e:
            log.error("app.login_failed", code=e.code.value, error=str(e))
            sys.exit(1)
        except ValueError as e:
            log.error("app.configuration_error", error=str(e))
            sys.exit(1)

    log.info(
        "app.logged_in",
        accessor=token.accessor,
        renewable=token.renewable,
        ttl=token.ttl_seconds,
        token_type=token.token_type,
    )
    print(token.token)  # noqa: T201


if __name__ == "__main__":
    main()
