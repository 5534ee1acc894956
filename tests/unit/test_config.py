"""
Unit tests for configuration: VaultSettings loaded from VAULT_* variables.

Environment variables are set with monkeypatch; the .env file is disabled
by passing _env_file=None.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from vault_login.config import (
    AuthenticationMethod,
    JwtSettings,
    KubernetesSettings,
    VaultSettings,
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("VAULT_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("VAULT_URI", "https://vault.test:8200/")


def _settings() -> VaultSettings:
    return VaultSettings(_env_file=None)


class TestVaultSettings:
    def test_token_method(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        GIVEN VAULT_STATIC_TOKEN__TOKEN
        WHEN settings are loaded with the default method
        THEN the token section is populated and the URI normalized.
        """
        monkeypatch.setenv("VAULT_STATIC_TOKEN__TOKEN", "s.static")

        settings = _settings()

        assert settings.authentication is AuthenticationMethod.TOKEN
        assert settings.uri == "https://vault.test:8200"
        assert settings.static_token is not None
        assert settings.static_token.token.get_secret_value() == "s.static"
        assert settings.max_attempts == 1
        assert settings.http_timeout_seconds == 60

    def test_vault_token_variable_does_not_break_loading(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_TOKEN", "s.cli")
        monkeypatch.setenv("VAULT_STATIC_TOKEN__TOKEN", "s.static")
        assert _settings().static_token is not None

    def test_kubernetes_method(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_AUTHENTICATION", "kubernetes")
        monkeypatch.setenv("VAULT_KUBERNETES__ROLE", "app")
        monkeypatch.setenv("VAULT_KUBERNETES__PATH", "k8s/cluster-1")

        settings = _settings()

        section = settings.method_settings()
        assert isinstance(section, KubernetesSettings)
        assert section.role == "app"
        assert section.path == "k8s/cluster-1"
        assert section.service_account_token_file == Path("/var/run/secrets/kubernetes.io/serviceaccount/token")

    def test_selected_method_requires_its_section(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_AUTHENTICATION", "approle")
        with pytest.raises(ValidationError, match="VAULT_APPROLE__"):
            _settings()

    def test_method_settings_without_section(self) -> None:
        settings = VaultSettings.model_construct(authentication=AuthenticationMethod.GITHUB, github=None)
        with pytest.raises(ValueError, match="'github'"):
            settings.method_settings()

    def test_unknown_method(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_AUTHENTICATION", "ldap-magic")
        with pytest.raises(ValidationError):
            _settings()

    def test_uri_scheme_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_URI", "vault.test:8200")
        monkeypatch.setenv("VAULT_STATIC_TOKEN__TOKEN", "s.static")
        with pytest.raises(ValidationError, match="http:// or https://"):
            _settings()

    def test_max_attempts_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_STATIC_TOKEN__TOKEN", "s.static")
        monkeypatch.setenv("VAULT_MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            _settings()

    def test_secrets_hidden(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_STATIC_TOKEN__TOKEN", "s.static")
        assert "s.static" not in repr(_settings())


class TestJwtSettings:
    def test_exactly_one_source(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            JwtSettings()
        with pytest.raises(ValidationError, match="exactly one"):
            JwtSettings(jwt="x", jwt_file=Path("/tmp/jwt"))

    def test_file_source(self) -> None:
        assert JwtSettings(jwt_file=Path("/tmp/jwt")).path == "jwt"
