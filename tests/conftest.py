"""
Shared test fixtures for the vault-login test suite.

Provides scripted transports and canned Vault login responses.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from tests.fakes import AsyncScriptedTransport, ScriptedTransport, login_payload
from vault_login.domain.models import VaultResponse


@pytest.fixture()
def login_response() -> VaultResponse:
    return VaultResponse.from_json(login_payload())


@pytest.fixture()
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture()
def async_transport() -> AsyncScriptedTransport:
    return AsyncScriptedTransport()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Keep structlog at its defaults so capture_logs() sees every event."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
