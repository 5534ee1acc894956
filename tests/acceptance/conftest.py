"""
Acceptance test fixtures: real httpx transports against a respx-mocked Vault.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
import respx

from tests.fakes import VAULT_URI
from vault_login.adapters.http_client import AsyncHttpxTransport, HttpxTransport, create_async_client, create_client


@pytest.fixture()
def vault() -> Iterator[respx.MockRouter]:
    """A mocked Vault API; requests to unmocked routes fail the test."""
    with respx.mock(base_url=f"{VAULT_URI}/v1", assert_all_called=False) as router:
        yield router


@pytest.fixture()
def http_transport() -> Iterator[HttpxTransport]:
    with create_client(VAULT_URI, timeout=5, namespace="team-a") as client:
        yield HttpxTransport(client)


@pytest_asyncio.fixture()
async def async_http_transport() -> AsyncIterator[AsyncHttpxTransport]:
    async with create_async_client(VAULT_URI, timeout=5, namespace="team-a") as client:
        yield AsyncHttpxTransport(client)
