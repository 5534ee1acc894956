"""
HTTP adapter — Vault transports built on httpx.

Implements the HttpTransport and AsyncHttpTransport ports.

  HttpxTransport       httpx.Client, blocking
  AsyncHttpxTransport  httpx.AsyncClient, awaitable

Both share request encoding and response decoding:

  body:      dict/list → JSON, VaultResponse → its JSON object,
             str/bytes → raw content, None → no body
  response:  VaultResponse → VaultResponse.from_json(json)
             dict / list   → decoded JSON
             str           → text
             bytes         → raw content

Relative URLs (auth/jwt/login) resolve against the client's base_url, the
Vault API root (https://vault:8200/v1/). Absolute URLs such as cloud metadata
endpoints pass through unchanged.

Non-2xx responses raise httpx.HTTPStatusError via raise_for_status(); the
step interpreter turns that into a login failure. Retries are opt-in
(max_attempts > 1) and only cover transient network errors and timeouts.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vault_login.domain.models import VaultResponse

log = structlog.get_logger()

VAULT_NAMESPACE_HEADER = "X-Vault-Namespace"
VAULT_TOKEN_HEADER = "X-Vault-Token"

_TRANSIENT = (httpx.TimeoutException, httpx.NetworkError)


def api_base_url(vault_uri: str) -> str:
    """https://vault:8200 → https://vault:8200/v1/"""
    return f"{vault_uri.rstrip('/')}/v1/"


def create_client(
    vault_uri: str,
    timeout: float = 60,
    namespace: str | None = None,
) -> httpx.Client:
    headers = {VAULT_NAMESPACE_HEADER: namespace} if namespace else {}
    return httpx.Client(base_url=api_base_url(vault_uri), timeout=timeout, headers=headers)


def create_async_client(
    vault_uri: str,
    timeout: float = 60,
    namespace: str | None = None,
) -> httpx.AsyncClient:
    headers = {VAULT_NAMESPACE_HEADER: namespace} if namespace else {}
    return httpx.AsyncClient(base_url=api_base_url(vault_uri), timeout=timeout, headers=headers)


def _content(body: Any) -> dict[str, Any]:
    match body:
        case None:
            return {}
        case str() | bytes():
            return {"content": body}
        case VaultResponse():
            return {"json": body.to_json()}
        case _:
            return {"json": body}


def _decode(response: httpx.Response, response_type: type) -> Any:
    if response_type is bytes:
        return response.content
    if response_type is str:
        return response.text
    if not response.content:
        return None
    payload = response.json()
    if response_type is VaultResponse:
        return VaultResponse.from_json(payload)
    return payload


def _log_retry(state: RetryCallState) -> None:
    log.warning(
        "transport.retrying",
        attempt=state.attempt_number,
        error=str(state.outcome.exception()) if state.outcome else None,
    )


def _retry_policy(max_attempts: int) -> dict[str, Any]:
    return {
        "stop": stop_after_attempt(max_attempts),
        "wait": wait_exponential(multiplier=1, min=0.1, max=30),
        "retry": retry_if_exception_type(_TRANSIENT),
        "before_sleep": _log_retry,
        "reraise": True,
    }


class HttpxTransport:
    """
    Blocking Vault transport.

    Implements the HttpTransport port. The client is owned by the caller:
    build it with create_client() (or any httpx.Client with a base_url)
    and close it when done.
    """

    def __init__(self, client: httpx.Client, max_attempts: int = 1) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._max_attempts = max_attempts

    def exchange(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Any,
        response_type: type,
    ) -> Any:
        for attempt in Retrying(**_retry_policy(self._max_attempts)):
            with attempt:
                response = self._client.request(method, url, headers=dict(headers), **_content(body))
        log.debug("transport.exchanged", method=method, url=url, status=response.status_code)
        response.raise_for_status()
        return _decode(response, response_type)


class AsyncHttpxTransport:
    """
    Awaitable Vault transport.

    Implements the AsyncHttpTransport port with the same encoding, decoding
    and retry rules as HttpxTransport.
    """

    def __init__(self, client: httpx.AsyncClient, max_attempts: int = 1) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._max_attempts = max_attempts

    async def exchange(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Any,
        response_type: type,
    ) -> Any:
        async for attempt in AsyncRetrying(**_retry_policy(self._max_attempts)):
            with attempt:
                response = await self._client.request(method, url, headers=dict(headers), **_content(body))
        log.debug("transport.exchanged", method=method, url=url, status=response.status_code)
        response.raise_for_status()
        return _decode(response, response_type)
