"""
Ports — Protocol-based interfaces between the login core and its collaborators.

  Core (steps, interpreter, session managers) ← Ports ← Adapters (httpx, methods)

Each port is a Protocol (structural typing) so adapters satisfy the
contract simply by implementing the methods, without inheritance.

Consumed capabilities:
  HttpTransport / AsyncHttpTransport → one HTTP exchange, blocking or awaitable

Produced capabilities:
  ClientAuthentication        → login() -> VaultToken            (direct strategy)
  AuthenticationStepsFactory  → declarative description of a login flow
  VaultTokenSupplier          → await get_vault_token()          (deferred strategy)
  SessionManager              → get_session_token(), cached and guarded
  ReactiveSessionManager      → await get_session_token(), cached and guarded
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from vault_login.domain.models import VaultToken

if TYPE_CHECKING:
    from vault_login.steps import AuthenticationSteps


@runtime_checkable
class HttpTransport(Protocol):
    """
    Port: execute one HTTP exchange and return the decoded response body.

    `url` is either relative to the Vault API base URL or absolute.
    `response_type` selects decoding (VaultResponse, dict, str, bytes).
    Raises httpx.HTTPStatusError for non-2xx responses and
    httpx.TransportError subclasses for connection problems.
    """

    def exchange(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Any,
        response_type: type,
    ) -> Any: ...


@runtime_checkable
class AsyncHttpTransport(Protocol):
    """Port: awaitable counterpart of HttpTransport with identical semantics."""

    async def exchange(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Any,
        response_type: type,
    ) -> Any: ...


@runtime_checkable
class ClientAuthentication(Protocol):
    """Port: log in and return a token. Raises VaultLoginError on failure."""

    def login(self) -> VaultToken: ...


@runtime_checkable
class AuthenticationStepsFactory(Protocol):
    """Port: describe a login flow as AuthenticationSteps without performing I/O."""

    def get_authentication_steps(self) -> AuthenticationSteps: ...


@runtime_checkable
class VaultTokenSupplier(Protocol):
    """
    Port: deferred token source.

    Every call returns a fresh coroutine; awaiting it runs the whole flow
    from scratch.
    """

    async def get_vault_token(self) -> VaultToken: ...


@runtime_checkable
class SessionManager(Protocol):
    """Port: current session token for blocking callers."""

    def get_session_token(self) -> VaultToken: ...


@runtime_checkable
class ReactiveSessionManager(Protocol):
    """Port: current session token for asyncio callers."""

    async def get_session_token(self) -> VaultToken: ...
