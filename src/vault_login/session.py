"""
Session managers — cached session token with at most one login in flight.

  SimpleSessionManager       blocking callers, guarded by a threading.Lock
  AsyncSimpleSessionManager  asyncio callers, guarded by an asyncio.Lock

Both follow the same double-checked protocol:

  1. token cached?            → return it, no backend call
  2. acquire the lock
  3. token cached now?        → another caller logged in while we waited, return it
  4. login exactly once, store, release, return

A failed login leaves the slot empty and re-raises the VaultLoginError
unchanged; the next caller logs in again instead of replaying the failure.
Tokens are never refreshed or dropped automatically: invalidate() is the
only way to force a new login.
"""

from __future__ import annotations

import asyncio
import threading

import structlog

from vault_login.domain.models import VaultToken
from vault_login.domain.ports import ClientAuthentication, VaultTokenSupplier
from vault_login.events import AfterLoginEvent, AuthenticationEventPublisher, LoginFailedEvent
from vault_login.exceptions import VaultLoginError

log = structlog.get_logger()


class SimpleSessionManager:
    """
    Implements the SessionManager port over any ClientAuthentication.

        session = SimpleSessionManager(JwtAuthentication(options, transport))
        token = session.get_session_token()
    """

    def __init__(
        self,
        client_authentication: ClientAuthentication,
        publisher: AuthenticationEventPublisher | None = None,
    ) -> None:
        self._client_authentication = client_authentication
        self._publisher = publisher or AuthenticationEventPublisher()
        self._lock = threading.Lock()
        self._token: VaultToken | None = None

    @property
    def publisher(self) -> AuthenticationEventPublisher:
        return self._publisher

    def get_session_token(self) -> VaultToken:
        token = self._token
        if token is not None:
            return token

        with self._lock:
            token = self._token
            if token is not None:
                return token
            log.info("session.login_started", source=type(self._client_authentication).__name__)
            try:
                token = self._client_authentication.login()
            except VaultLoginError as e:
                log.warning("session.login_failed", code=e.code.value, failure=str(e))
                self._publisher.publish_error(LoginFailedEvent(e, type(self._client_authentication).__name__))
                raise
            self._token = token

        log.info("session.token_cached", accessor=token.accessor, ttl=token.ttl_seconds)
        self._publisher.publish(AfterLoginEvent(token, type(self._client_authentication).__name__))
        return token

    def invalidate(self) -> None:
        """Drop the cached token; the next get_session_token() logs in again."""
        with self._lock:
            self._token = None
        log.info("session.invalidated")


class AsyncSimpleSessionManager:
    """
    Implements the ReactiveSessionManager and VaultTokenSupplier ports over
    any VaultTokenSupplier (typically an AuthenticationStepsOperator).

        session = AsyncSimpleSessionManager(operator)
        token = await session.get_session_token()

    The lock is held across the awaited login, so concurrent tasks wait for
    the first one instead of starting their own. If the task performing the
    login is cancelled, the lock is released with the slot still empty.
    """

    def __init__(
        self,
        token_supplier: VaultTokenSupplier,
        publisher: AuthenticationEventPublisher | None = None,
    ) -> None:
        self._token_supplier = token_supplier
        self._publisher = publisher or AuthenticationEventPublisher()
        self._lock = asyncio.Lock()
        self._token: VaultToken | None = None

    @property
    def publisher(self) -> AuthenticationEventPublisher:
        return self._publisher

    async def get_session_token(self) -> VaultToken:
        token = self._token
        if token is not None:
            return token

        async with self._lock:
            token = self._token
            if token is not None:
                return token
            log.info("session.login_started", source=type(self._token_supplier).__name__)
            try:
                token = await self._token_supplier.get_vault_token()
            except VaultLoginError as e:
                log.warning("session.login_failed", code=e.code.value, failure=str(e))
                self._publisher.publish_error(LoginFailedEvent(e, type(self._token_supplier).__name__))
                raise
            self._token = token

        log.info("session.token_cached", accessor=token.accessor, ttl=token.ttl_seconds)
        self._publisher.publish(AfterLoginEvent(token, type(self._token_supplier).__name__))
        return token

    async def get_vault_token(self) -> VaultToken:
        return await self.get_session_token()

    def invalidate(self) -> None:
        """Drop the cached token; the next get_session_token() logs in again."""
        self._token = None
        log.info("session.invalidated")
