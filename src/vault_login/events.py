"""
Authentication events: notify interested parties about logins.

Session managers publish:
  AfterLoginEvent   a login produced a new token (not emitted for cache hits)
  LoginFailedEvent  a login attempt failed; the failure is still raised to the caller

Listeners are plain callables registered on an AuthenticationEventPublisher.
A listener that raises is logged and skipped; the remaining listeners still
run and the caller still receives the login outcome.
Registration replaces the listener tuple atomically, so publishing from
one thread while another registers never observes a half-updated set.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

import structlog

from vault_login.domain.models import VaultToken
from vault_login.exceptions import VaultLoginError

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class AfterLoginEvent:
    token: VaultToken
    source: str


@dataclass(frozen=True, slots=True)
class LoginFailedEvent:
    exception: VaultLoginError
    source: str


AuthenticationListener: TypeAlias = Callable[[AfterLoginEvent], None]
AuthenticationErrorListener: TypeAlias = Callable[[LoginFailedEvent], None]


class AuthenticationEventPublisher:
    """Multicast authentication events to registered listeners, in registration order."""

    def __init__(self) -> None:
        self._listeners: tuple[AuthenticationListener, ...] = ()
        self._error_listeners: tuple[AuthenticationErrorListener, ...] = ()

    def add_authentication_listener(self, listener: AuthenticationListener) -> None:
        if not callable(listener):
            raise TypeError("AuthenticationListener must be callable")
        if listener not in self._listeners:
            self._listeners = (*self._listeners, listener)

    def remove_authentication_listener(self, listener: AuthenticationListener) -> None:
        self._listeners = tuple(registered for registered in self._listeners if registered != listener)

    def add_error_listener(self, listener: AuthenticationErrorListener) -> None:
        if not callable(listener):
            raise TypeError("AuthenticationErrorListener must be callable")
        if listener not in self._error_listeners:
            self._error_listeners = (*self._error_listeners, listener)

    def remove_error_listener(self, listener: AuthenticationErrorListener) -> None:
        self._error_listeners = tuple(
            registered for registered in self._error_listeners if registered != listener
        )

    def publish(self, event: AfterLoginEvent) -> None:
        log.debug("events.publish", event=type(event).__name__, listeners=len(self._listeners))
        for listener in self._listeners:
            _notify(listener, event)

    def publish_error(self, event: LoginFailedEvent) -> None:
        log.debug("events.publish", event=type(event).__name__, listeners=len(self._error_listeners))
        for listener in self._error_listeners:
            _notify(listener, event)


def _notify(listener: Callable[[Any], None], event: AfterLoginEvent | LoginFailedEvent) -> None:
    """A failing listener is logged and skipped; it never replaces the login outcome."""
    try:
        listener(event)
    except Exception:
        log.exception("events.listener_failed", event=type(event).__name__, listener=repr(listener))
