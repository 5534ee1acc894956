"""Unit tests for the authentication event publisher."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from vault_login.domain.models import VaultToken
from vault_login.events import AfterLoginEvent, AuthenticationEventPublisher, LoginFailedEvent
from vault_login.exceptions import VaultLoginError
from vault_login.railway import ErrorCode, FailureDescription


def _after_login() -> AfterLoginEvent:
    return AfterLoginEvent(VaultToken.of("s.1"), "JwtAuthentication")


class TestAuthenticationEventPublisher:
    def test_listeners_called_in_registration_order(self) -> None:
        order = []
        publisher = AuthenticationEventPublisher()
        publisher.add_authentication_listener(lambda event: order.append("first"))
        publisher.add_authentication_listener(lambda event: order.append("second"))

        publisher.publish(_after_login())

        assert order == ["first", "second"]

    def test_duplicate_registration_ignored(self) -> None:
        events = []
        publisher = AuthenticationEventPublisher()
        publisher.add_authentication_listener(events.append)
        publisher.add_authentication_listener(events.append)

        publisher.publish(_after_login())

        assert len(events) == 1

    def test_removed_listener_not_called(self) -> None:
        events = []
        publisher = AuthenticationEventPublisher()
        publisher.add_authentication_listener(events.append)
        publisher.remove_authentication_listener(events.append)

        publisher.publish(_after_login())

        assert events == []

    def test_error_listeners(self) -> None:
        failures = []
        publisher = AuthenticationEventPublisher()
        publisher.add_error_listener(failures.append)
        error = VaultLoginError(FailureDescription(ErrorCode.TIMEOUT_ERROR, "slow"))

        publisher.publish_error(LoginFailedEvent(error, "AppRoleAuthentication"))
        publisher.remove_error_listener(failures.append)
        publisher.publish_error(LoginFailedEvent(error, "AppRoleAuthentication"))

        assert len(failures) == 1
        assert failures[0].exception.code is ErrorCode.TIMEOUT_ERROR

    def test_non_callable_rejected(self) -> None:
        publisher = AuthenticationEventPublisher()
        with pytest.raises(TypeError):
            publisher.add_authentication_listener("listener")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            publisher.add_error_listener(None)  # type: ignore[arg-type]

    def test_failing_listener_is_skipped(self) -> None:
        seen: list[str] = []

        def broken(event: AfterLoginEvent) -> None:
            raise RuntimeError("listener failed")

        publisher = AuthenticationEventPublisher()
        publisher.add_authentication_listener(broken)
        publisher.add_authentication_listener(lambda event: seen.append(event.source))

        with capture_logs() as logs:
            publisher.publish(_after_login())

        assert seen == ["JwtAuthentication"]
        failed = [entry for entry in logs if entry["event"] == "events.listener_failed"]
        assert len(failed) == 1
        assert failed[0]["log_level"] == "error"
