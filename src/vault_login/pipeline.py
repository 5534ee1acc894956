"""
Pipeline — the interpreter that turns AuthenticationSteps into a VaultToken.

Two drivers share one set of step semantics:

  AuthenticationStepsExecutor  blocking, runs on the caller's thread
  AuthenticationStepsOperator  asyncio, runs when the coroutine is awaited

Both thread a single state value through the steps on the ROP railway:

  UNDEFINED
    → plan_step(step₁, state) ─┬─ Result            (supplier / map / on_next)
                               └─ Exchange ─ driver → Result  (http request / login)
    → plan_step(step₂, state) ...
    → extract_token(state)     → Result[VaultToken]

plan_step() is pure with respect to I/O: it runs the synchronous step
callables and, for HTTP steps, only describes the Exchange to perform
(resolved URI, headers, body-or-state). Drivers differ solely in how they
perform the Exchange. The first failing step short-circuits all remaining
steps and token extraction.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

import httpx
import structlog

from vault_login.domain.models import VaultResponse, VaultToken
from vault_login.domain.ports import AsyncHttpTransport, HttpTransport
from vault_login.exceptions import VaultLoginError
from vault_login.railway.failure import ErrorCode
from vault_login.railway.result import Result
from vault_login.steps import (
    AuthenticationSteps,
    HttpRequest,
    HttpRequestStep,
    LoginStep,
    MapStep,
    OnNextStep,
    Step,
    SupplierStep,
)

log = structlog.get_logger()


class _Undefined:
    """State before the first step has run."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


@dataclass(frozen=True, slots=True)
class Exchange:
    """An HTTP call a driver has to perform to complete an HTTP step."""

    step: str
    method: str
    url: str
    headers: Mapping[str, str]
    body: Any
    response_type: type

    @staticmethod
    def of(step: Step, request: HttpRequest[Any], state: Any) -> Exchange:
        return Exchange(
            step=str(step),
            method=request.method,
            url=request.resolve_uri(),
            headers=dict(request.headers),
            body=_entity(request, state),
            response_type=request.response_type,
        )


# ──────────────────────── Shared step semantics ────────────────────────


def _as_input(state: Any) -> Any:
    """Callables never see the sentinel: UNDEFINED is presented as None."""
    return None if state is UNDEFINED else state


def _entity(request: HttpRequest[Any], state: Any) -> Any:
    """Explicit body wins; otherwise the current state; nothing before the first value."""
    if request.body is not None:
        return request.body
    return _as_input(state)


def _state_type(state: Any) -> str:
    return "undefined" if state is UNDEFINED else type(state).__name__


def _observe(consumer: Callable[[Any], Any], state: Any) -> Any:
    consumer(_as_input(state))
    return state


def _attempt(step: Step, state: Any, computation: Callable[[], Any]) -> Result[Any]:
    try:
        return Result.success(computation())
    except Exception as e:
        return Result.failure(
            ErrorCode.PROTOCOL_ERROR,
            f"Authentication execution failed in {step} with state of type {_state_type(state)}: {e}",
            e,
            step=str(step),
        )


def plan_step(step: Step, state: Any) -> Result[Any] | Exchange:
    """
    Apply one step to the current state.

    Supplier, map and on_next steps are evaluated immediately and yield a
    Result with the new state. HTTP and login steps yield the Exchange a
    driver must perform; its response body becomes the new state.
    """
    match step:
        case SupplierStep(supplier=supplier):
            return _attempt(step, state, supplier)
        case MapStep(mapper=mapper):
            return _attempt(step, state, lambda: mapper(_as_input(state)))
        case OnNextStep(consumer=consumer):
            return _attempt(step, state, lambda: _observe(consumer, state))
        case HttpRequestStep(request=request) | LoginStep(request=request):
            return Exchange.of(step, request, state)
    raise TypeError(f"Unsupported step: {step!r}")


def backend_error(body: str) -> str:
    """
    Extract the error text from a Vault error body.

    {"errors": ["invalid role"]} → "invalid role"; several errors render as
    a list; anything that is not such a JSON document is returned as-is.
    """
    if '"errors"' not in body:
        return body
    try:
        document = json.loads(body)
    except ValueError:
        return body
    errors = document.get("errors") if isinstance(document, dict) else None
    if not isinstance(errors, list):
        return body
    if len(errors) == 1:
        return str(errors[0])
    return str(errors)


def exchange_failure(exchange: Exchange, state: Any, error: Exception) -> Result[Any]:
    """Classify a failed exchange into the failure taxonomy."""
    state_type = _state_type(state)
    match error:
        case httpx.HTTPStatusError(response=response):
            code = (
                ErrorCode.EXTERNAL_SERVICE_ERROR
                if response.status_code >= 500
                else ErrorCode.AUTHENTICATION_ERROR
            )
            message = (
                f"HTTP request {exchange.step} in state {state_type} failed with status "
                f"{response.status_code} and body {backend_error(response.text)}"
            )
        case httpx.TimeoutException():
            code = ErrorCode.TIMEOUT_ERROR
            message = f"HTTP request {exchange.step} in state {state_type} timed out: {error}"
        case httpx.TransportError():
            code = ErrorCode.TRANSPORT_ERROR
            message = f"HTTP request {exchange.step} in state {state_type} failed: {error}"
        case _:
            code = ErrorCode.PROTOCOL_ERROR
            message = f"Authentication execution failed in {exchange.step} with state of type {state_type}: {error}"
    return Result.failure(code, message, error, step=exchange.step)


def extract_token(state: Any) -> Result[VaultToken]:
    """
    Terminal rule: a VaultToken passes through unchanged, a response with a
    non-null "auth" section is converted, anything else fails.
    """
    match state:
        case VaultToken():
            return Result.success(state)
        case Mapping() if "auth" in state:
            return extract_token(VaultResponse.from_json(state))
        case VaultResponse(auth=None):
            return Result.failure(ErrorCode.PROTOCOL_ERROR, "Auth field must not be null")
        case VaultResponse(auth=auth):
            return Result.from_computation(
                lambda: VaultToken.from_auth(auth),
                ErrorCode.PROTOCOL_ERROR,
                "Cannot create VaultToken from auth field",
            )
    return Result.failure(
        ErrorCode.PROTOCOL_ERROR,
        f"Cannot retrieve VaultToken from authentication steps. Got instead {_state_type(state)}",
    )


def _with_method(result: Result[VaultToken], method: str | None) -> Result[VaultToken]:
    if method is None:
        return result
    return result.map_failure(lambda failure: failure.with_context(f"Cannot login using {method}"))


def _executed(step: Step, result: Result[Any]) -> Result[Any]:
    return result.peek(lambda state: log.debug("steps.executed", step=str(step), state=_state_type(state)))


# ──────────────────────── Blocking driver ────────────────────────


class AuthenticationStepsExecutor:
    """
    Execute AuthenticationSteps on the calling thread.

    Implements the ClientAuthentication port. Each HTTP step blocks until
    the transport returns.

        executor = AuthenticationStepsExecutor(steps, HttpxTransport(client))
        token = executor.login()
    """

    def __init__(
        self,
        steps: AuthenticationSteps,
        transport: HttpTransport,
        method: str | None = None,
    ) -> None:
        self._steps = steps
        self._transport = transport
        self._method = method

    def try_login(self) -> Result[VaultToken]:
        """Run every step in order and return the token on the railway."""
        state: Result[Any] = Result.success(UNDEFINED)
        for step in self._steps:
            state = state.flat_map(partial(self._execute, step))
        return _with_method(state.flat_map(extract_token), self._method)

    def login(self) -> VaultToken:
        """Run the flow. Raises VaultLoginError with the triggering cause."""
        return self.try_login().or_raise(VaultLoginError.from_failure)

    def _execute(self, step: Step, state: Any) -> Result[Any]:
        log.debug("steps.executing", step=str(step), state=_state_type(state))
        planned = plan_step(step, state)
        if isinstance(planned, Exchange):
            planned = self._perform(planned, state)
        return _executed(step, planned)

    def _perform(self, exchange: Exchange, state: Any) -> Result[Any]:
        try:
            return Result.success(
                self._transport.exchange(
                    exchange.method,
                    exchange.url,
                    headers=exchange.headers,
                    body=exchange.body,
                    response_type=exchange.response_type,
                )
            )
        except Exception as e:
            return exchange_failure(exchange, state, e)


# ──────────────────────── Deferred driver ────────────────────────


class AuthenticationStepsOperator:
    """
    Execute AuthenticationSteps on the asyncio event loop.

    Implements the VaultTokenSupplier port. Nothing runs until the coroutine
    returned by get_vault_token() is awaited, and every call starts the
    flow from scratch; results are never memoized across calls. Cancelling
    the awaiting task while an HTTP step is in flight stops the flow: later
    steps and token extraction do not run.

        operator = AuthenticationStepsOperator(steps, AsyncHttpxTransport(client))
        token = await operator.get_vault_token()
    """

    def __init__(
        self,
        steps: AuthenticationSteps,
        transport: AsyncHttpTransport,
        method: str | None = None,
    ) -> None:
        self._steps = steps
        self._transport = transport
        self._method = method

    async def try_get_vault_token(self) -> Result[VaultToken]:
        state: Result[Any] = Result.success(UNDEFINED)
        for step in self._steps:
            state = await state.flat_map_async(partial(self._execute, step))
        return _with_method(state.flat_map(extract_token), self._method)

    async def get_vault_token(self) -> VaultToken:
        """Run the flow. Raises VaultLoginError with the triggering cause."""
        return (await self.try_get_vault_token()).or_raise(VaultLoginError.from_failure)

    async def _execute(self, step: Step, state: Any) -> Result[Any]:
        log.debug("steps.executing", step=str(step), state=_state_type(state))
        planned = plan_step(step, state)
        if isinstance(planned, Exchange):
            planned = await self._perform(planned, state)
        return _executed(step, planned)

    async def _perform(self, exchange: Exchange, state: Any) -> Result[Any]:
        try:
            return Result.success(
                await self._transport.exchange(
                    exchange.method,
                    exchange.url,
                    headers=exchange.headers,
                    body=exchange.body,
                    response_type=exchange.response_type,
                )
            )
        except Exception as e:
            return exchange_failure(exchange, state, e)
