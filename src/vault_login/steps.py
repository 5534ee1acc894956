"""
Authentication steps — a declarative description of a login flow.

A login flow is a strictly linear sequence of steps, each one a variant of
a closed tagged union:

  SupplierStep     produce a value from nothing (input state is ignored)
  MapStep          pure transform of the current state
  OnNextStep       side-effecting observer, state passes through unchanged
  HttpRequestStep  HTTP call derived from the current state, state := response body
  LoginStep        terminal HTTP call whose response carries an "auth" section

Flows are built with a fluent, append-only API and never perform I/O
while being built:

    steps = (
        AuthenticationSteps.from_supplier(read_jwt)
        .map(lambda jwt: {"jwt": jwt, "role": "my-role"})
        .login("auth/{mount}/login", "jwt")
    )

Every chaining call returns a new Node; the step tuple of the previous
Node is never mutated, so partially built flows can be shared and extended
independently. Executing a flow is the job of vault_login.pipeline.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Generic, TypeAlias, TypeVar
from urllib.parse import quote

from vault_login.domain.models import VaultResponse, VaultToken
from vault_login.exceptions import InvalidAuthenticationStepsError

T = TypeVar("T")
R = TypeVar("R")

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidAuthenticationStepsError(message)


def _describe(function: Callable[..., Any]) -> str:
    return getattr(function, "__qualname__", None) or repr(function)


# ──────────────────────── HTTP request definitions ────────────────────────


@dataclass(frozen=True, slots=True)
class HttpRequest(Generic[T]):
    """
    Immutable definition of one HTTP exchange.

    The target is either a URI template with positional variables
    (`auth/{mount}/login`, `"jwt"`) or a resolved URI, never both.
    `body` is the explicit request entity; when it is None the
    interpreter sends the current state instead.
    """

    method: str
    response_type: type
    uri_template: str | None = None
    uri_variables: tuple[str, ...] = ()
    uri: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        _require(bool(self.method), "HTTP method must not be empty")
        _require(
            not (self.uri is not None and self.uri_template is not None),
            "uri and uri_template are mutually exclusive",
        )
        _require(bool(self.uri or self.uri_template), "Either uri or uri_template must be set")
        if self.uri_template is not None:
            placeholders = _PLACEHOLDER.findall(self.uri_template)
            _require(
                len(placeholders) == len(self.uri_variables),
                f"URI template {self.uri_template!r} expects {len(placeholders)} "
                f"variable(s), got {len(self.uri_variables)}",
            )
        elif self.uri_variables:
            raise InvalidAuthenticationStepsError("uri_variables require a uri_template")
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def resolve_uri(self) -> str:
        """
        Expand the URI template with its variables, in order.

        Variables are percent-encoded except for characters that are legal
        inside a path or query component (`/`, `:`, `@`), so mount paths
        such as `kubernetes/cluster-1` stay intact.
        """
        if self.uri is not None:
            return self.uri
        if self.uri_template is None:
            raise InvalidAuthenticationStepsError("HttpRequest needs a uri or a uri_template")
        variables = iter(self.uri_variables)
        return _PLACEHOLDER.sub(lambda _: quote(str(next(variables)), safe="/:@"), self.uri_template)

    def __str__(self) -> str:
        target = self.uri if self.uri is not None else self.uri_template
        return f"{self.method} {target} AS {self.response_type.__name__}"


@dataclass(frozen=True, slots=True)
class HttpRequestBuilder:
    """
    Fluent builder for HttpRequest.

        HttpRequestBuilder.get("http://metadata/{path}", "identity") \\
            .with_headers({"Metadata-Flavor": "Google"}) \\
            .as_type(str)
    """

    method: str
    uri_template: str | None = None
    uri_variables: tuple[str, ...] = ()
    uri: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        _require(
            not (self.uri is not None and self.uri_template is not None),
            "uri and uri_template are mutually exclusive",
        )

    @staticmethod
    def get(uri_template: str, *uri_variables: str) -> HttpRequestBuilder:
        return HttpRequestBuilder.of("GET", uri_template, *uri_variables)

    @staticmethod
    def get_uri(uri: str) -> HttpRequestBuilder:
        _require(bool(uri), "URI must not be empty")
        return HttpRequestBuilder(method="GET", uri=uri)

    @staticmethod
    def post(uri_template: str, *uri_variables: str) -> HttpRequestBuilder:
        return HttpRequestBuilder.of("POST", uri_template, *uri_variables)

    @staticmethod
    def post_uri(uri: str) -> HttpRequestBuilder:
        _require(bool(uri), "URI must not be empty")
        return HttpRequestBuilder(method="POST", uri=uri)

    @staticmethod
    def of(method: str, uri_template: str, *uri_variables: str) -> HttpRequestBuilder:
        _require(bool(uri_template), "URI template must not be empty")
        return HttpRequestBuilder(method=method, uri_template=uri_template, uri_variables=tuple(uri_variables))

    def with_headers(self, headers: Mapping[str, str]) -> HttpRequestBuilder:
        """Return a builder with `headers` merged over the current ones."""
        return replace(self, headers=MappingProxyType({**self.headers, **headers}))

    def with_body(self, body: Any) -> HttpRequestBuilder:
        _require(body is not None, "Body must not be None")
        return replace(self, body=body)

    def as_type(self, response_type: type[R]) -> HttpRequest[R]:
        return HttpRequest(
            method=self.method,
            response_type=response_type,
            uri_template=self.uri_template,
            uri_variables=self.uri_variables,
            uri=self.uri,
            headers=self.headers,
            body=self.body,
        )


# ──────────────────────── Step variants ────────────────────────


@dataclass(frozen=True, slots=True)
class SupplierStep:
    supplier: Callable[[], Any]
    description: str

    def __str__(self) -> str:
        return f"Supplier: {self.description}"


@dataclass(frozen=True, slots=True)
class MapStep:
    mapper: Callable[[Any], Any]
    description: str

    def __str__(self) -> str:
        return f"Map: {self.description}"


@dataclass(frozen=True, slots=True)
class OnNextStep:
    consumer: Callable[[Any], Any]
    description: str

    def __str__(self) -> str:
        return f"OnNext: {self.description}"


@dataclass(frozen=True, slots=True)
class HttpRequestStep:
    request: HttpRequest[Any]

    def __str__(self) -> str:
        return str(self.request)


@dataclass(frozen=True, slots=True)
class LoginStep:
    request: HttpRequest[VaultResponse]

    def __str__(self) -> str:
        return f"Login: {self.request}"


Step: TypeAlias = SupplierStep | MapStep | OnNextStep | HttpRequestStep | LoginStep


# ──────────────────────── Fluent construction ────────────────────────


class Node(Generic[T]):
    """
    An intermediate, not yet terminated login flow whose current state is a T.

    Chaining methods append one step and return a new Node; `login*`
    methods append the terminal step and return AuthenticationSteps.
    """

    __slots__ = ("_steps",)

    def __init__(self, steps: tuple[Step, ...]) -> None:
        self._steps = steps

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    def map(self, mapper: Callable[[T], R]) -> Node[R]:
        _require(callable(mapper), "Mapping function must not be None")
        return Node(self._steps + (MapStep(mapper, _describe(mapper)),))

    def on_next(self, consumer: Callable[[T], Any]) -> Node[T]:
        _require(callable(consumer), "Consumer function must not be None")
        return Node(self._steps + (OnNextStep(consumer, _describe(consumer)),))

    def request(self, request: HttpRequest[R]) -> Node[R]:
        _require(isinstance(request, HttpRequest), "HttpRequest must not be None")
        return Node(self._steps + (HttpRequestStep(request),))

    def login(self, uri_template: str, *uri_variables: str) -> AuthenticationSteps:
        """Terminate with `POST uri_template` expecting a VaultResponse."""
        _require(bool(uri_template), "URI template must not be empty")
        return self.login_request(HttpRequestBuilder.post(uri_template, *uri_variables).as_type(VaultResponse))

    def login_request(self, request: HttpRequest[VaultResponse]) -> AuthenticationSteps:
        _require(isinstance(request, HttpRequest), "HttpRequest must not be None")
        return AuthenticationSteps(self._steps + (LoginStep(request),))

    def login_map(self, mapper: Callable[[T], VaultToken]) -> AuthenticationSteps:
        """Terminate with a transform that produces the VaultToken itself."""
        _require(callable(mapper), "Mapping function must not be None")
        return AuthenticationSteps(self._steps + (MapStep(mapper, _describe(mapper)),))

    def __repr__(self) -> str:
        return f"Node({', '.join(str(step) for step in self._steps)})"


@dataclass(frozen=True, slots=True)
class AuthenticationSteps:
    """
    A complete, immutable login flow: steps in execution order.

    Entry points:
      just(token)                 flow that yields a fixed token
      just(request)               flow consisting of a single login request
      from_value(value)           Node starting with a fixed value
      from_supplier(supplier)     Node starting with a supplied value
      from_http_request(request)  Node starting with an HTTP response
    """

    steps: tuple[Step, ...]

    def __post_init__(self) -> None:
        _require(len(self.steps) > 0, "Authentication steps must not be empty")

    @staticmethod
    def just(token_or_request: VaultToken | HttpRequest[VaultResponse]) -> AuthenticationSteps:
        match token_or_request:
            case VaultToken():
                return AuthenticationSteps.from_value(token_or_request).login_map(lambda token: token)
            case HttpRequest():
                return AuthenticationSteps((LoginStep(token_or_request),))
        raise InvalidAuthenticationStepsError("Expected a VaultToken or an HttpRequest")

    @staticmethod
    def from_value(value: T) -> Node[T]:
        _require(value is not None, "Value must not be None")
        return Node((SupplierStep(lambda: value, f"Value {type(value).__name__}"),))

    @staticmethod
    def from_supplier(supplier: Callable[[], T]) -> Node[T]:
        _require(callable(supplier), "Supplier must not be None")
        return Node((SupplierStep(supplier, _describe(supplier)),))

    @staticmethod
    def from_http_request(request: HttpRequest[T]) -> Node[T]:
        _require(isinstance(request, HttpRequest), "HttpRequest must not be None")
        return Node((HttpRequestStep(request),))

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __str__(self) -> str:
        return " -> ".join(str(step) for step in self.steps)
