"""
Result monad — the railway every login step runs on.

A Result[T] is either Success(value: T) or Failure(error: FailureDescription).
Login steps return Result, the interpreter chains them with .flat_map() and
the first failure short-circuits every remaining step:

    ┌──────────┐   flat_map    ┌──────────┐   flat_map    ┌──────────┐
    │ supplier │──Success──────│   map    │──Success──────│  login   │──→ Result[VaultToken]
    └────┬─────┘               └────┬─────┘               └────┬─────┘
         │ Failure                  │ Failure                  │ Failure
         └──────────────────────────┴──────────────────────────┴──→ Result[VaultToken]

Unlike a general-purpose Result, Success accepts None: the state threaded
through a login flow may legitimately be null (a JSON `null` body, a map
returning nothing).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from vault_login.railway.failure import ErrorCode, FailureDescription

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


class Result(Generic[T]):
    """
    Railway-Oriented Programming Result monad.

    Two possible states:
      - Success(value: T): the happy path
      - Failure(error: FailureDescription): the error track

        >>> Result.success(21).map(lambda x: x * 2).value()
        42
        >>> Result.failure(ErrorCode.PROTOCOL_ERROR, "no auth").map(lambda x: x).is_failure()
        True
    """

    # ──────────────────────── Introspection ────────────────────────

    def is_success(self) -> bool:
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def value(self) -> T:
        """Extract the success value. Raises ValueError if called on a Failure."""
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """Extract the failure description. Raises ValueError if called on a Success."""
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {type(v).__name__}")
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Core Transformations ────────────────────────

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        """Apply one of two functions depending on the state."""
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        """Transform the success value. Short-circuits on failure."""
        match self:
            case Success(v):
                return Success(mapper(v))
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def map_failure(
        self, mapper: Callable[[FailureDescription], FailureDescription]
    ) -> Result[T]:
        """
        Transform the failure description. Passes through success unchanged.

            result.map_failure(lambda err: err.with_context("Cannot login using JWT"))
        """
        match self:
            case Success(_):
                return self
            case Failure(err):
                return Failure(mapper(err))
        raise TypeError("unreachable")  # pragma: no cover

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """
        Chain a Result-returning function. Short-circuits on failure.

        This is the operator the step interpreter is built on: each step is a
        Result-returning function of the previous state.
        """
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Side Effects ────────────────────────

    def peek(self, action: Callable[[T], Any]) -> Result[T]:
        """Execute a side effect on the success value without altering the Result."""
        match self:
            case Success(v):
                action(v)
        return self

    def peek_failure(self, action: Callable[[FailureDescription], Any]) -> Result[T]:
        """Execute a side effect on failure without altering the Result."""
        match self:
            case Failure(err):
                action(err)
        return self

    # ──────────────────────── Exit ────────────────────────

    def get_or_else(self, default: T) -> T:
        match self:
            case Success(v):
                return v
            case _:
                return default

    def or_raise(self, exception_factory: Callable[[FailureDescription], BaseException]) -> T:
        """
        Leave the railway: return the success value or raise the exception
        built from the failure description.

        The original exception (if any) is chained as __cause__.
        """
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise exception_factory(err) from err.exception
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Static Factories ────────────────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure_from(error: FailureDescription) -> Result[T]:
        return Failure(error)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
        step: Optional[str] = None,
    ) -> Result[T]:
        """
        Create a failed Result with error code, message, optional exception and step.

            Result.failure(ErrorCode.PROTOCOL_ERROR, "Auth field must not be null", step="POST auth/jwt/login")
        """
        return Failure(
            FailureDescription(code=code, message=message, exception=exception, step=step)
        )

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Create a Result from a computation that may raise.

            return Result.from_computation(
                lambda: supplier(),
                ErrorCode.PROTOCOL_ERROR,
                "Supplier failed",
            )
        """
        try:
            return Result.success(computation())
        except Exception as e:
            return Result.failure(error_code, error_message, e)

    # ──────────────────────── Async Support ────────────────────────

    async def flat_map_async(self, mapper: Callable[[T], Awaitable[Result[U]]]) -> Result[U]:
        """
        Chain an async Result-returning function.

        asyncio.CancelledError is not an Exception and is never turned into a
        Failure: cancelling the awaiting task stops the chain.
        """
        match self:
            case Success(v):
                try:
                    return await mapper(v)
                except Exception as e:
                    return Failure(
                        FailureDescription(ErrorCode.UNKNOWN_ERROR, "Async operation failed", e)
                    )
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Dunder methods ────────────────────────

    def __bool__(self) -> bool:
        return self.is_success()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        match (self, other):
            case (Success(a), Success(b)):
                return a == b
            case (Failure(a), Failure(b)):
                return a.code == b.code and a.message == b.message
            case _:
                return False


@dataclass(frozen=True, slots=True)
class Success(Result[T]):
    """The success track — wraps the current state value."""

    _value: T

    def __init__(self, value: T) -> None:
        object.__setattr__(self, "_value", value)

    def __repr__(self) -> str:
        return f"Success({type(self._value).__name__})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Success):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Success", id(self._value)))


Success.__match_args__ = ("_value",)


@dataclass(frozen=True, slots=True)
class Failure(Result[T]):
    """The failure track — wraps a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)

    def __repr__(self) -> str:
        return f"Failure({self._error.code.value}: {self._error.message!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Failure):
            return self._error.code == other._error.code and self._error.message == other._error.message
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Failure", self._error.code, self._error.message))


Failure.__match_args__ = ("_error",)
