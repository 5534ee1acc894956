"""
Value suppliers: zero-argument callables that produce credentials on demand.

  NonceCache                     set-once value shared by every caller for the process lifetime
  cached_supplier(supplier)      memoize a supplier on top of a NonceCache
  ResourceCredentialSupplier     read a credential from a file on every call
  kubernetes_service_account_token()  the pod's projected service account JWT

Suppliers are handed to AuthenticationSteps.from_supplier() or to method
options; the login flow only relies on their zero-argument contract.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

import structlog

T = TypeVar("T")

log = structlog.get_logger()

DEFAULT_KUBERNETES_SERVICE_ACCOUNT_TOKEN_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/token"

_EMPTY = object()


class NonceCache(Generic[T]):
    """
    Holds one value, written at most once.

    ensure(generator) behaves like a compare-and-set from empty to
    generator(): the generator runs outside the lock, so racing first callers
    may each generate a candidate, but only the first candidate to be
    published is kept. Losers discard theirs and return the winner's value.

        nonce = NonceCache[str]()
        nonce.ensure(lambda: str(uuid.uuid4()))  # same value on every call
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: object = _EMPTY

    def ensure(self, generator: Callable[[], T]) -> T:
        current = self._value
        if current is not _EMPTY:
            return current  # type: ignore[return-value]

        candidate = generator()
        with self._lock:
            if self._value is _EMPTY:
                self._value = candidate
            elif self._value is not candidate:
                log.debug("nonce_cache.candidate_discarded")
            return self._value  # type: ignore[return-value]

    def is_set(self) -> bool:
        return self._value is not _EMPTY

    def reset(self) -> None:
        with self._lock:
            self._value = _EMPTY


def create_nonce() -> str:
    return str(uuid.uuid4())


def cached_supplier(supplier: Callable[[], T]) -> Callable[[], T]:
    """Wrap `supplier` so it runs at most once per successful first use."""
    cache: NonceCache[T] = NonceCache()

    def supply() -> T:
        return cache.ensure(supplier)

    supply.__qualname__ = f"cached({getattr(supplier, '__qualname__', repr(supplier))})"
    return supply


class ResourceCredentialSupplier:
    """
    Read a credential from a file, stripping surrounding whitespace.

    The file is read on every call so rotated credentials (projected
    service account tokens) are picked up; wrap with cached_supplier()
    to read once.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self) -> str:
        try:
            content = self._path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ValueError(f"Cannot obtain credential from {self._path}: {e}") from e
        if not content:
            raise ValueError(f"Credential file {self._path} is empty")
        log.debug("credential.loaded", path=str(self._path))
        return content

    def __repr__(self) -> str:
        return f"ResourceCredentialSupplier({str(self._path)!r})"


def kubernetes_service_account_token(
    path: str | Path = DEFAULT_KUBERNETES_SERVICE_ACCOUNT_TOKEN_FILE,
) -> ResourceCredentialSupplier:
    return ResourceCredentialSupplier(path)
