"""
Unit tests for value suppliers: NonceCache, cached_supplier and file credentials.
"""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from vault_login.suppliers import (
    DEFAULT_KUBERNETES_SERVICE_ACCOUNT_TOKEN_FILE,
    NonceCache,
    ResourceCredentialSupplier,
    cached_supplier,
    create_nonce,
    kubernetes_service_account_token,
)


class TestNonceCache:
    """Verify set-once semantics."""

    def test_first_value_is_kept(self) -> None:
        cache: NonceCache[str] = NonceCache()
        assert not cache.is_set()

        assert cache.ensure(lambda: "first") == "first"
        assert cache.ensure(lambda: "second") == "first"
        assert cache.is_set()

    def test_generator_not_called_once_set(self) -> None:
        cache: NonceCache[str] = NonceCache()
        cache.ensure(lambda: "value")
        calls = []
        cache.ensure(lambda: calls.append(1) or "other")
        assert calls == []

    def test_racing_callers_observe_one_value(self) -> None:
        """
        GIVEN 16 threads calling ensure() at the same moment
        WHEN each generates its own candidate
        THEN all of them return the single published value.
        """
        cache: NonceCache[str] = NonceCache()
        barrier = threading.Barrier(16)

        def call() -> str:
            barrier.wait()
            return cache.ensure(create_nonce)

        with ThreadPoolExecutor(max_workers=16) as pool:
            values = set(pool.map(lambda _: call(), range(16)))

        assert len(values) == 1

    def test_reset(self) -> None:
        cache: NonceCache[str] = NonceCache()
        cache.ensure(lambda: "a")
        cache.reset()
        assert cache.ensure(lambda: "b") == "b"

    def test_failing_generator_leaves_cache_empty(self) -> None:
        cache: NonceCache[str] = NonceCache()

        def boom() -> str:
            raise RuntimeError("entropy")

        with pytest.raises(RuntimeError):
            cache.ensure(boom)
        assert not cache.is_set()


def test_create_nonce_is_a_uuid() -> None:
    assert uuid.UUID(create_nonce()).version == 4


def test_cached_supplier_runs_once() -> None:
    calls = []

    def supply() -> str:
        calls.append(1)
        return "value"

    cached = cached_supplier(supply)
    assert cached() == cached() == "value"
    assert len(calls) == 1


class TestResourceCredentialSupplier:
    """Verify file-backed credentials."""

    def test_reads_and_strips(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("  eyJhbGciOi\n", encoding="utf-8")
        assert ResourceCredentialSupplier(token_file)() == "eyJhbGciOi"

    def test_reads_on_every_call(self, tmp_path: Path) -> None:
        """
        GIVEN a token file that is rotated between calls
        WHEN the supplier is called twice
        THEN the second call sees the new content.
        """
        token_file = tmp_path / "token"
        supplier = ResourceCredentialSupplier(token_file)
        token_file.write_text("one", encoding="utf-8")
        assert supplier() == "one"
        token_file.write_text("two", encoding="utf-8")
        assert supplier() == "two"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Cannot obtain credential") as excinfo:
            ResourceCredentialSupplier(tmp_path / "missing")()
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_empty_file(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("\n", encoding="utf-8")
        with pytest.raises(ValueError, match="is empty"):
            ResourceCredentialSupplier(token_file)()

    def test_kubernetes_default_path(self) -> None:
        supplier = kubernetes_service_account_token()
        assert supplier.path == Path(DEFAULT_KUBERNETES_SERVICE_ACCOUNT_TOKEN_FILE)
        assert "serviceaccount/token" in repr(supplier)
