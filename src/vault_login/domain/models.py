"""
Domain models — immutable value objects exchanged by login flows.

  - VaultToken: the credential a successful login produces, with lease metadata
  - VaultResponse: the generic JSON envelope Vault answers with; login
    responses carry an "auth" section the token is built from

All models are frozen dataclasses. VaultToken never renders the secret in
its repr so tokens can be logged safely by accident.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any


@dataclass(frozen=True, slots=True)
class VaultToken:
    """
    Opaque Vault credential plus optional lease metadata.

    `token` is the identifier sent as X-Vault-Token. Tokens created through
    VaultToken.of() carry no lease metadata (not renewable, zero TTL).
    """

    token: str = field(repr=False)
    accessor: str | None = None
    renewable: bool = False
    lease_duration: timedelta = timedelta(0)
    token_type: str | None = None

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("Token must not be empty")

    @staticmethod
    def of(token: str) -> VaultToken:
        return VaultToken(token=token)

    @staticmethod
    def from_auth(auth: Mapping[str, Any]) -> VaultToken:
        """
        Build a token from the "auth" section of a login response.

            {"client_token": "s.123", "accessor": "a.9", "renewable": true,
             "lease_duration": 3600, "token_type": "service"}

        Raises ValueError if client_token is absent or empty.
        """
        client_token = auth.get("client_token")
        if not isinstance(client_token, str) or not client_token:
            raise ValueError("Auth section does not contain a client_token")
        return VaultToken(
            token=client_token,
            accessor=auth.get("accessor"),
            renewable=bool(auth.get("renewable", False)),
            lease_duration=timedelta(seconds=int(auth.get("lease_duration") or 0)),
            token_type=auth.get("token_type"),
        )

    @property
    def ttl_seconds(self) -> int:
        return int(self.lease_duration.total_seconds())


@dataclass(frozen=True, slots=True)
class VaultResponse:
    """
    The JSON envelope returned by Vault API endpoints.

    Only `auth` matters to the token extraction rule; the remaining
    sections are kept so steps can read data (cubbyhole) or metadata.
    """

    auth: Mapping[str, Any] | None = None
    data: Mapping[str, Any] | None = None
    metadata: Mapping[str, Any] | None = None
    wrap_info: Mapping[str, Any] | None = None
    warnings: list[str] | None = None
    lease_id: str | None = None
    lease_duration: int = 0
    renewable: bool = False
    request_id: str | None = None

    @staticmethod
    def from_json(payload: Mapping[str, Any]) -> VaultResponse:
        """Build from a decoded JSON object, ignoring unknown keys."""
        if not isinstance(payload, Mapping):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
        return VaultResponse(
            auth=payload.get("auth"),
            data=payload.get("data"),
            metadata=payload.get("metadata"),
            wrap_info=payload.get("wrap_info"),
            warnings=payload.get("warnings"),
            lease_id=payload.get("lease_id"),
            lease_duration=int(payload.get("lease_duration") or 0),
            renewable=bool(payload.get("renewable", False)),
            request_id=payload.get("request_id"),
        )

    @property
    def auth_metadata(self) -> Mapping[str, Any]:
        """auth.metadata, e.g. instance_id or service_account_email; empty if absent."""
        if not self.auth:
            return {}
        metadata = self.auth.get("metadata")
        return metadata if isinstance(metadata, Mapping) else {}

    def to_json(self) -> dict[str, Any]:
        """The JSON object form; absent sections are left out."""
        sections = {
            "auth": self.auth,
            "data": self.data,
            "metadata": self.metadata,
            "wrap_info": self.wrap_info,
        }
        payload: dict[str, Any] = {key: dict(value) for key, value in sections.items() if value is not None}
        if self.warnings is not None:
            payload["warnings"] = list(self.warnings)
        if self.lease_id is not None:
            payload["lease_id"] = self.lease_id
        if self.request_id is not None:
            payload["request_id"] = self.request_id
        payload["lease_duration"] = self.lease_duration
        payload["renewable"] = self.renewable
        return payload
