"""Secret store calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from daprsdk.utils import DaprError


@dataclass
class GetSecretRequest:
    """A request for one secret."""

    store_name: str
    key: str
    metadata: Optional[dict[str, str]] = None


@dataclass
class GetBulkSecretRequest:
    """A request for every secret in a store."""

    store_name: str
    metadata: Optional[dict[str, str]] = None


class SecretMixin:
    """Secret calls.

    Expects ``self._runtime.get_secret(request)`` to return a mapping of
    strings (or None) and ``self._runtime.get_bulk_secret(request)`` to return
    a mapping of secret names to such mappings (or None).
    """

    _runtime: Any

    def get_secret(
        self, store_name: str, key: str, meta: Optional[Mapping[str, str]] = None
    ) -> dict[str, str]:
        """Retrieve one secret from a store."""
        if not store_name:
            raise ValueError("empty storeName")
        if not key:
            raise ValueError("empty key")
        request = GetSecretRequest(
            store_name=store_name, key=key, metadata=None if meta is None else dict(meta)
        )
        try:
            data = self._runtime.get_secret(request)
        except Exception as exc:
            raise DaprError(f"error invoking service: {exc}") from exc
        return dict(data or {})

    def get_bulk_secret(
        self, store_name: str, meta: Optional[Mapping[str, str]] = None
    ) -> dict[str, dict[str, str]]:
        """Retrieve all secrets from a store."""
        if not store_name:
            raise ValueError("empty storeName")
        request = GetBulkSecretRequest(
            store_name=store_name, metadata=None if meta is None else dict(meta)
        )
        try:
            data = self._runtime.get_bulk_secret(request)
        except Exception as exc:
            raise DaprError(f"error invoking service: {exc}") from exc
        return {name: dict(secrets or {}) for name, secrets in (data or {}).items()}