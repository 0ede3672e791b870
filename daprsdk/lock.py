"""Distributed lock calls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

from daprsdk.utils import DaprError


class UnlockStatus(IntEnum):
    """Outcome of an unlock operation."""

    SUCCESS = 0
    LOCK_DOES_NOT_EXIST = 1
    LOCK_BELONGS_TO_OTHERS = 2
    INTERNAL_ERROR = 3


@dataclass
class LockRequest:
    """A request to acquire a lock."""

    resource_id: str = ""
    lock_owner: str = ""
    expiry_in_seconds: int = 0


@dataclass
class UnlockRequest:
    """A request to release a lock."""

    resource_id: str = ""
    lock_owner: str = ""


@dataclass
class LockResponse:
    """Whether the lock was acquired."""

    success: bool


@dataclass
class UnlockResponse:
    """The numeric status of an unlock and its name ('' if unknown)."""

    status_code: int
    status: str


@dataclass
class TryLockStoreRequest:
    """A lock request addressed to a lock store."""

    resource_id: str
    lock_owner: str
    expiry_in_seconds: int
    store_name: str


@dataclass
class UnlockStoreRequest:
    """An unlock request addressed to a lock store."""

    resource_id: str
    lock_owner: str
    store_name: str


def _status_name(code: int) -> str:
    try:
        return UnlockStatus(code).name
    except ValueError:
        return ""


class LockMixin:
    """Lock calls.

    Expects ``self._runtime.try_lock_alpha1(request)`` to return whether the
    lock was acquired and ``self._runtime.unlock_alpha1(request)`` to return
    the numeric unlock status.
    """

    _runtime: Any

    def try_lock_alpha1(self, store_name: str, request: Optional[LockRequest]) -> LockResponse:
        """Attempt to acquire a lock from a lock store."""
        if not store_name:
            raise ValueError("storeName is empty")
        if request is None:
            raise ValueError("request is nil")
        wire = TryLockStoreRequest(
            resource_id=request.resource_id,
            lock_owner=request.lock_owner,
            expiry_in_seconds=request.expiry_in_seconds,
            store_name=store_name,
        )
        try:
            success = self._runtime.try_lock_alpha1(wire)
        except Exception as exc:
            raise DaprError(f"error getting lock: {exc}") from exc
        return LockResponse(success=bool(success))

    def unlock_alpha1(self, store_name: str, request: Optional[UnlockRequest]) -> UnlockResponse:
        """Release a lock held in a lock store."""
        if not store_name:
            raise ValueError("storeName is empty")
        if request is None:
            raise ValueError("request is nil")
        wire = UnlockStoreRequest(
            resource_id=request.resource_id,
            lock_owner=request.lock_owner,
            store_name=store_name,
        )
        try:
            status = self._runtime.unlock_alpha1(wire)
        except Exception as exc:
            raise DaprError(f"error getting lock: {exc}") from exc
        code = int(status)
        return UnlockResponse(status_code=code, status=_status_name(code))