"""State store calls and the types they exchange with the runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from daprsdk.utils import DaprError

UNDEFINED_TYPE = "undefined"


class _LabelledEnum(IntEnum):
    """An integer enum whose unknown values fall back to UNDEFINED."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, int):
            return cls(0)
        return None

    def __str__(self) -> str:
        if self.value == 0:
            return UNDEFINED_TYPE
        return self.name.lower().replace("_", "-")


class StateConsistency(_LabelledEnum):
    """Consistency level of a state operation."""

    UNDEFINED = 0
    EVENTUAL = 1
    STRONG = 2


class StateConcurrency(_LabelledEnum):
    """Concurrency mode of a state operation."""

    UNDEFINED = 0
    FIRST_WRITE = 1
    LAST_WRITE = 2


class OperationType(_LabelledEnum):
    """Kind of operation inside a state transaction."""

    UNDEFINED = 0
    UPSERT = 1
    DELETE = 2


@dataclass
class ETag:
    """Version information of a stored record."""

    value: str = ""


@dataclass
class StateOptions:
    """Persistence policy of a state operation."""

    concurrency: StateConcurrency = StateConcurrency.UNDEFINED
    consistency: StateConsistency = StateConsistency.UNDEFINED


StateOption = Callable[[StateOptions], None]


@dataclass
class StateItem:
    """A single state item read from a store."""

    key: str = ""
    value: Optional[bytes] = None
    etag: str = ""
    metadata: Optional[dict[str, str]] = None


@dataclass
class BulkStateItem:
    """One item of a bulk state read."""

    key: str = ""
    value: Optional[bytes] = None
    etag: str = ""
    metadata: Optional[dict[str, str]] = None
    error: str = ""


@dataclass
class SetStateItem:
    """A single state item to be persisted."""

    key: str = ""
    value: Optional[bytes] = None
    etag: Optional[ETag] = None
    metadata: Optional[dict[str, str]] = None
    options: Optional[StateOptions] = None


class DeleteStateItem(SetStateItem):
    """A single state item to be deleted."""


@dataclass
class StateOperation:
    """One operation of a state transaction."""

    type: OperationType
    item: SetStateItem


@dataclass
class QueryItem:
    """One result of a state query."""

    key: str = ""
    value: Optional[bytes] = None
    etag: str = ""
    error: str = ""


@dataclass
class QueryResponse:
    """The results of a state query."""

    results: list[QueryItem] = field(default_factory=list)
    token: str = ""
    metadata: Optional[dict[str, str]] = None


@dataclass
class Duration:
    """A span of time as whole seconds and remaining nanoseconds."""

    seconds: int = 0
    nanos: int = 0


@dataclass
class WireStateOptions:
    """State options as sent to the runtime."""

    concurrency: StateConcurrency = StateConcurrency.LAST_WRITE
    consistency: StateConsistency = StateConsistency.STRONG


@dataclass
class WireStateItem:
    """A state item as sent to the runtime."""

    key: str
    value: Optional[bytes] = None
    etag: Optional[str] = None
    metadata: Optional[dict[str, str]] = None
    options: WireStateOptions = field(default_factory=WireStateOptions)


@dataclass
class SaveStateRequest:
    """A request to save items in a store."""

    store_name: str
    states: list[WireStateItem] = field(default_factory=list)


@dataclass
class GetStateRequest:
    """A request to read one key."""

    store_name: str
    key: str
    consistency: StateConsistency = StateConsistency.UNDEFINED
    metadata: Optional[dict[str, str]] = None


@dataclass
class GetBulkStateRequest:
    """A request to read several keys."""

    store_name: str
    keys: list[str]
    metadata: Optional[dict[str, str]] = None
    parallelism: int = 0


@dataclass
class DeleteStateRequest:
    """A request to delete one key."""

    store_name: str
    key: str
    etag: Optional[str] = None
    options: WireStateOptions = field(default_factory=WireStateOptions)
    metadata: Optional[dict[str, str]] = None


@dataclass
class DeleteBulkStateRequest:
    """A request to delete several items."""

    store_name: str
    states: list[WireStateItem] = field(default_factory=list)


@dataclass
class TransactionalStateOperation:
    """One operation of a transaction as sent to the runtime."""

    operation_type: str
    request: WireStateItem


@dataclass
class ExecuteStateTransactionRequest:
    """A request to run several operations as one transaction."""

    store_name: str
    operations: list[TransactionalStateOperation] = field(default_factory=list)
    metadata: Optional[dict[str, str]] = None


@dataclass
class QueryStateRequest:
    """A request to run a query against a store."""

    store_name: str
    query: str
    metadata: Optional[dict[str, str]] = None


def _default_options() -> StateOptions:
    return StateOptions(
        concurrency=StateConcurrency.LAST_WRITE, consistency=StateConsistency.STRONG
    )


def _copy_meta(meta: Optional[Mapping[str, str]]) -> Optional[dict[str, str]]:
    return None if meta is None else dict(meta)


def with_concurrency(concurrency: StateConcurrency) -> StateOption:
    """Return an option that sets the concurrency mode."""

    def apply(options: StateOptions) -> None:
        options.concurrency = StateConcurrency(concurrency)

    return apply


def with_consistency(consistency: StateConsistency) -> StateOption:
    """Return an option that sets the consistency level."""

    def apply(options: StateOptions) -> None:
        options.consistency = StateConsistency(consistency)

    return apply


def to_wire_state_options(options: Optional[StateOptions]) -> WireStateOptions:
    """Convert options for the runtime; None gives last-write and strong."""
    if options is None:
        options = _default_options()
    return WireStateOptions(
        concurrency=StateConcurrency(options.concurrency),
        consistency=StateConsistency(options.consistency),
    )


def to_wire_state_item(item: SetStateItem) -> WireStateItem:
    """Convert an item to be saved for the runtime."""
    return WireStateItem(
        key=item.key,
        value=None if item.value is None else bytes(item.value),
        etag=None if item.etag is None else item.etag.value,
        metadata=_copy_meta(item.metadata),
        options=to_wire_state_options(item.options),
    )


def to_duration(delta: timedelta) -> Duration:
    """Split a time span into seconds and nanoseconds, both with the span's sign."""
    total = (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000
    sign = -1 if total < 0 else 1
    seconds = sign * (abs(total) // 1_000_000_000)
    return Duration(seconds=seconds, nanos=total - seconds * 1_000_000_000)


def _check_state_args(store_name: str, key: str) -> None:
    if not store_name:
        raise ValueError("missing required arguments: store")
    if not key:
        raise ValueError("missing required arguments: key")


class StateMixin:
    """State store calls.

    Expects ``self._runtime`` to provide ``save_state``, ``get_state`` (an
    object with ``value``, ``etag`` and ``metadata``), ``get_bulk_state``
    (an iterable of BulkStateItem or None), ``delete_state``,
    ``delete_bulk_state``, ``execute_state_transaction`` and
    ``query_state_alpha1`` (a QueryResponse), each taking the request object.
    """

    _runtime: Any

    def execute_state_transaction(
        self,
        store_name: str,
        meta: Optional[Mapping[str, str]],
        ops: Optional[Sequence[StateOperation]],
    ) -> None:
        """Run several operations on a store as one transaction."""
        if not store_name:
            raise ValueError("nil storeName")
        if not ops:
            return
        request = ExecuteStateTransactionRequest(
            store_name=store_name,
            operations=[
                TransactionalStateOperation(
                    operation_type=str(OperationType(op.type)),
                    request=to_wire_state_item(op.item),
                )
                for op in ops
            ],
            metadata=_copy_meta(meta),
        )
        try:
            self._runtime.execute_state_transaction(request)
        except Exception as exc:
            raise DaprError(f"error executing state transaction: {exc}") from exc

    def save_state(
        self,
        store_name: str,
        key: str,
        data: Optional[bytes],
        meta: Optional[Mapping[str, str]] = None,
        *args: StateOption,
    ) -> None:
        """Save raw data under a key; without options, strong and last-write."""
        self.save_state_with_etag(store_name, key, data, "", meta, *args)

    def save_state_with_etag(
        self,
        store_name: str,
        key: str,
        data: Optional[bytes],
        etag: str,
        meta: Optional[Mapping[str, str]] = None,
        *args: StateOption,
    ) -> None:
        """Save raw data under a key with an etag and the given options."""
        options = StateOptions()
        for apply in args:
            apply(options)
        if not args:
            options = _default_options()
        item = SetStateItem(
            key=key,
            value=None if data is None else bytes(data),
            etag=ETag(etag) if etag else None,
            metadata=_copy_meta(meta),
            options=options,
        )
        self.save_bulk_state(store_name, item)

    def save_bulk_state(self, store_name: str, *args: SetStateItem) -> None:
        """Save several items to a store."""
        if not store_name:
            raise ValueError("nil store")
        if not args:
            raise ValueError("nil item")
        request = SaveStateRequest(
            store_name=store_name, states=[to_wire_state_item(item) for item in args]
        )
        try:
            self._runtime.save_state(request)
        except Exception as exc:
            raise DaprError(f"error saving state: {exc}") from exc

    def get_bulk_state(
        self,
        store_name: str,
        keys: Sequence[str],
        meta: Optional[Mapping[str, str]] = None,
        parallelism: int = 0,
    ) -> list[BulkStateItem]:
        """Read several keys from a store."""
        if not store_name:
            raise ValueError("nil store")
        if not keys:
            raise ValueError("keys required")
        request = GetBulkStateRequest(
            store_name=store_name,
            keys=list(keys),
            metadata=_copy_meta(meta),
            parallelism=parallelism,
        )
        try:
            results: Optional[Iterable[BulkStateItem]] = self._runtime.get_bulk_state(request)
        except Exception as exc:
            raise DaprError(f"error getting state: {exc}") from exc
        return [
            BulkStateItem(
                key=r.key,
                value=r.value,
                etag=r.etag,
                metadata=r.metadata,
                error=r.error,
            )
            for r in results or ()
        ]

    def get_state(
        self, store_name: str, key: str, meta: Optional[Mapping[str, str]] = None
    ) -> StateItem:
        """Read one key with strong consistency."""
        return self.get_state_with_consistency(
            store_name, key, meta, StateConsistency.STRONG
        )

    def get_state_with_consistency(
        self,
        store_name: str,
        key: str,
        meta: Optional[Mapping[str, str]],
        consistency: StateConsistency,
    ) -> StateItem:
        """Read one key with the given consistency."""
        _check_state_args(store_name, key)
        request = GetStateRequest(
            store_name=store_name,
            key=key,
            consistency=StateConsistency(consistency),
            metadata=_copy_meta(meta),
        )
        try:
            result = self._runtime.get_state(request)
        except Exception as exc:
            raise DaprError(f"error getting state: {exc}") from exc
        return StateItem(
            key=key, value=result.value, etag=result.etag, metadata=result.metadata
        )

    def query_state_alpha1(
        self, store_name: str, query: str, meta: Optional[Mapping[str, str]] = None
    ) -> QueryResponse:
        """Run a query against a store."""
        if not store_name:
            raise ValueError("store name is not set")
        if not query:
            raise ValueError("query is not set")
        request = QueryStateRequest(
            store_name=store_name, query=query, metadata=_copy_meta(meta)
        )
        try:
            response = self._runtime.query_state_alpha1(request)
        except Exception as exc:
            raise DaprError(f"error querying state: {exc}") from exc
        return QueryResponse(
            results=[
                QueryItem(key=r.key, value=r.value, etag=r.etag, error=r.error)
                for r in response.results
            ],
            token=response.token,
            metadata=response.metadata,
        )

    def delete_state(
        self, store_name: str, key: str, meta: Optional[Mapping[str, str]] = None
    ) -> None:
        """Delete one key with the default options."""
        self.delete_state_with_etag(store_name, key, None, meta, None)

    def delete_state_with_etag(
        self,
        store_name: str,
        key: str,
        etag: Optional[ETag],
        meta: Optional[Mapping[str, str]],
        options: Optional[StateOptions],
    ) -> None:
        """Delete one key with an etag and the given options."""
        _check_state_args(store_name, key)
        request = DeleteStateRequest(
            store_name=store_name,
            key=key,
            etag=None if etag is None else etag.value,
            options=to_wire_state_options(options),
            metadata=_copy_meta(meta),
        )
        try:
            self._runtime.delete_state(request)
        except Exception as exc:
            raise DaprError(f"error deleting state: {exc}") from exc

    def delete_bulk_state(
        self,
        store_name: str,
        keys: Optional[Sequence[str]],
        meta: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Delete several keys from a store."""
        if not keys:
            return
        items = [DeleteStateItem(key=key, metadata=_copy_meta(meta)) for key in keys]
        self.delete_bulk_state_items(store_name, items)

    def delete_bulk_state_items(
        self, store_name: str, items: Optional[Sequence[DeleteStateItem]]
    ) -> None:
        """Delete several items, each with its own etag and options."""
        if not items:
            return
        states = []
        for item in items:
            _check_state_args(store_name, item.key)
            states.append(
                WireStateItem(
                    key=item.key,
                    etag=None if item.etag is None else item.etag.value,
                    metadata=_copy_meta(item.metadata),
                    options=to_wire_state_options(item.options),
                )
            )
        self._runtime.delete_bulk_state(
            DeleteBulkStateRequest(store_name=store_name, states=states)
        )