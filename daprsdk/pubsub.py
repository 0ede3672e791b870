"""Publishing events to pub/sub topics through the runtime."""

from __future__ import annotations

import uuid
import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from daprsdk.utils import DaprError, is_cloud_event, to_json_bytes

RAW_PAYLOAD = "rawPayload"
_TRUE_VALUE = "true"

_JSON = "application/json"
_CLOUD_EVENT_JSON = "application/cloudevents+json"
_OCTET_STREAM = "application/octet-stream"
_TEXT_PLAIN = "text/plain"


@dataclass
class PublishEventRequest:
    """A single event addressed to a topic."""

    pubsub_name: str
    topic: str
    data: Optional[bytes] = None
    data_content_type: str = ""
    metadata: Optional[dict[str, str]] = None


@dataclass
class BulkPublishRequestEntry:
    """One event of a bulk publish request."""

    entry_id: str = ""
    event: bytes = b""
    content_type: str = ""
    metadata: Optional[dict[str, str]] = None


@dataclass
class BulkPublishRequest:
    """Several events addressed to one topic."""

    pubsub_name: str
    topic: str
    entries: list[BulkPublishRequestEntry] = field(default_factory=list)
    metadata: Optional[dict[str, str]] = None


@dataclass
class PublishEventsEvent:
    """An event with an explicit entry id, content type and metadata."""

    entry_id: str = ""
    data: bytes = b""
    content_type: str = ""
    metadata: Optional[dict[str, str]] = None


@dataclass
class PublishEventsResponse:
    """The outcome of a bulk publish: an error, if any, and the events that failed."""

    error: Optional[Exception] = None
    failed_events: list[Any] = field(default_factory=list)


PublishEventOption = Callable[[PublishEventRequest], None]
PublishEventsOption = Callable[[BulkPublishRequest], None]


def publish_event_with_content_type(content_type: str) -> PublishEventOption:
    """Return an option that sets an explicit content type."""

    def apply(request: PublishEventRequest) -> None:
        request.data_content_type = content_type

    return apply


def publish_event_with_metadata(metadata: Mapping[str, str]) -> PublishEventOption:
    """Return an option that sets the event metadata."""

    def apply(request: PublishEventRequest) -> None:
        request.metadata = dict(metadata)

    return apply


def publish_event_with_raw_payload() -> PublishEventOption:
    """Return an option that marks the event as a raw payload."""

    def apply(request: PublishEventRequest) -> None:
        if request.metadata is None:
            request.metadata = {}
        request.metadata[RAW_PAYLOAD] = _TRUE_VALUE

    return apply


def publish_events_with_content_type(content_type: str) -> PublishEventsOption:
    """Return an option that sets the same content type on every entry."""

    def apply(request: BulkPublishRequest) -> None:
        for entry in request.entries:
            entry.content_type = content_type

    return apply


def publish_events_with_metadata(metadata: Mapping[str, str]) -> PublishEventsOption:
    """Return an option that sets the request metadata."""

    def apply(request: BulkPublishRequest) -> None:
        request.metadata = dict(metadata)

    return apply


def publish_events_with_raw_payload() -> PublishEventsOption:
    """Return an option that marks the request as a raw payload."""

    def apply(request: BulkPublishRequest) -> None:
        if request.metadata is None:
            request.metadata = {}
        request.metadata[RAW_PAYLOAD] = _TRUE_VALUE

    return apply


def create_bulk_publish_request_entry(data: Any) -> BulkPublishRequestEntry:
    """Build a bulk publish entry, choosing the content type from the data."""
    entry = BulkPublishRequestEntry()
    if isinstance(data, PublishEventsEvent):
        entry.entry_id = data.entry_id
        entry.event = bytes(data.data)
        entry.content_type = data.content_type
        entry.metadata = None if data.metadata is None else dict(data.metadata)
    elif isinstance(data, (bytes, bytearray, memoryview)):
        entry.event = bytes(data)
        entry.content_type = _OCTET_STREAM
    elif isinstance(data, str):
        entry.event = data.encode("utf-8")
        entry.content_type = _TEXT_PLAIN
    else:
        entry.event = to_json_bytes(data)
        entry.content_type = _CLOUD_EVENT_JSON if is_cloud_event(entry.event) else _JSON
    if not entry.entry_id:
        entry.entry_id = str(uuid.uuid4())
    return entry


class PubSubMixin:
    """Pub/sub calls.

    Expects ``self._runtime.publish_event(request)`` to publish one event and
    ``self._runtime.bulk_publish_event_alpha1(request)`` to return the entry
    ids of the entries that failed to publish.
    """

    _runtime: Any

    def publish_event(
        self, pubsub_name: str, topic_name: str, data: Any, *args: PublishEventOption
    ) -> None:
        """Publish data onto a topic; values other than bytes and str are sent as JSON."""
        if not pubsub_name:
            raise ValueError("pubsubName name required")
        if not topic_name:
            raise ValueError("topic name required")
        request = PublishEventRequest(pubsub_name=pubsub_name, topic=topic_name)
        for apply in args:
            apply(request)

        if data is not None:
            if isinstance(data, (bytes, bytearray, memoryview)):
                request.data = bytes(data)
            elif isinstance(data, str):
                request.data = data.encode("utf-8")
            else:
                request.data_content_type = _JSON
                request.data = to_json_bytes(data)

        try:
            self._runtime.publish_event(request)
        except Exception as exc:
            raise DaprError(f"error publishing event unto {topic_name} topic: {exc}") from exc

    def publish_event_from_custom_content(
        self, pubsub_name: str, topic_name: str, data: Any
    ) -> None:
        """Serialize data as JSON and publish it. Deprecated: use publish_event."""
        warnings.warn(
            "publish_event_from_custom_content is deprecated; use publish_event instead",
            DeprecationWarning,
            stacklevel=2,
        )
        encoded = to_json_bytes(data)
        self.publish_event(
            pubsub_name, topic_name, encoded, publish_event_with_content_type(_JSON)
        )

    def publish_events(
        self,
        pubsub_name: str,
        topic_name: str,
        events: Optional[Sequence[Any]],
        *args: PublishEventsOption,
    ) -> PublishEventsResponse:
        """Publish several events onto a topic, reporting those that failed."""
        events = list(events or ())
        if not pubsub_name:
            return PublishEventsResponse(
                error=ValueError("pubsubName name required"), failed_events=events
            )
        if not topic_name:
            return PublishEventsResponse(
                error=ValueError("topic name required"), failed_events=events
            )

        failed: list[Any] = []
        by_id: dict[str, Any] = {}
        entries: list[BulkPublishRequestEntry] = []
        for event in events:
            try:
                entry = create_bulk_publish_request_entry(event)
            except DaprError:
                failed.append(event)
                continue
            by_id[entry.entry_id] = event
            entries.append(entry)

        request = BulkPublishRequest(pubsub_name=pubsub_name, topic=topic_name, entries=entries)
        for apply in args:
            apply(request)

        try:
            failed_ids: Optional[Iterable[str]] = self._runtime.bulk_publish_event_alpha1(request)
        except Exception as exc:
            return PublishEventsResponse(
                error=DaprError(f"error publishing events unto {topic_name} topic: {exc}"),
                failed_events=events,
            )

        for entry_id in failed_ids or ():
            failed.append(by_id.get(entry_id, entry_id))

        if failed:
            return PublishEventsResponse(
                error=DaprError(
                    f"error publishing events unto {topic_name} topic: "
                    f"{len(failed)} event(s) failed"
                ),
                failed_events=failed,
            )
        return PublishEventsResponse()