import uuid
from dataclasses import dataclass, field

import pytest

from daprsdk.pubsub import (
    BulkPublishRequest,
    PublishEventsEvent,
    PubSubMixin,
    create_bulk_publish_request_entry,
    publish_event_with_content_type,
    publish_event_with_metadata,
    publish_event_with_raw_payload,
    publish_events_with_content_type,
    publish_events_with_metadata,
    publish_events_with_raw_payload,
)
from daprsdk.utils import DaprError


@dataclass
class _WithText:
    Key1: str
    Key2: str


@dataclass
class _WithTextAndNumbers:
    Key1: str
    Key2: int


@dataclass
class _WithSlices:
    Key1: list = field(default_factory=list)
    Key2: list = field(default_factory=list)


@dataclass
class _JSONStruct:
    key1: str
    key2: str


@dataclass
class _CloudEventStruct:
    id: str
    source: str
    specversion: str
    type: str
    data: str


class _FakeRuntime:
    def __init__(self):
        self.published = []
        self.bulk: list[BulkPublishRequest] = []
        self.fail_publish = False

    def publish_event(self, request):
        if self.fail_publish:
            raise RuntimeError("unavailable")
        self.published.append(request)

    def bulk_publish_event_alpha1(self, request):
        self.bulk.append(request)
        if any(entry.event.startswith(b"failall") for entry in request.entries):
            raise RuntimeError("failed to publish events")
        return [e.entry_id for e in request.entries if e.event.startswith(b"fail")]


class _Client(PubSubMixin):
    def __init__(self):
        self._runtime = _FakeRuntime()


@pytest.fixture
def client():
    return _Client()


def test_publish_with_data(client):
    PubSubMixin.publish_event(client, "messages", "test", b"ping")
    request = client._runtime.published[-1]
    assert request.data == b"ping"
    assert request.topic == "test"
    assert request.pubsub_name == "messages"
    assert request.data_content_type == ""


def test_publish_without_data(client):
    PubSubMixin.publish_event(client, "messages", "test", None)
    assert client._runtime.published[-1].data is None


def test_publish_string_data(client):
    PubSubMixin.publish_event(client, "messages", "test", "ping")
    assert client._runtime.published[-1].data == b"ping"


def test_publish_empty_topic(client):
    with pytest.raises(ValueError, match="topic name required"):
        PubSubMixin.publish_event(client, "messages", "", b"ping")
    assert client._runtime.published == []


def test_publish_empty_pubsub(client):
    with pytest.raises(ValueError, match="pubsubName"):
        PubSubMixin.publish_event(client, "", "test", b"ping")
    assert client._runtime.published == []


@pytest.mark.parametrize(
    "data, expected",
    [
        (_WithText("value1", "value2"), b'{"Key1":"value1","Key2":"value2"}'),
        (_WithTextAndNumbers("value1", 2500), b'{"Key1":"value1","Key2":2500}'),
        (
            _WithSlices(["value1", "value2", "value3"], [25, 40, 600]),
            b'{"Key1":["value1","value2","value3"],"Key2":[25,40,600]}',
        ),
    ],
)
def test_publish_from_custom_content(client, data, expected):
    with pytest.warns(DeprecationWarning):
        PubSubMixin.publish_event_from_custom_content(client, "messages", "test", data)
    request = client._runtime.published[-1]
    assert request.data == expected
    assert request.data_content_type == "application/json"


def test_publish_from_custom_content_serialization_error(client):
    with pytest.warns(DeprecationWarning):
        with pytest.raises(DaprError, match="error serializing input struct"):
            PubSubMixin.publish_event_from_custom_content(
                client, "messages", "test", object()
            )
    assert client._runtime.published == []


def test_publish_struct_sets_json_content_type_over_option(client):
    PubSubMixin.publish_event(
        client, "messages", "test", {"a": 1}, publish_event_with_content_type("text/plain")
    )
    request = client._runtime.published[-1]
    assert request.data == b'{"a":1}'
    assert request.data_content_type == "application/json"


def test_publish_content_type_option(client):
    PubSubMixin.publish_event(
        client, "messages", "test", b"ping", publish_event_with_content_type("text/plain")
    )
    assert client._runtime.published[-1].data_content_type == "text/plain"


def test_publish_raw_payload(client):
    PubSubMixin.publish_event(
        client, "messages", "test", b"ping", publish_event_with_raw_payload()
    )
    assert client._runtime.published[-1].metadata == {"rawPayload": "true"}


def test_publish_raw_payload_keeps_metadata(client):
    meta = {"key": "value"}
    PubSubMixin.publish_event(
        client,
        "messages",
        "test",
        b"ping",
        publish_event_with_metadata(meta),
        publish_event_with_raw_payload(),
    )
    assert client._runtime.published[-1].metadata == {"key": "value", "rawPayload": "true"}
    assert meta == {"key": "value"}


def test_publish_runtime_error(client):
    client._runtime.fail_publish = True
    with pytest.raises(DaprError, match="error publishing event unto test topic"):
        PubSubMixin.publish_event(client, "messages", "test", b"ping")


def test_publish_events_without_pubsub_name(client):
    res = PubSubMixin.publish_events(client, "", "test", ["ping", "pong"])
    assert isinstance(res.error, ValueError)
    assert res.failed_events == ["ping", "pong"]


def test_publish_events_without_topic_name(client):
    res = PubSubMixin.publish_events(client, "messages", "", ["ping", "pong"])
    assert isinstance(res.error, ValueError)
    assert res.failed_events == ["ping", "pong"]


def test_publish_events_with_data(client):
    res = PubSubMixin.publish_events(client, "messages", "test", ["ping", "pong"])
    assert res.error is None
    assert res.failed_events == []
    events = [e.event for e in client._runtime.bulk[-1].entries]
    assert events == [b"ping", b"pong"]


def test_publish_events_without_data(client):
    res = PubSubMixin.publish_events(client, "messages", "test", None)
    assert res.error is None
    assert res.failed_events == []


@pytest.mark.parametrize(
    "data",
    [
        _WithText("value1", "value2"),
        _WithTextAndNumbers("value1", 2500),
        _WithSlices(["value1", "value2", "value3"], [25, 40, 600]),
    ],
)
def test_publish_events_with_struct_data(client, data):
    res = PubSubMixin.publish_events(client, "messages", "test", [data])
    assert res.error is None
    assert res.failed_events == []
    assert client._runtime.bulk[-1].entries[0].content_type == "application/json"


def test_publish_events_serialization_error_for_one_event(client):
    bad = object()
    res = PubSubMixin.publish_events(client, "messages", "test", [bad, "pong"])
    assert isinstance(res.error, DaprError)
    assert len(res.failed_events) == 1
    assert res.failed_events[0] is bad


def test_publish_events_with_raw_payload(client):
    res = PubSubMixin.publish_events(
        client, "messages", "test", ["ping", "pong"], publish_events_with_raw_payload()
    )
    assert res.error is None
    assert client._runtime.bulk[-1].metadata == {"rawPayload": "true"}


def test_publish_events_with_metadata(client):
    res = PubSubMixin.publish_events(
        client,
        "messages",
        "test",
        ["ping", "pong"],
        publish_events_with_metadata({"key": "value"}),
    )
    assert res.error is None
    assert res.failed_events == []
    assert client._runtime.bulk[-1].metadata == {"key": "value"}


def test_publish_events_with_custom_content_type(client):
    res = PubSubMixin.publish_events(
        client, "messages", "test", ["ping", "pong"], publish_events_with_content_type("text/csv")
    )
    assert res.error is None
    assert [e.content_type for e in client._runtime.bulk[-1].entries] == ["text/csv", "text/csv"]


def test_publish_events_some_fail(client):
    res = PubSubMixin.publish_events(client, "messages", "test", ["ping", "pong", "fail-ping"])
    assert isinstance(res.error, DaprError)
    assert res.failed_events == ["fail-ping"]


def test_publish_events_entire_request_fails(client):
    res = PubSubMixin.publish_events(
        client, "messages", "test", ["ping", "pong", "failall-ping"]
    )
    assert isinstance(res.error, DaprError)
    assert len(res.failed_events) == 3
    assert set(res.failed_events) == {"ping", "pong", "failall-ping"}


@pytest.mark.parametrize(
    "data, expected_event, expected_type",
    [
        ("ping", b"ping", "text/plain"),
        (b"ping", b"ping", "application/octet-stream"),
        (_JSONStruct("value1", "value2"), b'{"key1":"value1","key2":"value2"}', "application/json"),
        (
            _CloudEventStruct("123", "test", "1.0", "test", "foo"),
            b'{"id":"123","source":"test","specversion":"1.0","type":"test","data":"foo"}',
            "application/cloudevents+json",
        ),
    ],
)
def test_create_entry_serializes_and_sets_content_type(data, expected_event, expected_type):
    entry = create_bulk_publish_request_entry(data)
    assert entry.event == expected_event
    assert entry.content_type == expected_type


def test_create_entry_invalid_json():
    with pytest.raises(DaprError):
        create_bulk_publish_request_entry(object())


def test_create_entry_keeps_entry_id_and_metadata():
    entry = create_bulk_publish_request_entry(
        PublishEventsEvent(
            content_type="text/plain",
            data=b"ping",
            entry_id="123",
            metadata={"key": "value"},
        )
    )
    assert entry.entry_id == "123"
    assert entry.metadata == {"key": "value"}
    assert entry.event == b"ping"
    assert entry.content_type == "text/plain"


@pytest.mark.parametrize(
    "data",
    ["ping", PublishEventsEvent(content_type="text/plain", data=b"ping")],
)
def test_create_entry_generates_uuid(data):
    entry = create_bulk_publish_request_entry(data)
    assert entry.metadata is None
    assert str(uuid.UUID(entry.entry_id)) == entry.entry_id