"""Reading and updating the sidecar's metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from daprsdk.utils import DaprError


@dataclass
class MetadataActiveActorsCount:
    """The number of active actors of one type."""

    type: str = ""
    count: int = 0


@dataclass
class MetadataRegisteredComponents:
    """A component loaded by the sidecar."""

    name: str = ""
    type: str = ""
    version: str = ""
    capabilities: list[str] = field(default_factory=list)


@dataclass
class PubsubSubscriptionRule:
    """A routing rule of a subscription."""

    match: str = ""
    path: str = ""


@dataclass
class PubsubSubscriptionRules:
    """The routing rules of a subscription."""

    rules: list[PubsubSubscriptionRule] = field(default_factory=list)


@dataclass
class MetadataSubscription:
    """A topic subscription known to the sidecar."""

    pubsub_name: str = ""
    topic: str = ""
    metadata: Optional[dict[str, str]] = None
    rules: PubsubSubscriptionRules = field(default_factory=PubsubSubscriptionRules)
    dead_letter_topic: str = ""


@dataclass
class MetadataHTTPEndpoint:
    """An HTTP endpoint known to the sidecar."""

    name: str = ""


@dataclass
class GetMetadataResponse:
    """The metadata of the sidecar."""

    id: str = ""
    active_actors_count: list[MetadataActiveActorsCount] = field(default_factory=list)
    registered_components: list[MetadataRegisteredComponents] = field(default_factory=list)
    extended_metadata: dict[str, str] = field(default_factory=dict)
    subscriptions: list[MetadataSubscription] = field(default_factory=list)
    http_endpoints: list[MetadataHTTPEndpoint] = field(default_factory=list)


@dataclass
class SetMetadataRequest:
    """A request to set one extended metadata value."""

    key: str
    value: str


def _convert_subscription(sub: Any) -> MetadataSubscription:
    rules = getattr(sub.rules, "rules", None) if sub.rules is not None else None
    return MetadataSubscription(
        pubsub_name=sub.pubsub_name,
        topic=sub.topic,
        metadata=None if sub.metadata is None else dict(sub.metadata),
        rules=PubsubSubscriptionRules(
            rules=[PubsubSubscriptionRule(match=r.match, path=r.path) for r in rules or ()]
        ),
        dead_letter_topic=sub.dead_letter_topic,
    )


class MetadataMixin:
    """Metadata calls.

    Expects ``self._runtime.get_metadata()`` to return an object shaped like
    GetMetadataResponse (or None) and ``self._runtime.set_metadata(request)``
    to store a value.
    """

    _runtime: Any

    def get_metadata(self) -> Optional[GetMetadataResponse]:
        """Return the metadata of the sidecar."""
        try:
            resp = self._runtime.get_metadata()
        except Exception as exc:
            raise DaprError(f"error invoking service: {exc}") from exc
        if resp is None:
            return None
        return GetMetadataResponse(
            id=resp.id,
            active_actors_count=[
                MetadataActiveActorsCount(type=a.type, count=a.count)
                for a in resp.active_actors_count or ()
            ],
            registered_components=[
                MetadataRegisteredComponents(
                    name=c.name,
                    type=c.type,
                    version=c.version,
                    capabilities=list(c.capabilities or ()),
                )
                for c in resp.registered_components or ()
            ],
            extended_metadata=dict(resp.extended_metadata or {}),
            subscriptions=[_convert_subscription(s) for s in resp.subscriptions or ()],
            http_endpoints=[
                MetadataHTTPEndpoint(name=e.name) for e in resp.http_endpoints or ()
            ],
        )

    def set_metadata(self, key: str, value: str) -> None:
        """Set a value in the sidecar's extended metadata."""
        if not key:
            raise ValueError("a key is required")
        try:
            self._runtime.set_metadata(SetMetadataRequest(key=key, value=value))
        except Exception as exc:
            raise DaprError(f"error setting metadata: {exc}") from exc