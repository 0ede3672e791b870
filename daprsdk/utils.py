"""Shared helpers: the package error type, JSON encoding and CloudEvent detection."""

from __future__ import annotations

import base64
import dataclasses
import json
from typing import Any

_CLOUD_EVENT_FIELDS = ("id", "source", "specversion", "type")

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class DaprError(Exception):
    """An error reported by the runtime or raised while preparing a call."""


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def to_json_bytes(data: Any) -> bytes:
    """Encode a value as compact JSON bytes, with HTML-sensitive characters escaped."""
    try:
        text = json.dumps(
            data,
            default=_json_default,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise DaprError(f"error serializing input struct: {exc}") from exc
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def is_cloud_event(event: bytes) -> bool:
    """Return True if the JSON event has non-empty id, source, specversion and type."""
    try:
        decoded = json.loads(event)
    except ValueError:
        return False
    if decoded is None:
        return False
    if not isinstance(decoded, dict):
        return False
    found = dict.fromkeys(_CLOUD_EVENT_FIELDS, "")
    for key, value in decoded.items():
        name = key.casefold()
        if name not in found:
            continue
        if value is None:
            continue
        if not isinstance(value, str):
            return False
        found[name] = value
    return all(found.values())