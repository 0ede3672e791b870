"""Service invocation through the runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

from daprsdk.utils import to_json_bytes


class Verb(IntEnum):
    """HTTP verb carried with an invocation."""

    NONE = 0
    GET = 1
    HEAD = 2
    POST = 3
    PUT = 4
    DELETE = 5
    CONNECT = 6
    OPTIONS = 7
    TRACE = 8
    PATCH = 9


@dataclass
class HTTPExtension:
    """The HTTP verb and query string of an invocation."""

    verb: Verb = Verb.NONE
    querystring: str = ""


@dataclass
class InvokeRequest:
    """The message delivered to the target method."""

    method: str
    data: Optional[bytes] = None
    content_type: str = ""
    http_extension: HTTPExtension = field(default_factory=HTTPExtension)


@dataclass
class InvokeServiceRequest:
    """An invocation addressed to an application."""

    id: str
    message: InvokeRequest


@dataclass
class DataContent:
    """Raw data and its content type for an invocation."""

    data: bytes = b""
    content_type: str = ""


def extract_method_and_query(name: str) -> tuple[str, str]:
    """Split 'method?query' into the method and the query string."""
    method, _, query = name.partition("?")
    return method, query


def query_and_verb_to_http_extension(query: str, verb: str) -> HTTPExtension:
    """Build the HTTP extension; an unknown verb gives NONE and drops the query."""
    found = Verb.__members__.get(verb.upper())
    if found is None:
        return HTTPExtension(verb=Verb.NONE)
    return HTTPExtension(verb=found, querystring=query)


def _check_invoke_args(app_id: str, method_name: str, verb: str) -> None:
    for name, value in (("appID", app_id), ("methodName", method_name), ("verb", verb)):
        if not value:
            raise ValueError(f"missing required parameter: {name}")


class InvokeMixin:
    """Service invocation calls.

    Expects ``self._runtime.invoke_service(request)`` to return the response
    data as bytes, or None when the service returned nothing.
    """

    _runtime: Any

    def _invoke(
        self, app_id: str, method_name: str, verb: str, data: Optional[bytes], content_type: str
    ) -> Optional[bytes]:
        method, query = extract_method_and_query(method_name)
        request = InvokeServiceRequest(
            id=app_id,
            message=InvokeRequest(
                method=method,
                data=data,
                content_type=content_type,
                http_extension=query_and_verb_to_http_extension(query, verb),
            ),
        )
        response = self._runtime.invoke_service(request)
        return None if response is None else bytes(response)

    def invoke_method(self, app_id: str, method_name: str, verb: str) -> Optional[bytes]:
        """Invoke a method without data."""
        _check_invoke_args(app_id, method_name, verb)
        return self._invoke(app_id, method_name, verb, None, "")

    def invoke_method_with_content(
        self, app_id: str, method_name: str, verb: str, content: Optional[DataContent]
    ) -> Optional[bytes]:
        """Invoke a method with raw data and a content type."""
        _check_invoke_args(app_id, method_name, verb)
        if content is None:
            raise ValueError("content required")
        return self._invoke(app_id, method_name, verb, bytes(content.data), content.content_type)

    def invoke_method_with_custom_content(
        self, app_id: str, method_name: str, verb: str, content_type: str, content: Any
    ) -> Optional[bytes]:
        """Invoke a method with a value serialized as JSON."""
        _check_invoke_args(app_id, method_name, verb)
        if not content_type:
            raise ValueError("content type required")
        if content is None:
            raise ValueError("content required")
        data = to_json_bytes(content)
        return self._invoke(app_id, method_name, verb, data, content_type)