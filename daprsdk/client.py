"""The client that brings together every runtime call."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Any, Union
import time

from daprsdk.crypto import CryptoMixin
from daprsdk.invoke import InvokeMixin
from daprsdk.lock import LockMixin
from daprsdk.metadata import MetadataMixin
from daprsdk.pubsub import PubSubMixin
from daprsdk.secret import SecretMixin
from daprsdk.state import StateMixin
from daprsdk.utils import DaprError


class ConnectivityState(Enum):
    """The state of the connection to the runtime."""

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    READY = "READY"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"
    SHUTDOWN = "SHUTDOWN"


class WaitTimeoutError(DaprError):
    """The connection did not become ready in time."""

    def __init__(self, message: str = "timed out waiting for client connectivity") -> None:
        super().__init__(message)


class DaprClient(
    InvokeMixin,
    LockMixin,
    SecretMixin,
    StateMixin,
    PubSubMixin,
    MetadataMixin,
    CryptoMixin,
):
    """A client of the runtime.

    ``runtime`` carries out the calls; ``connection`` reports connectivity
    through ``get_state()`` and ``wait_for_state_change(state, timeout)``,
    which blocks until the state differs from ``state`` or the timeout ends.
    """

    def __init__(self, runtime: Any, connection: Any) -> None:
        self._runtime = runtime
        self._connection = connection

    def wait(self, timeout: Union[float, timedelta]) -> None:
        """Block until the connection is ready; raise WaitTimeoutError after timeout."""
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        deadline = time.monotonic() + timeout
        while True:
            state = self._connection.get_state()
            if state == ConnectivityState.READY:
                return
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError()
            # Several changes may happen before the connection becomes ready.
            self._connection.wait_for_state_change(state, remaining)