import time
from datetime import timedelta

import pytest

from daprsdk.client import ConnectivityState, DaprClient, WaitTimeoutError
from daprsdk.utils import DaprError


class _ScriptedConnection:
    """Moves through the given states, one per state change; stays on the last."""

    def __init__(self, *states):
        self._states = list(states)
        self.waits = []
        self.state_queries = 0

    def get_state(self):
        self.state_queries += 1
        return self._states[0]

    def wait_for_state_change(self, state, timeout):
        self.waits.append((state, timeout))
        if len(self._states) > 1:
            self._states.pop(0)
            return True
        time.sleep(timeout)
        return False


class _SecretRuntime:
    def get_secret(self, request):
        return {request.key: "secret"}


def test_wait_ready_returns_without_waiting():
    connection = _ScriptedConnection(ConnectivityState.READY)
    client = DaprClient(None, connection)
    assert client.wait(5.0) is None
    assert connection.state_queries == 1
    assert connection.waits == []


def test_wait_follows_state_changes_until_ready():
    connection = _ScriptedConnection(
        ConnectivityState.IDLE,
        ConnectivityState.CONNECTING,
        ConnectivityState.READY,
    )
    DaprClient(None, connection).wait(5.0)
    assert [state for state, _ in connection.waits] == [
        ConnectivityState.IDLE,
        ConnectivityState.CONNECTING,
    ]
    assert all(0 < timeout <= 5.0 for _, timeout in connection.waits)


def test_wait_unresponsive_times_out():
    connection = _ScriptedConnection(ConnectivityState.CONNECTING)
    client = DaprClient(None, connection)
    start = time.monotonic()
    with pytest.raises(WaitTimeoutError, match="timed out waiting for client connectivity"):
        client.wait(0.2)
    assert time.monotonic() - start >= 0.2
    assert len(connection.waits) == 1


def test_wait_accepts_timedelta():
    connection = _ScriptedConnection(ConnectivityState.TRANSIENT_FAILURE)
    with pytest.raises(WaitTimeoutError):
        DaprClient(None, connection).wait(timedelta(milliseconds=100))
    assert connection.waits[0][0] is ConnectivityState.TRANSIENT_FAILURE


def test_wait_timeout_error_is_dapr_error():
    with pytest.raises(DaprError):
        DaprClient(None, _ScriptedConnection(ConnectivityState.SHUTDOWN)).wait(0)


def test_client_routes_calls_to_runtime():
    client = DaprClient(_SecretRuntime(), _ScriptedConnection(ConnectivityState.READY))
    assert client.get_secret("store", "key1") == {"key1": "secret"}
    with pytest.raises(ValueError, match="empty storeName"):
        client.get_secret("", "key1")