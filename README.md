# daprsdk

A client library for talking to a Dapr sidecar. It covers:

- **State**: save, get, delete single and bulk items, transactions and queries,
  with consistency and concurrency options (defaults: strong, last-write).
- **Pub/sub**: publish single events and bulk-publish batches of events, with
  content-type, metadata and raw-payload options.
- **Service invocation**: call methods on other applications, with or without
  content, and with query strings in the method name.
- **Secrets**: read one secret or all secrets of a store.
- **Distributed locks**: try-lock and unlock.
- **Metadata**: read the sidecar metadata and set extended metadata.
- **Crypto**: stream data through the sidecar's encrypt and decrypt operations.
- **Connectivity**: wait until the connection to the sidecar is ready.

## Installing

```
pip install daprsdk
```

The package has no runtime dependencies beyond the standard library.

## Using the client

`DaprClient` brings together every operation. Arguments are checked before
anything is sent; a missing store name, key, app id and the like raises a
`DaprError`.

```python
from daprsdk.client import DaprClient
from daprsdk.state import StateConcurrency, StateConsistency, with_concurrency, with_consistency

client = DaprClient(...)

client.wait(5.0)  # raises WaitTimeoutError if the sidecar is not ready in time

client.save_state("statestore", "order", b"1", None)
item = client.get_state("statestore", "order", None)
print(item.key, item.etag, item.value)

client.save_state_with_etag(
    "statestore", "order", b"2", "1", {"meta1": "value1"},
    with_consistency(StateConsistency.EVENTUAL),
    with_concurrency(StateConcurrency.FIRST_WRITE),
)
client.delete_state("statestore", "order", None)
```

### Publishing events

```python
from daprsdk.pubsub import publish_event_with_raw_payload

client.publish_event("messages", "neworder", b"ping")
client.publish_event("messages", "neworder", {"id": 1}, publish_event_with_raw_payload())

result = client.publish_events("messages", "neworder", ["multi-ping", "multi-pong"])
if result.error is not None:
    print("failed:", result.failed_events)
```

Bytes are sent as `application/octet-stream`, strings as `text/plain`, and
anything else is serialised to JSON (`application/cloudevents+json` when it
carries the CloudEvent fields `id`, `source`, `specversion` and `type`).

### Invoking another service

```python
from daprsdk.invoke import DataContent

reply = client.invoke_method_with_content(
    "serving", "echo?lang=en", "post",
    DataContent(data=b"hello", content_type="text/plain"),
)
```

### Encrypting a stream

```python
import io
from daprsdk.crypto import EncryptOptions

reader = client.encrypt(
    io.BytesIO(b"hello world"),
    EncryptOptions(component_name="mycrypto", key_name="mykey", key_wrap_algorithm="RSA-OAEP-256"),
    None,
)
ciphertext = reader.read(-1)
```

Errors raised while the data streams through the sidecar surface when the
returned reader is read.

## Running the tests

```
pip install "daprsdk[test]"
pytest
```