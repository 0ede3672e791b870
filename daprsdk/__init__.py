"""Client library for the Dapr sidecar."""

__version__ = "0.1.0"

__all__ = [
    "client",
    "crypto",
    "invoke",
    "lock",
    "messages",
    "metadata",
    "pubsub",
    "secret",
    "state",
    "utils",
]