"""Streaming message types exchanged with the runtime by the crypto API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union


@dataclass
class StreamPayload:
    """One chunk of a data stream, numbered from zero."""

    data: bytes = b""
    seq: int = 0


@dataclass
class EncryptRequestOptions:
    """Options carried by the first message of an encryption stream."""

    component_name: str = ""
    key_name: str = ""
    key_wrap_algorithm: str = ""
    data_encryption_cipher: str = ""
    omit_decryption_key_name: bool = False
    decryption_key_name: str = ""


@dataclass
class DecryptRequestOptions:
    """Options carried by the first message of a decryption stream."""

    component_name: str = ""
    key_name: str = ""


_Options = Union[EncryptRequestOptions, DecryptRequestOptions]


@dataclass
class CryptoRequest:
    """A request message in a crypto stream: a payload and, first time only, options."""

    payload: Optional[StreamPayload] = None
    options: Optional[_Options] = None

    _options_type: ClassVar[Any] = (EncryptRequestOptions, DecryptRequestOptions)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "options" and value is not None and not isinstance(value, self._options_type):
            raise TypeError(
                f"{type(self).__name__} does not accept options of type {type(value).__name__}"
            )
        super().__setattr__(name, value)

    def reset(self) -> None:
        """Clear the message so it can be reused."""
        self.payload = None
        self.options = None

    def has_options(self) -> bool:
        """Return True if the message carries options."""
        return self.options is not None


class EncryptRequest(CryptoRequest):
    """A message of an encryption request stream."""

    _options_type = EncryptRequestOptions


class DecryptRequest(CryptoRequest):
    """A message of a decryption request stream."""

    _options_type = DecryptRequestOptions


@dataclass
class CryptoResponse:
    """A response message in a crypto stream."""

    payload: Optional[StreamPayload] = None

    def reset(self) -> None:
        """Clear the message so it can be reused."""
        self.payload = None


class EncryptResponse(CryptoResponse):
    """A message of an encryption response stream."""


class DecryptResponse(CryptoResponse):
    """A message of a decryption response stream."""