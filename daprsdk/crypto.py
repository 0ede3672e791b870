"""Streaming encryption and decryption through the runtime."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Type

from daprsdk.messages import (
    CryptoRequest,
    DecryptRequest,
    DecryptRequestOptions,
    EncryptRequest,
    EncryptRequestOptions,
    StreamPayload,
)
from daprsdk.utils import DaprError

_CHUNK_SIZE = 2 << 10
_DEADLINE_EXCEEDED = "context deadline exceeded"


@dataclass
class EncryptOptions:
    """Options for encrypting a stream.

    ``component_name``, ``key_name`` and ``key_wrap_algorithm`` are required.
    ``data_encryption_cipher`` is "aes-gcm" (the runtime's default) or
    "chacha20-poly1305". When ``omit_decryption_key_name`` is set the document
    carries no key reference; ``decryption_key_name`` overrides the reference
    embedded in the document.
    """

    component_name: str = ""
    key_name: str = ""
    key_wrap_algorithm: str = ""
    data_encryption_cipher: str = ""
    omit_decryption_key_name: bool = False
    decryption_key_name: str = ""

    def to_message(self) -> EncryptRequestOptions:
        """Return the options message sent with the first chunk."""
        return EncryptRequestOptions(
            component_name=self.component_name,
            key_name=self.key_name,
            key_wrap_algorithm=self.key_wrap_algorithm,
            data_encryption_cipher=self.data_encryption_cipher,
            omit_decryption_key_name=self.omit_decryption_key_name,
            decryption_key_name=self.decryption_key_name,
        )


@dataclass
class DecryptOptions:
    """Options for decrypting a stream; ``component_name`` is required.

    ``key_name`` overrides any key reference found in the message and is
    required when the message carries none.
    """

    component_name: str = ""
    key_name: str = ""

    def to_message(self) -> DecryptRequestOptions:
        """Return the options message sent with the first chunk."""
        return DecryptRequestOptions(
            component_name=self.component_name,
            key_name=self.key_name,
        )


class _Deadline:
    def __init__(self, timeout: Optional[float]) -> None:
        self.at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> Optional[float]:
        return None if self.at is None else self.at - time.monotonic()

    def check(self) -> None:
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise TimeoutError(_DEADLINE_EXCEEDED)


class CryptoReader:
    """The readable output of a crypto operation.

    Data arrives from the runtime in the background; an error raised while
    sending or receiving is raised by ``read``.
    """

    def __init__(self, deadline: Optional[_Deadline] = None) -> None:
        self._cond = threading.Condition()
        self._buffer = bytearray()
        self._closed = False
        self._error: Optional[BaseException] = None
        self._deadline = deadline or _Deadline(None)

    def _write(self, data: bytes) -> None:
        with self._cond:
            if self._closed:
                raise BrokenPipeError("read/write on closed pipe")
            self._buffer += data
            self._cond.notify_all()

    def _close_locked(self, error: Optional[BaseException]) -> None:
        if self._closed:
            return
        self._closed = True
        self._error = error
        self._cond.notify_all()

    def _close(self, error: Optional[BaseException] = None) -> None:
        with self._cond:
            self._close_locked(error)

    def _wait(self, predicate: Any) -> None:
        while not predicate():
            remaining = self._deadline.remaining()
            if remaining is not None and remaining <= 0:
                self._close_locked(TimeoutError(_DEADLINE_EXCEEDED))
                return
            self._cond.wait(remaining)

    def read(self, size: Optional[int] = -1) -> bytes:
        """Read up to ``size`` bytes, or everything until the end if size is negative."""
        with self._cond:
            if size is None or size < 0:
                self._wait(lambda: self._closed)
                if self._error is not None:
                    raise self._error
                data = bytes(self._buffer)
                self._buffer.clear()
                return data
            if size == 0:
                return b""
            self._wait(lambda: bool(self._buffer) or self._closed)
            if self._buffer:
                data = bytes(self._buffer[:size])
                del self._buffer[:size]
                return data
            if self._error is not None:
                raise self._error
            return b""


def _send_chunks(
    stream: Any,
    source: BinaryIO,
    options: Any,
    request_type: Type[CryptoRequest],
    reader: CryptoReader,
    deadline: _Deadline,
) -> None:
    seq = 0
    while True:
        try:
            deadline.check()
        except TimeoutError as exc:
            reader._close(exc)
            return

        request = request_type()
        if options is not None:
            request.options = options
            options = None

        try:
            chunk = source.read(_CHUNK_SIZE)
        except Exception as exc:
            reader._close(exc)
            return
        done = not chunk

        if chunk:
            request.payload = StreamPayload(data=bytes(chunk), seq=seq)
            seq += 1
            try:
                stream.send(request)
            except EOFError:
                # The transport ended; the receiving side reports the cause.
                done = True
            except Exception as exc:
                reader._close(DaprError(f"error sending message: {exc}"))
                return

        if done:
            try:
                stream.close_send()
            except Exception as exc:
                reader._close(
                    DaprError(f"failed to close the send direction of the stream: {exc}")
                )
            return


def _receive_chunks(stream: Any, reader: CryptoReader, deadline: _Deadline) -> None:
    expected = 0
    while True:
        try:
            deadline.check()
        except TimeoutError as exc:
            reader._close(exc)
            return

        try:
            response = stream.recv()
        except EOFError:
            response = None
        except Exception as exc:
            reader._close(DaprError(f"error receiving message: {exc}"))
            return

        payload = None if response is None else response.payload
        if payload is not None:
            if payload.seq != expected:
                reader._close(
                    DaprError(
                        f"invalid sequence number in chunk: {payload.seq} "
                        f"(expected: {expected})"
                    )
                )
                return
            expected += 1
            try:
                reader._write(payload.data)
            except Exception as exc:
                reader._close(DaprError(f"error writing data: {exc}"))
                return

        if response is None:
            break
    reader._close()


class CryptoMixin:
    """Crypto calls.

    Expects ``self._runtime.encrypt_alpha1()`` and
    ``self._runtime.decrypt_alpha1()`` to open a bidirectional stream with
    ``send(request)``, ``close_send()`` and ``recv()``; ``recv`` returns a
    response message, or None (or raises EOFError) at the end of the stream.
    """

    _runtime: Any

    def _perform(
        self,
        stream: Any,
        source: BinaryIO,
        options: Any,
        request_type: Type[CryptoRequest],
        timeout: Optional[float],
    ) -> CryptoReader:
        deadline = _Deadline(timeout)
        reader = CryptoReader(deadline)
        threading.Thread(
            target=_send_chunks,
            args=(stream, source, options, request_type, reader, deadline),
            daemon=True,
        ).start()
        threading.Thread(
            target=_receive_chunks, args=(stream, reader, deadline), daemon=True
        ).start()
        return reader

    def encrypt(
        self, stream: BinaryIO, options: EncryptOptions, timeout: Optional[float] = None
    ) -> CryptoReader:
        """Encrypt data read from a stream, returning a reader of the encrypted data."""
        if not options.component_name:
            raise ValueError("option 'ComponentName' is required")
        if not options.key_name:
            raise ValueError("option 'KeyName' is required")
        if not options.key_wrap_algorithm:
            raise ValueError("option 'Algorithm' is required")
        remote = self._runtime.encrypt_alpha1()
        return self._perform(remote, stream, options.to_message(), EncryptRequest, timeout)

    def decrypt(
        self, stream: BinaryIO, options: DecryptOptions, timeout: Optional[float] = None
    ) -> CryptoReader:
        """Decrypt data read from a stream, returning a reader of the decrypted data."""
        if not options.component_name:
            raise ValueError("option 'ComponentName' is required")
        remote = self._runtime.decrypt_alpha1()
        return self._perform(remote, stream, options.to_message(), DecryptRequest, timeout)