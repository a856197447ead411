"""Framing for the apcupsd Network Information Server protocol.

Every message on the wire is a two byte big-endian length followed by that
many bytes of data. A message of length zero marks the end of a reply.
"""

from __future__ import annotations

import struct
import threading
from typing import BinaryIO, Iterator

MAX_MESSAGE_SIZE = 0xFFFF

_LENGTH = struct.Struct(">H")


class BufferTooLargeError(ValueError):
    """Raised when a message is too large to be framed with a 16-bit length."""

    def __init__(self, size: int) -> None:
        super().__init__(
            f"buffer too large ({size} bytes); must be {MAX_MESSAGE_SIZE} bytes or less"
        )
        self.size = size


class NISStream:
    """Reads and writes length-prefixed NIS messages over a binary stream.

    The wrapped stream needs ``read(n)``, ``write(data)`` and ``close()``;
    ``flush()`` is called after each write when the stream has one.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def _read_exact(self, size: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._stream.read(size - len(chunks))
            if not chunk:
                break
            chunks.extend(chunk)
        return bytes(chunks)

    def read_message(self) -> bytes | None:
        """Read one message.

        Returns ``None`` at the end of a reply: when the server sends a zero
        length, or when the stream ends cleanly before a new message starts.
        Raises ``EOFError`` if the stream ends in the middle of a message.
        """
        with self._lock:
            header = self._read_exact(_LENGTH.size)
            if not header:
                return None
            if len(header) < _LENGTH.size:
                raise EOFError("unexpected end of stream while reading message length")
            (length,) = _LENGTH.unpack(header)
            if length == 0:
                return None
            data = self._read_exact(length)
            if len(data) < length:
                raise EOFError(
                    f"unexpected end of stream: expected {length} bytes, got {len(data)}"
                )
            return data

    def write_message(self, data: bytes) -> int:
        """Write one message, prefixed with its length; return the data size."""
        data = bytes(data)
        if len(data) > MAX_MESSAGE_SIZE:
            raise BufferTooLargeError(len(data))
        with self._lock:
            self._stream.write(_LENGTH.pack(len(data)) + data)
            flush = getattr(self._stream, "flush", None)
            if flush is not None:
                flush()
        return len(data)

    def messages(self) -> Iterator[bytes]:
        """Yield messages until the end of the current reply."""
        while (message := self.read_message()) is not None:
            yield message

    def close(self) -> None:
        """Close the wrapped stream."""
        with self._lock:
            self._stream.close()

    def __enter__(self) -> NISStream:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()