"""Client for the apcupsd Network Information Server (NIS)."""

from __future__ import annotations

import socket
from typing import BinaryIO

from .nis import NISStream
from .status import Status

_STATUS_REQUEST = b"status"


class _SocketStream:
    """Minimal binary stream over a connected socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def read(self, size: int) -> bytes:
        return self._sock.recv(size)

    def write(self, data: bytes) -> int:
        self._sock.sendall(data)
        return len(data)

    def close(self) -> None:
        self._sock.close()


class Client:
    """A client for an apcupsd Network Information Server.

    The client owns the stream it is given: closing the client closes it.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._nis = NISStream(stream)

    @classmethod
    def dial(cls, host: str, port: int, timeout: float | None = None) -> Client:
        """Connect to an NIS over TCP and return a client for the connection.

        ``timeout`` limits only how long connecting may take; once connected,
        the connection is blocking.
        """
        sock = socket.create_connection((host, port), timeout)
        sock.settimeout(None)
        return cls(_SocketStream(sock))

    def status(self) -> Status:
        """Retrieve the current UPS status from the NIS."""
        self._nis.write_message(_STATUS_REQUEST)
        return Status.from_lines(self._nis.messages())

    def close(self) -> None:
        """Close the connection to the NIS."""
        self._nis.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def dial(host: str, port: int, timeout: float | None = None) -> Client:
    """Connect to an NIS over TCP and return a client for the connection."""
    return Client.dial(host, port, timeout)