import io
import socket
import threading
from datetime import datetime, timedelta, timezone

import pytest

from apcnis.client import Client, dial
from apcnis.status import InvalidKeyValuePairError, Status

STATUS_REQUEST = b"\x00\x06status"


def frame(text: str) -> bytes:
    data = text.encode()
    return len(data).to_bytes(2, "big") + data


class FakeStream:
    def __init__(self, data: bytes) -> None:
        self._in = io.BytesIO(data)
        self.written = bytearray()
        self.closed = False

    def read(self, size: int) -> bytes:
        return self._in.read(size)

    def write(self, data: bytes) -> int:
        self.written.extend(data)
        return len(data)

    def close(self) -> None:
        self.closed = True


def _recv_exact(conn: socket.socket, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = conn.recv(size - len(data))
        if not chunk:
            break
        data.extend(chunk)
    return bytes(data)


def serve(lines):
    """Start a one-shot NIS server; return (port, thread, received)."""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    listener.settimeout(5)
    port = listener.getsockname()[1]
    received = []

    def run():
        try:
            conn, _ = listener.accept()
            with conn:
                conn.settimeout(5)
                received.append(_recv_exact(conn, len(STATUS_REQUEST)))
                payload = b"".join(frame(line) for line in lines) + b"\x00\x00"
                conn.sendall(payload)
        finally:
            listener.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return port, thread, received


def test_no_known_key_value_pairs():
    port, thread, received = serve(["FOO : BAR"])
    with dial("127.0.0.1", port, timeout=5) as client:
        got = client.status()
    thread.join(5)
    assert got == Status()
    assert received == [STATUS_REQUEST]


def test_all_types_key_value_pairs():
    lines = [
        "DATE     : 2016-09-06 22:13:28 -0400",
        "HOSTNAME : example",
        "LOADPCT  :  13.0 Percent Load Capacity",
        "TIMELEFT :  46.5 Minutes",
        "TONBATT  : 0 seconds",
        "NUMXFERS : 0",
        "SELFTEST : NO",
        "NOMPOWER : 865 Watts",
    ]
    edt = timezone(timedelta(hours=-4))
    want = Status(
        date=datetime(2016, 9, 6, 22, 13, 28, tzinfo=edt),
        hostname="example",
        load_percent=13.0,
        time_left=timedelta(minutes=46, seconds=30),
        time_on_battery=timedelta(0),
        number_transfers=0,
        selftest=False,
        nominal_power=865,
    )
    port, thread, received = serve(lines)
    client = Client.dial("127.0.0.1", port, 5)
    try:
        got = client.status()
    finally:
        client.close()
    thread.join(5)
    assert got == want
    assert got.date.utcoffset() == timedelta(hours=-4)
    assert received == [STATUS_REQUEST]


def test_dial_refused_raises_oserror():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        dial("127.0.0.1", port, timeout=5)


def test_status_over_stream_sends_request():
    stream = FakeStream(frame("UPSNAME : ups1") + frame("LINEV : 120.0 Volts") + b"\x00\x00")
    client = Client(stream)
    got = client.status()
    assert bytes(stream.written) == STATUS_REQUEST
    assert got.ups_name == "ups1"
    assert got.line_voltage == 120.0


def test_status_ends_on_clean_end_of_stream():
    stream = FakeStream(frame("STATUS : ONLINE"))
    got = Client(stream).status()
    assert got.status == "ONLINE"


def test_status_empty_reply():
    stream = FakeStream(b"\x00\x00")
    assert Client(stream).status() == Status()


def test_status_invalid_line_raises():
    stream = FakeStream(frame("garbage") + b"\x00\x00")
    with pytest.raises(InvalidKeyValuePairError):
        Client(stream).status()


def test_status_truncated_message_raises():
    stream = FakeStream(b"\x00\x10short")
    with pytest.raises(EOFError):
        Client(stream).status()


def test_context_manager_closes_stream():
    stream = FakeStream(b"")
    with Client(stream) as client:
        assert stream.closed is False
        assert isinstance(client, Client)
    assert stream.closed is True


def test_close_closes_stream():
    stream = FakeStream(b"")
    Client(stream).close()
    assert stream.closed is True