# apcnis

A client library for the apcupsd Network Information Server (NIS). It
connects to a running apcupsd daemon over TCP, sends it a `status` request and
returns the UPS status as a Python object.

## Installation

```
pip install apcnis
```

## Usage

```python
from apcnis.client import Client

with Client.dial("localhost", 3551, timeout=5.0) as client:
    status = client.status()

print(status.model, status.status)
print(f"load: {status.load_percent}%")
print(f"battery: {status.battery_charge_percent}%")
print(f"time left: {status.time_left}")
```

`apcnis.client.dial(host, port, timeout)` is a shorthand for `Client.dial`.
The `timeout` applies only to connecting; once connected, the socket blocks.

`Client` can also wrap any binary stream that has `read(n)`, `write(data)` and
`close()`. Closing the client closes that stream.

Numeric fields are floats or ints. Timestamps are timezone-aware `datetime`
objects; where apcupsd reports `N/A`, the timestamp is `None`. Durations are
`timedelta` objects. Keys the client does not know are ignored.

## Lower-level pieces

- `apcnis.nis.NISStream` wraps a binary stream and handles the NIS framing.
  Each message is preceded by a two-byte big-endian length, and a zero length
  ends a reply. `read_message()` returns `None` at the end of a reply and
  raises `EOFError` if the stream ends inside a message. `messages()` yields
  the messages of one reply. Writing a message longer than `MAX_MESSAGE_SIZE`
  (65535 bytes) raises `BufferTooLargeError`.
- `apcnis.status.Status.parse_kv` reads a single `KEY : value` line into the
  status. It raises `InvalidKeyValuePairError` for lines without a colon,
  `InvalidDurationError` for malformed durations and `ValueError` for other
  malformed values. An `ALARMDEL` value that is not a duration is taken as
  zero.
- `Status.from_lines` builds a status from an iterable of such lines, given as
  text or bytes.
- `parse_duration` and `parse_optional_time` parse duration values (such as
  `46.5 Minutes`) and timestamp values (such as `2016-09-06 22:13:28 -0400`).

## What it does not do

This is a library only: it has no command-line tool, and it does not run an
NIS server or send any request other than `status`.

## Running the tests

```
pip install -e ".[test]"
pytest
```