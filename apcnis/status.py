"""UPS status records as reported by an apcupsd Network Information Server."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from typing import Iterable


class InvalidKeyValuePairError(ValueError):
    """Raised when a line is not in the expected "key : value" format."""

    def __init__(self, line: str = "") -> None:
        super().__init__(f"invalid key/value pair: {line!r}")


class InvalidDurationError(ValueError):
    """Raised when a value is not a duration such as "10 Seconds"."""

    def __init__(self, text: str = "") -> None:
        super().__init__(f"invalid time duration: {text!r}")


_STRING_FIELDS = {
    "APC": "apc",
    "HOSTNAME": "hostname",
    "VERSION": "version",
    "UPSNAME": "ups_name",
    "CABLE": "cable",
    "DRIVER": "driver",
    "UPSMODE": "ups_mode",
    "MODEL": "model",
    "STATUS": "status",
    "SENSE": "sense",
    "LASTXFER": "last_transfer",
    "STATFLAG": "status_flags",
    "SERIALNO": "serial_number",
    "BATTDATE": "battery_date",
    "FIRMWARE": "firmware",
}

_FLOAT_FIELDS = {
    "LINEV": "line_voltage",
    "LOADPCT": "load_percent",
    "BCHARGE": "battery_charge_percent",
    "MBATTCHG": "minimum_battery_charge_percent",
    "LOTRANS": "low_transfer_voltage",
    "HITRANS": "high_transfer_voltage",
    "BATTV": "battery_voltage",
    "NOMINV": "nominal_input_voltage",
    "NOMBATTV": "nominal_battery_voltage",
    "ITEMP": "internal_temp",
    "OUTPUTV": "output_voltage",
    "LINEFREQ": "line_frequency",
    "OUTCURNT": "output_amps",
}

_TIME_FIELDS = {
    "DATE": "date",
    "STARTTIME": "start_time",
    "XONBATT": "x_on_battery",
    "XOFFBATT": "x_off_battery",
    "LASTSTEST": "last_selftest",
    "END APC": "end_apc",
}

_DURATION_FIELDS = {
    "TIMELEFT": "time_left",
    "MINTIMEL": "minimum_time_left",
    "MAXTIME": "maximum_time",
    "TONBATT": "time_on_battery",
    "CUMONBATT": "cumulative_time_on_battery",
}

_ZERO = timedelta(0)


def _zero() -> timedelta:
    return timedelta(0)


@dataclass
class Status:
    """The status of an APC UPS, one attribute per NIS status key."""

    apc: str = ""
    date: datetime | None = None
    hostname: str = ""
    version: str = ""
    ups_name: str = ""
    cable: str = ""
    driver: str = ""
    ups_mode: str = ""
    start_time: datetime | None = None
    model: str = ""
    status: str = ""
    line_voltage: float = 0.0
    load_percent: float = 0.0
    battery_charge_percent: float = 0.0
    time_left: timedelta = field(default_factory=_zero)
    minimum_battery_charge_percent: float = 0.0
    minimum_time_left: timedelta = field(default_factory=_zero)
    maximum_time: timedelta = field(default_factory=_zero)
    sense: str = ""
    low_transfer_voltage: float = 0.0
    high_transfer_voltage: float = 0.0
    alarm_del: timedelta = field(default_factory=_zero)
    battery_voltage: float = 0.0
    last_transfer: str = ""
    number_transfers: int = 0
    x_on_battery: datetime | None = None
    time_on_battery: timedelta = field(default_factory=_zero)
    cumulative_time_on_battery: timedelta = field(default_factory=_zero)
    x_off_battery: datetime | None = None
    last_selftest: datetime | None = None
    selftest: bool = False
    status_flags: str = ""
    serial_number: str = ""
    battery_date: str = ""
    nominal_input_voltage: float = 0.0
    nominal_battery_voltage: float = 0.0
    nominal_power: int = 0
    firmware: str = ""
    end_apc: datetime | None = None
    internal_temp: float = 0.0
    output_voltage: float = 0.0
    line_frequency: float = 0.0
    output_amps: float = 0.0

    def parse_kv(self, kv: str) -> None:
        """Parse one "key : value" line and set the matching attribute.

        Unknown keys are ignored. Malformed values raise ``ValueError``.
        """
        raw_key, sep, raw_value = kv.partition(":")
        if not sep:
            raise InvalidKeyValuePairError(kv)
        key = raw_key.strip()
        value = raw_value.strip()

        if key in _STRING_FIELDS:
            setattr(self, _STRING_FIELDS[key], value)
        elif key in _FLOAT_FIELDS:
            setattr(self, _FLOAT_FIELDS[key], _parse_float(_first_word(value)))
        elif key in _TIME_FIELDS:
            setattr(self, _TIME_FIELDS[key], parse_optional_time(value))
        elif key in _DURATION_FIELDS:
            setattr(self, _DURATION_FIELDS[key], parse_duration(value))
        elif key == "ALARMDEL":
            # This field comes in a variety of formats; anything that is not
            # a duration is taken as zero.
            try:
                self.alarm_del = parse_duration(value)
            except ValueError:
                self.alarm_del = timedelta(0)
        elif key == "NUMXFERS":
            self.number_transfers = _parse_int(value)
        elif key == "NOMPOWER":
            self.nominal_power = _parse_int(_first_word(value))
        elif key == "SELFTEST":
            self.selftest = value == "YES"

    @classmethod
    def from_lines(cls, lines: Iterable[str | bytes]) -> Status:
        """Build a status from "key : value" lines, as text or bytes."""
        status = cls()
        for line in lines:
            if isinstance(line, (bytes, bytearray)):
                line = bytes(line).decode("utf-8", errors="replace")
            status.parse_kv(line)
        return status


def _first_word(value: str) -> str:
    return value.split(" ", 1)[0]


_INT_RE = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _parse_float(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ValueError(f"invalid number: {text!r}")
    return float(text)


_NANOSECONDS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_PART_RE = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")

_MAX_NANOSECONDS = 1 << 63


def _parse_compact_duration(text: str) -> timedelta:
    """Parse a duration such as "46.5m" or "1h30m" into a timedelta."""
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise InvalidDurationError(text)

    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART_RE.match(rest, pos)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise InvalidDurationError(text)
        scale = _NANOSECONDS_PER_UNIT.get(unit)
        if scale is None:
            raise InvalidDurationError(text)
        amount = Fraction(int(whole or "0"))
        if fraction:
            amount += Fraction(int(fraction), 10 ** len(fraction))
        total += int(amount * scale)
        pos = match.end()

    nanoseconds = int(total)
    limit = _MAX_NANOSECONDS if negative else _MAX_NANOSECONDS - 1
    if nanoseconds > limit:
        raise InvalidDurationError(text)
    microseconds = nanoseconds // 1000
    return timedelta(microseconds=-microseconds if negative else microseconds)


def parse_duration(text: str) -> timedelta:
    """Parse an NIS duration such as "10 Seconds" or "46.5 Minutes"."""
    parts = text.split(" ", 1)
    if len(parts) != 2:
        raise InvalidDurationError(text)
    number, unit = parts
    unit = {"minutes": "m", "seconds": "s"}.get(unit.lower(), unit)
    try:
        return _parse_compact_duration(number + unit)
    except InvalidDurationError:
        raise InvalidDurationError(text) from None


_TIME_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2}) ([0-9]{2}):([0-9]{2}):([0-9]{2}) ([+-])([0-9]{2})([0-9]{2})"
)


def parse_optional_time(value: str) -> datetime | None:
    """Parse a "2006-01-02 15:04:05 -0700" timestamp; "N/A" gives ``None``."""
    if value == "N/A":
        return None
    match = _TIME_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"can't parse time: {value!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    sign, off_hours, off_minutes = match.group(7), int(match.group(8)), int(match.group(9))
    try:
        offset = timedelta(hours=off_hours, minutes=off_minutes)
        if sign == "-":
            offset = -offset
        return datetime(year, month, day, hour, minute, second, tzinfo=timezone(offset))
    except ValueError:
        raise ValueError(f"can't parse time: {value!r}") from None