"""Exception hierarchy shared by the decoder, loaders and transports.

Decode errors describe a single bad telemetry line and are always recovered
by the ingestion loops. I/O errors describe a data source that could not be
read or opened and are surfaced once to the user as a status message.
"""

from __future__ import annotations

from typing import Optional


class ProbeStationError(Exception):
    """Base class for every error raised by :mod:`probestation`."""


class DecodeError(ProbeStationError, ValueError):
    """A telemetry line could not be turned into a record.

    Attributes
    ----------
    field:
        Schema name of the offending field (e.g. ``"temperature"``).
    value:
        Raw token text, or ``None`` when the token was absent.
    cause:
        Human-readable description of what went wrong.
    """

    def __init__(self, field: str, value: Optional[str], cause: str) -> None:
        self.field = field
        self.value = value
        self.cause = cause
        if value is None:
            message = f"{field}: {cause}"
        else:
            message = f"{field}: {cause} ({value!r})"
        super().__init__(message)


class MissingField(DecodeError):
    """The line ran out of tab-separated tokens before ``field``."""

    def __init__(self, field: str) -> None:
        super().__init__(field, None, "missing field")


class InvalidNumber(DecodeError):
    """A token could not be parsed as its expected numeric type."""


class InvalidConfidence(DecodeError):
    """A confidence byte parsed as a number but is not one of 0-3."""

    def __init__(self, field: str, value: Optional[str]) -> None:
        super().__init__(field, value, "invalid confidence value")


class ExtraField(DecodeError):
    """The line carried more tokens than the schema defines."""

    def __init__(self, count: int, expected: int) -> None:
        super().__init__(
            "line", None, f"expected {expected} fields, got {count}"
        )
        self.count = count
        self.expected = expected


class IoError(ProbeStationError, OSError):
    """A data source could not be read or opened."""


class LogReadError(IoError):
    """A telemetry log file could not be read."""


class SerialOpenError(IoError):
    """A serial port could not be opened or configured."""


class ConfigError(ProbeStationError, ValueError):
    """A configuration file has an unexpected shape."""


__all__ = [
    "ConfigError",
    "DecodeError",
    "ExtraField",
    "InvalidConfidence",
    "InvalidNumber",
    "IoError",
    "LogReadError",
    "MissingField",
    "ProbeStationError",
    "SerialOpenError",
]
