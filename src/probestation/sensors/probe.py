"""
The probe firmware emits one tab-separated line per sample:

  index  uptime  micros  temperature  pressure  ax  ay  az  accel_conf
  gx  gy  gz  gyro_conf  gps_time  gps_lat  gps_lon  gps_altitude

``micros``, the gyroscope triple and its confidence byte are validated but
not kept. Float fields may carry the literal ``nan`` while a sensor is
still warming up; that is a valid reading, not an error.

``parse_line()`` raises a :class:`~probestation.errors.DecodeError`
subclass for malformed lines; ``decode_line()`` wraps it for callers that
only want "record or nothing".
"""

from __future__ import annotations

import enum
import logging
import re
import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from ..errors import (
    DecodeError,
    ExtraField,
    InvalidConfidence,
    InvalidNumber,
    MissingField,
)
from ..tools.debug import debug_enabled

logger = logging.getLogger(__name__)

U32_MAX = 2**32 - 1
U8_MAX = 2**8 - 1

_INT_RE = re.compile(r"\+?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


class Confidence(enum.IntEnum):
    """Coarse quality flag the probe attaches to a sensor reading."""

    UNRELIABLE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def from_byte(cls, value: int, field: str = "confidence") -> "Confidence":
        """Convert a raw confidence byte, rejecting anything outside 0-3."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidConfidence(field, str(value)) from None


@dataclass(frozen=True)
class SensedRecord:
    index: int
    uptime: int
    temperature: float
    pressure: float
    acceleration: Tuple[float, float, float]
    acceleration_confidence: Confidence
    gps_time: int
    gps_position: Tuple[float, float]
    gps_altitude: float


# Wire order of every token on a line: (field name, token kind).
SCHEMA: Tuple[Tuple[str, str], ...] = (
    ("index", "u32"),
    ("uptime", "u32"),
    ("micros", "u32"),
    ("temperature", "f32"),
    ("pressure", "f32"),
    ("accel_x", "f64"),
    ("accel_y", "f64"),
    ("accel_z", "f64"),
    ("accel_confidence", "confidence"),
    ("gyro_x", "f64"),
    ("gyro_y", "f64"),
    ("gyro_z", "f64"),
    ("gyro_confidence", "confidence"),
    ("gps_time", "u32"),
    ("gps_lat", "f64"),
    ("gps_lon", "f64"),
    ("gps_altitude", "f64"),
)

FIELD_NAMES: Tuple[str, ...] = tuple(name for name, _ in SCHEMA)
FIELD_COUNT = len(SCHEMA)

BANNER_PREFIX = "--"


def _parse_unsigned(field: str, token: str, upper: int) -> int:
    if not _INT_RE.fullmatch(token):
        raise InvalidNumber(field, token, "invalid digit found in string")
    # Leading zeros aside, more digits than the bound means overflow; this also
    # keeps int() away from its digit limit.
    digits = token.lstrip("+").lstrip("0")
    if len(digits) > len(str(upper)):
        raise InvalidNumber(field, token, "number too large to fit in target type")
    value = int(digits) if digits else 0
    if value > upper:
        raise InvalidNumber(field, token, "number too large to fit in target type")
    return value


def _parse_u32(field: str, token: str) -> int:
    return _parse_unsigned(field, token, U32_MAX)


def _parse_f64(field: str, token: str) -> float:
    if not _FLOAT_RE.fullmatch(token):
        raise InvalidNumber(field, token, "invalid float literal")
    return float(token)


def _narrow_to_f32(token: str, value: float) -> float:
    """
    Round the already parsed ``value`` of ``token`` to single precision.

    Going through double precision first can round twice: when the double
    lands exactly halfway between two floats, the decimal text decides.
    """
    with np.errstate(over="ignore"):
        narrowed = np.float32(value)
    if not np.isfinite(narrowed) or float(narrowed) == value:
        return float(narrowed)

    toward = np.float32(np.inf) if float(narrowed) < value else np.float32(-np.inf)
    neighbour = np.nextafter(narrowed, toward)
    if not np.isfinite(neighbour):
        return float(narrowed)
    midpoint = (float(narrowed) + float(neighbour)) / 2.0
    if value != midpoint:
        return float(narrowed)

    exact = Decimal(token)
    if exact == Decimal(midpoint):
        return float(narrowed)
    above = exact > Decimal(midpoint)
    if above == (float(neighbour) > float(narrowed)):
        return float(neighbour)
    return float(narrowed)


def _parse_f32(field: str, token: str) -> float:
    # Single precision, so values match what the probe measured.
    return _narrow_to_f32(token, _parse_f64(field, token))


def _parse_confidence(field: str, token: str) -> Confidence:
    return Confidence.from_byte(_parse_unsigned(field, token, U8_MAX), field)


_PARSERS: Dict[str, Callable[[str, str], object]] = {
    "u32": _parse_u32,
    "f32": _parse_f32,
    "f64": _parse_f64,
    "confidence": _parse_confidence,
}


def is_banner(line: str) -> bool:
    """Return True for session banner lines printed by the probe firmware."""
    return line.strip().startswith(BANNER_PREFIX)


def parse_line(line: str) -> SensedRecord:
    """
    Decode a single telemetry line into a :class:`SensedRecord`.

    Raises
    ------
    MissingField
        The line had fewer tab-separated tokens than the schema.
    InvalidNumber
        A token could not be parsed as its numeric type.
    InvalidConfidence
        A confidence byte was outside 0-3.
    ExtraField
        The line had more tokens than the schema.
    """
    tokens: List[str] = line.strip().split("\t")

    values: Dict[str, object] = {}
    for position, (field, kind) in enumerate(SCHEMA):
        if position >= len(tokens):
            raise MissingField(field)
        values[field] = _PARSERS[kind](field, tokens[position])

    if len(tokens) > FIELD_COUNT:
        raise ExtraField(len(tokens), FIELD_COUNT)

    return SensedRecord(
        index=values["index"],
        uptime=values["uptime"],
        temperature=values["temperature"],
        pressure=values["pressure"],
        acceleration=(values["accel_x"], values["accel_y"], values["accel_z"]),
        acceleration_confidence=values["accel_confidence"],
        gps_time=values["gps_time"],
        gps_position=(values["gps_lat"], values["gps_lon"]),
        gps_altitude=values["gps_altitude"],
    )


_parse_time_acc = 0.0
_parse_count = 0
# Readers from an old and a new source may overlap briefly.
_parse_stats_lock = threading.Lock()


def decode_line(line: str) -> Optional[SensedRecord]:
    """
    Like :func:`parse_line` but returns ``None`` for lines that do not decode.

    The reason is logged at DEBUG level only; bad lines are routine on a
    noisy radio link.
    """
    global _parse_time_acc, _parse_count

    debug_on = debug_enabled()
    start = time.perf_counter() if debug_on else 0.0

    try:
        record: Optional[SensedRecord] = parse_line(line)
    except DecodeError as exc:
        # An empty line is a timed-out read, not worth a log entry.
        if line.strip():
            logger.debug("Dropping telemetry line %r: %s", line, exc)
        record = None

    if debug_on:
        elapsed = time.perf_counter() - start
        with _parse_stats_lock:
            _parse_time_acc += elapsed
            _parse_count += 1
            count = _parse_count
            total = _parse_time_acc
        if count % 1000 == 0:
            avg_us = (total / count) * 1e6
            logger.info("probe.decode_line avg %.1f µs over %d lines", avg_us, count)

    return record
