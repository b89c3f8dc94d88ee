"""Column-oriented views of a session for plotting and map consumers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..sensors.probe import SensedRecord


@dataclass
class SessionSeries:
    """
    NumPy arrays extracted from one session, all indexed by record.

    ``gps_track`` is the exception: it only holds rows whose latitude and
    longitude are both finite, since the GPS reports NaN until it has a fix.
    """

    uptime_ms: np.ndarray
    temperature: np.ndarray
    pressure: np.ndarray
    acceleration: np.ndarray
    acceleration_magnitude: np.ndarray
    confidence: np.ndarray
    gps_track: np.ndarray
    gps_altitude: np.ndarray

    def __len__(self) -> int:
        return int(self.uptime_ms.shape[0])


def session_series(
    session: Sequence[SensedRecord],
    acceleration_offset: Tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> SessionSeries:
    """
    Convert ``session`` into column arrays.

    Parameters
    ----------
    session:
        Records in arrival order.
    acceleration_offset:
        Per-axis calibration offset added to every acceleration sample
        before the magnitude is computed.
    """
    count = len(session)
    offset = np.asarray(acceleration_offset, dtype=float)
    if offset.shape != (3,):
        raise ValueError(f"acceleration_offset must have 3 components, got {offset.shape}")

    acceleration = np.array([r.acceleration for r in session], dtype=float).reshape(count, 3)
    acceleration = acceleration + offset
    positions = np.array([r.gps_position for r in session], dtype=float).reshape(count, 2)
    fixed = np.all(np.isfinite(positions), axis=1)

    return SessionSeries(
        uptime_ms=np.array([r.uptime for r in session], dtype=float),
        temperature=np.array([r.temperature for r in session], dtype=float),
        pressure=np.array([r.pressure for r in session], dtype=float),
        acceleration=acceleration,
        acceleration_magnitude=np.sqrt(np.sum(np.square(acceleration), axis=1)),
        confidence=np.array([int(r.acceleration_confidence) for r in session], dtype=np.int8),
        gps_track=positions[fixed],
        gps_altitude=np.array([r.gps_altitude for r in session], dtype=float),
    )
