from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Deque, Iterable

import numpy as np

from ..sensors.probe import SensedRecord


class RateController:
    """
    Estimate the sample rate of a stream from probe uptimes.

    Notes
    -----
    - Uptimes are milliseconds since probe boot, as carried by each record.
    - Only the most recent ``window_size`` uptimes are kept, so the estimate
      follows changes in the probe's transmit cadence.
    """

    def __init__(self, window_size: int = 100, default_hz: float = 0.0) -> None:
        if window_size <= 1:
            raise ValueError("window_size must be > 1")
        self._times: Deque[float] = deque(maxlen=window_size)
        self.default_hz = float(default_hz)

    def add_uptime_ms(self, uptime_ms: float) -> None:
        """
        Append a new sample time.

        Parameters
        ----------
        uptime_ms:
            Probe uptime of the sample, in milliseconds.
        """
        self._times.append(float(uptime_ms) / 1000.0)

    def feed_uptimes(self, uptimes_ms: Iterable[float]) -> None:
        """Convenience method to bulk-add uptimes."""
        for t in uptimes_ms:
            self.add_uptime_ms(t)

    @property
    def estimated_hz(self) -> float:
        """Estimate Hz from the current window."""
        if len(self._times) < 2:
            return self.default_hz
        span = self._times[-1] - self._times[0]
        if span <= 0:
            return self.default_hz
        return (len(self._times) - 1) / span

    @property
    def buffer_span_s(self) -> float:
        """Time span (seconds) covered by the current window."""
        if len(self._times) < 2:
            return 0.0
        return self._times[-1] - self._times[0]

    @property
    def buffer_size(self) -> int:
        return len(self._times)

    def reset(self) -> None:
        self._times.clear()


@dataclass
class SessionTiming:
    """Inter-arrival statistics for one session."""

    record_count: int
    duration_s: float
    mean_interval_ms: float
    rate_hz: float
    dropped: int
    duplicates: int


def session_timing(session: Sequence[SensedRecord]) -> SessionTiming:
    """
    Summarise the cadence of ``session``.

    ``dropped`` counts sequence numbers skipped between consecutive records
    (packets lost on the radio link); ``duplicates`` counts records that
    repeat the previous index.
    """
    count = len(session)
    if count < 2:
        return SessionTiming(count, 0.0, float("nan"), 0.0, 0, 0)

    uptimes = np.fromiter((r.uptime for r in session), dtype=np.int64, count=count)
    indices = np.fromiter((r.index for r in session), dtype=np.int64, count=count)

    intervals = np.diff(uptimes)
    steps = np.diff(indices)

    duration_s = float(uptimes[-1] - uptimes[0]) / 1000.0
    mean_interval_ms = float(np.mean(intervals))
    rate_hz = (count - 1) / duration_s if duration_s > 0 else 0.0
    dropped = int(np.sum(steps[steps > 1] - 1))
    duplicates = int(np.count_nonzero(steps == 0))
    return SessionTiming(
        record_count=count,
        duration_s=duration_s,
        mean_interval_ms=mean_interval_ms,
        rate_hz=rate_hz,
        dropped=dropped,
        duplicates=duplicates,
    )
