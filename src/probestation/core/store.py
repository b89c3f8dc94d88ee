"""Thread-safe in-memory store of decoded telemetry sessions."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import List, Optional

from ..sensors.probe import SensedRecord
from .segmenter import Session, SessionSegmenter


class TelemetryStore:
    """Ordered list of sessions for one data source.

    A single writer (the ingest thread, or the loader in batch mode) calls
    :meth:`accept`, while any number of readers take snapshots for display
    or analysis. The RLock keeps a snapshot consistent with itself; readers
    may still see the store grow between two snapshots.

    A store belongs to exactly one data source. Switching sources creates a
    new store instead of clearing this one, so a reader thread that is still
    winding down can never write into the replacement.
    """

    def __init__(self) -> None:
        self._sessions: List[Session] = []
        self._segmenter = SessionSegmenter()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ ingest
    def accept(self, record: SensedRecord) -> bool:
        """Place ``record`` into the current or a new session.

        Returns True when the record started a new session.
        """
        with self._lock:
            return self._segmenter.place(self._sessions, record)

    def extend(self, records: Iterable[SensedRecord]) -> int:
        """Accept several records under one lock; return new session count."""
        started = 0
        with self._lock:
            for record in records:
                if self._segmenter.place(self._sessions, record):
                    started += 1
        return started

    # ------------------------------------------------------------------- query
    @property
    def last_index(self) -> Optional[int]:
        """Index of the most recently accepted record, if any."""
        with self._lock:
            return self._segmenter.last_index

    def sessions(self) -> List[Session]:
        """Return a point-in-time copy of all sessions."""
        with self._lock:
            return [list(session) for session in self._sessions]

    def session(self, index: int) -> Optional[Session]:
        """Return a copy of session ``index``, or ``None`` if it does not exist."""
        with self._lock:
            if index < 0 or index >= len(self._sessions):
                return None
            return list(self._sessions[index])

    def session_lengths(self) -> List[int]:
        """Record count per session without copying the records."""
        with self._lock:
            return [len(session) for session in self._sessions]

    def record_count(self) -> int:
        with self._lock:
            return sum(len(session) for session in self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
