"""Split a record stream into probe sessions.

The probe numbers its samples with a counter that starts over when it
reboots. A new session therefore begins whenever the counter goes *down*.
Forward jumps (dropped packets on the radio link) stay inside the current
session.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import List, MutableSequence, Optional

from ..sensors.probe import SensedRecord

Session = List[SensedRecord]


class SessionSegmenter:
    """Stateful session boundary detector keyed on ``SensedRecord.index``."""

    def __init__(self) -> None:
        self.last_index: Optional[int] = None

    def is_boundary(self, index: int) -> bool:
        """Return True if a record with ``index`` must open a new session."""
        return self.last_index is None or index < self.last_index

    def place(self, sessions: MutableSequence[Session], record: SensedRecord) -> bool:
        """
        Append ``record`` to ``sessions``, opening a new session when needed.

        Returns True when a new session was started.
        """
        started = self.is_boundary(record.index) or not sessions
        if started:
            sessions.append([record])
        else:
            sessions[-1].append(record)
        self.last_index = record.index
        return started

    def reset(self) -> None:
        self.last_index = None


def segment(records: Iterable[SensedRecord]) -> List[Session]:
    """Group ``records`` into sessions in arrival order."""
    sessions: List[Session] = []
    segmenter = SessionSegmenter()
    for record in records:
        segmenter.place(sessions, record)
    return sessions
