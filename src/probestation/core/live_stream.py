"""Helpers shared by batch (file) and live (serial) ingestion."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..sensors.probe import decode_line, is_banner
from .store import TelemetryStore

logger = logging.getLogger(__name__)


@dataclass
class IngestStats:
    """Per-source counters for lines seen by :func:`ingest_line`."""

    accepted: int = 0
    rejected: int = 0
    banners: int = 0
    sessions_started: int = 0


def ingest_line(line: str, store: TelemetryStore, stats: IngestStats) -> bool:
    """
    Decode one raw line and commit it to ``store``.

    Banner lines are counted and skipped. Lines that fail to decode
    (including the empty string produced by a timed-out read) are counted
    as rejected and dropped. Returns True if a record was stored.
    """
    if is_banner(line):
        stats.banners += 1
        logger.debug("Session banner: %s", line.strip())
        return False

    record = decode_line(line)
    if record is None:
        stats.rejected += 1
        return False

    if store.accept(record):
        stats.sessions_started += 1
        logger.info("New session detected at index %d", record.index)
    stats.accepted += 1
    return True


def ingest_lines(lines: Iterable[str], store: TelemetryStore) -> IngestStats:
    """Feed every line of ``lines`` through the decoder into ``store``."""
    stats = IngestStats()
    for line in lines:
        ingest_line(line, store, stats)
    return stats
