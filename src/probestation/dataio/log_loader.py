"""Utilities for loading saved telemetry logs."""

from pathlib import Path
from typing import Sequence, Tuple

from ..core.live_stream import IngestStats, ingest_lines
from ..core.store import TelemetryStore
from ..errors import LogReadError
from ..tools.debug import time_block


def read_log_text(path: Path, encoding: str = "utf-8") -> str:
    """
    Return the full text of a telemetry log.

    Raises :class:`LogReadError` if the file is missing, unreadable, or not
    valid text in ``encoding``.
    """
    path = Path(path)
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise LogReadError(f"Unable to read file {path.name}: {exc}") from exc


def parse_log_with_stats(text: str) -> Tuple[TelemetryStore, IngestStats]:
    """Decode every line of ``text`` into a fresh store and report counters."""
    store = TelemetryStore()
    stats = ingest_lines(text.splitlines(), store)
    return store, stats


def parse_log(text: str) -> TelemetryStore:
    """
    Build a :class:`TelemetryStore` from the text of a whole log.

    Banner lines are skipped and lines that fail to decode are dropped.
    """
    store, _ = parse_log_with_stats(text)
    return store


def load_log(path: Path, encoding: str = "utf-8") -> TelemetryStore:
    """Read and decode the log at ``path`` synchronously."""
    with time_block(f"load_log({Path(path).name})"):
        return parse_log(read_log_text(path, encoding))


def merge_logs(paths: Sequence[Path], encoding: str = "utf-8") -> TelemetryStore:
    """
    Decode several logs, in order, into one store.

    Segmentation carries across file boundaries, so a log that continues
    the previous file's counter extends its last session.
    """
    store = TelemetryStore()
    for path in paths:
        ingest_lines(read_log_text(path, encoding).splitlines(), store)
    return store
