from __future__ import annotations

"""
Background ingestion of a live telemetry stream into a :class:`TelemetryStore`.

Each live connection gets one daemon thread. The thread pulls one line per
read attempt from its source, decodes and segments it, commits it to the
store it was started with, and then checks its stop event. Stopping is
cooperative: :meth:`StreamReaderHandle.stop` only sets the event, and the
thread notices after its current (timeout-bounded) read returns.
"""

import enum
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Callable, Optional

from .live_stream import IngestStats, ingest_line
from .store import TelemetryStore

logger = logging.getLogger(__name__)


class ReaderState(enum.Enum):
    """
    Lifecycle of one reader thread.

    The transport is opened before :func:`start_reader` is called, so
    ``CONNECTING`` covers the span between creating the handle and the
    thread's first read attempt, not the port open itself. A port that
    fails to open never gets a handle.
    """

    CONNECTING = "connecting"
    RUNNING = "running"
    CANCELLING = "cancelling"
    STOPPED = "stopped"


def reader_loop(
    lines: Iterable[str],
    store: TelemetryStore,
    *,
    stop_event: Optional[threading.Event] = None,
    stats: Optional[IngestStats] = None,
) -> IngestStats:
    """Decode lines from ``lines`` into ``store`` until stopped or exhausted.

    Every item of ``lines`` is one read attempt; an empty string stands for
    a read that timed out or failed and is dropped like any other line that
    does not decode. The stop event is checked after every attempt, so the
    line read just before cancellation is still committed.
    """
    if stats is None:
        stats = IngestStats()
    for raw_line in lines:
        ingest_line(raw_line, store, stats)
        if stop_event is not None and stop_event.is_set():
            break
    return stats


@dataclass
class StreamReaderHandle:
    thread: threading.Thread
    stop_event: threading.Event
    store: TelemetryStore
    stats: IngestStats = field(default_factory=IngestStats)
    state: ReaderState = ReaderState.CONNECTING
    _state_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _advance(self, new: ReaderState, *, only_from: tuple[ReaderState, ...] = ()) -> None:
        with self._state_lock:
            if not only_from or self.state in only_from:
                self.state = new

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        """Ask the reader to stop. Does not wait unless ``join`` is True."""
        self._advance(
            ReaderState.CANCELLING,
            only_from=(ReaderState.CONNECTING, ReaderState.RUNNING),
        )
        self.stop_event.set()
        if join:
            self.thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set()

    def is_alive(self) -> bool:
        return self.thread.is_alive()


def start_reader(
    lines: Iterable[str],
    *,
    store: Optional[TelemetryStore] = None,
    on_exit: Optional[Callable[[], None]] = None,
    thread_name: Optional[str] = None,
) -> StreamReaderHandle:
    """
    Start a background thread that ingests telemetry lines from ``lines``.

    The returned handle's ``store`` is the one and only store this thread
    writes to. ``on_exit`` runs on the reader thread once the loop ends,
    typically to close the transport.
    """

    target_store = store if store is not None else TelemetryStore()
    stop_event = threading.Event()
    stats = IngestStats()
    name = thread_name or "ProbeStationReader"

    def _target() -> None:
        handle._advance(ReaderState.RUNNING, only_from=(ReaderState.CONNECTING,))
        logger.info("Reader %s started", name)
        try:
            reader_loop(lines, target_store, stop_event=stop_event, stats=stats)
        except OSError as exc:
            logger.warning("Reader %s lost its line source: %s", name, exc)
        finally:
            if on_exit is not None:
                try:
                    on_exit()
                except OSError as exc:
                    logger.warning("Reader %s failed to close its source: %s", name, exc)
            handle._advance(ReaderState.STOPPED)
            if stop_event.is_set():
                logger.info("Cancel order detected; reader %s stopped", name)
            else:
                logger.info("Reader %s reached end of stream", name)
            logger.debug(
                "Reader %s: %d accepted, %d rejected, %d banners",
                name,
                stats.accepted,
                stats.rejected,
                stats.banners,
            )

    thread = threading.Thread(target=_target, name=name, daemon=True)
    handle = StreamReaderHandle(
        thread=thread, stop_event=stop_event, store=target_store, stats=stats
    )
    thread.start()
    return handle
