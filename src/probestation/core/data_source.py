"""Non-visual controller that owns the active telemetry source.

A display layer polls :class:`DataSourceManager` once per redraw for the
current sessions, the selected session and the status line. Switching to a
new source always builds a new :class:`TelemetryStore`; a serial reader that
belonged to the previous source is told to stop and left to wind down on its
own, still writing only into the store it was started with.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..analysis.rate import RateController
from ..config.runtime import ProbeStationConfig
from ..dataio.log_loader import load_log
from ..errors import IoError
from ..sensors.probe import SensedRecord
from ..transport.serial_link import SerialLink
from .segmenter import Session
from .store import TelemetryStore
from .stream_reader import StreamReaderHandle, start_reader

logger = logging.getLogger(__name__)

LinkFactory = Callable[[str, ProbeStationConfig], SerialLink]


class SourceKind(enum.Enum):
    NONE = "none"
    FILE = "file"
    SERIAL = "serial"


@dataclass
class DataSource:
    kind: SourceKind = SourceKind.NONE
    name: str = ""
    store: Optional[TelemetryStore] = None
    reader: Optional[StreamReaderHandle] = None
    baud_rate: Optional[int] = None

    @property
    def description(self) -> str:
        if self.kind is SourceKind.FILE:
            return f"Displaying data from {self.name}"
        if self.kind is SourceKind.SERIAL:
            return f"Connected to serial {self.name} at {self.baud_rate} baud"
        return "No data."


@dataclass(frozen=True)
class StatusMessage:
    text: str
    since: float
    duration_s: float

    def expired(self, now: float) -> bool:
        return now - self.since > self.duration_s


def session_label(number: int, session: Sequence[SensedRecord] | int) -> str:
    """Return e.g. ``"Session 2 (140 records)"``."""
    count = session if isinstance(session, int) else len(session)
    return f"Session {number} ({count} records)"


class DataSourceManager:
    """
    Holds the current data source and answers consumer read requests.

    Parameters
    ----------
    config:
        Serial and status settings; defaults to :class:`ProbeStationConfig`.
    link_factory:
        Opens a serial port. Injected for testability; defaults to
        :meth:`SerialLink.from_config`.
    clock:
        Monotonic clock used for status message expiry.
    """

    def __init__(
        self,
        config: ProbeStationConfig | None = None,
        *,
        link_factory: LinkFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or ProbeStationConfig()
        self._link_factory = link_factory or SerialLink.from_config
        self._clock = clock
        self._source = DataSource()
        self._current_session = 0
        self._status: Optional[StatusMessage] = None

    # ------------------------------------------------------------------
    # Source selection
    # ------------------------------------------------------------------

    @property
    def source(self) -> DataSource:
        return self._source

    def import_log(self, path: Path) -> bool:
        """Load a saved log as the new source. Returns False if unreadable."""
        path = Path(path)
        try:
            store = load_log(path, self._config.encoding)
        except IoError as exc:
            logger.warning("Import of %s failed: %s", path, exc)
            self.set_status("Unable to read file")
            return False
        logger.info("Imported %s: %d sessions", path.name, len(store))
        self.change_source(DataSource(kind=SourceKind.FILE, name=path.name, store=store))
        return True

    def connect_serial(self, port_name: str) -> bool:
        """Open ``port_name`` and start a live reader on it.

        Returns False, with a status message, if the port cannot be opened.
        """
        try:
            link = self._link_factory(port_name, self._config)
        except IoError as exc:
            logger.warning("Connection to %s failed: %s", port_name, exc)
            self.set_status(str(exc))
            return False

        store = TelemetryStore()
        reader = start_reader(
            link.lines(),
            store=store,
            on_exit=link.close,
            thread_name=f"{self._config.reader_thread_name}({port_name})",
        )
        self.change_source(
            DataSource(
                kind=SourceKind.SERIAL,
                name=port_name,
                store=store,
                reader=reader,
                baud_rate=self._config.baud_rate,
            )
        )
        return True

    def disconnect(self) -> None:
        """Drop the current source, stopping its reader if it has one."""
        self.change_source(DataSource())

    def change_source(self, new: DataSource) -> None:
        """Replace the current source and select its latest session."""
        old = self._source
        if old.reader is not None:
            # Advisory only: the old thread exits after its current read.
            old.reader.stop()
            logger.info("Requested stop of reader for %s", old.name)

        self._source = new
        count = len(new.store) if new.store is not None else 0
        self._current_session = count - 1 if count > 0 else 0

    # ------------------------------------------------------------------
    # Consumer read interface
    # ------------------------------------------------------------------

    def current_sessions(self) -> List[Session]:
        """Snapshot of every session of the current source (empty if none)."""
        store = self._source.store
        if store is None:
            return []
        return store.sessions()

    def session(self, index: int) -> Optional[Session]:
        store = self._source.store
        if store is None:
            return None
        return store.session(index)

    @property
    def current_session(self) -> int:
        return self._current_session

    def select_session(self, index: int) -> None:
        if index < 0:
            raise ValueError(f"session index must be >= 0, got {index}")
        self._current_session = index

    def selected_session(self) -> Optional[Session]:
        return self.session(self._current_session)

    def session_labels(self) -> List[str]:
        store = self._source.store
        if store is None:
            return []
        return [session_label(i, n) for i, n in enumerate(store.session_lengths())]

    def live_rate_hz(self, window: int = 50) -> float:
        """Recent record rate of the selected session, from probe uptimes."""
        session = self.selected_session()
        if not session:
            return 0.0
        controller = RateController(window_size=max(2, window))
        controller.feed_uptimes(record.uptime for record in session[-window:])
        return controller.estimated_hz

    # ------------------------------------------------------------------
    # Status line
    # ------------------------------------------------------------------

    def set_status(self, text: str, duration_s: float | None = None) -> None:
        if duration_s is None:
            duration_s = self._config.status_duration_s
        self._status = StatusMessage(text=text, since=self._clock(), duration_s=duration_s)

    def status(self) -> Optional[str]:
        """Current status text, or ``None`` once it has expired."""
        if self._status is None:
            return None
        if self._status.expired(self._clock()):
            self._status = None
            return None
        return self._status.text

    def dismiss_status(self) -> None:
        self._status = None
