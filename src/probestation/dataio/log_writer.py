"""Writing telemetry back out in the probe's own tab-separated format."""

import csv
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import IO, List, Optional, Sequence

from ..sensors.probe import SensedRecord

# Fields the decoder discards are written as zero.
_IGNORED = "0"


def _format_float(value: float) -> str:
    return repr(float(value))


def record_row(record: SensedRecord) -> List[str]:
    """Return the 17 tokens of ``record`` in wire order."""
    ax, ay, az = record.acceleration
    lat, lon = record.gps_position
    return [
        str(record.index),
        str(record.uptime),
        _IGNORED,
        _format_float(record.temperature),
        _format_float(record.pressure),
        _format_float(ax),
        _format_float(ay),
        _format_float(az),
        str(int(record.acceleration_confidence)),
        _IGNORED,
        _IGNORED,
        _IGNORED,
        _IGNORED,
        str(record.gps_time),
        _format_float(lat),
        _format_float(lon),
        _format_float(record.gps_altitude),
    ]


def format_line(record: SensedRecord) -> str:
    """Encode ``record`` as one tab-separated log line (without newline)."""
    return "\t".join(record_row(record))


def session_banner(number: int) -> str:
    return f"-- session {number} --"


def write_log(
    path: Path,
    sessions: Sequence[Sequence[SensedRecord]],
    *,
    banner: bool = True,
) -> None:
    """
    Write ``sessions`` to ``path`` as a telemetry log.

    A banner line precedes each session when ``banner`` is True. Directories
    are created as needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as logfile:
        writer = csv.writer(logfile, delimiter="\t", lineterminator="\n")
        for number, session in enumerate(sessions):
            if banner:
                writer.writerow([session_banner(number)])
            writer.writerows(record_row(record) for record in session)


class LogRecorder:
    """Append raw telemetry lines, as received, to a log file."""

    def __init__(self, path: Path, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[IO[str]] = self.path.open("a", encoding=encoding)
        self._lock = threading.Lock()
        self.lines_written = 0

    def write_line(self, line: str) -> None:
        text = line.strip()
        if not text:
            return
        with self._lock:
            if self._fh is None:
                return
            self._fh.write(text + "\n")
            self._fh.flush()
            self.lines_written += 1

    def tee(self, lines: Iterable[str]) -> Iterator[str]:
        """Yield ``lines`` unchanged while recording each one."""
        for line in lines:
            self.write_line(line)
            yield line

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None

    @property
    def closed(self) -> bool:
        return self._fh is None

    def __enter__(self) -> "LogRecorder":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
