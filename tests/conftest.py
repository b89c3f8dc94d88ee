from __future__ import annotations

import time
from typing import Callable, Iterable, List, Optional, Union

import pytest

from probestation.sensors.probe import FIELD_NAMES, Confidence, SensedRecord

REFERENCE_LINE = "0\t1\t1\t2\t3\t4\t4\t4\t0\t6\t6\t6\t0\t8\t9\t9\t10"


def build_line(**overrides: object) -> str:
    """Return the reference line with named fields replaced."""
    tokens = REFERENCE_LINE.split("\t")
    for name, value in overrides.items():
        tokens[FIELD_NAMES.index(name)] = str(value)
    return "\t".join(tokens)


def build_record(index: int, uptime: int = 0) -> SensedRecord:
    return SensedRecord(
        index=index,
        uptime=uptime,
        temperature=20.0,
        pressure=101325.0,
        acceleration=(0.0, 0.0, 1.0),
        acceleration_confidence=Confidence.HIGH,
        gps_time=0,
        gps_position=(float("nan"), float("nan")),
        gps_altitude=0.0,
    )


class FakePort:
    """Stand-in for ``serial.Serial`` that replays scripted ``readline`` results.

    An empty script behaves like a port with no traffic: each read waits
    ``timeout`` seconds and returns ``b""``.
    """

    def __init__(
        self,
        chunks: Iterable[Union[bytes, Exception]] = (),
        *,
        port: str = "/dev/ttyFAKE",
        timeout: float = 0.01,
    ) -> None:
        self._chunks: List[Union[bytes, Exception]] = list(chunks)
        self.port = port
        self.timeout = timeout
        self.closed = False

    def feed(self, *chunks: Union[bytes, Exception]) -> None:
        self._chunks.extend(chunks)

    def readline(self) -> bytes:
        if not self._chunks:
            time.sleep(self.timeout)
            return b""
        item = self._chunks.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def make_line() -> Callable[..., str]:
    return build_line


@pytest.fixture
def make_record() -> Callable[..., SensedRecord]:
    return build_record


@pytest.fixture
def fake_port() -> Callable[..., FakePort]:
    return FakePort


@pytest.fixture
def poll() -> Callable[..., bool]:
    return wait_for


@pytest.fixture
def log_text() -> Callable[[Iterable[int], Optional[int]], str]:
    """Build a log with one line per index (uptime = 100 ms per step)."""

    def _build(indices: Iterable[int], banner_every: Optional[int] = None) -> str:
        lines = []
        for position, index in enumerate(indices):
            if banner_every and position % banner_every == 0:
                lines.append(f"-- session banner {position} --")
            lines.append(build_line(index=index, uptime=position * 100))
        return "\n".join(lines) + "\n"

    return _build
