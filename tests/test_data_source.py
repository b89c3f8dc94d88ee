from __future__ import annotations

from pathlib import Path

import pytest

from probestation.config import ProbeStationConfig
from probestation.core.data_source import (
    DataSourceManager,
    SourceKind,
    session_label,
)
from probestation.core.stream_reader import ReaderState
from probestation.errors import SerialOpenError
from probestation.transport.serial_link import SerialLink

from conftest import FakePort, build_line, wait_for


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class PortFactory:
    """Hands out scripted ports and remembers which were opened."""

    def __init__(self) -> None:
        self.ports: dict[str, FakePort] = {}

    def __call__(self, port_name: str, config: ProbeStationConfig) -> SerialLink:
        port = FakePort(port=port_name)
        self.ports[port_name] = port
        return SerialLink(port, encoding=config.encoding)


def _failing_factory(port_name: str, config: ProbeStationConfig) -> SerialLink:
    raise SerialOpenError(f"Unable to open {port_name}: access denied")


def test_initial_state_has_no_data() -> None:
    manager = DataSourceManager()

    assert manager.source.kind is SourceKind.NONE
    assert manager.source.description == "No data."
    assert manager.current_sessions() == []
    assert manager.selected_session() is None
    assert manager.session_labels() == []
    assert manager.live_rate_hz() == 0.0


def test_import_log_selects_last_session(tmp_path: Path, log_text) -> None:
    path = tmp_path / "flight.log"
    path.write_text(log_text([1, 2, 3, 0, 1], banner_every=3), encoding="utf-8")
    manager = DataSourceManager()

    assert manager.import_log(path) is True

    assert manager.source.kind is SourceKind.FILE
    assert manager.source.description == "Displaying data from flight.log"
    assert manager.current_session == 1
    assert [r.index for r in manager.selected_session()] == [0, 1]
    assert manager.session_labels() == ["Session 0 (3 records)", "Session 1 (2 records)"]


def test_import_failure_sets_expiring_status(tmp_path: Path) -> None:
    clock = FakeClock()
    manager = DataSourceManager(ProbeStationConfig(status_duration_s=6.0), clock=clock)

    assert manager.import_log(tmp_path / "missing.log") is False

    assert manager.source.kind is SourceKind.NONE
    assert manager.status() == "Unable to read file"
    clock.now += 5.9
    assert manager.status() == "Unable to read file"
    clock.now += 0.2
    assert manager.status() is None


def test_status_can_be_dismissed() -> None:
    manager = DataSourceManager(clock=FakeClock())
    manager.set_status("hello", duration_s=60.0)

    manager.dismiss_status()

    assert manager.status() is None


def test_select_session() -> None:
    manager = DataSourceManager()
    manager.select_session(4)
    assert manager.current_session == 4
    assert manager.selected_session() is None

    with pytest.raises(ValueError):
        manager.select_session(-1)


def test_connect_serial_streams_into_new_store() -> None:
    factory = PortFactory()
    manager = DataSourceManager(link_factory=factory)

    assert manager.connect_serial("/dev/ttyUSB0") is True
    source = manager.source
    assert source.kind is SourceKind.SERIAL
    assert source.description == "Connected to serial /dev/ttyUSB0 at 115200 baud"

    factory.ports["/dev/ttyUSB0"].feed(
        *(f"{build_line(index=i, uptime=i * 100)}\n".encode() for i in range(10))
    )
    assert wait_for(lambda: source.store.record_count() == 10)
    assert manager.live_rate_hz() == pytest.approx(10.0)

    manager.disconnect()
    source.reader.thread.join(timeout=1.0)
    assert source.reader.state is ReaderState.STOPPED
    assert factory.ports["/dev/ttyUSB0"].closed


def test_switching_source_stops_old_reader(tmp_path: Path, log_text) -> None:
    factory = PortFactory()
    manager = DataSourceManager(link_factory=factory)
    manager.connect_serial("COM3")
    serial_source = manager.source
    factory.ports["COM3"].feed(f"{build_line(index=1)}\n".encode())
    assert wait_for(lambda: serial_source.store.record_count() == 1)

    path = tmp_path / "saved.log"
    path.write_text(log_text([7, 8]), encoding="utf-8")
    manager.import_log(path)

    assert serial_source.reader.cancelled
    # Late traffic on the old port never reaches the new source.
    factory.ports["COM3"].feed(f"{build_line(index=2)}\n".encode())
    serial_source.reader.thread.join(timeout=1.0)
    assert not serial_source.reader.is_alive()
    assert factory.ports["COM3"].closed
    assert [r.index for r in manager.selected_session()] == [7, 8]


def test_connect_failure_keeps_previous_source(tmp_path: Path, log_text) -> None:
    path = tmp_path / "saved.log"
    path.write_text(log_text([1]), encoding="utf-8")
    manager = DataSourceManager(link_factory=_failing_factory, clock=FakeClock())
    manager.import_log(path)

    assert manager.connect_serial("COM9") is False

    assert manager.source.kind is SourceKind.FILE
    assert manager.status() == "Unable to open COM9: access denied"


def test_session_label() -> None:
    assert session_label(2, 140) == "Session 2 (140 records)"
    assert session_label(0, []) == "Session 0 (0 records)"


def test_import_drops_line_with_overlong_number(tmp_path: Path) -> None:
    path = tmp_path / "noisy.log"
    path.write_text(
        "\n".join([build_line(index="7" * 5000), build_line(index=1), build_line(index=2)]) + "\n",
        encoding="utf-8",
    )
    manager = DataSourceManager()

    assert manager.import_log(path) is True

    assert [r.index for r in manager.selected_session()] == [1, 2]
