"""Serial-port transport for the ground-station radio receiver."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import List, Optional

import serial
from serial.tools import list_ports as _list_ports

from ..config.runtime import ProbeStationConfig
from ..errors import SerialOpenError

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 115200
DEFAULT_READ_TIMEOUT_S = 1.0

# Far longer than any telemetry line; past this, unterminated bytes are noise.
MAX_PENDING_BYTES = 4096


@dataclass(frozen=True)
class PortInfo:
    """A serial port as reported by the operating system."""

    device: str
    product: Optional[str] = None
    manufacturer: Optional[str] = None
    is_usb: bool = False

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``"/dev/ttyUSB0 (CP2102; Silicon Labs)"``."""
        if not self.is_usb:
            return self.device
        product = self.product or "Unknown"
        manufacturer = self.manufacturer or "Unknown"
        return f"{self.device} ({product}; {manufacturer})"


def list_ports() -> List[PortInfo]:
    """Return the serial ports currently available, sorted by device name."""
    ports = []
    for info in _list_ports.comports():
        ports.append(
            PortInfo(
                device=info.device,
                product=info.product,
                manufacturer=info.manufacturer,
                is_usb=info.vid is not None,
            )
        )
    return sorted(ports, key=lambda p: p.device)


class SerialLink:
    """
    Line-oriented wrapper around an open :class:`serial.Serial` port.

    Every call to :meth:`read_line` is one bounded read attempt. Timeouts
    and read errors yield ``""`` so the ingest loop keeps running and can
    check its stop event. Bytes of a line that was cut by a timeout are
    kept and completed by the next read.
    """

    def __init__(self, port: serial.Serial, *, encoding: str = "utf-8") -> None:
        self._port = port
        self._encoding = encoding
        self._pending = b""
        self._closed = False

    @classmethod
    def open(
        cls,
        port_name: str,
        *,
        baud_rate: int = DEFAULT_BAUD_RATE,
        timeout_s: float = DEFAULT_READ_TIMEOUT_S,
        hardware_flow_control: bool = True,
        encoding: str = "utf-8",
    ) -> SerialLink:
        """Open ``port_name``; raise :class:`SerialOpenError` on failure."""
        try:
            port = serial.Serial(
                port=port_name,
                baudrate=baud_rate,
                timeout=timeout_s,
                rtscts=hardware_flow_control,
            )
        except (serial.SerialException, ValueError, OSError) as exc:
            raise SerialOpenError(f"Unable to open {port_name}: {exc}") from exc
        logger.info(
            "Opened %s at %d baud (timeout %.3f s, rtscts=%s)",
            port_name,
            baud_rate,
            timeout_s,
            hardware_flow_control,
        )
        return cls(port, encoding=encoding)

    @classmethod
    def from_config(cls, port_name: str, config: ProbeStationConfig) -> SerialLink:
        return cls.open(
            port_name,
            baud_rate=config.baud_rate,
            timeout_s=config.read_timeout_s,
            hardware_flow_control=config.hardware_flow_control,
            encoding=config.encoding,
        )

    # ------------------------------------------------------------------ reading
    @property
    def port_name(self) -> str:
        return str(self._port.port)

    @property
    def closed(self) -> bool:
        return self._closed

    def read_line(self) -> str:
        """Read one line, or return ``""`` if nothing complete arrived in time."""
        try:
            chunk = self._port.readline()
        except (serial.SerialException, OSError) as exc:
            logger.debug("Read from %s failed: %s", self.port_name, exc)
            self._pending = b""
            return ""

        if not chunk:
            return ""

        data = self._pending + chunk
        if not data.endswith(b"\n"):
            if len(data) > MAX_PENDING_BYTES:
                logger.debug(
                    "Discarding %d unterminated bytes from %s", len(data), self.port_name
                )
                data = b""
            self._pending = data
            return ""

        self._pending = b""
        return data.decode(self._encoding, errors="replace")

    def lines(self) -> Iterator[str]:
        """Yield one read attempt after another until the link is closed."""
        while not self._closed:
            yield self.read_line()

    # ------------------------------------------------------------------ lifecycle
    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._port.close()
        logger.info("Closed serial port %s", self.port_name)

    def __enter__(self) -> SerialLink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
