"""Transports that deliver raw telemetry lines from the probe's radio.

:class:`SerialLink` wraps a pyserial port with hardware flow control and a
bounded read timeout; :func:`list_ports` enumerates candidate receivers.
"""

from .serial_link import PortInfo, SerialLink, list_ports

__all__ = ["PortInfo", "SerialLink", "list_ports"]
