"""Configuration objects and helpers for ProbeStation.

Settings live in an optional YAML file (see :mod:`runtime`) describing the
serial receiver: baud rate, flow control, read timeout and text encoding.
The resulting :class:`ProbeStationConfig` is passed to the serial transport,
the data source manager and the CLI.
"""

from .runtime import ProbeStationConfig, config_from_mapping, load_config

__all__ = ["ProbeStationConfig", "config_from_mapping", "load_config"]
