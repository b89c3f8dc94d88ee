"""Runtime configuration for the serial link and ingestion pipeline."""

from __future__ import annotations

import codecs
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from ..errors import ConfigError


@dataclass(slots=True)
class ProbeStationConfig:
    """
    Tuning knobs for how the ground station talks to the probe's receiver.

    The defaults match the receiver firmware: 115200 baud, RTS/CTS flow
    control, and a one second read timeout so a stopped reader notices
    cancellation at least once per second.
    """

    baud_rate: int = 115200
    read_timeout_s: float = 1.0
    hardware_flow_control: bool = True
    encoding: str = "utf-8"

    # How long a status message stays visible to consumers.
    status_duration_s: float = 6.0

    reader_thread_name: str = "ProbeStationReader"

    # Where ``listen --record`` puts logs when no file is named.
    recordings_dir: str = "recordings"

    def sanitized(self) -> ProbeStationConfig:
        """Return a copy with values clamped to usable ranges."""
        timeout = float(self.read_timeout_s)
        if not math.isfinite(timeout) or timeout <= 0.0:
            timeout = 1.0
        duration = float(self.status_duration_s)
        if not math.isfinite(duration) or duration < 0.0:
            duration = 6.0
        encoding = str(self.encoding)
        try:
            codecs.lookup(encoding)
        except LookupError:
            raise ConfigError(f"Unknown encoding {encoding!r}") from None
        return ProbeStationConfig(
            baud_rate=max(1, int(self.baud_rate)),
            read_timeout_s=timeout,
            hardware_flow_control=bool(self.hardware_flow_control),
            encoding=encoding,
            status_duration_s=duration,
            reader_thread_name=str(self.reader_thread_name) or "ProbeStationReader",
            recordings_dir=str(self.recordings_dir) or "recordings",
        )


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`ProbeStationConfig`."""
    return {f.name for f in fields(ProbeStationConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``serial`` block into the main mapping."""
    if "serial" in data and isinstance(data["serial"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "serial":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> ProbeStationConfig:
    """Build :class:`ProbeStationConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return ProbeStationConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    try:
        return ProbeStationConfig(**payload).sanitized()
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc


def load_config(path: str | Path | None) -> ProbeStationConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`ProbeStationConfig`; files
    that are not valid YAML raise :class:`ConfigError`.
    """
    if path is None:
        return ProbeStationConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return ProbeStationConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {cfg_path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = ["ProbeStationConfig", "config_from_mapping", "load_config"]
