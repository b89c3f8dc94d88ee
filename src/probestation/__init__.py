"""Ground-station telemetry ingestion for a sensor probe.

Public API
----------
SensedRecord        - one decoded telemetry sample
parse_line          - telemetry line -> SensedRecord (raises DecodeError)
TelemetryStore      - thread-safe ordered sessions of records
load_log            - decode a saved log into a TelemetryStore
start_reader        - live ingestion on a background thread
DataSourceManager   - swaps file/serial sources and answers consumer polls
"""

from .core.data_source import DataSourceManager
from .core.store import TelemetryStore
from .core.stream_reader import start_reader
from .dataio.log_loader import load_log
from .sensors.probe import Confidence, SensedRecord, parse_line

__version__ = "0.1.0"

__all__ = [
    "Confidence",
    "DataSourceManager",
    "SensedRecord",
    "TelemetryStore",
    "load_log",
    "parse_line",
    "start_reader",
]
