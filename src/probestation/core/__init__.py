"""Core ingestion pipeline: sessions, the shared store, and readers.

This package sits between the transports and any display layer: the
segmenter groups records into sessions, the store shares them between the
ingest thread and readers, and the data source manager swaps sources and
answers consumer polls (see :mod:`data_source`).
"""

from .live_stream import IngestStats, ingest_line, ingest_lines
from .segmenter import Session, SessionSegmenter, segment
from .store import TelemetryStore
from .stream_reader import ReaderState, StreamReaderHandle, reader_loop, start_reader

__all__ = [
    "IngestStats",
    "ReaderState",
    "Session",
    "SessionSegmenter",
    "StreamReaderHandle",
    "TelemetryStore",
    "ingest_line",
    "ingest_lines",
    "reader_loop",
    "segment",
    "start_reader",
]
