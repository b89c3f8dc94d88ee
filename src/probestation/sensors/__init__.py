"""Probe telemetry record model and line decoder.

:mod:`probe` defines :class:`SensedRecord`, the :class:`Confidence` enum and
the tab-separated line schema shared by the decoder and the log writer.
"""

from .probe import (
    FIELD_NAMES,
    Confidence,
    SensedRecord,
    decode_line,
    is_banner,
    parse_line,
)

__all__ = [
    "FIELD_NAMES",
    "Confidence",
    "SensedRecord",
    "decode_line",
    "is_banner",
    "parse_line",
]
