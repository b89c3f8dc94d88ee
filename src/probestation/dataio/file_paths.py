"""Helpers for constructing standard file paths."""

import re
from datetime import datetime
from pathlib import Path
from typing import Optional

# Allow only alphanumerics, underscore, dot, and dash.
_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def _sanitize_name(name: str) -> str:
    """
    Sanitize a port or session name for use in a file name.

    - Replace disallowed characters with '_'.
    - Strip leading/trailing underscores and dots.
    - Fall back to 'probe' if nothing remains.
    """
    cleaned = _NAME_RE.sub("_", name).strip("_.")
    return cleaned or "probe"


def recording_path(name: str, base: Path, now: Optional[datetime] = None) -> Path:
    """
    Return a timestamped log file path for a live recording.

    Example: "dev_ttyUSB0_20251204_153045.log"
    """
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(base) / f"{_sanitize_name(name)}_{timestamp}.log"
