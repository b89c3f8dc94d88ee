"""Data input/output helpers (telemetry logs and file paths).

Utility modules here keep disk-level concerns isolated from the rest of the
application:
- :mod:`log_loader` decodes saved logs into a :class:`TelemetryStore`.
- :mod:`log_writer` encodes records back into the probe's log format.
- :mod:`file_paths` names live recordings.
"""
