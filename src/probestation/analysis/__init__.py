"""Session analysis utilities (column series and cadence statistics).

Modules here operate on sessions of decoded records and return NumPy arrays
or small dataclasses. :mod:`series` and :mod:`rate` stay free of threading
and I/O so they can be reused by the CLI, tests, or a display layer alike.
"""
