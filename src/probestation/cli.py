"""Command-line entry point: inspect logs, list ports, record live telemetry."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, TextIO

from .analysis.rate import session_timing
from .config import ProbeStationConfig, load_config
from .core.data_source import session_label
from .core.live_stream import IngestStats
from .core.segmenter import Session
from .core.stream_reader import start_reader
from .dataio.file_paths import recording_path
from .dataio.log_loader import parse_log_with_stats, read_log_text
from .dataio.log_writer import LogRecorder
from .errors import ConfigError, IoError
from .tools.debug import debug_enabled
from .transport.serial_link import SerialLink, list_ports

_RECORD_DEFAULT = "<auto>"


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="probestation",
        description="Probe telemetry ground station",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML file with serial/ingest settings",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log dropped lines and reader lifecycle events",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", help="Print the sessions found in a saved log")
    summary.add_argument("logfile", type=Path)

    sub.add_parser("ports", help="List available serial ports")

    listen = sub.add_parser("listen", help="Read live telemetry from a serial port")
    listen.add_argument("port", help="Serial device, e.g. /dev/ttyUSB0 or COM3")
    listen.add_argument(
        "--seconds",
        type=float,
        help="Stop after this many seconds (default: until Ctrl+C)",
    )
    listen.add_argument(
        "--baud",
        type=int,
        help="Override baud_rate without editing the YAML",
    )
    listen.add_argument(
        "--record",
        nargs="?",
        const=_RECORD_DEFAULT,
        help="Append received lines to FILE (default: timestamped file in recordings_dir)",
    )
    return parser


def _resolve_config(args: argparse.Namespace) -> ProbeStationConfig:
    cfg = load_config(args.config) if args.config else ProbeStationConfig()
    if getattr(args, "baud", None) is not None:
        cfg.baud_rate = int(args.baud)
    return cfg.sanitized()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or debug_enabled() else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_sessions(sessions: Sequence[Session], out: TextIO) -> None:
    if not sessions:
        print("No data.", file=out)
        return
    for number, session in enumerate(sessions):
        timing = session_timing(session)
        print(
            f"{session_label(number, session)}: "
            f"{timing.duration_s:.1f} s, {timing.rate_hz:.2f} Hz, "
            f"{timing.dropped} dropped",
            file=out,
        )


def _print_stats(stats: IngestStats, out: TextIO) -> None:
    print(
        f"{stats.accepted} records, {stats.rejected} rejected lines, "
        f"{stats.banners} banners",
        file=out,
    )


def _cmd_summary(args: argparse.Namespace, cfg: ProbeStationConfig, out: TextIO) -> int:
    try:
        text = read_log_text(args.logfile, cfg.encoding)
    except IoError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    store, stats = parse_log_with_stats(text)
    print(f"Displaying data from {args.logfile.name}", file=out)
    _print_sessions(store.sessions(), out)
    _print_stats(stats, out)
    return 0


def _cmd_ports(out: TextIO) -> int:
    ports = list_ports()
    if not ports:
        print("No serial ports found.", file=out)
    for port in ports:
        print(port.label, file=out)
    return 0


def _cmd_listen(args: argparse.Namespace, cfg: ProbeStationConfig, out: TextIO) -> int:
    try:
        link = SerialLink.from_config(args.port, cfg)
    except IoError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    recorder: Optional[LogRecorder] = None
    lines = link.lines()
    if args.record is not None:
        if args.record == _RECORD_DEFAULT:
            target = recording_path(args.port, Path(cfg.recordings_dir))
        else:
            target = Path(args.record)
        recorder = LogRecorder(target, encoding=cfg.encoding)
        lines = recorder.tee(lines)
        print(f"Recording to {target}", file=out)

    def _close_source() -> None:
        # Runs on the reader thread, after its last write.
        try:
            link.close()
        finally:
            if recorder is not None:
                recorder.close()

    print(f"Connected to serial {args.port} at {cfg.baud_rate} baud", file=out)
    handle = start_reader(
        lines,
        on_exit=_close_source,
        thread_name=f"{cfg.reader_thread_name}({args.port})",
    )

    deadline = None if args.seconds is None else time.monotonic() + args.seconds
    seen_sessions = 0
    try:
        while handle.is_alive():
            if deadline is not None and time.monotonic() >= deadline:
                break
            count = len(handle.store)
            if count != seen_sessions:
                seen_sessions = count
                latest = handle.store.session(count - 1) or []
                print(f"New session: {session_label(count - 1, latest)}", file=out)
            time.sleep(0.2)
    except KeyboardInterrupt:
        print("Interrupted.", file=out)
    finally:
        handle.stop(join=True, timeout=cfg.read_timeout_s * 2)

    _print_sessions(handle.store.sessions(), out)
    _print_stats(handle.stats, out)
    return 0


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    out = out or sys.stdout
    try:
        cfg = _resolve_config(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.command == "summary":
        return _cmd_summary(args, cfg, out)
    if args.command == "ports":
        return _cmd_ports(out)
    return _cmd_listen(args, cfg, out)
