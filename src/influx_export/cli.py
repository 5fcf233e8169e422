"""CLI interface for influx_export."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time

from . import __version__
from .config import InfluxExportConfig, load_config
from .exporter.influx import Exporter
from .sink.base import BaseSink


def build_sink(cfg: InfluxExportConfig) -> BaseSink:
    """Create the sink selected by ``cfg.mode``."""
    if cfg.mode == "online":
        from .sink.http import InfluxHttpSink
        return InfluxHttpSink(cfg.influx)
    if cfg.mode == "local":
        from .sink.local import LocalSink
        return LocalSink(cfg.local_sink)
    raise ValueError(f"unknown mode {cfg.mode!r}; expected 'local' or 'online'")


def build_exporter(cfg: InfluxExportConfig) -> Exporter:
    return Exporter(
        build_sink(cfg),
        cfg.exporter.database,
        static_tags=cfg.exporter.static_tags,
        naming=cfg.exporter.naming,
    )


def _cmd_run(args: argparse.Namespace) -> None:
    """Export views on the configured interval."""
    cfg = load_config(args.config)

    from .reporter.manager import ReportingManager
    from .reporter.system import SystemSource

    exporter = build_exporter(cfg)
    manager = ReportingManager(cfg.reporter, exporter)
    if cfg.reporter.system:
        manager.add_source(SystemSource())

    if args.once:
        try:
            count = manager.report_once()
        finally:
            exporter.shutdown()
        print(f"Exported {count} views to {cfg.exporter.database} (mode={cfg.mode})")
        return

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    manager.start()
    print(f"influx_export running (mode={cfg.mode}, interval={cfg.reporter.interval_seconds}s)")
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        manager.stop()
        exporter.shutdown()
    print("\nReporting stopped.")


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"influx_export {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the influx-export CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="influx-export",
        description="Export aggregated view statistics to InfluxDB",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to influx_export.yaml")
    sub = parser.add_subparsers(dest="command")

    # run
    run_p = sub.add_parser("run", help="Start periodic view export")
    run_p.add_argument("--once", action="store_true", help="Export a single pass and exit")
    run_p.set_defaults(func=_cmd_run)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
