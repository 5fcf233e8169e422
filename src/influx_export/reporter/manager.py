"""Reporting manager that drives view exports on an interval."""

from __future__ import annotations

import logging
import threading

from ..config import ReporterConfig
from ..exporter.base import BaseExporter
from .base import BaseSource

logger = logging.getLogger(__name__)


class ReportingManager:
    """Pulls snapshots from sources and hands each view to an exporter.

    Instantiate it with a :class:`ReporterConfig` and an exporter, register
    sources via :meth:`add_source`, then call :meth:`start` / :meth:`stop`,
    or drive it manually with :meth:`report_once`.
    """

    def __init__(self, config: ReporterConfig, exporter: BaseExporter) -> None:
        self._config = config
        self._exporter = exporter
        self._sources: list[BaseSource] = []
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def add_source(self, source: BaseSource) -> None:
        """Register a source whose views are exported on every pass."""
        self._sources.append(source)

    def report_once(self) -> int:
        """Export every view of every source once. Returns the number of views."""
        exported = 0
        for source in self._sources:
            try:
                snapshots = source.snapshots()
            except Exception:
                logger.exception("Source %s failed", source.name)
                continue
            for snapshot in snapshots:
                self._exporter.export_view(snapshot)
                exported += 1
        return exported

    def _run(self) -> None:
        """Background thread loop."""
        while not self._stop_event.is_set():
            self.report_once()
            self._stop_event.wait(self._config.interval_seconds)

    def start(self) -> None:
        """Start reporting in the background."""
        if not self._config.enabled:
            return
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info("ReportingManager started (interval=%.1fs)", self._config.interval_seconds)

    def stop(self) -> None:
        """Stop background reporting."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("ReportingManager stopped")
