"""Local file sink – writes point batches to JSONL files."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from ..config import LocalSinkConfig
from ..errors import SinkWriteError
from .base import Batch, BaseSink
from .line_protocol import to_timestamp

logger = logging.getLogger(__name__)


class LocalSink(BaseSink):
    """Appends every written batch to a JSONL file on disk.

    One file per day is created inside the configured *output_dir*; each
    line holds one point. Writes are serialized so one sink can serve
    concurrent exports.
    """

    def __init__(self, config: LocalSinkConfig) -> None:
        self._config = config
        self._output_dir = Path(config.output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._fh = None
        self._current_date: str | None = None
        self._lock = threading.Lock()
        logger.info("LocalSink initialized → %s", self._output_dir)

    def _ensure_file(self) -> None:
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        if self._current_date != today or self._fh is None:
            if self._fh is not None:
                self._fh.close()
            filepath = self._output_dir / f"points-{today}.jsonl"
            self._fh = open(filepath, "a", encoding="utf-8")  # noqa: SIM115
            self._current_date = today

    def write(self, batch: Batch) -> None:
        with self._lock:
            self._write_locked(batch)

    def _write_locked(self, batch: Batch) -> None:
        try:
            self._ensure_file()
            assert self._fh is not None
            for p in batch:
                record = {
                    "database": batch.database,
                    "name": p.name,
                    "tags": dict(p.tags),
                    "fields": dict(p.fields),
                    "timestamp": to_timestamp(p.timestamp, batch.precision),
                    "precision": batch.precision,
                }
                self._fh.write(json.dumps(record) + "\n")
            self._fh.flush()
        except OSError as exc:
            raise SinkWriteError(f"could not write batch to {self._output_dir}: {exc}") from exc

    def shutdown(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
        logger.info("LocalSink shut down")
