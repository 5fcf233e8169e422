"""Host CPU and memory views backed by psutil."""

from __future__ import annotations

from datetime import datetime, timezone

import psutil

from ..view.data import LastValueData, Row, Snapshot, Tag
from .base import BaseSource


def _gauge(name: str, value: float, now: datetime, description: str) -> Snapshot:
    return Snapshot(
        view_name=name,
        rows=(Row(tags=(), data=LastValueData(value=float(value))),),
        timestamp=now,
        description=description,
    )


class SystemSource(BaseSource):
    """Reports host CPU and memory usage as last-value views."""

    @property
    def name(self) -> str:
        return "system"

    def snapshots(self) -> list[Snapshot]:
        now = datetime.now(timezone.utc)

        cpu_rows = [Row(
            tags=(Tag("cpu", "total"),),
            data=LastValueData(value=psutil.cpu_percent(interval=0)),
        )]
        for idx, pct in enumerate(psutil.cpu_percent(interval=0, percpu=True)):
            cpu_rows.append(Row(tags=(Tag("cpu", str(idx)),), data=LastValueData(value=pct)))

        mem = psutil.virtual_memory()
        return [
            Snapshot(
                view_name="system.cpu.usage_percent",
                rows=tuple(cpu_rows),
                timestamp=now,
                description="CPU usage percentage",
            ),
            _gauge("system.memory.usage_percent", mem.percent, now, "Memory usage percentage"),
            _gauge("system.memory.used_bytes", mem.used, now, "Memory used in bytes"),
            _gauge("system.memory.available_bytes", mem.available, now, "Memory available in bytes"),
        ]
