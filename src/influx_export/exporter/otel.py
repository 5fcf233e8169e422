"""OpenTelemetry bridge – feeds SDK metric exports through a view exporter."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from opentelemetry.sdk.metrics.export import (
    Gauge,
    Histogram,
    Metric,
    MetricExporter,
    MetricExportResult,
    MetricsData,
    Sum,
)

from ..view.data import (
    DistributionData,
    LastValueData,
    Row,
    Snapshot,
    SumData,
    Tag,
)
from .base import BaseExporter

logger = logging.getLogger(__name__)


def _to_datetime(unix_nano: int) -> datetime:
    return datetime.fromtimestamp(unix_nano / 1e9, tz=timezone.utc)


def _attribute_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def _tags(attributes: Any) -> tuple[Tag, ...]:
    if not attributes:
        return ()
    return tuple(Tag(str(k), _attribute_text(v)) for k, v in attributes.items())


def _row_data(data: Any, point: Any) -> Any:
    """Map one OTel data point onto an aggregation variant.

    Data types without a counterpart are returned untouched so the view
    exporter reports them as unknown aggregation types.
    """
    if isinstance(data, Sum):
        if data.is_monotonic:
            return SumData(value=point.value)
        return LastValueData(value=point.value)
    if isinstance(data, Gauge):
        return LastValueData(value=point.value)
    if isinstance(data, Histogram):
        if point.count == 0:
            return DistributionData(count=0, min=0.0, max=0.0, mean=0.0)
        return DistributionData(
            count=point.count,
            min=point.min,
            max=point.max,
            mean=point.sum / point.count,
            bucket_counts=tuple(point.bucket_counts),
        )
    return point


def metric_to_snapshot(metric: Metric) -> Snapshot | None:
    """Convert one SDK metric into a view snapshot.

    Returns None when the metric carries no data points.
    """
    points = list(metric.data.data_points)
    if not points:
        return None
    rows = [Row(tags=_tags(p.attributes), data=_row_data(metric.data, p)) for p in points]
    return Snapshot(
        view_name=metric.name,
        rows=tuple(rows),
        timestamp=_to_datetime(max(p.time_unix_nano for p in points)),
        start=_to_datetime(min(p.start_time_unix_nano or p.time_unix_nano for p in points)),
        description=metric.description or "",
    )


def _metrics(metrics_data: MetricsData) -> Iterable[Metric]:
    for resource_metrics in metrics_data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            yield from scope_metrics.metrics


class OtelViewExporter(MetricExporter):
    """OpenTelemetry SDK metric exporter backed by a view exporter.

    Attach it to a ``PeriodicExportingMetricReader``; every collected metric
    becomes one snapshot handed to :meth:`BaseExporter.export_view`. Errors
    are reported through the view exporter's own error handler, so the SDK
    always sees a successful export.
    """

    def __init__(self, exporter: BaseExporter, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._exporter = exporter

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: Any,
    ) -> MetricExportResult:
        for metric in _metrics(metrics_data):
            snapshot = metric_to_snapshot(metric)
            if snapshot is not None:
                self._exporter.export_view(snapshot)
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: Any) -> None:
        self._exporter.shutdown()
        logger.info("OtelViewExporter shut down")
