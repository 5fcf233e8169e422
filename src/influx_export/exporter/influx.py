"""InfluxDB view exporter – turns view snapshots into batched point writes."""

from __future__ import annotations

import enum
import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping

from ..errors import PointError, UnknownAggregationError
from ..sink.base import BaseSink, BatchConfig, FieldValue
from ..view.data import (
    AggregationKind,
    Row,
    Snapshot,
    kind_of,
)
from .base import BaseExporter

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Exception], None]

PRECISION = "s"


class NamingPolicy(enum.Enum):
    """How point names are derived from the view name."""

    PLAIN = "plain"
    SUFFIXED = "suffixed"

    @classmethod
    def parse(cls, value: str | NamingPolicy) -> NamingPolicy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"unknown naming policy {value!r}; expected 'plain' or 'suffixed'"
            ) from None


_SUFFIXES = {
    AggregationKind.COUNT: ".count",
    AggregationKind.DISTRIBUTION: ".histogram",
    AggregationKind.LAST_VALUE: ".gauge",
    AggregationKind.SUM: ".gauge",
}


def log_error(exc: Exception) -> None:
    """Default error handler: log the failure and move on."""
    logger.error("View export failed: %s", exc)


def extract_fields(data: Any) -> dict[str, FieldValue]:
    """Build the point fields for one aggregation value.

    Raises :class:`UnknownAggregationError` for unrecognized types and
    :class:`PointError` when a value cannot be converted to a number.
    """
    kind = kind_of(data)
    if kind is None:
        raise UnknownAggregationError(type(data))
    try:
        if kind is AggregationKind.DISTRIBUTION:
            return {
                "min": data.min,
                "max": data.max,
                "mean": data.mean,
                "count": data.count,
            }
        return {"value": float(data.value)}
    except (TypeError, ValueError, OverflowError) as exc:
        raise PointError(
            f"{type(data).__name__} value is not numeric: {exc}"
        ) from exc


class Exporter(BaseExporter):
    """Exports view snapshots to a time-series sink.

    Every call to :meth:`export_view` builds one batch for *database*, adds
    one point per row and submits it with a single :meth:`BaseSink.write`.
    Nothing is raised to the caller; failures go to *error_handler*:

    * batch creation failure or an unknown aggregation type aborts the call
      before anything is written;
    * a point the sink refuses is reported and its row skipped;
    * a failed write is reported and not retried.

    *static_tags* are attached to every point; row tags win on key
    collision. *naming* selects plain view names or names suffixed by
    aggregation kind (``.count``, ``.histogram``, ``.gauge``).
    """

    def __init__(
        self,
        sink: BaseSink,
        database: str,
        error_handler: ErrorHandler = log_error,
        static_tags: Mapping[str, str] | None = None,
        naming: NamingPolicy | str = NamingPolicy.PLAIN,
    ) -> None:
        self._sink = sink
        self._database = database
        self._error_handler = error_handler
        self._static_tags: Mapping[str, str] | None = (
            MappingProxyType(dict(static_tags)) if static_tags else None
        )
        self._naming = NamingPolicy.parse(naming)
        logger.info(
            "Exporter initialized → %s (naming=%s, static_tags=%d)",
            database,
            self._naming.value,
            len(static_tags or {}),
        )

    @property
    def database(self) -> str:
        return self._database

    @property
    def naming(self) -> NamingPolicy:
        return self._naming

    def _report(self, exc: Exception) -> None:
        try:
            self._error_handler(exc)
        except Exception:
            logger.exception("Error handler failed while reporting %r", exc)

    def point_name(self, view_name: str, kind: AggregationKind) -> str:
        if self._naming is NamingPolicy.PLAIN:
            return view_name
        return view_name + _SUFFIXES[kind]

    def point_tags(self, row: Row) -> dict[str, str]:
        if self._static_tags is None:
            return row.tag_map()
        tags = dict(self._static_tags)
        tags.update(row.tag_map())
        return tags

    def export_view(self, snapshot: Snapshot) -> None:
        try:
            batch = self._sink.new_batch(
                BatchConfig(database=self._database, precision=PRECISION)
            )
        except Exception as exc:
            self._report(exc)
            return

        for row in snapshot.rows:
            kind = kind_of(row.data)
            if kind is None:
                self._report(UnknownAggregationError(type(row.data), snapshot.view_name))
                return

            try:
                fields = extract_fields(row.data)
                point = self._sink.new_point(
                    self.point_name(snapshot.view_name, kind),
                    self.point_tags(row),
                    fields,
                    snapshot.timestamp,
                )
            except Exception as exc:
                self._report(exc)
                continue
            batch.add_point(point)

        try:
            self._sink.write(batch)
        except Exception as exc:
            self._report(exc)
            return
        logger.debug(
            "Exported view %s: %d/%d rows", snapshot.view_name, len(batch), len(snapshot.rows)
        )

    def shutdown(self) -> None:
        self._sink.shutdown()
        logger.info("Exporter shut down")
