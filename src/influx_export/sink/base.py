"""Base interface and value types for time-series sinks."""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Mapping, Union

from ..errors import BatchError, PointError

PRECISIONS = ("ns", "u", "ms", "s", "m", "h")

FieldValue = Union[float, int, bool]


@dataclass(frozen=True)
class BatchConfig:
    """Destination settings for one batch write."""

    database: str
    precision: str = "s"
    retention_policy: str = ""


@dataclass(frozen=True)
class Point:
    """One timestamped, tagged, multi-field record."""

    name: str
    tags: Mapping[str, str]
    fields: Mapping[str, FieldValue]
    timestamp: datetime


@dataclass
class Batch:
    """Ordered collection of points written to the sink in one call."""

    config: BatchConfig
    points: list[Point] = field(default_factory=list)

    @property
    def database(self) -> str:
        return self.config.database

    @property
    def precision(self) -> str:
        return self.config.precision

    def add_point(self, point: Point) -> None:
        self.points.append(point)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)


def _check_text(kind: str, text: str) -> None:
    if "\n" in text or "\r" in text:
        raise PointError(f"{kind} {text!r} contains a newline")


class BaseSink(abc.ABC):
    """Abstract base for sinks that accept batched point writes.

    Subclasses only implement :meth:`write`; batch and point construction
    apply the validation rules of the InfluxDB line protocol.
    """

    def new_batch(self, config: BatchConfig) -> Batch:
        """Create an empty batch bound to *config*."""
        if not config.database:
            raise BatchError("database name is required")
        if config.precision not in PRECISIONS:
            raise BatchError(f"invalid time precision: {config.precision!r}")
        return Batch(config=config)

    def new_point(
        self,
        name: str,
        tags: Mapping[str, str],
        fields: Mapping[str, FieldValue],
        timestamp: datetime,
    ) -> Point:
        """Validate the inputs and build an immutable :class:`Point`."""
        if not name:
            raise PointError("point name is required")
        _check_text("point name", name)
        if not fields:
            raise PointError(f"point {name!r} has no fields")

        for key, value in tags.items():
            if not key:
                raise PointError(f"point {name!r} has an empty tag key")
            _check_text("tag key", key)
            _check_text("tag value", str(value))

        for key, value in fields.items():
            if not key:
                raise PointError(f"point {name!r} has an empty field key")
            _check_text("field key", key)
            if isinstance(value, bool):
                continue
            if not isinstance(value, (int, float)):
                raise PointError(
                    f"field {key!r} of point {name!r} is not numeric: {type(value).__name__}"
                )
            if isinstance(value, float) and not math.isfinite(value):
                raise PointError(f"field {key!r} of point {name!r} is {value}, which is unsupported")

        return Point(
            name=name,
            tags={k: str(v) for k, v in tags.items()},
            fields=dict(fields),
            timestamp=timestamp,
        )

    @abc.abstractmethod
    def write(self, batch: Batch) -> None:
        """Persist *batch*. Raises :class:`SinkWriteError` on failure."""

    def shutdown(self) -> None:
        """Release resources held by the sink."""
