"""Snapshot structures produced by the metrics-collection layer."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union


@dataclass(frozen=True)
class Tag:
    """A single tag key/value pair attached to a row."""

    key: str
    value: str


@dataclass(frozen=True)
class CountData:
    """Number of recorded observations."""

    value: int


@dataclass(frozen=True)
class DistributionData:
    """Summary of the observed value distribution."""

    count: int
    min: float
    max: float
    mean: float
    sum_of_squared_dev: float = 0.0
    bucket_counts: tuple[int, ...] = ()


@dataclass(frozen=True)
class LastValueData:
    """Most recent observation."""

    value: float


@dataclass(frozen=True)
class SumData:
    """Running total of all observations."""

    value: float


AggregationData = Union[CountData, DistributionData, LastValueData, SumData]


class AggregationKind(enum.Enum):
    COUNT = "count"
    DISTRIBUTION = "distribution"
    LAST_VALUE = "last_value"
    SUM = "sum"


_KINDS: dict[type, AggregationKind] = {
    CountData: AggregationKind.COUNT,
    DistributionData: AggregationKind.DISTRIBUTION,
    LastValueData: AggregationKind.LAST_VALUE,
    SumData: AggregationKind.SUM,
}


def kind_of(data: Any) -> AggregationKind | None:
    """Return the aggregation kind of *data*, or None for unrecognized objects.

    Subclasses of a variant resolve to the kind of that variant.
    """
    for cls in type(data).__mro__:
        kind = _KINDS.get(cls)
        if kind is not None:
            return kind
    return None


@dataclass(frozen=True)
class Row:
    """One tag combination within a view and its aggregated value.

    *data* is typed loosely on purpose: the collection layer may hand over
    aggregation objects this package does not know, and the exporter must
    report those instead of failing on construction.
    """

    tags: tuple[Tag, ...]
    data: Any

    def __post_init__(self) -> None:
        tags = tuple(self.tags)
        seen: set[str] = set()
        for tag in tags:
            if tag.key in seen:
                raise ValueError(f"duplicate tag key in row: {tag.key!r}")
            seen.add(tag.key)
        object.__setattr__(self, "tags", tags)

    def tag_map(self) -> dict[str, str]:
        """Return the row tags as a new dictionary."""
        return {tag.key: tag.value for tag in self.tags}


@dataclass(frozen=True)
class Snapshot:
    """All rows of one named view, closed at *timestamp*."""

    view_name: str
    rows: tuple[Row, ...]
    timestamp: datetime
    start: datetime | None = None
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(self.rows))
