"""Exception hierarchy shared by the exporter and its sinks."""

from __future__ import annotations


class ExportError(Exception):
    """Base class for all export failures."""


class BatchError(ExportError):
    """The batch could not be created (bad database or precision)."""


class PointError(ExportError):
    """A single point is not acceptable to the sink."""


class SinkWriteError(ExportError):
    """The sink rejected or failed to persist a batch."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownAggregationError(ExportError):
    """A row carries an aggregation type the exporter cannot translate."""

    def __init__(self, data_type: type, view_name: str = "") -> None:
        super().__init__(f"unknown aggregation type: {data_type.__name__}")
        self.data_type = data_type
        self.view_name = view_name
