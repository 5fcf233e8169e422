"""Base interface for view exporters."""

from __future__ import annotations

import abc

from ..view.data import Snapshot


class BaseExporter(abc.ABC):
    """Abstract base for exporters that receive view snapshots."""

    @abc.abstractmethod
    def export_view(self, snapshot: Snapshot) -> None:
        """Export all rows of one view snapshot."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
