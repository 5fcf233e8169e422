"""Base interface for snapshot sources."""

from __future__ import annotations

import abc

from ..view.data import Snapshot


class BaseSource(abc.ABC):
    """Abstract base class for producers of view snapshots."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Source name used in logs."""

    @abc.abstractmethod
    def snapshots(self) -> list[Snapshot]:
        """Close and return the current snapshot of every view."""
