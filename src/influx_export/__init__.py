"""influx_export – export aggregated view statistics to InfluxDB."""

from .exporter.influx import Exporter, NamingPolicy, log_error
from .view.data import (
    CountData,
    DistributionData,
    LastValueData,
    Row,
    Snapshot,
    SumData,
    Tag,
)

__version__ = "0.1.0"

__all__ = [
    "CountData",
    "DistributionData",
    "Exporter",
    "LastValueData",
    "NamingPolicy",
    "Row",
    "Snapshot",
    "SumData",
    "Tag",
    "log_error",
]
