"""Configuration loading and validation for influx_export."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ExporterConfig:
    """View exporter settings."""

    database: str = "metrics"
    naming: str = "plain"
    static_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class InfluxConfig:
    """InfluxDB HTTP sink settings."""

    url: str = "http://localhost:8086"
    retention_policy: str = ""
    timeout_seconds: float = 5.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class LocalSinkConfig:
    """Local file sink settings."""

    output_dir: str = "./export_data"


@dataclass
class ReporterConfig:
    """Periodic reporting settings."""

    enabled: bool = True
    interval_seconds: float = 10.0
    system: bool = True


@dataclass
class InfluxExportConfig:
    """Top-level influx_export configuration."""

    mode: str = "local"
    exporter: ExporterConfig = field(default_factory=ExporterConfig)
    influx: InfluxConfig = field(default_factory=InfluxConfig)
    local_sink: LocalSinkConfig = field(default_factory=LocalSinkConfig)
    reporter: ReporterConfig = field(default_factory=ReporterConfig)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using INFLUX_EXPORT_ prefix."""
    env_map = {
        "INFLUX_EXPORT_MODE": ("mode",),
        "INFLUX_EXPORT_DATABASE": ("exporter", "database"),
        "INFLUX_EXPORT_NAMING": ("exporter", "naming"),
        "INFLUX_EXPORT_URL": ("influx", "url"),
        "INFLUX_EXPORT_RETENTION_POLICY": ("influx", "retention_policy"),
        "INFLUX_EXPORT_TIMEOUT": ("influx", "timeout_seconds"),
        "INFLUX_EXPORT_INTERVAL": ("reporter", "interval_seconds"),
        "INFLUX_EXPORT_OUTPUT_DIR": ("local_sink", "output_dir"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            # coerce numeric values
            if final_key in ("interval_seconds", "timeout_seconds"):
                obj[final_key] = float(value)
            else:
                obj[final_key] = value
    return data


def _section(cls: type, data: dict[str, Any]) -> Any:
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> InfluxExportConfig:
    """Convert a raw dictionary to an InfluxExportConfig dataclass."""
    exporter = _section(ExporterConfig, data.get("exporter", {}))
    exporter.static_tags = {str(k): str(v) for k, v in (exporter.static_tags or {}).items()}
    return InfluxExportConfig(
        mode=data.get("mode", "local"),
        exporter=exporter,
        influx=_section(InfluxConfig, data.get("influx", {})),
        local_sink=_section(LocalSinkConfig, data.get("local_sink", {})),
        reporter=_section(ReporterConfig, data.get("reporter", {})),
    )


def load_config(path: str | Path | None = None) -> InfluxExportConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``influx_export.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("influx_export.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
