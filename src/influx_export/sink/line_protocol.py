"""InfluxDB line protocol encoding."""

from __future__ import annotations

from datetime import datetime, timezone

from .base import Batch, FieldValue, Point

_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ "})
_KEY_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})

# nanoseconds per precision unit
_PRECISION_NS = {
    "ns": 1,
    "u": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def escape_measurement(name: str) -> str:
    return name.replace("\\", "\\\\").translate(_MEASUREMENT_ESCAPES)


def escape_key(text: str) -> str:
    """Escape a tag key, tag value or field key."""
    return text.replace("\\", "\\\\").translate(_KEY_ESCAPES)


def format_field(value: FieldValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    return repr(float(value))


def to_timestamp(ts: datetime, precision: str = "s") -> int:
    """Convert *ts* to an integer epoch offset in *precision* units.

    Naive datetimes are treated as UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    delta = ts - _EPOCH
    nanos = (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000
    return nanos // _PRECISION_NS[precision]


def encode_point(point: Point, precision: str = "s") -> str:
    """Encode one point as a single line protocol line (without newline)."""
    parts = [escape_measurement(point.name)]
    for key in sorted(point.tags):
        value = point.tags[key]
        # influx drops tags with empty values
        if value == "":
            continue
        parts.append(f"{escape_key(key)}={escape_key(value)}")
    series = ",".join(parts)
    fields = ",".join(
        f"{escape_key(key)}={format_field(value)}"
        for key, value in point.fields.items()
    )
    return f"{series} {fields} {to_timestamp(point.timestamp, precision)}"


def encode_batch(batch: Batch) -> str:
    return "\n".join(encode_point(p, batch.precision) for p in batch)
