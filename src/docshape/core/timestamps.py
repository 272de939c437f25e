"""
UTC timestamp utilities (stdlib-only).

Shared primitives for turning the timestamp encodings found in generic
documents into timezone-aware ``datetime`` values. The timestamp hook and
the msgpack codec both build on these so that every input encoding lands
on the same point in time.

Manifesto:
    Text, binary and numeric encoders disagree on how to write a timestamp.
    One module owns the conversions so that ``"2024-01-15T10:30:00Z"``,
    ``1705312200`` (seconds) and ``1705312200000.0`` (milliseconds) compare
    equal after decoding.

    - **parse_rfc3339():** RFC 3339 with and without fractional seconds
    - **from_epoch_seconds() / from_epoch_millis():** numeric epoch offsets
    - **ensure_utc():** naive datetimes are taken to be UTC

Tags:
    timestamps, utc, datetime, rfc3339, epoch, docshape, stdlib-only

Doc-Types:
    - API Reference
"""

import re
from datetime import UTC, datetime

# Tried in order; the fractional profile also accepts nanosecond precision,
# truncated to microseconds.
RFC3339 = "%Y-%m-%dT%H:%M:%S%z"
RFC3339_FRACTION = "%Y-%m-%dT%H:%M:%S.%f%z"
TIME_FORMATS: tuple[str, ...] = (RFC3339, RFC3339_FRACTION)

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware ones are returned unchanged."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def from_epoch_seconds(value: int) -> datetime:
    """Whole seconds since the Unix epoch."""
    return datetime.fromtimestamp(value, UTC)


def from_epoch_millis(value: float) -> datetime:
    """Fractional milliseconds since the Unix epoch."""
    return datetime.fromtimestamp(value / 1000, UTC)


def parse_rfc3339(value: str) -> datetime | None:
    """
    Parse an RFC 3339 timestamp.

    Returns None when the text matches none of ``TIME_FORMATS``.
    """
    text = value.strip()
    for fmt in TIME_FORMATS:
        candidate = _EXCESS_FRACTION.sub(r"\1", text) if fmt is RFC3339_FRACTION else text
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue
    return None
