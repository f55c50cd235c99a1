"""
Validation and normalisation of submitted readings.

Two schemas are accepted, tagged by ``ReadingKind``:

* ``node``   - fixed sensor hardware, ``pm25``, ``pm10``, ``lat``, ``lon`` required,
               ``node`` optional.
* ``mobile`` - GPS tracker updates, ``pm25``, ``lat``, ``lon`` required. ``pm10``
               is never carried on a mobile reading.

Numeric fields accept numbers or numeric strings. Timestamps are normalised to
epoch milliseconds with the 10**11 heuristic: smaller values are taken to be
seconds. The heuristic misreads instants before 1973 given in milliseconds and
instants after year 5138 given in seconds.
"""

import math
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from companion_core.domain.errors import ValidationError
from companion_core.domain.models import Reading, ReadingKind

SECONDS_THRESHOLD = 10**11

_REQUIRED = {
    ReadingKind.NODE: ("pm25", "pm10", "lat", "lon"),
    ReadingKind.MOBILE: ("pm25", "lat", "lon"),
}


def now_ms() -> int:
    return int(time.time() * 1000)


def _coerce_number(name: str, value: Any) -> float:
    # bool is an int subclass but never a concentration
    if isinstance(value, bool):
        raise ValidationError(f"invalid {name}: not a number")
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid {name}: not a number") from None
    if not math.isfinite(number):
        raise ValidationError(f"invalid {name}: not finite")
    return number


def normalize_timestamp(value: Any, received_at_ms: Optional[int] = None) -> int:
    """Return ``value`` as epoch milliseconds, or the receive time when absent."""
    if value is None or value == "":
        return received_at_ms if received_at_ms is not None else now_ms()

    if isinstance(value, str) and not _looks_numeric(value):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("invalid timestamp: unrecognised format") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)

    number = _coerce_number("timestamp", value)
    if number < 0:
        raise ValidationError("invalid timestamp: negative")
    if number < SECONDS_THRESHOLD:
        number *= 1000
    return int(number)


def _looks_numeric(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def parse_reading(
    payload: Mapping[str, Any],
    kind: ReadingKind = ReadingKind.NODE,
    received_at_ms: Optional[int] = None,
) -> Reading:
    """Validate a raw submission and build the immutable ``Reading`` it describes.

    Raises:
        ValidationError: with a machine-readable ``reason`` for the first problem found.
    """
    missing = [f for f in _REQUIRED[kind] if payload.get(f) is None or payload.get(f) == ""]
    if missing:
        raise ValidationError(f"missing {', '.join(missing)}")

    pm25 = _coerce_number("pm25", payload["pm25"])
    lat = _coerce_number("lat", payload["lat"])
    lon = _coerce_number("lon", payload["lon"])

    pm10: Optional[float] = None
    if kind == ReadingKind.NODE:
        pm10 = _coerce_number("pm10", payload["pm10"])
        if pm10 < 0:
            raise ValidationError("invalid pm10: negative")

    if pm25 < 0:
        raise ValidationError("invalid pm25: negative")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError("invalid lat: out of range")
    if not -180.0 <= lon <= 180.0:
        raise ValidationError("invalid lon: out of range")

    node = None
    if kind == ReadingKind.NODE and payload.get("node") not in (None, ""):
        node = str(payload["node"])

    return Reading(
        kind=kind,
        node=node,
        pm25=pm25,
        pm10=pm10,
        lat=lat,
        lon=lon,
        timestamp=normalize_timestamp(payload.get("timestamp"), received_at_ms),
    )
