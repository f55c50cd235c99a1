import csv
from typing import IO, Iterable

from companion_core.domain.models import Reading

from companion_client.dashboard import format_timestamp

COLUMNS = ["timestamp", "iso_time", "kind", "node", "pm25", "pm10", "lat", "lon"]


def write_csv(readings: Iterable[Reading], fp: IO[str], tz: str = "UTC") -> int:
    """Write readings as CSV rows to ``fp``; returns the number of rows written."""
    writer = csv.writer(fp)
    writer.writerow(COLUMNS)
    rows = 0
    for r in readings:
        writer.writerow(
            [
                r.timestamp,
                format_timestamp(r.timestamp, tz, "%Y-%m-%dT%H:%M:%S%z"),
                r.kind.value,
                r.node or "",
                r.pm25,
                "" if r.pm10 is None else r.pm10,
                r.lat,
                r.lon,
            ]
        )
        rows += 1
    return rows


def export_csv(readings: Iterable[Reading], path: str, tz: str = "UTC") -> int:
    with open(path, "w", newline="", encoding="utf-8") as fp:
        return write_csv(readings, fp, tz)
