"""
VIA Backend — Route Point Normalizer
======================================

What:  Turns the raw, client-ordered GPS trace into a validated, sequence-ordered
       list of points plus the route's start/end anchors.
Why:   Clients upload points in whatever order they were buffered; distance,
       anchors and persistence all require the trace in `seq` order.
How:   Validate every point first (presence, types, coordinate ranges, unique
       sequence numbers), then stable-sort by `seq`.

Raw point shape (as posted by the mobile client):
    {"seq": 1, "lat": 30.2849, "lng": -97.7341, "acc": 5.0, "time": "2023-10-27T10:00:00Z"}

All validation happens here, before any distance or duration computation
and before any storage call.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from via_api.exceptions import ValidationError

REQUIRED_POINT_FIELDS = ("seq", "lat", "lng", "time")

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)


@dataclass(frozen=True)
class TracePoint:
    """One validated GPS fix."""

    sequence: int
    lat: float
    lng: float
    accuracy_meters: Optional[float]
    recorded_at: datetime


@dataclass(frozen=True)
class NormalizedTrace:
    points: List[TracePoint]
    start: TracePoint
    end: TracePoint


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any, field: str = "time") -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
    raise ValidationError(
        message=f"'{field}' must be an ISO 8601 timestamp, got {value!r}",
        field=field,
    )


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coordinate(value: Any, field: str, bounds: tuple, index: int) -> float:
    if isinstance(value, bool):
        raise ValidationError(
            message=f"Point {index}: '{field}' must be a number", field=field,
            context={"index": index},
        )
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Point {index}: '{field}' must be a number", field=field,
            context={"index": index},
        )
    low, high = bounds
    if math.isnan(number) or not low <= number <= high:
        raise ValidationError(
            message=f"Point {index}: '{field}' must be between {low:g} and {high:g}",
            field=field,
            context={"index": index, "value": number},
        )
    return number


def _sequence(value: Any, index: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(message=f"Point {index}: 'seq' must be an integer", field="seq")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value))
    except ValueError:
        raise ValidationError(
            message=f"Point {index}: 'seq' must be an integer", field="seq",
            context={"index": index},
        )


def _validate_point(raw: Mapping[str, Any], index: int) -> TracePoint:
    missing = [name for name in REQUIRED_POINT_FIELDS if _is_missing(raw.get(name))]
    if missing:
        raise ValidationError(
            message=f"Point {index} is missing required fields: {', '.join(missing)}",
            field="points",
            context={"index": index, "fields": missing},
        )

    accuracy = raw.get("acc")
    if accuracy is not None:
        try:
            accuracy = float(accuracy)
        except (TypeError, ValueError):
            raise ValidationError(
                message=f"Point {index}: 'acc' must be a number", field="acc",
                context={"index": index},
            )

    return TracePoint(
        sequence=_sequence(raw["seq"], index),
        lat=_coordinate(raw["lat"], "lat", LAT_RANGE, index),
        lng=_coordinate(raw["lng"], "lng", LNG_RANGE, index),
        accuracy_meters=accuracy,
        recorded_at=parse_timestamp(raw["time"], field="time"),
    )


def normalize_points(raw_points: Optional[Sequence[Mapping[str, Any]]]) -> NormalizedTrace:
    """
    Validate and order a raw GPS trace.

    Returns the points sorted ascending by sequence with the first and last
    point as anchors. Sequence numbers must be unique, since route_points
    stores them under UNIQUE (route_id, sequence).

    Raises:
        ValidationError: empty trace, a point missing seq/lat/lng/time,
            a coordinate out of range, or a sequence number used twice.
    """
    if not raw_points:
        raise ValidationError(
            message="A route needs at least one point",
            field="points",
        )

    validated = [_validate_point(raw, index) for index, raw in enumerate(raw_points)]

    seen = set()
    duplicates = []
    for point in validated:
        if point.sequence in seen and point.sequence not in duplicates:
            duplicates.append(point.sequence)
        seen.add(point.sequence)
    if duplicates:
        raise ValidationError(
            message=f"Point sequence numbers must be unique; repeated: {sorted(duplicates)}",
            field="points",
            context={"duplicate_sequences": sorted(duplicates)},
        )

    ordered = sorted(validated, key=lambda point: point.sequence)
    return NormalizedTrace(points=ordered, start=ordered[0], end=ordered[-1])
