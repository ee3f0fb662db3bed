"""Canonical archive names for activity sessions.

A session started at 2023-06-01 10:00 local time that lasted 90 minutes of
running is archived as ``2023/2023-06-01T10:00:00+02:00 running 1h30m0s.fit``.
Everything here is pure: no filesystem access and no deduplication.
"""
from datetime import datetime

MILLIS_PER_MINUTE = 60_000


def round_duration(millis: int) -> int:
    """Round to whole minutes, halfway values rounding up."""
    return (millis + MILLIS_PER_MINUTE // 2) // MILLIS_PER_MINUTE


def format_duration(minutes: int) -> str:
    """Render whole minutes as compact duration text (``0s``, ``45m0s``, ``1h30m0s``)."""
    if minutes == 0:
        return "0s"
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes}m0s"
    return f"{minutes}m0s"


def format_timestamp(start: datetime) -> str:
    """Second precision RFC 3339 in the timestamp's own offset, ``Z`` for UTC."""
    if start.tzinfo is None:
        start = start.astimezone()
    text = start.replace(microsecond=0).isoformat()
    if start.utcoffset().total_seconds() == 0:
        text = text[:-len("+00:00")] + "Z"
    return text


def compute_name(start: datetime, sport: str, duration_millis: int, ext: str = "fit") -> str:
    if start.tzinfo is None:
        start = start.astimezone()
    duration = format_duration(round_duration(duration_millis))
    name = f"{format_timestamp(start)} {sport} {duration}.{ext.lstrip('.')}"
    return f"{start:%Y}/{name}"
