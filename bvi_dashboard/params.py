"""Typed query parameters shared by the dashboard endpoints.

FastAPI resolves the ``*_params`` functions as dependencies, so each endpoint
receives a parsed structure instead of raw strings. Dates are validated here:
a malformed ``startDate``/``endDate`` raises :class:`InvalidParameter`, which
the app turns into a 400.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import Query

from .errors import InvalidParameter


class GroupBy(str, enum.Enum):
    sentiment = "sentiment"
    source = "source"
    topic = "topic"


@dataclass
class DateRange:
    start: datetime | None = None
    end: datetime | None = None


@dataclass
class PostFilter:
    keyword: str | None = None
    sentiment: str | None = None
    platform: str | None = None
    source_id: str | None = None
    topic: str | None = None
    date_range: DateRange = field(default_factory=DateRange)


def parse_date(value: str | None, name: str) -> datetime | None:
    """Parse an ISO date or timestamp into a naive UTC datetime.

    ``2024-01-15`` is midnight UTC of that day; aware timestamps are converted
    to UTC. Empty values mean "no bound".
    """
    if value is None or not value.strip():
        return None

    raw = value.strip()
    # fromisoformat only learned the Z suffix in 3.11
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidParameter(name, value) from None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def date_range_params(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> DateRange:
    return DateRange(
        start=parse_date(start_date, "startDate"),
        end=parse_date(end_date, "endDate"),
    )


def export_filter_params(
    keyword: str | None = None,
    sentiment: str | None = None,
    platform: str | None = None,
    source_id: str | None = Query(default=None, alias="sourceId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> PostFilter:
    return PostFilter(
        keyword=keyword or None,
        sentiment=sentiment or None,
        platform=platform or None,
        source_id=source_id or None,
        date_range=date_range_params(start_date, end_date),
    )


def post_filter_params(
    keyword: str | None = None,
    sentiment: str | None = None,
    platform: str | None = None,
    source_id: str | None = Query(default=None, alias="sourceId"),
    topic: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> PostFilter:
    f = export_filter_params(keyword, sentiment, platform, source_id, start_date, end_date)
    f.topic = topic or None
    return f
