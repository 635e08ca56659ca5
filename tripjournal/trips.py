"""Trips, trip days and list presentation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from .constants import JournalConstants


@dataclass
class Trip:
    """A trip spanning ``start_date`` to ``end_date`` inclusive.

    A trip without an end date is open-ended and runs through today.
    """
    id: str
    name: str
    start_date: date
    end_date: Optional[date] = None
    cover_image: Optional[bytes] = field(default=None, repr=False)

    def __post_init__(self):
        validate_trip_dates(self.start_date, self.end_date)


def validate_trip_dates(start_date: date, end_date: Optional[date]) -> None:
    if end_date is not None and end_date < start_date:
        raise ValueError(f"Trip ends ({end_date}) before it starts ({start_date})")


def last_day(trip: Trip, today: Optional[date] = None) -> date:
    if trip.end_date is not None:
        return trip.end_date
    today = today or date.today()
    return max(today, trip.start_date)


def contains_day(trip: Trip, day: date) -> bool:
    if day < trip.start_date:
        return False
    return trip.end_date is None or day <= trip.end_date


def trip_days(trip: Trip, today: Optional[date] = None) -> list[date]:
    """Every calendar day of the trip, first day first."""
    end = last_day(trip, today)
    count = (end - trip.start_date).days + 1
    return [trip.start_date + timedelta(days=i) for i in range(count)]


def format_date(day: date) -> str:
    """Medium date style, e.g. ``Jan 5, 2025``."""
    return f"{day:%b} {day.day}, {day.year}"


def date_range_text(start_date: date, end_date: Optional[date] = None) -> str:
    end_text = format_date(end_date) if end_date is not None else "∞"
    return f"{format_date(start_date)} - {end_text}"


def truncate(text: Optional[str], max_length: int = JournalConstants.TRUNCATE_LENGTH) -> str:
    if not text:
        return ""
    if len(text) > max_length:
        return text[:max_length] + JournalConstants.TRUNCATE_SUFFIX
    return text


def entry_preview(content: Optional[str]) -> str:
    """One-line preview of an entry for list screens."""
    if not content:
        return JournalConstants.EMPTY_ENTRY_PREVIEW
    return truncate(content)


def sort_trips(trips: Iterable[Trip]) -> list[Trip]:
    """Newest trip first."""
    return sorted(trips, key=lambda t: t.start_date, reverse=True)
