"""
Date utility functions for record dates and policy deadlines.
"""
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple


DATE_FORMATS = [
    "%d-%m-%Y",  # DD-MM-YYYY (CSV export format)
    "%Y-%m-%d",  # YYYY-MM-DD (ISO format)
    "%d/%m/%Y",  # DD/MM/YYYY
    "%Y/%m/%d",  # YYYY/MM/DD
]


def parse_date_string(date_str: str) -> Optional[date]:
    """
    Parse date string to date object.
    Handles multiple formats.

    Args:
        date_str: Date string to parse

    Returns:
        Parsed date or None if invalid
    """
    if not isinstance(date_str, str) or not date_str.strip():
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue

    return None


def coerce_date(value) -> Optional[date]:
    """Accept date, datetime (incl. pandas Timestamp) or string; None otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date_string(value)
    return None


def days_between(start: date, end: date) -> int:
    """Calculate number of days between two dates."""
    return (end - start).days


def nearest_future_date(candidates: Iterable[date], today: date) -> Optional[date]:
    """Earliest date strictly after today, or None."""
    future = [d for d in candidates if d > today]
    return min(future) if future else None


def days_to_nearest_deadline(events, today: Optional[date] = None) -> Optional[int]:
    """
    Days from today to the closest policy event that is still ahead.

    Args:
        events: Iterable of objects with a ``date`` attribute (PolicyEvent)
        today: Analysis date (defaults to the current date)

    Returns:
        Whole days to the nearest future event, or None when no event lies
        after today.
    """
    today = today or date.today()
    nearest = nearest_future_date((e.date for e in events), today)
    if nearest is None:
        return None
    return days_between(today, nearest)


def date_span(dates: Iterable[date]) -> Optional[Tuple[date, date]]:
    """Return (min, max) of the given dates or None when empty."""
    dates: List[date] = list(dates)
    if not dates:
        return None
    return min(dates), max(dates)


def is_weekend(d: date) -> bool:
    """Saturday or Sunday."""
    return d.weekday() >= 5


def month_key(d: date) -> str:
    """YYYY-MM bucket key for a date."""
    return f"{d.year}-{d.month:02d}"
