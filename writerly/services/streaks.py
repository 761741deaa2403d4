"""Consecutive-day writing streaks."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional, Union

from ..storage import WritingStorage
from ..timeutils import utc_today

ONE_DAY = timedelta(days=1)


def _as_date(item: Union[date, object]) -> date:
    if isinstance(item, date):
        return item
    return getattr(item, "activity_date")


def calculate_streak(activity_dates: Iterable[Union[date, object]], *, today: Optional[date] = None) -> int:
    """Count the consecutive days of writing that end today or yesterday.

    ``activity_dates`` may hold plain dates or activity records exposing an
    ``activity_date`` attribute. Several records on the same day count as a
    single active day. A streak whose latest day is neither today nor yesterday
    yields 0 no matter how long it once was.
    """

    distinct_dates = {_as_date(item) for item in activity_dates}
    if not distinct_dates:
        return 0

    reference_day = today or utc_today()
    ordered = sorted(distinct_dates, reverse=True)
    most_recent = ordered[0]
    if most_recent not in (reference_day, reference_day - ONE_DAY):
        return 0

    streak = 1
    cursor = most_recent
    for activity_day in ordered[1:]:
        if activity_day == cursor:
            continue
        if activity_day != cursor - ONE_DAY:
            break
        streak += 1
        cursor = activity_day

    return streak


def compute_streak(user_id: int, *, storage=None, today: Optional[date] = None) -> int:
    """Return the current streak for ``user_id`` from stored activity."""

    if storage is None:
        storage = WritingStorage()

    return calculate_streak(storage.get_activity_dates(user_id), today=today)


__all__ = ["calculate_streak", "compute_streak"]
