"""Single definition of "now" and "today" for the whole application.

Every calendar day in Writerly is a UTC calendar day. Activity dates are
stamped with :func:`utc_today` and streaks compare against it, so a session
written just before midnight local time never lands on a different day than
the streak check that follows it.
"""
from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime`` columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
