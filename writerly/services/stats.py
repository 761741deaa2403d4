from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Dict, Optional

from .streaks import calculate_streak


@dataclass(frozen=True)
class UserStats:
    total_books: int = 0
    total_chapters: int = 0
    total_words: int = 0
    completed_books: int = 0
    streak: int = 0
    active_days: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def collect_user_stats(user_id: int, *, storage, today: Optional[date] = None) -> UserStats:
    """Snapshot every metric the achievement rules look at."""

    book_stats = storage.get_book_stats(user_id)
    activity_dates = storage.get_activity_dates(user_id)
    return UserStats(
        total_books=book_stats.total_books,
        total_chapters=book_stats.total_chapters,
        total_words=book_stats.total_words,
        completed_books=book_stats.completed_books,
        streak=calculate_streak(activity_dates, today=today),
        active_days=storage.count_active_days(user_id),
    )
