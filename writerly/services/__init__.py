"""Activity tracking, streak and achievement services."""

from __future__ import annotations

from .achievements import (  # noqa: F401
    AwardedAchievement,
    achievement_progress,
    award_achievements,
    check_and_award_achievements,
    evaluate_achievements,
    qualifies,
)
from .stats import UserStats, collect_user_stats  # noqa: F401
from .streaks import calculate_streak, compute_streak  # noqa: F401

__all__ = [
    "AwardedAchievement",
    "UserStats",
    "achievement_progress",
    "award_achievements",
    "calculate_streak",
    "check_and_award_achievements",
    "collect_user_stats",
    "compute_streak",
    "evaluate_achievements",
    "qualifies",
]
