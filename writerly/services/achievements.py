"""Threshold-based achievement awarding.

The evaluator works on snapshots: a :class:`~writerly.services.stats.UserStats`
instance, the catalog as a list and the set of achievement ids the user already
holds. Grants are delegated to the storage collaborator, which commits each one
individually so a retry after a failure only grants what is still missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from ..models import AchievementType
from ..storage import DuplicateGrantError, WritingStorage
from .stats import UserStats, collect_user_stats

LOGGER = logging.getLogger(__name__)

METRIC_RULES: Dict[AchievementType, Callable[[UserStats], int]] = {
    AchievementType.WORD_COUNT: lambda stats: stats.total_words,
    AchievementType.STREAK: lambda stats: stats.streak,
    AchievementType.CHAPTER_COMPLETION: lambda stats: stats.total_chapters,
    AchievementType.BOOK_COMPLETION: lambda stats: stats.completed_books,
    AchievementType.FIRST_BOOK: lambda stats: stats.total_books,
    AchievementType.CONSISTENT_WRITER: lambda stats: stats.active_days,
}


@dataclass
class AwardedAchievement:
    grant: Any
    achievement: Any


def metric_for(achievement: Any, stats: UserStats) -> Optional[int]:
    """Return the stat ``achievement`` is measured against, or ``None`` for unknown types."""

    try:
        kind = AchievementType(achievement.type)
    except ValueError:
        return None
    return METRIC_RULES[kind](stats)


def qualifies(achievement: Any, stats: UserStats) -> bool:
    metric = metric_for(achievement, stats)
    if metric is None:
        LOGGER.warning(
            "Achievement %r has unknown type %r; it can never be earned.",
            getattr(achievement, "name", achievement),
            achievement.type,
        )
        return False
    return metric >= achievement.threshold


def evaluate_achievements(stats: UserStats, catalog: Iterable[Any], granted_ids: Set[int]) -> List[Any]:
    """Return the catalog entries newly earned, in catalog order."""

    return [
        achievement
        for achievement in catalog
        if achievement.id not in granted_ids and qualifies(achievement, stats)
    ]


def award_achievements(
    user_id: int,
    stats: UserStats,
    catalog: Iterable[Any],
    granted_ids: Set[int],
    storage,
) -> List[AwardedAchievement]:
    awarded: List[AwardedAchievement] = []
    for achievement in evaluate_achievements(stats, catalog, granted_ids):
        try:
            grant = storage.add_user_achievement(user_id, achievement.id)
        except DuplicateGrantError:
            LOGGER.info(
                "User %s already holds achievement %s; skipping.", user_id, achievement.id
            )
            continue
        awarded.append(AwardedAchievement(grant=grant, achievement=achievement))
    return awarded


def check_and_award_achievements(
    user_id: int,
    *,
    storage=None,
    today: Optional[date] = None,
) -> List[AwardedAchievement]:
    """Grant every achievement ``user_id`` newly qualifies for.

    Stats, catalog and existing grants are read fresh on every call, so the
    check is safe to repeat after a partial failure.
    """

    if storage is None:
        storage = WritingStorage()

    stats = collect_user_stats(user_id, storage=storage, today=today)
    catalog = storage.get_achievements()
    granted_ids = {grant.achievement_id for grant in storage.get_user_achievements(user_id)}
    return award_achievements(user_id, stats, catalog, granted_ids, storage)


def achievement_progress(achievement: Any, stats: UserStats) -> Dict[str, Any]:
    """Progress of ``stats`` towards ``achievement`` for display."""

    metric = metric_for(achievement, stats) or 0
    threshold = achievement.threshold
    ratio = min(1.0, metric / threshold) if threshold > 0 else 1.0
    return {
        "current": metric,
        "target": threshold,
        "percentage": round(ratio * 100, 1),
    }


__all__ = [
    "AwardedAchievement",
    "METRIC_RULES",
    "achievement_progress",
    "award_achievements",
    "check_and_award_achievements",
    "evaluate_achievements",
    "metric_for",
    "qualifies",
]
