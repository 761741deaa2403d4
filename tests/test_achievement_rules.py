import logging
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from writerly.services import achievements
from writerly.services.achievements import (
    award_achievements,
    check_and_award_achievements,
    evaluate_achievements,
    qualifies,
)
from writerly.services.stats import UserStats
from writerly.storage import BookStats, DuplicateGrantError


def _achievement(achievement_id, name, kind, threshold):
    return SimpleNamespace(id=achievement_id, name=name, type=kind, threshold=threshold)


CATALOG = [
    _achievement(1, "First Words", "word_count", 100),
    _achievement(2, "Dedicated Writer", "word_count", 1000),
    _achievement(3, "Wordsmith", "word_count", 5000),
    _achievement(4, "Prolific Author", "word_count", 10000),
    _achievement(5, "First Streak", "streak", 3),
    _achievement(6, "First Chapter", "chapter_completion", 1),
    _achievement(7, "First Book", "first_book", 1),
    _achievement(8, "Finished Book", "book_completion", 1),
    _achievement(9, "Regular Habit", "consistent_writer", 10),
]


class DummyStorage:
    """In-memory stand-in for :class:`writerly.storage.WritingStorage`."""

    def __init__(self, catalog, *, book_stats=None, activity_dates=(), fail_on=None):
        self.catalog = list(catalog)
        self.book_stats = book_stats or BookStats(0, 0, 0, 0)
        self.activity_dates = set(activity_dates)
        self.grants = []
        self.fail_on = fail_on

    def get_book_stats(self, user_id):
        return self.book_stats

    def get_activity_dates(self, user_id):
        return set(self.activity_dates)

    def count_active_days(self, user_id):
        return len(self.activity_dates)

    def get_achievements(self):
        return list(self.catalog)

    def get_user_achievements(self, user_id):
        return [grant for grant in self.grants if grant.user_id == user_id]

    def add_user_achievement(self, user_id, achievement_id):
        if achievement_id == self.fail_on:
            self.fail_on = None
            raise RuntimeError("database went away")
        if any(g.user_id == user_id and g.achievement_id == achievement_id for g in self.grants):
            raise DuplicateGrantError(user_id, achievement_id)
        grant = SimpleNamespace(
            id=len(self.grants) + 1,
            user_id=user_id,
            achievement_id=achievement_id,
            earned_at=datetime(2024, 3, 10, 12, 0),
        )
        self.grants.append(grant)
        return grant


def test_threshold_is_inclusive():
    achievement = _achievement(1, "Dedicated Writer", "word_count", 1000)

    assert qualifies(achievement, UserStats(total_words=1000))
    assert not qualifies(achievement, UserStats(total_words=999))


@pytest.mark.parametrize(
    "kind, stats",
    [
        ("word_count", UserStats(total_words=5)),
        ("streak", UserStats(streak=5)),
        ("chapter_completion", UserStats(total_chapters=5)),
        ("book_completion", UserStats(completed_books=5)),
        ("first_book", UserStats(total_books=5)),
        ("consistent_writer", UserStats(active_days=5)),
    ],
)
def test_each_type_reads_its_own_metric(kind, stats):
    assert qualifies(_achievement(1, kind, kind, 5), stats)
    assert not qualifies(_achievement(1, kind, kind, 5), UserStats())


def test_book_completion_uses_completed_books_not_total_books():
    finished = _achievement(8, "Finished Book", "book_completion", 1)

    assert not qualifies(finished, UserStats(total_books=3, completed_books=0))


def test_word_count_only_user_earns_only_word_badges():
    stats = UserStats(total_words=5000, total_chapters=0, streak=0)

    earned = evaluate_achievements(stats, CATALOG, set())

    assert [a.name for a in earned] == ["First Words", "Dedicated Writer", "Wordsmith"]


def test_granted_achievements_are_skipped():
    stats = UserStats(total_words=5000)

    earned = evaluate_achievements(stats, CATALOG, {1, 3})

    assert [a.id for a in earned] == [2]


def test_unknown_type_never_qualifies(caplog):
    mystery = _achievement(99, "Night Owl", "midnight_sessions", 1)

    with caplog.at_level(logging.WARNING, logger=achievements.LOGGER.name):
        result = evaluate_achievements(UserStats(total_words=10**6), [mystery], set())

    assert result == []
    assert "midnight_sessions" in caplog.text


def test_result_follows_catalog_order():
    shuffled = [CATALOG[4], CATALOG[0], CATALOG[6]]
    stats = UserStats(total_words=150, streak=3, total_books=1)

    earned = evaluate_achievements(stats, shuffled, set())

    assert [a.name for a in earned] == ["First Streak", "First Words", "First Book"]


def test_award_skips_duplicate_grant_and_continues():
    storage = DummyStorage(CATALOG)
    storage.add_user_achievement(1, 1)
    stats = UserStats(total_words=1500)

    awarded = award_achievements(1, stats, CATALOG, set(), storage)

    assert [entry.achievement.id for entry in awarded] == [2]
    assert sorted(g.achievement_id for g in storage.grants) == [1, 2]


def test_end_to_end_scenario_awards_once():
    catalog = [
        _achievement(1, "First Words", "word_count", 100),
        _achievement(2, "First Streak", "streak", 3),
    ]
    today = date(2024, 3, 10)
    storage = DummyStorage(
        catalog,
        book_stats=BookStats(total_books=1, total_chapters=1, total_words=150, completed_books=0),
        activity_dates=[today, today - timedelta(days=1), today - timedelta(days=2)],
    )

    first = check_and_award_achievements(1, storage=storage, today=today)
    second = check_and_award_achievements(1, storage=storage, today=today)

    assert [entry.achievement.name for entry in first] == ["First Words", "First Streak"]
    assert all(entry.grant.earned_at is not None for entry in first)
    assert second == []


def test_failure_propagates_and_retry_grants_the_rest():
    storage = DummyStorage(
        CATALOG,
        book_stats=BookStats(total_books=1, total_chapters=0, total_words=1200, completed_books=0),
        fail_on=2,
    )

    with pytest.raises(RuntimeError):
        check_and_award_achievements(1, storage=storage)

    assert [g.achievement_id for g in storage.grants] == [1]

    retry = check_and_award_achievements(1, storage=storage)

    assert [entry.achievement.id for entry in retry] == [2, 7]
    assert sorted(g.achievement_id for g in storage.grants) == [1, 2, 7]
