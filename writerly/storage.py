"""SQLAlchemy-backed persistence for writing activity and achievements.

:class:`WritingStorage` is the only place the activity and achievement engine
touches the database. The services in :mod:`writerly.services` receive an
instance of it (or a test double with the same methods) and never query the
models themselves.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Set

from flask import current_app
from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError

from .extensions import db
from .models import Achievement, AchievementType, Book, UserAchievement, WritingActivity
from .timeutils import utc_today

ACHIEVEMENT_TYPES = tuple(kind.value for kind in AchievementType)


class InvalidActivityError(ValueError):
    """Raised when a writing activity record fails validation."""


class InvalidAchievementError(ValueError):
    """Raised when an achievement catalog entry fails validation."""


class DuplicateGrantError(RuntimeError):
    """Raised when a user already holds the achievement being granted."""

    def __init__(self, user_id: int, achievement_id: int) -> None:
        super().__init__(f"User {user_id} already holds achievement {achievement_id}.")
        self.user_id = user_id
        self.achievement_id = achievement_id


@dataclass(frozen=True)
class BookStats:
    total_books: int
    total_chapters: int
    total_words: int
    completed_books: int


class WritingStorage:
    """Read and write the activity/achievement tables for the engine."""

    # Writing activities

    def get_writing_activities(
        self, user_id: int, start_date: date, end_date: date
    ) -> List[WritingActivity]:
        """Return the user's activities between both dates, inclusive."""

        if start_date > end_date:
            raise InvalidActivityError("The start date must not be after the end date.")

        stmt = (
            select(WritingActivity)
            .where(
                WritingActivity.user_id == user_id,
                WritingActivity.activity_date >= start_date,
                WritingActivity.activity_date <= end_date,
            )
            .order_by(WritingActivity.activity_date.asc(), WritingActivity.id.asc())
        )
        return list(db.session.scalars(stmt))

    def get_activity_dates(self, user_id: int) -> Set[date]:
        stmt = select(WritingActivity.activity_date).where(WritingActivity.user_id == user_id).distinct()
        return set(db.session.scalars(stmt))

    def count_active_days(self, user_id: int) -> int:
        stmt = select(func.count(func.distinct(WritingActivity.activity_date))).where(
            WritingActivity.user_id == user_id
        )
        return int(db.session.scalar(stmt) or 0)

    def create_writing_activity(
        self,
        user_id: int,
        word_count: int,
        *,
        book_id: Optional[int] = None,
        chapter_id: Optional[int] = None,
        activity_date: Optional[date] = None,
    ) -> WritingActivity:
        if isinstance(word_count, bool) or not isinstance(word_count, int):
            raise InvalidActivityError("Word count must be a whole number.")
        if word_count < 0:
            raise InvalidActivityError("Word count cannot be negative.")
        if activity_date is not None and not isinstance(activity_date, date):
            raise InvalidActivityError("Activity date must be a calendar date.")
        if activity_date is not None and activity_date > utc_today():
            raise InvalidActivityError("Activity date cannot be in the future.")

        activity = WritingActivity(
            user_id=user_id,
            book_id=book_id,
            chapter_id=chapter_id,
            word_count=word_count,
            activity_date=activity_date or utc_today(),
        )
        db.session.add(activity)
        db.session.commit()
        return activity

    def detach_activities(self, *, book_id: Optional[int] = None, chapter_id: Optional[int] = None) -> None:
        """Clear references to a book or chapter that is about to be deleted.

        Activity rows are kept so the user's streak and active days survive.
        """

        query = WritingActivity.query
        if book_id is not None:
            query.filter_by(book_id=book_id).update(
                {"book_id": None, "chapter_id": None}, synchronize_session=False
            )
        if chapter_id is not None:
            query.filter_by(chapter_id=chapter_id).update({"chapter_id": None}, synchronize_session=False)

    # Book stats

    def get_book_stats(self, user_id: int) -> BookStats:
        completed = func.sum(case((Book.status == "completed", 1), else_=0))
        stmt = select(
            func.count(Book.id),
            func.coalesce(func.sum(Book.chapter_count), 0),
            func.coalesce(func.sum(Book.word_count), 0),
            func.coalesce(completed, 0),
        ).where(Book.owner_id == user_id)
        total_books, total_chapters, total_words, completed_books = db.session.execute(stmt).one()
        return BookStats(
            total_books=int(total_books),
            total_chapters=int(total_chapters),
            total_words=int(total_words),
            completed_books=int(completed_books),
        )

    # Achievements

    def get_achievements(self) -> List[Achievement]:
        return list(db.session.scalars(select(Achievement).order_by(Achievement.id.asc())))

    def create_achievement(
        self,
        *,
        name: str,
        description: str,
        type: str,
        threshold: int,
        icon: str,
    ) -> Achievement:
        if type not in ACHIEVEMENT_TYPES:
            raise InvalidAchievementError(f"Unknown achievement type '{type}'.")
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold <= 0:
            raise InvalidAchievementError("Threshold must be a positive whole number.")
        if not (name or "").strip():
            raise InvalidAchievementError("Achievements need a name.")

        achievement = Achievement(
            name=name.strip(),
            description=(description or "").strip(),
            type=type,
            threshold=threshold,
            icon=(icon or "award").strip() or "award",
        )
        db.session.add(achievement)
        db.session.commit()
        return achievement

    def get_user_achievements(self, user_id: int) -> List[UserAchievement]:
        stmt = (
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.earned_at.asc(), UserAchievement.id.asc())
        )
        return list(db.session.scalars(stmt).unique())

    def add_user_achievement(self, user_id: int, achievement_id: int) -> UserAchievement:
        """Grant an achievement, committing immediately.

        Raises :class:`DuplicateGrantError` when the grant already exists,
        whether found up front or reported by the unique constraint because a
        concurrent request committed first.
        """

        existing = UserAchievement.query.filter_by(
            user_id=user_id, achievement_id=achievement_id
        ).first()
        if existing is not None:
            raise DuplicateGrantError(user_id, achievement_id)

        grant = UserAchievement(user_id=user_id, achievement_id=achievement_id)
        db.session.add(grant)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.info(
                "Grant of achievement %s to user %s lost a race; keeping the existing one.",
                achievement_id,
                user_id,
            )
            raise DuplicateGrantError(user_id, achievement_id) from exc
        return grant


__all__ = [
    "ACHIEVEMENT_TYPES",
    "BookStats",
    "DuplicateGrantError",
    "InvalidAchievementError",
    "InvalidActivityError",
    "WritingStorage",
]
