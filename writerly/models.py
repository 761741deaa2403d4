from __future__ import annotations

from enum import Enum
from typing import Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db, login_manager
from .timeutils import utc_now, utc_today

BOOK_STATUSES = ("draft", "in_progress", "completed")
CHAPTER_STATUSES = ("outline", "draft", "in_progress", "completed")


class AchievementType(str, Enum):
    WORD_COUNT = "word_count"
    STREAK = "streak"
    CHAPTER_COMPLETION = "chapter_completion"
    BOOK_COMPLETION = "book_completion"
    FIRST_BOOK = "first_book"
    CONSISTENT_WRITER = "consistent_writer"


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    pen_name = db.Column(db.String(80), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    books = db.relationship("Book", backref="owner", lazy=True, cascade="all, delete-orphan")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self) -> str:  # pragma: no cover - repr for debugging
        return f"<User {self.email}>"


@login_manager.user_loader
def load_user(user_id: str) -> Optional["User"]:
    return db.session.get(User, int(user_id))


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(50), nullable=False, default="draft")
    word_count = db.Column(db.Integer, nullable=False, default=0)
    chapter_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    chapters = db.relationship(
        "Chapter",
        backref="book",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Chapter.order_index",
    )

    def refresh_totals(self) -> None:
        """Recompute the denormalized chapter and word totals."""

        self.chapter_count = len(self.chapters)
        self.word_count = sum(chapter.word_count or 0 for chapter in self.chapters)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Book {self.title} ({self.status})>"


class Chapter(db.Model):
    __tablename__ = "chapters"

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    title = db.Column(db.String(150), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    status = db.Column(db.String(50), nullable=False, default="outline")
    order_index = db.Column(db.Integer, nullable=False, default=1)
    word_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Chapter {self.order_index}: {self.title}>"


class WritingActivity(db.Model):
    __tablename__ = "writing_activities"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id", ondelete="SET NULL"), nullable=True)
    chapter_id = db.Column(db.Integer, db.ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True)
    word_count = db.Column(db.Integer, nullable=False, default=0)
    activity_date = db.Column(db.Date, nullable=False, default=utc_today, index=True)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        db.CheckConstraint("word_count >= 0", name="ck_writing_activity_word_count"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<WritingActivity {self.activity_date} +{self.word_count} (user {self.user_id})>"


class Achievement(db.Model):
    __tablename__ = "achievements"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(50), nullable=False)
    threshold = db.Column(db.Integer, nullable=False)
    icon = db.Column(db.String(50), nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        db.CheckConstraint("threshold > 0", name="ck_achievement_threshold"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Achievement {self.name} ({self.type} >= {self.threshold})>"


class UserAchievement(db.Model):
    __tablename__ = "user_achievements"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = db.Column(db.Integer, db.ForeignKey("achievements.id"), nullable=False)
    earned_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    achievement = db.relationship("Achievement", lazy="joined")

    __table_args__ = (
        db.UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<UserAchievement user={self.user_id} achievement={self.achievement_id}>"
