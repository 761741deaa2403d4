"""Database helper utilities for ensuring schema consistency."""
from __future__ import annotations

from typing import Iterable, Set

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db


def _get_column_names(table_name: str) -> Set[str]:
    inspector = inspect(db.engine)
    return {column["name"] for column in inspector.get_columns(table_name)}


def ensure_database_schema() -> None:
    """Ensure that essential schema updates are applied.

    Runs on every application start. Databases created before activity
    tracking existed get the ``writing_activities``, ``achievements`` and
    ``user_achievements`` tables, and older ``books`` tables get the
    denormalized ``chapter_count`` column.
    """

    try:
        inspector = inspect(db.engine)
        table_names: Iterable[str] = inspector.get_table_names()

        if "users" not in table_names:
            db.create_all()
            inspector = inspect(db.engine)
            table_names = inspector.get_table_names()

        # Import locally to avoid circular import issues during application setup.
        from .models import Achievement, Book, Chapter, UserAchievement, WritingActivity

        required_tables = {
            "books": Book.__table__,
            "chapters": Chapter.__table__,
            "writing_activities": WritingActivity.__table__,
            "achievements": Achievement.__table__,
            "user_achievements": UserAchievement.__table__,
        }

        for table_name, table in required_tables.items():
            if table_name not in table_names:
                table.create(bind=db.engine)

        if "books" in table_names:
            book_columns = _get_column_names("books")
            if "chapter_count" not in book_columns:
                with db.engine.begin() as connection:
                    connection.execute(
                        text("ALTER TABLE books ADD COLUMN chapter_count INTEGER NOT NULL DEFAULT 0")
                    )
    except SQLAlchemyError:
        # Re-raise so the application does not continue in a partially
        # configured state.
        raise
