from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app

from ..extensions import db
from ..storage import WritingStorage
from .achievements import AwardedAchievement, check_and_award_achievements


@dataclass
class ChapterSaveResult:
    word_delta: int
    activity: Optional[object] = None
    awarded: List[AwardedAchievement] = field(default_factory=list)


def count_words(text: Optional[str]) -> int:
    return len((text or "").split())


def award_achievements_safely(user_id: int, *, storage: Optional[WritingStorage] = None) -> List[AwardedAchievement]:
    """Run the achievement check without letting it fail the calling request."""

    try:
        return check_and_award_achievements(user_id, storage=storage)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Achievement check failed for user %s", user_id)
        return []


def save_chapter_content(chapter, content: str, *, storage: Optional[WritingStorage] = None) -> ChapterSaveResult:
    """Store new chapter text and log the writing it represents.

    The chapter and book totals are committed first. Recording the activity and
    checking achievements afterwards is best-effort: a failure there is logged
    and the save still succeeds.
    """

    storage = storage or WritingStorage()

    previous_words = chapter.word_count or 0
    chapter.content = content
    chapter.word_count = count_words(content)
    chapter.book.refresh_totals()
    db.session.commit()

    result = ChapterSaveResult(word_delta=max(0, chapter.word_count - previous_words))
    if result.word_delta == 0:
        return result

    user_id = chapter.book.owner_id
    try:
        result.activity = storage.create_writing_activity(
            user_id,
            result.word_delta,
            book_id=chapter.book_id,
            chapter_id=chapter.id,
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Recording writing activity for chapter %s failed; the chapter itself was saved.", chapter.id
        )
        return result

    result.awarded = award_achievements_safely(user_id, storage=storage)
    return result
