"""Default achievement catalog and seeding."""

from __future__ import annotations

from typing import Any, Dict, List

from flask import current_app

DEFAULT_ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "name": "First Words",
        "description": "Write your first 100 words",
        "type": "word_count",
        "threshold": 100,
        "icon": "award",
    },
    {
        "name": "Dedicated Writer",
        "description": "Write at least 1,000 words total",
        "type": "word_count",
        "threshold": 1000,
        "icon": "award",
    },
    {
        "name": "Prolific Author",
        "description": "Write at least 10,000 words total",
        "type": "word_count",
        "threshold": 10000,
        "icon": "award",
    },
    {
        "name": "First Streak",
        "description": "Write for 3 consecutive days",
        "type": "streak",
        "threshold": 3,
        "icon": "calendar-clock",
    },
    {
        "name": "Consistent Writer",
        "description": "Write for 7 consecutive days",
        "type": "streak",
        "threshold": 7,
        "icon": "calendar-clock",
    },
    {
        "name": "Writing Machine",
        "description": "Write for 30 consecutive days",
        "type": "streak",
        "threshold": 30,
        "icon": "calendar-clock",
    },
    {
        "name": "First Chapter",
        "description": "Complete your first chapter",
        "type": "chapter_completion",
        "threshold": 1,
        "icon": "flag",
    },
    {
        "name": "Chapter Master",
        "description": "Complete 10 chapters across all your books",
        "type": "chapter_completion",
        "threshold": 10,
        "icon": "flag",
    },
    {
        "name": "First Book",
        "description": "Create your first book",
        "type": "first_book",
        "threshold": 1,
        "icon": "star",
    },
    {
        "name": "Finished Book",
        "description": "Complete your first book",
        "type": "book_completion",
        "threshold": 1,
        "icon": "trophy",
    },
    {
        "name": "Regular Habit",
        "description": "Write on 10 different days",
        "type": "consistent_writer",
        "threshold": 10,
        "icon": "calendar-check",
    },
    {
        "name": "Seasoned Writer",
        "description": "Write on 50 different days",
        "type": "consistent_writer",
        "threshold": 50,
        "icon": "calendar-check",
    },
]


def seed_achievements(storage) -> int:
    """Insert the default catalog when none exists. Returns the number created."""

    existing = storage.get_achievements()
    if existing:
        current_app.logger.info(
            "Achievements already exist, skipping seeding (%s found).", len(existing)
        )
        return 0

    for entry in DEFAULT_ACHIEVEMENTS:
        storage.create_achievement(**entry)

    current_app.logger.info("Seeded %s achievements.", len(DEFAULT_ACHIEVEMENTS))
    return len(DEFAULT_ACHIEVEMENTS)
