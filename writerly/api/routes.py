from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from flask import current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Achievement, Book, Chapter, UserAchievement, WritingActivity
from ..services.achievements import (
    AwardedAchievement,
    achievement_progress,
    check_and_award_achievements,
)
from ..services.stats import collect_user_stats
from ..services.streaks import compute_streak
from ..storage import InvalidAchievementError, InvalidActivityError, WritingStorage
from ..timeutils import utc_today
from . import bp


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value else None


def _serialize_activity(activity: WritingActivity) -> Dict[str, Any]:
    return {
        "id": activity.id,
        "book_id": activity.book_id,
        "chapter_id": activity.chapter_id,
        "word_count": activity.word_count,
        "activity_date": _isoformat(activity.activity_date),
        "created_at": _isoformat(activity.created_at),
    }


def _serialize_achievement(achievement: Achievement) -> Dict[str, Any]:
    return {
        "id": achievement.id,
        "name": achievement.name,
        "description": achievement.description,
        "type": achievement.type,
        "threshold": achievement.threshold,
        "icon": achievement.icon,
    }


def _serialize_grant(grant: UserAchievement, achievement: Optional[Achievement] = None) -> Dict[str, Any]:
    return {
        "id": grant.id,
        "achievement_id": grant.achievement_id,
        "earned_at": _isoformat(grant.earned_at),
        "achievement": _serialize_achievement(achievement or grant.achievement),
    }


def _parse_date(raw: Any, field_name: str) -> Optional[date]:
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise InvalidActivityError(f"'{field_name}' must be an ISO date (YYYY-MM-DD).")
    try:
        if "T" in raw:
            return datetime.fromisoformat(raw).date()
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise InvalidActivityError(f"'{field_name}' must be an ISO date (YYYY-MM-DD).") from exc


def _parse_optional_id(raw: Any, field_name: str) -> Optional[int]:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidActivityError(f"'{field_name}' must be a numeric id.") from exc


def _activity_window():
    end_date = _parse_date(request.args.get("end_date"), "end_date") or utc_today()
    default_start = end_date - timedelta(days=current_app.config.get("ACTIVITY_WINDOW_DAYS", 30))
    start_date = _parse_date(request.args.get("start_date"), "start_date") or default_start
    return start_date, end_date


@bp.errorhandler(SQLAlchemyError)
def handle_database_error(exc):
    db.session.rollback()
    current_app.logger.exception("Database error while serving %s", request.path)
    return jsonify({"error": "We couldn't reach your writing history right now. Please try again."}), 500


@bp.route("/stats", methods=["GET"])
@login_required
def stats():
    snapshot = collect_user_stats(current_user.id, storage=WritingStorage())
    return jsonify(snapshot.as_dict())


@bp.route("/writing-activities", methods=["GET"])
@login_required
def list_activities():
    try:
        start_date, end_date = _activity_window()
        activities = WritingStorage().get_writing_activities(current_user.id, start_date, end_date)
    except InvalidActivityError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify([_serialize_activity(activity) for activity in activities])


@bp.route("/writing-activities/daily", methods=["GET"])
@login_required
def daily_activity():
    try:
        start_date, end_date = _activity_window()
        activities = WritingStorage().get_writing_activities(current_user.id, start_date, end_date)
    except InvalidActivityError as exc:
        return jsonify({"error": str(exc)}), 400

    days: "OrderedDict[date, Dict[str, Any]]" = OrderedDict()
    for activity in activities:
        entry = days.setdefault(
            activity.activity_date,
            {"date": activity.activity_date.isoformat(), "word_count": 0, "sessions": 0},
        )
        entry["word_count"] += activity.word_count
        entry["sessions"] += 1

    return jsonify(
        {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "days": list(days.values()),
        }
    )


@bp.route("/writing-activities", methods=["POST"])
@login_required
def create_activity():
    payload = request.get_json(silent=True) or {}

    try:
        book_id = _parse_optional_id(payload.get("book_id"), "book_id")
        chapter_id = _parse_optional_id(payload.get("chapter_id"), "chapter_id")
        activity_date = _parse_date(payload.get("activity_date"), "activity_date")
        word_count = payload.get("word_count", 0)
    except InvalidActivityError as exc:
        return jsonify({"error": str(exc)}), 400

    if book_id is not None:
        book = Book.query.filter_by(id=book_id, owner_id=current_user.id).first()
        if not book:
            return jsonify({"error": "We couldn't find that book."}), 404
    if chapter_id is not None:
        chapter = (
            Chapter.query.join(Book)
            .filter(Chapter.id == chapter_id, Book.owner_id == current_user.id)
            .first()
        )
        if not chapter:
            return jsonify({"error": "We couldn't find that chapter."}), 404
        if book_id is not None and chapter.book_id != book_id:
            return jsonify({"error": "That chapter belongs to a different book."}), 400

    try:
        activity = WritingStorage().create_writing_activity(
            current_user.id,
            word_count,
            book_id=book_id,
            chapter_id=chapter_id,
            activity_date=activity_date,
        )
    except InvalidActivityError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(_serialize_activity(activity)), 201


@bp.route("/writing-streak", methods=["GET"])
@login_required
def writing_streak():
    return jsonify({"streak": compute_streak(current_user.id)})


@bp.route("/achievements", methods=["GET"])
@login_required
def list_achievements():
    catalog = WritingStorage().get_achievements()
    return jsonify([_serialize_achievement(achievement) for achievement in catalog])


@bp.route("/achievements", methods=["POST"])
@login_required
def create_achievement():
    payload = request.get_json(silent=True) or {}
    try:
        achievement = WritingStorage().create_achievement(
            name=str(payload.get("name") or ""),
            description=str(payload.get("description") or ""),
            type=str(payload.get("type") or ""),
            threshold=payload.get("threshold"),
            icon=str(payload.get("icon") or "award"),
        )
    except InvalidAchievementError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(_serialize_achievement(achievement)), 201


@bp.route("/achievements/board", methods=["GET"])
@login_required
def achievement_board():
    storage = WritingStorage()
    snapshot = collect_user_stats(current_user.id, storage=storage)
    earned = {grant.achievement_id: grant for grant in storage.get_user_achievements(current_user.id)}

    board = []
    for achievement in storage.get_achievements():
        entry = _serialize_achievement(achievement)
        grant = earned.get(achievement.id)
        entry["earned_at"] = _isoformat(grant.earned_at) if grant else None
        entry["progress"] = achievement_progress(achievement, snapshot)
        board.append(entry)

    return jsonify(
        {
            "achievements": board,
            "earned_count": len(earned),
            "total_count": len(board),
        }
    )


@bp.route("/user-achievements", methods=["GET"])
@login_required
def list_user_achievements():
    grants = WritingStorage().get_user_achievements(current_user.id)
    return jsonify([_serialize_grant(grant) for grant in grants])


@bp.route("/check-achievements", methods=["POST"])
@login_required
def check_achievements():
    awarded: list[AwardedAchievement] = check_and_award_achievements(current_user.id)
    return jsonify([_serialize_grant(entry.grant, entry.achievement) for entry in awarded])
