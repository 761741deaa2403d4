import sys
from datetime import date, timedelta
from pathlib import Path
from types import SimpleNamespace

sys.path.append(str(Path(__file__).resolve().parents[1]))

from writerly.services.streaks import calculate_streak, compute_streak


TODAY = date(2024, 3, 10)


def _days_ago(*offsets):
    return [TODAY - timedelta(days=offset) for offset in offsets]


def test_no_activity_means_no_streak():
    assert calculate_streak([], today=TODAY) == 0


def test_single_activity_today_counts_one_day():
    assert calculate_streak(_days_ago(0), today=TODAY) == 1


def test_activity_yesterday_keeps_streak_alive():
    assert calculate_streak(_days_ago(1, 2, 3), today=TODAY) == 3


def test_gap_stops_the_walk():
    assert calculate_streak(_days_ago(0, 1, 3), today=TODAY) == 2


def test_same_day_records_count_once():
    records = [
        SimpleNamespace(activity_date=TODAY, word_count=120, chapter_id=1),
        SimpleNamespace(activity_date=TODAY, word_count=40, chapter_id=2),
    ]

    assert calculate_streak(records, today=TODAY) == calculate_streak(records[:1], today=TODAY) == 1


def test_duplicates_inside_a_run_do_not_inflate():
    dates = _days_ago(0, 0, 1, 1, 1, 2)

    assert calculate_streak(dates, today=TODAY) == 3


def test_latest_activity_two_days_ago_breaks_streak():
    dates = _days_ago(*range(2, 40))

    assert calculate_streak(dates, today=TODAY) == 0


def test_unsorted_input_is_handled():
    dates = list(reversed(_days_ago(0, 1, 2, 5, 6)))

    assert calculate_streak(dates, today=TODAY) == 3


def test_streak_crosses_month_boundary():
    dates = [date(2024, 3, 1), date(2024, 2, 29), date(2024, 2, 28)]

    assert calculate_streak(dates, today=date(2024, 3, 2)) == 3


def test_compute_streak_reads_dates_from_storage():
    class DummyStorage:
        def __init__(self):
            self.requested = []

        def get_activity_dates(self, user_id):
            self.requested.append(user_id)
            return set(_days_ago(0, 1))

    storage = DummyStorage()

    assert compute_streak(7, storage=storage, today=TODAY) == 2
    assert storage.requested == [7]


def test_latest_activity_after_today_breaks_streak():
    dates = _days_ago(0, 1) + [TODAY + timedelta(days=5)]

    assert calculate_streak(dates, today=TODAY) == 0
