from datetime import date, datetime, timedelta, timezone

import pytest

from backend.date_utils import (
    decode_calendar_date,
    format_date_for_storage,
    generate_date_columns,
    is_after_completed_date,
    is_task_completed_on_date,
    local_calendar_date,
    week_boundaries,
)

UTC_MINUS_12 = timezone(timedelta(hours=-12))
UTC_PLUS_14 = timezone(timedelta(hours=14))


def test_storage_form_is_noon_utc():
    assert format_date_for_storage(date(2024, 3, 5)) == "2024-03-05T12:00:00.000Z"
    assert format_date_for_storage("2024-03-05") == "2024-03-05T12:00:00.000Z"
    assert format_date_for_storage("2024-03-05T12:00:00.000Z") == "2024-03-05T12:00:00.000Z"


def test_storage_uses_callers_calendar_date():
    late_evening_west = datetime(2024, 3, 5, 23, 30, tzinfo=UTC_MINUS_12)
    early_morning_east = datetime(2024, 3, 5, 0, 30, tzinfo=UTC_PLUS_14)
    assert format_date_for_storage(late_evening_west) == "2024-03-05T12:00:00.000Z"
    assert format_date_for_storage(early_morning_east) == "2024-03-05T12:00:00.000Z"


def test_reading_back_in_extreme_offsets_keeps_the_day():
    stored = format_date_for_storage(date(2024, 3, 5))
    assert decode_calendar_date(stored) == date(2024, 3, 5)
    assert local_calendar_date(stored, UTC_MINUS_12) == date(2024, 3, 5)


def test_invalid_dates_raise():
    with pytest.raises(ValueError):
        format_date_for_storage("not-a-date")
    with pytest.raises(ValueError):
        format_date_for_storage("")


def test_completion_lookup_matches_calendar_day():
    completions = [{"date": "2024-03-05T12:00:00.000Z", "completed": True}]
    assert is_task_completed_on_date(completions, date(2024, 3, 5))
    assert is_task_completed_on_date(completions, datetime(2024, 3, 5, 1, 0, tzinfo=UTC_PLUS_14))
    assert is_task_completed_on_date(completions, datetime(2024, 3, 5, 22, 0, tzinfo=UTC_MINUS_12))
    assert not is_task_completed_on_date(completions, date(2024, 3, 6))
    assert not is_task_completed_on_date([], date(2024, 3, 5))


def test_completion_lookup_ignores_unchecked_rows():
    completions = [{"date": "2024-03-05T12:00:00.000Z", "completed": False}]
    assert not is_task_completed_on_date(completions, date(2024, 3, 5))


def test_date_columns_center_on_the_given_day():
    columns = generate_date_columns(date(2024, 3, 10), 7, today=date(2024, 3, 10))
    assert len(columns) == 7
    assert columns[0].date == date(2024, 3, 7)
    assert columns[-1].date == date(2024, 3, 13)
    assert [column.is_today for column in columns].count(True) == 1
    assert columns[3].is_today
    assert columns[3].day_name == "Sun"
    assert columns[3].month_name == "Mar"
    assert columns[3].date_string == "2024-03-10"
    assert columns[3].day_number == 10


def test_date_columns_even_range_starts_half_before():
    columns = generate_date_columns(date(2024, 3, 10), 14, today=date(2024, 1, 1))
    assert len(columns) == 14
    assert columns[0].date == date(2024, 3, 3)
    assert columns[-1].date == date(2024, 3, 16)
    assert not any(column.is_today for column in columns)


def test_date_columns_are_consecutive_across_month_end():
    columns = generate_date_columns(date(2024, 3, 1), 30, today=date(2024, 3, 1))
    days = [column.date for column in columns]
    assert all(later - earlier == timedelta(days=1) for earlier, later in zip(days, days[1:]))
    assert days[0] == date(2024, 2, 15)


def test_date_columns_require_a_positive_range():
    with pytest.raises(ValueError):
        generate_date_columns(date(2024, 3, 10), 0)


def test_days_after_a_finished_task_are_frozen():
    completions = [{"date": "2024-03-05T12:00:00.000Z", "completed": True}]
    assert not is_after_completed_date(True, completions, date(2024, 3, 5))
    assert is_after_completed_date(True, completions, date(2024, 3, 6))
    assert not is_after_completed_date(False, completions, date(2024, 3, 6))


def test_finished_task_without_completions_uses_completed_at():
    assert is_after_completed_date(True, [], date(2024, 3, 8), completed_at="2024-03-07T09:15:00+00:00")
    assert not is_after_completed_date(True, [], date(2024, 3, 7), completed_at="2024-03-07T09:15:00+00:00")
    assert not is_after_completed_date(True, [], date(2024, 3, 8))


def test_finished_task_cutoff_uses_the_latest_completion_outside_the_window():
    window = [{"date": "2024-03-01T12:00:00.000Z", "completed": True}]
    latest = "2024-03-20T12:00:00.000Z"
    assert not is_after_completed_date(True, window, date(2024, 3, 5), last_completed=latest)
    assert is_after_completed_date(True, window, date(2024, 3, 21), last_completed=latest)
    assert is_after_completed_date(True, [], date(2024, 3, 21), completed_at="2024-03-02T08:00:00+00:00", last_completed=latest)
    assert not is_after_completed_date(True, [], date(2024, 3, 19), completed_at="2024-03-02T08:00:00+00:00", last_completed=latest)


def test_week_boundaries_run_monday_to_sunday():
    assert week_boundaries(date(2024, 3, 6)) == (date(2024, 3, 4), date(2024, 3, 10))
    assert week_boundaries(date(2024, 3, 4)) == (date(2024, 3, 4), date(2024, 3, 10))
