"""Calendar-day helpers shared by the API and the dashboard.

A "day" is stored as noon UTC of the calendar date the user meant
(``2024-03-05T12:00:00.000Z``). Noon leaves twelve hours of slack on either
side, so reading the value back in any offset between UTC-12 and UTC+12
still lands on the same calendar date. Days are always compared by their
date components, never by instant equality.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, List, Optional, Tuple, Union

DateLike = Union[date, datetime, str]

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

STORAGE_HOUR_UTC = 12
DAY_RANGE_OPTIONS = [7, 14, 30, 60, 90]
DEFAULT_DAYS_TO_SHOW = 14


@dataclass(frozen=True)
class DateColumn:
    date: date
    date_string: str
    day_name: str
    day_number: int
    month_name: str
    is_today: bool


def _parse_iso(value: str) -> Union[date, datetime]:
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("Date is required")
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        return datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def _coerce(value: DateLike) -> Union[date, datetime]:
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        return _parse_iso(value)
    raise ValueError(f"Unsupported date value: {value!r}")


def local_calendar_date(value: DateLike, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of ``value`` as read on the caller's clock."""
    parsed = _coerce(value)
    if isinstance(parsed, datetime):
        if tz is not None and parsed.tzinfo is not None:
            parsed = parsed.astimezone(tz)
        return parsed.date()
    return parsed


def format_date_for_storage(value: DateLike, tz: Optional[tzinfo] = None) -> str:
    day = local_calendar_date(value, tz)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}T{STORAGE_HOUR_UTC:02d}:00:00.000Z"


def parse_storage_date(value: DateLike) -> datetime:
    parsed = _coerce(value)
    if isinstance(parsed, datetime):
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return datetime(parsed.year, parsed.month, parsed.day, STORAGE_HOUR_UTC, tzinfo=timezone.utc)


def decode_calendar_date(value: DateLike) -> date:
    return parse_storage_date(value).date()


def _field(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def is_task_completed_on_date(
    completions: Iterable[Any],
    target: DateLike,
    tz: Optional[tzinfo] = None,
) -> bool:
    target_day = local_calendar_date(target, tz)
    for completion in completions or []:
        if not _field(completion, "completed", False):
            continue
        stored = _field(completion, "date")
        if stored is None:
            continue
        if decode_calendar_date(stored) == target_day:
            return True
    return False


def last_completion_date(completions: Iterable[Any]) -> Optional[date]:
    days = [
        decode_calendar_date(_field(item, "date"))
        for item in completions or []
        if _field(item, "completed", False) and _field(item, "date") is not None
    ]
    return max(days) if days else None


def is_after_completed_date(
    is_completed: bool,
    completions: Iterable[Any],
    day: DateLike,
    completed_at: Optional[DateLike] = None,
    last_completed: Optional[DateLike] = None,
) -> bool:
    """True when ``day`` falls after the point a finished habit stopped being tracked.

    ``completions`` may be a window of the history; ``last_completed`` is the
    task's latest completion over all time when the caller knows it.
    """
    if not is_completed:
        return False
    cutoff = last_completion_date(completions)
    if last_completed:
        overall = decode_calendar_date(last_completed)
        cutoff = overall if cutoff is None else max(cutoff, overall)
    if cutoff is None and completed_at:
        cutoff = decode_calendar_date(completed_at)
    if cutoff is None:
        return False
    return local_calendar_date(day) > cutoff


def generate_date_columns(
    center: Optional[DateLike] = None,
    days_to_show: int = DEFAULT_DAYS_TO_SHOW,
    today: Optional[date] = None,
) -> List[DateColumn]:
    if int(days_to_show) < 1:
        raise ValueError("days_to_show must be at least 1")
    today = today or date.today()
    center_day = local_calendar_date(center) if center is not None else today
    start = center_day - timedelta(days=int(days_to_show) // 2)
    columns = []
    for offset in range(int(days_to_show)):
        day = start + timedelta(days=offset)
        columns.append(
            DateColumn(
                date=day,
                date_string=day.isoformat(),
                day_name=DAY_NAMES[day.weekday()],
                day_number=day.day,
                month_name=MONTH_NAMES[day.month - 1],
                is_today=day == today,
            )
        )
    return columns


def week_boundaries(value: DateLike) -> Tuple[date, date]:
    day = local_calendar_date(value)
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)
