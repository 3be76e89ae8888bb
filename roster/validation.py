"""Проверки полей события: название, дата, время, смещение блокировки, ID."""

import calendar
import re

from .errors import ValidationError

MAX_TITLE_LENGTH = 255
MIN_YEAR = 1970
# Одна неделя
MAX_LOCK_OFFSET_MINUTES = 7 * 24 * 60
MAX_SNOWFLAKE = 9223372036854775807

DATE_PATTERN = re.compile(r"^(\d{2})\.(\d{2})\.(\d{4})$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
SNOWFLAKE_PATTERN = re.compile(r"^\d+$")


def is_valid_date(date: str) -> bool:
    """Дата в формате ДД.ММ.ГГГГ, с учетом числа дней в месяце."""
    match = DATE_PATTERN.match(date)
    if not match:
        return False
    day, month, year = map(int, match.groups())
    if month < 1 or month > 12 or year < MIN_YEAR:
        return False
    return 1 <= day <= calendar.monthrange(year, month)[1]


def is_valid_time(time: str) -> bool:
    """Время в формате ЧЧ:ММ (24 часа)."""
    return bool(TIME_PATTERN.match(time))


def validate_title(title: str) -> None:
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(
            f"Invalid event name: name should be less than {MAX_TITLE_LENGTH} symbols", field="title"
        )


def validate_date(date: str) -> None:
    if not is_valid_date(date):
        raise ValidationError(
            f"{date} is not valid date. Date must be in DD.MM.YYYY format", field="date"
        )


def validate_time(time: str) -> None:
    if not is_valid_time(time):
        raise ValidationError(
            f"{time} is not valid time. Time must be in HH:MM format", field="time"
        )


def validate_lock_offset(lock_offset_minutes: int | None) -> None:
    if lock_offset_minutes is None:
        return
    if (
        isinstance(lock_offset_minutes, bool)
        or not isinstance(lock_offset_minutes, int)
        or not 0 <= lock_offset_minutes <= MAX_LOCK_OFFSET_MINUTES
    ):
        raise ValidationError(
            f"Invalid lock: lock should be between 0 and {MAX_LOCK_OFFSET_MINUTES} minutes",
            field="lock_offset_minutes",
        )


def validate_event_fields(
    title: str | None, date: str | None, time: str | None, comp_name: str | None
) -> None:
    """Порядок проверок важен: первая же ошибка возвращается пользователю."""
    if not title or not date or not time or not comp_name:
        raise ValidationError("Invalid input: Event name, Date, Time and Comp name are required")
    validate_title(title)
    validate_date(date)
    validate_time(time)


def parse_event_id(raw: str) -> int:
    """ID события, введенный пользователем вручную (snowflake)."""
    raw = raw.strip()
    if not SNOWFLAKE_PATTERN.match(raw) or int(raw) > MAX_SNOWFLAKE:
        raise ValidationError(f"Event ID {raw} is not valid", field="event_id")
    return int(raw)


def parse_role_ids(raw: str) -> list[int]:
    """Список номеров ролей через запятую, например ``5,8,9,23``."""
    try:
        role_ids = [int(item.strip()) for item in raw.split(",") if item.strip()]
    except ValueError:
        raise ValidationError("Invalid roles: use role numbers separated by commas (for example: 5,8,9,23)", field="roles")
    if not role_ids:
        raise ValidationError("No roles provided", field="roles")
    return role_ids
