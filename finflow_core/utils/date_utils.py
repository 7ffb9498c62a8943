"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from finflow_core.domain.exceptions import ValidationError
from finflow_core.domain.models import BIWEEKLY, MONTHLY, WEEKLY

FREQUENCY_DAYS = {WEEKLY: 7, BIWEEKLY: 14}


def utc_today() -> date:
    """Current calendar date in UTC"""
    return datetime.now(timezone.utc).date()


def parse_date(value: Any) -> Optional[date]:
    """Parse a date, YYYY-MM-DD string or ISO timestamp; None when unparseable"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return parse_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None


def coerce_date(value: Any, today: Optional[date] = None) -> date:
    """Parse a date-like value, falling back to today on empty or bad input"""
    parsed = parse_date(value)
    if parsed is None:
        return today or utc_today()
    return parsed


def add_month(value: Any, today: Optional[date] = None) -> date:
    """
    Advance exactly one calendar month, clamping the day to the target month.

    Example:
        2024-01-31 -> 2024-02-29 (leap year)
        2023-01-31 -> 2023-02-28

    Unparseable input falls back to one month after today.
    """
    base = parse_date(value)
    if base is None:
        base = today or utc_today()

    year = base.year + base.month // 12
    month = base.month % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(base.day, last_day))


def advance_by_frequency(value: date, frequency: str) -> date:
    """Step a date forward by one weekly, biweekly or monthly period"""
    if frequency == MONTHLY:
        return add_month(value)
    if frequency not in FREQUENCY_DAYS:
        raise ValidationError(f"Frecuencia inválida: {frequency}")
    return value + timedelta(days=FREQUENCY_DAYS[frequency])
