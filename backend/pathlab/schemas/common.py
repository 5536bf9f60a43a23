"""Shared schema helpers"""
import re
from datetime import date
from typing import Any, Optional

DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MONTH_START_PATTERN = re.compile(r"^\d{4}-\d{2}-01$")


def parse_day(value: Any, message: str, pattern: re.Pattern = DAY_PATTERN) -> Optional[date]:
    """Accept None, a date, or a YYYY-MM-DD string; anything else fails with `message`"""
    if value is None or isinstance(value, date):
        return value
    if not isinstance(value, str) or not pattern.match(value):
        raise ValueError(message)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(message)


def require_text(value: Optional[str], message: str) -> Optional[str]:
    """Non-empty after trimming; None passes through"""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(message)
    return value
