"""
Calendar-day helpers shared by the schedule, calendar and payment services.

Every comparison between a generated due date and a persisted ``due_date``
goes through ``normalize_date_key`` so both sides agree on the same
``YYYY-MM-DD`` key no matter how the value was produced.
"""

import calendar
import re
from datetime import date, datetime
from typing import Optional, Union

from dateutil import parser as date_parser

DateLike = Union[str, date, datetime, None]

CANONICAL_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_date_key(value: DateLike) -> str:
  """
  Return the ``YYYY-MM-DD`` key of a calendar day.

  Datetimes keep the day they carry; no timezone conversion happens, so a
  bare day stored in the database and a locally built value compare equal.
  Unparseable strings degrade to the text before the first space.
  Falsy input returns ``""``, which never matches a real key.
  """
  if not value:
    return ""
  if isinstance(value, datetime):
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
  if isinstance(value, date):
    return value.isoformat()
  if not isinstance(value, str):
    return ""

  text = value.strip()
  if CANONICAL_DAY.match(text):
    return text
  if "T" in text:
    return text.split("T", 1)[0]
  try:
    parsed = date_parser.parse(text)
  except (ValueError, OverflowError):
    return text.split(" ", 1)[0]
  return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"


def parse_calendar_day(value: DateLike) -> Optional[date]:
  """Read a boundary date value as a ``date``, or ``None`` if it is not one."""
  if isinstance(value, datetime):
    return value.date()
  if isinstance(value, date):
    return value
  key = normalize_date_key(value)
  if not CANONICAL_DAY.match(key):
    return None
  try:
    return date.fromisoformat(key)
  except ValueError:
    return None


def days_in_month(year: int, month: int) -> int:
  return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
  """Day ``day`` of the month, or the month's last day when it is shorter."""
  return date(year, month, max(1, min(day, days_in_month(year, month))))


def month_span(start: date, end: date) -> int:
  """Number of calendar months touched by ``[start, end]`` (0 if reversed)."""
  if start > end:
    return 0
  return (end.year - start.year) * 12 + (end.month - start.month) + 1
