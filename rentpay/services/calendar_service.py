import calendar
from datetime import date
from typing import Dict, List, Optional, Tuple

from ..models.schedule import CalendarMonth, DueDateEntry
from .date_utils import days_in_month, month_span


def leading_blanks(year: int, month: int) -> int:
  # weeks start on Sunday: Sunday -> 0 ... Saturday -> 6
  return (date(year, month, 1).weekday() + 1) % 7


def month_label(year: int, month: int) -> str:
  return f"{calendar.month_name[month]} {year}"


def build_month(year: int, month: int, due_dates: List[DueDateEntry]) -> CalendarMonth:
  days: List[Optional[date]] = [None] * leading_blanks(year, month)
  days.extend(date(year, month, day) for day in range(1, days_in_month(year, month) + 1))
  return CalendarMonth(label=month_label(year, month), year=year, month=month, days=days, dueDates=due_dates)


def project_months(start: date, end: date, due_dates: List[DueDateEntry]) -> List[CalendarMonth]:
  """One grid per calendar month intersecting ``[start, end]``."""
  by_month: Dict[Tuple[int, int], List[DueDateEntry]] = {}
  for entry in due_dates:
    by_month.setdefault((entry.date.year, entry.date.month), []).append(entry)

  months = []
  year, month = start.year, start.month
  for _ in range(month_span(start, end)):
    months.append(build_month(year, month, by_month.get((year, month), [])))
    year, month = (year + 1, 1) if month == 12 else (year, month + 1)
  return months
