import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class DueDateEntry(BaseModel):
  date: dt.date
  amount: float
  isPast: bool = False
  status: str = "unpaid"


class CalendarMonth(BaseModel):
  label: str
  year: int
  month: int
  days: List[Optional[dt.date]]
  dueDates: List[DueDateEntry] = Field(default_factory=list)

  def entry_for(self, day: Optional[dt.date]) -> Optional[DueDateEntry]:
    if day is None:
      return None
    return next((entry for entry in self.dueDates if entry.date == day), None)

  def weeks(self) -> List[List[Optional[dt.date]]]:
    cells = list(self.days)
    cells.extend([None] * (-len(cells) % 7))
    return [cells[i : i + 7] for i in range(0, len(cells), 7)]


class ScheduleSummary(BaseModel):
  totalDue: float = 0
  totalPaid: float = 0
  totalOutstanding: float = 0
  paymentCount: int = 0
  paidCount: int = 0
  unpaidCount: int = 0
  nextDue: Optional[DueDateEntry] = None


class RentalSchedule(BaseModel):
  requestId: Optional[str] = None
  entries: List[DueDateEntry] = Field(default_factory=list)
  months: List[CalendarMonth] = Field(default_factory=list)
  summary: ScheduleSummary = Field(default_factory=ScheduleSummary)
