from datetime import date
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from ..models.payment import PaymentRecord, PaymentStatus
from ..models.rental import RentalAgreement
from ..models.schedule import DueDateEntry, RentalSchedule, ScheduleSummary
from .calendar_service import project_months
from .date_utils import normalize_date_key

SETTLED_STATUSES = {PaymentStatus.paid.value, PaymentStatus.cancelled.value}


def generate_payment_dates(
  start: date,
  end: date,
  day_of_month: Optional[int],
  monthly_amount: float,
  today: date,
) -> List[DueDateEntry]:
  """
  Monthly due dates of a rental over ``[start, end]``.

  Rent is due on move-in, so ``start`` is always the first entry. Every
  following calendar month contributes its ``day_of_month`` (clamped to the
  month's last day) until a candidate passes ``end``.
  """
  if start > end:
    return []
  anchor = max(1, min(31, int(day_of_month or start.day)))
  amount = float(monthly_amount or 0)

  entries = [DueDateEntry(date=start, amount=amount, isPast=start < today)]
  months_ahead = 1
  while True:
    # relativedelta clamps day=31 to the last day of shorter months
    candidate = start + relativedelta(months=months_ahead, day=anchor)
    if candidate > end:
      break
    entries.append(DueDateEntry(date=candidate, amount=amount, isPast=candidate < today))
    months_ahead += 1
  return entries


def index_records(records: Iterable[PaymentRecord]) -> Dict[str, PaymentRecord]:
  lookup: Dict[str, PaymentRecord] = {}
  for record in records:
    key = normalize_date_key(record.due_date)
    if key:
      lookup[key] = record
  return lookup


def merge_statuses(due_dates: List[DueDateEntry], records: Iterable[PaymentRecord]) -> List[DueDateEntry]:
  """Overlay persisted status and amount on generated entries; never fails."""
  lookup = index_records(records)
  merged = []
  for entry in due_dates:
    record = lookup.get(normalize_date_key(entry.date))
    if record is None:
      merged.append(entry.model_copy(update={"status": PaymentStatus.unpaid.value}))
      continue
    merged.append(
      entry.model_copy(
        update={
          "status": record.status or PaymentStatus.unpaid.value,
          "amount": float(record.amount) if record.amount else entry.amount,
        }
      )
    )
  return merged


def summarize_schedule(entries: List[DueDateEntry]) -> ScheduleSummary:
  summary = ScheduleSummary(paymentCount=len(entries))
  for entry in entries:
    summary.totalDue += entry.amount
    if entry.status == PaymentStatus.paid.value:
      summary.totalPaid += entry.amount
      summary.paidCount += 1
      continue
    if entry.status == PaymentStatus.cancelled.value:
      continue
    summary.unpaidCount += 1
    summary.totalOutstanding += entry.amount
    if summary.nextDue is None:
      summary.nextDue = entry
  return summary


def build_schedule(rental: RentalAgreement, records: Iterable[PaymentRecord], today: date) -> RentalSchedule:
  start, end = rental.start_date, rental.end_date
  if not rental.has_terms or start is None or end is None:
    return RentalSchedule(requestId=rental.id)
  generated = generate_payment_dates(start, end, rental.payment_day_of_month, rental.monthly_rent_amount or 0, today)
  entries = merge_statuses(generated, records)
  return RentalSchedule(
    requestId=rental.id,
    entries=entries,
    months=project_months(start, end, entries),
    summary=summarize_schedule(entries),
  )
