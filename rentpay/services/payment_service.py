import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from ..models.payment import PaymentRecord, PaymentStats, PaymentStatus
from ..models.rental import RentalAgreement
from .date_utils import days_in_month, normalize_date_key
from .schedule_service import generate_payment_dates
from .store import RentalStore, eq, gt, gte, in_, lt, lte

logger = logging.getLogger(__name__)

TENANT_SELECT = "*,tenant:tenant_id(id,firstname,lastname,avatar,email),post:post_id(id,title,location)"
LANDLORD_SELECT = "*,landlord:landlord_id(id,firstname,lastname,avatar),post:post_id(id,title,location)"
MONTH_SELECT = TENANT_SELECT + ",request:request_id(id,rental_start_date,rental_end_date)"
DETAIL_SELECT = (
  "*,tenant:tenant_id(id,firstname,lastname,avatar,email),landlord:landlord_id(id,firstname,lastname,avatar),"
  "post:post_id(id,title,location),request:request_id(id,rental_start_date,rental_end_date)"
)


def to_records(rows: List[Dict]) -> List[PaymentRecord]:
  return [PaymentRecord.model_validate(row) for row in rows]


def utc_now_iso() -> str:
  return datetime.now(timezone.utc).isoformat()


async def get_payments_by_request(store: RentalStore, request_id: str) -> List[PaymentRecord]:
  rows = await store.list_payments([("request_id", eq(request_id))], order="due_date.asc")
  return to_records(rows)


async def create_payments_for_rental(
  store: RentalStore,
  rental: RentalAgreement,
  landlord_id: str,
  today: date,
) -> List[PaymentRecord]:
  """
  Persist one ``unpaid`` row per due date of the rental.

  Due dates that already have a row for this request are skipped, and the
  store's ``(request_id, due_date)`` conflict key catches concurrent callers,
  so running this twice never duplicates rows.
  """
  start, end = rental.start_date, rental.end_date
  if start is None or end is None:
    logger.warning("Rental %s has no usable dates, no payments created", rental.id)
    return []
  entries = generate_payment_dates(start, end, rental.payment_day_of_month, rental.monthly_rent_amount or 0, today)

  existing = await get_payments_by_request(store, rental.id)
  taken = {normalize_date_key(record.due_date) for record in existing}
  rows = [
    {
      "request_id": rental.id,
      "landlord_id": landlord_id,
      "tenant_id": rental.user_id,
      "post_id": rental.post_id,
      "amount": entry.amount,
      "due_date": normalize_date_key(entry.date),
      "status": PaymentStatus.unpaid.value,
    }
    for entry in entries
    if normalize_date_key(entry.date) not in taken
  ]
  logger.info(
    "Rental %s: %d due dates between %s and %s, %d already stored",
    rental.id,
    len(entries),
    start,
    end,
    len(entries) - len(rows),
  )
  if not rows:
    return []
  inserted = await store.insert_payments(rows)
  logger.info("Rental %s: inserted %d payment rows", rental.id, len(inserted))
  return to_records(inserted)


async def get_payments_by_landlord(store: RentalStore, landlord_id: str, month: int, year: int) -> List[PaymentRecord]:
  """Rows of one landlord due in the given calendar month (``month`` is 1-12)."""
  first = date(year, month, 1)
  last = date(year, month, days_in_month(year, month))
  rows = await store.list_payments(
    [
      ("landlord_id", eq(landlord_id)),
      ("due_date", gte(first.isoformat())),
      ("due_date", lte(last.isoformat())),
    ],
    order="due_date.asc",
    select=MONTH_SELECT,
  )
  return to_records(rows)


async def get_payments_by_tenant(store: RentalStore, tenant_id: str) -> List[PaymentRecord]:
  rows = await store.list_payments([("tenant_id", eq(tenant_id))], order="due_date.desc", select=LANDLORD_SELECT)
  return to_records(rows)


async def get_payment(store: RentalStore, payment_id: str) -> Optional[PaymentRecord]:
  row = await store.get_payment(payment_id, select=DETAIL_SELECT)
  return PaymentRecord.model_validate(row) if row else None


async def update_payment_status(
  store: RentalStore,
  payment_id: str,
  status: PaymentStatus,
  payment_date: Optional[str] = None,
  notes: Optional[str] = None,
  payment_method: Optional[str] = None,
) -> Optional[PaymentRecord]:
  patch: Dict = {"status": PaymentStatus(status).value, "updated_at": utc_now_iso()}
  if payment_date:
    patch["payment_date"] = payment_date
  if notes is not None:
    patch["notes"] = notes
  if payment_method:
    patch["payment_method"] = payment_method
  rows = await store.update_payments([("id", eq(payment_id))], patch)
  return PaymentRecord.model_validate(rows[0]) if rows else None


def compute_stats(records: List[PaymentRecord]) -> PaymentStats:
  stats = PaymentStats(payment_count=len(records))
  for record in records:
    amount = float(record.amount or 0)
    if record.status == PaymentStatus.paid.value:
      stats.total_paid += amount
      stats.paid_count += 1
    elif record.status == PaymentStatus.unpaid.value:
      stats.total_due += amount
      stats.unpaid_count += 1
    elif record.status == PaymentStatus.overdue.value:
      stats.total_overdue += amount
      stats.overdue_count += 1
    elif record.status == PaymentStatus.partial.value:
      stats.total_partial += amount
      stats.partial_count += 1
  return stats


async def get_payment_stats(store: RentalStore, landlord_id: str) -> PaymentStats:
  rows = await store.list_payments([("landlord_id", eq(landlord_id))], order=None, select="status,amount")
  return compute_stats(to_records(rows))


async def get_overdue_payments(store: RentalStore, landlord_id: str, today: date) -> List[PaymentRecord]:
  rows = await store.list_payments(
    [
      ("landlord_id", eq(landlord_id)),
      ("status", in_([PaymentStatus.unpaid.value, PaymentStatus.overdue.value])),
      ("due_date", lt(today.isoformat())),
    ],
    order="due_date.asc",
    select=TENANT_SELECT,
  )
  return to_records(rows)


async def cancel_future_payments(store: RentalStore, request_id: str, today: date) -> List[PaymentRecord]:
  rows = await store.update_payments(
    [
      ("request_id", eq(request_id)),
      ("status", eq(PaymentStatus.unpaid.value)),
      ("due_date", gt(today.isoformat())),
    ],
    {"status": PaymentStatus.cancelled.value, "updated_at": utc_now_iso()},
  )
  logger.info("Rental %s: cancelled %d future payments", request_id, len(rows))
  return to_records(rows)


async def delete_payment(store: RentalStore, payment_id: str) -> None:
  await store.delete_payments([("id", eq(payment_id))])


async def delete_payments_for_rental(store: RentalStore, request_id: str) -> None:
  await store.delete_payments([("request_id", eq(request_id))])
  logger.info("Rental %s: payment rows deleted", request_id)
