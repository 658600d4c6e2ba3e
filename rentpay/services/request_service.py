import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import httpx
from dateutil.relativedelta import relativedelta
from fastapi import HTTPException, status

from ..models.payment import PaymentRecord
from ..models.rental import RentalAgreement
from .payment_service import create_payments_for_rental, get_payment
from .store import RentalStore, eq, gt, gte, lte

logger = logging.getLogger(__name__)

RENTAL_SELECT = (
  "id,user_id,post_id,requested,confirmed,rental_start_date,rental_end_date,payment_day_of_month,monthly_rent_amount,"
  "post:post_id(id,title,price_per_night,user:user_id(id,firstname,lastname)),"
  "user:user_id(id,firstname,lastname)"
)


async def get_rental(store: RentalStore, request_id: str) -> RentalAgreement:
  row = await store.get_request(request_id)
  if not row:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rental request not found.")
  return RentalAgreement.model_validate(row)


async def get_landlord_id(store: RentalStore, rental: RentalAgreement) -> Optional[str]:
  """The landlord is whoever owns the rental's post."""
  if not rental.post_id:
    return None
  post = await store.get_post(rental.post_id)
  landlord_id = (post or {}).get("user_id")
  return str(landlord_id) if landlord_id else None


def ensure_access(user_id: str, landlord_id: Optional[str], tenant_id: Optional[str] = None) -> None:
  # pass tenant_id only where the tenant may act too
  allowed = {str(party) for party in (landlord_id, tenant_id) if party}
  if user_id not in allowed:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this rental.")


async def authorize_rental(
  store: RentalStore,
  request_id: str,
  user_id: str,
  landlord_only: bool = False,
) -> Tuple[RentalAgreement, Optional[str]]:
  rental = await get_rental(store, request_id)
  landlord_id = await get_landlord_id(store, rental)
  ensure_access(user_id, landlord_id, None if landlord_only else rental.tenant_id)
  return rental, landlord_id


async def authorize_payment(store: RentalStore, payment_id: str, user_id: str, landlord_only: bool = False) -> PaymentRecord:
  record = await get_payment(store, payment_id)
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found.")
  if record.landlord_id:
    ensure_access(user_id, record.landlord_id, None if landlord_only else record.tenant_id)
  elif record.request_id:
    await authorize_rental(store, record.request_id, user_id, landlord_only)
  else:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this rental.")
  return record


def default_terms(
  existing: RentalAgreement,
  today: date,
  start: Optional[date],
  end: Optional[date],
  payment_day: Optional[int],
  fallback_rent: float,
) -> Dict[str, Any]:
  """Rental terms to write on approval; explicit values beat stored ones, which beat defaults."""
  start_value = start or existing.start_date or today
  end_value = end or existing.end_date or start_value + relativedelta(months=1)
  if end_value < start_value:
    end_value = start_value + relativedelta(months=1)
  return {
    "rental_start_date": start_value.isoformat(),
    "rental_end_date": end_value.isoformat(),
    "payment_day_of_month": payment_day or existing.payment_day_of_month or today.day,
    "monthly_rent_amount": existing.monthly_rent_amount or fallback_rent or 0,
  }


async def advance_request(
  store: RentalStore,
  request_id: str,
  today: date,
  start: Optional[date] = None,
  end: Optional[date] = None,
  payment_day: Optional[int] = None,
) -> RentalAgreement:
  """
  Move a rental request one step forward.

  - not requested yet: mark it requested
  - requested, not confirmed: confirm it with rental terms and create the
    payment rows
  - confirmed but missing dates: fill the dates in
  - otherwise nothing changes
  """
  existing = await get_rental(store, request_id)

  post: Dict[str, Any] = {}
  if existing.post_id and (not existing.monthly_rent_amount or not existing.confirmed):
    post = await store.get_post(existing.post_id) or {}
  fallback_rent = float(post.get("price_per_night") or 0)

  if not existing.requested:
    patch: Dict[str, Any] = {"requested": True}
  elif not existing.confirmed:
    patch = {"confirmed": True, **default_terms(existing, today, start, end, payment_day, fallback_rent)}
  elif not existing.start_date or not existing.end_date:
    patch = default_terms(existing, today, start, end, payment_day, fallback_rent)
  else:
    return existing

  row = await store.update_request(request_id, patch)
  updated = RentalAgreement.model_validate(row) if row else existing.model_copy(update=patch)

  if patch.get("confirmed"):
    await create_rental_payments(store, updated, post.get("user_id"), today)
  return updated


async def create_rental_payments(store: RentalStore, rental: RentalAgreement, landlord_id: Optional[str], today: date) -> None:
  """Create payment rows on confirmation; failures are logged, never raised."""
  if not landlord_id or not rental.has_terms or not rental.user_id or not rental.post_id:
    logger.warning(
      "Payment creation skipped for rental %s (landlord=%s, terms=%s, tenant=%s, post=%s)",
      rental.id,
      bool(landlord_id),
      rental.has_terms,
      bool(rental.user_id),
      bool(rental.post_id),
    )
    return
  try:
    await create_payments_for_rental(store, rental, str(landlord_id), today)
  except (HTTPException, httpx.HTTPError) as exc:
    logger.error("Could not create payments for rental %s: %s", rental.id, getattr(exc, "detail", exc))


async def update_rental_dates(
  store: RentalStore,
  request_id: str,
  start: date,
  end: date,
  payment_day: int,
  monthly_amount: float,
) -> RentalAgreement:
  patch = {
    "rental_start_date": start.isoformat(),
    "rental_end_date": end.isoformat(),
    "payment_day_of_month": payment_day,
    "monthly_rent_amount": monthly_amount,
  }
  row = await store.update_request(request_id, patch)
  if not row:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rental request not found.")
  return RentalAgreement.model_validate(row)


async def get_active_rentals(store: RentalStore, tenant_id: str, today: date) -> List[Dict[str, Any]]:
  return await store.list_requests(
    [
      ("user_id", eq(tenant_id)),
      ("confirmed", eq("true")),
      ("rental_start_date", lte(today.isoformat())),
      ("rental_end_date", gte(today.isoformat())),
    ],
    select=RENTAL_SELECT,
  )


async def get_upcoming_rentals(store: RentalStore, tenant_id: str, today: date) -> List[Dict[str, Any]]:
  return await store.list_requests(
    [
      ("user_id", eq(tenant_id)),
      ("confirmed", eq("true")),
      ("rental_start_date", gt(today.isoformat())),
    ],
    order="rental_start_date.asc",
    select=RENTAL_SELECT,
  )
