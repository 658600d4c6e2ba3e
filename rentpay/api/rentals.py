import logging
from datetime import date
from typing import List

import httpx
from fastapi import APIRouter, Depends, HTTPException

from ..core.security import get_current_user_id
from ..models.payment import PaymentRecord
from ..models.rental import RentalAdvance, RentalAgreement, RentalDatesUpdate
from ..models.schedule import RentalSchedule
from ..services.payment_service import get_payments_by_request
from ..services.request_service import (
  advance_request,
  authorize_rental,
  ensure_access,
  get_active_rentals,
  get_landlord_id,
  get_rental,
  get_upcoming_rentals,
  update_rental_dates,
)
from ..services.schedule_service import build_schedule
from ..services.store import RentalStore
from .deps import get_store, get_today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rentals", tags=["rentals"], dependencies=[Depends(get_current_user_id)])


async def load_payment_rows(store: RentalStore, request_id: str) -> List[PaymentRecord]:
  # rows may lag behind confirmation; a failed fetch renders as an unpaid schedule
  try:
    return await get_payments_by_request(store, request_id)
  except (HTTPException, httpx.HTTPError) as exc:
    logger.error("Payments for rental %s unavailable: %s", request_id, getattr(exc, "detail", exc))
    return []


@router.get("/active", response_model=list[dict])
async def active_rentals(
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  return await get_active_rentals(store, user_id, today)


@router.get("/upcoming", response_model=list[dict])
async def upcoming_rentals(
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  return await get_upcoming_rentals(store, user_id, today)


@router.get("/{request_id}/schedule", response_model=RentalSchedule)
async def rental_schedule(
  request_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  rental, _ = await authorize_rental(store, request_id, user_id)
  records = await load_payment_rows(store, request_id)
  return build_schedule(rental, records, today)


@router.post("/{request_id}/advance", response_model=RentalAgreement)
async def advance_rental(
  request_id: str,
  payload: RentalAdvance,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  rental = await get_rental(store, request_id)
  landlord_id = await get_landlord_id(store, rental)
  # the tenant only sends the request; confirming and dating it is up to the landlord
  ensure_access(user_id, landlord_id, None if rental.requested else rental.tenant_id)
  return await advance_request(
    store,
    request_id,
    today,
    start=payload.startDate,
    end=payload.endDate,
    payment_day=payload.paymentDay,
  )


@router.put("/{request_id}/dates", response_model=RentalAgreement)
async def change_rental_dates(
  request_id: str,
  payload: RentalDatesUpdate,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  await authorize_rental(store, request_id, user_id, landlord_only=True)
  return await update_rental_dates(
    store,
    request_id,
    payload.startDate,
    payload.endDate,
    payload.paymentDay,
    payload.monthlyAmount,
  )
