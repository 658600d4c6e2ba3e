import logging
from datetime import date

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..core.security import get_current_user_id
from ..core.settings import Settings, get_settings
from ..models.payment import PaymentRecord, PaymentStats, PaymentStatus, PaymentUpdate
from ..services import payment_service
from ..services.reminder_service import send_payment_received
from ..services.request_service import authorize_payment, authorize_rental
from ..services.store import RentalStore
from .deps import get_store, get_today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"], dependencies=[Depends(get_current_user_id)])


@router.get("/request/{request_id}", response_model=list[PaymentRecord])
async def payments_for_request(
  request_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  await authorize_rental(store, request_id, user_id)
  return await payment_service.get_payments_by_request(store, request_id)


@router.post("/request/{request_id}/generate", response_model=list[PaymentRecord], status_code=status.HTTP_201_CREATED)
async def generate_payments(
  request_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  rental, landlord_id = await authorize_rental(store, request_id, user_id, landlord_only=True)
  if not rental.confirmed or not rental.has_terms:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Rental is not confirmed with dates and rent.")
  return await payment_service.create_payments_for_rental(store, rental, str(landlord_id), today)


@router.post("/request/{request_id}/cancel-future", response_model=list[PaymentRecord])
async def cancel_future(
  request_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  await authorize_rental(store, request_id, user_id, landlord_only=True)
  return await payment_service.cancel_future_payments(store, request_id, today)


@router.delete("/request/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_for_request(
  request_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  await authorize_rental(store, request_id, user_id, landlord_only=True)
  await payment_service.delete_payments_for_rental(store, request_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/tenant", response_model=list[PaymentRecord])
async def tenant_payments(
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  return await payment_service.get_payments_by_tenant(store, user_id)


@router.get("/landlord", response_model=list[PaymentRecord])
async def landlord_payments(
  month: int = Query(..., ge=1, le=12),
  year: int = Query(..., ge=1970, le=9999),
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  return await payment_service.get_payments_by_landlord(store, user_id, month, year)


@router.get("/stats", response_model=PaymentStats)
async def landlord_stats(
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  return await payment_service.get_payment_stats(store, user_id)


@router.get("/overdue", response_model=list[PaymentRecord])
async def landlord_overdue(
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  today: date = Depends(get_today),
):
  return await payment_service.get_overdue_payments(store, user_id, today)


@router.get("/{payment_id}", response_model=PaymentRecord)
async def payment_detail(
  payment_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  return await authorize_payment(store, payment_id, user_id)


@router.patch("/{payment_id}", response_model=PaymentRecord)
async def update_payment(
  payment_id: str,
  payload: PaymentUpdate,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
  settings: Settings = Depends(get_settings),
):
  await authorize_payment(store, payment_id, user_id, landlord_only=True)
  record = await payment_service.update_payment_status(
    store,
    payment_id,
    payload.status,
    payment_date=payload.paymentDate,
    notes=payload.notes,
    payment_method=payload.paymentMethod,
  )
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found.")
  if payload.status == PaymentStatus.paid:
    try:
      await send_payment_received(store, settings, payment_id)
    except (HTTPException, httpx.HTTPError) as exc:
      logger.warning("Receipt for payment %s not sent: %s", payment_id, getattr(exc, "detail", exc))
  return record


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
  payment_id: str,
  user_id: str = Depends(get_current_user_id),
  store: RentalStore = Depends(get_store),
):
  await authorize_payment(store, payment_id, user_id, landlord_only=True)
  await payment_service.delete_payment(store, payment_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)
