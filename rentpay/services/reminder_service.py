import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from ..core.email_utils import MAIL_ERRORS, send_mail
from ..core.settings import Settings
from ..models.payment import PaymentRecord, PaymentStatus
from .date_utils import parse_calendar_day
from .payment_service import TENANT_SELECT, to_records
from .store import RentalStore, eq

logger = logging.getLogger(__name__)


def format_currency(amount: float, symbol: str) -> str:
  return f"{symbol}{amount:,.2f}"


def format_due_date(value: Optional[str]) -> str:
  parsed = parse_calendar_day(value)
  return parsed.strftime("%b %d, %Y") if parsed else (value or "")


def tenant_contact(record: PaymentRecord) -> Dict[str, str]:
  tenant = getattr(record, "tenant", None) or {}
  name = " ".join(part for part in (tenant.get("firstname"), tenant.get("lastname")) if part)
  return {"email": (tenant.get("email") or "").strip().lower(), "name": name or "Tenant"}


def post_title(record: PaymentRecord) -> str:
  post = getattr(record, "post", None) or {}
  return post.get("title") or "your rental"


async def find_due_payments(store: RentalStore, due: date) -> List[PaymentRecord]:
  rows = await store.list_payments(
    [("status", eq(PaymentStatus.unpaid.value)), ("due_date", eq(due.isoformat()))],
    select=TENANT_SELECT,
  )
  return to_records(rows)


def render_reminder(record: PaymentRecord, settings: Settings) -> Dict[str, str]:
  contact = tenant_contact(record)
  due_text = format_due_date(record.due_date)
  amount_text = format_currency(float(record.amount or 0), settings.currency_symbol)
  title = post_title(record)
  text = (
    f"Hi {contact['name']},\n\n"
    f"This is a reminder that your rent of {amount_text} for {title} is due on {due_text}.\n"
    f"If you have already paid, you can ignore this message."
  )
  html = f"""
    <div style="font-family:Arial, sans-serif; color:#0f172a; line-height:1.6;">
      <h2 style="color:#0ea5e9; margin-bottom:8px;">Payment reminder</h2>
      <p>Hi {contact['name']},</p>
      <p>Your rent for <strong>{title}</strong> is due on <strong>{due_text}</strong>.</p>
      <p style="font-size:16px; font-weight:600; color:#0b5ed7;">Amount: {amount_text}</p>
      <p style="font-size:12px; color:#6b7280;">If you have already paid, ignore this message.</p>
    </div>
    """
  return {"subject": f"Rent due on {due_text}", "text": text, "html": html}


async def emit_due_reminders(store: RentalStore, settings: Settings, today: date) -> Dict[str, int]:
  """Email every tenant whose unpaid rent falls ``reminder_days_ahead`` days from ``today``."""
  target = today + timedelta(days=settings.reminder_days_ahead)
  payments = await find_due_payments(store, target)
  sent = 0
  failed = 0
  for record in payments:
    contact = tenant_contact(record)
    if not contact["email"]:
      continue
    message = render_reminder(record, settings)
    try:
      await send_mail(settings, to=contact["email"], **message)
      sent += 1
    except MAIL_ERRORS as exc:
      failed += 1
      logger.warning("Reminder for payment %s not sent: %s", record.id, getattr(exc, "detail", exc))
  return {"total": len(payments), "sent": sent, "failed": failed}


async def send_payment_received(store: RentalStore, settings: Settings, payment_id: str) -> bool:
  """Confirm a paid installment to the tenant; returns whether a mail went out."""
  if not settings.mailer_configured:
    return False
  row = await store.get_payment(payment_id, select=TENANT_SELECT)
  if not row:
    return False
  record = PaymentRecord.model_validate(row)
  contact = tenant_contact(record)
  if not contact["email"]:
    return False
  amount_text = format_currency(float(record.amount or 0), settings.currency_symbol)
  title = post_title(record)
  text = (
    f"Hi {contact['name']},\n\n"
    f"Your payment of {amount_text} for {title} (due {format_due_date(record.due_date)}) has been received.\n"
    f"Thank you!"
  )
  try:
    await send_mail(settings, to=contact["email"], subject="Payment received", text=text)
  except MAIL_ERRORS as exc:
    logger.warning("Receipt for payment %s not sent: %s", payment_id, getattr(exc, "detail", exc))
    return False
  return True
