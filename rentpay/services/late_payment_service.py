import logging
from datetime import date
from typing import Dict

from ..models.payment import PaymentStatus
from .payment_service import utc_now_iso
from .store import RentalStore, eq, lt

logger = logging.getLogger(__name__)


async def mark_overdue_payments(store: RentalStore, today: date) -> Dict[str, int]:
  """
  Flip every unpaid row whose due date has passed to ``overdue``.
  Returns counts of rows checked and updated.
  """
  filters = [("status", eq(PaymentStatus.unpaid.value)), ("due_date", lt(today.isoformat()))]
  late = await store.list_payments(filters, order=None, select="id")
  if not late:
    return {"checked": 0, "updated": 0}

  updated = await store.update_payments(filters, {"status": PaymentStatus.overdue.value, "updated_at": utc_now_iso()})
  logger.info("Overdue sweep for %s: %d late, %d updated", today, len(late), len(updated))
  return {"checked": len(late), "updated": len(updated)}
