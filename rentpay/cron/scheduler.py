import logging
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import HTTPException

from ..core.settings import Settings
from ..services.late_payment_service import mark_overdue_payments
from ..services.reminder_service import emit_due_reminders
from ..services.store import SupabaseStore

logger = logging.getLogger(__name__)


def local_today(tz_name: str) -> date:
  return datetime.now(ZoneInfo(tz_name)).date()


def create_scheduler(
  settings: Settings,
  http_client: httpx.AsyncClient,
  today: Optional[Callable[[], date]] = None,
) -> Optional[AsyncIOScheduler]:
  if not settings.scheduler_active:
    return None
  store = SupabaseStore(http_client, settings)
  current_day = today or (lambda: local_today(settings.app_tz))
  scheduler = AsyncIOScheduler(timezone=settings.scheduler_tz)

  async def overdue_job():
    try:
      result = await mark_overdue_payments(store, current_day())
      logger.info("Overdue sweep: checked %d, updated %d", result["checked"], result["updated"])
    except (HTTPException, httpx.HTTPError):  # pragma: no cover - logged only
      logger.exception("Overdue sweep failed")

  async def reminder_job():
    try:
      result = await emit_due_reminders(store, settings, current_day())
      logger.info("Due reminders: %d due, %d sent, %d failed", result["total"], result["sent"], result["failed"])
    except (HTTPException, httpx.HTTPError):  # pragma: no cover - logged only
      logger.exception("Due reminders failed")

  if settings.overdue_sweep_enabled:
    # daily at 01:00
    scheduler.add_job(overdue_job, CronTrigger(hour=1, minute=0), id="overdue_sweep")
  if settings.reminder_active:
    # daily at 09:00
    scheduler.add_job(reminder_job, CronTrigger(hour=9, minute=0), id="due_reminders")

  return scheduler
