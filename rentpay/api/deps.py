from datetime import date

import httpx
from fastapi import Depends, Request

from ..core.settings import Settings, get_settings
from ..cron.scheduler import local_today
from ..services.store import RentalStore, SupabaseStore


def get_client(request: Request) -> httpx.AsyncClient:
  return request.app.state.http_client


def get_store(request: Request, settings: Settings = Depends(get_settings)) -> RentalStore:
  return SupabaseStore(get_client(request), settings)


def get_today(settings: Settings = Depends(get_settings)) -> date:
  return local_today(settings.app_tz)
