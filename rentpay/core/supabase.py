from typing import Any, Dict, Optional, Sequence, Tuple, Union

import httpx
from fastapi import HTTPException, status

from .settings import Settings


def build_rest_url(settings: Settings, table: str) -> str:
  if not settings.supabase_configured:
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Supabase is not configured.")
  base = str(settings.supabase_url).rstrip("/")
  return f"{base}/rest/v1/{table}"


def build_headers(settings: Settings, prefer: Optional[str] = None) -> Dict[str, str]:
  headers = {
    "apikey": settings.supabase_service_key or "",
    "Authorization": f"Bearer {settings.supabase_service_key}",
    "Content-Type": "application/json",
  }
  if prefer:
    headers["Prefer"] = prefer
  return headers


async def supabase_request(
  client: httpx.AsyncClient,
  settings: Settings,
  table: str,
  method: str = "GET",
  params: Optional[Union[Dict[str, str], Sequence[Tuple[str, str]]]] = None,
  body: Any = None,
  prefer: Optional[str] = None,
) -> Tuple[int, Any]:
  """Run one PostgREST call and return ``(status_code, decoded_json)``.

  ``params`` are passed through untouched, so filters use PostgREST syntax
  (``[("request_id", "eq.42"), ("order", "due_date.asc")]``).
  """
  url = build_rest_url(settings, table)
  response = await client.request(method, url, params=params, json=body, headers=build_headers(settings, prefer))
  if response.status_code >= 400:
    raise HTTPException(
      status_code=status.HTTP_502_BAD_GATEWAY,
      detail=f"Supabase error {response.status_code}: {response.text}",
    )
  if response.status_code == status.HTTP_204_NO_CONTENT:
    return response.status_code, None
  data = response.json() if response.text else None
  return response.status_code, data
