"""
Data access for rental requests and payment rows.

Services receive a ``RentalStore`` instead of reaching for a shared client,
so they can be exercised against an in-memory store. Filters use PostgREST
syntax as ``(column, "op.value")`` pairs, e.g. ``("request_id", "eq.42")``.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx

from ..core.settings import Settings
from ..core.supabase import supabase_request

Filters = Sequence[Tuple[str, str]]

REQUESTS_TABLE = "requests"
PAYMENTS_TABLE = "payments"
POSTS_TABLE = "posts"
PAYMENT_CONFLICT_KEY = "request_id,due_date"


def eq(value: Any) -> str:
  return f"eq.{value}"


def lt(value: Any) -> str:
  return f"lt.{value}"


def lte(value: Any) -> str:
  return f"lte.{value}"


def gt(value: Any) -> str:
  return f"gt.{value}"


def gte(value: Any) -> str:
  return f"gte.{value}"


def in_(values: Sequence[Any]) -> str:
  return f"in.({','.join(str(value) for value in values)})"


class RentalStore(Protocol):
  async def get_request(self, request_id: str) -> Optional[Dict[str, Any]]: ...

  async def update_request(self, request_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

  async def list_requests(self, filters: Filters, order: Optional[str] = None, select: str = "*") -> List[Dict[str, Any]]: ...

  async def get_post(self, post_id: str) -> Optional[Dict[str, Any]]: ...

  async def list_payments(self, filters: Filters, order: Optional[str] = "due_date.asc", select: str = "*") -> List[Dict[str, Any]]: ...

  async def get_payment(self, payment_id: str, select: str = "*") -> Optional[Dict[str, Any]]: ...

  async def insert_payments(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]: ...

  async def update_payments(self, filters: Filters, patch: Dict[str, Any]) -> List[Dict[str, Any]]: ...

  async def delete_payments(self, filters: Filters) -> None: ...


def _as_rows(data: Any) -> List[Dict[str, Any]]:
  if isinstance(data, list):
    return [row for row in data if isinstance(row, dict)]
  if isinstance(data, dict):
    return [data]
  return []


class SupabaseStore:
  """``RentalStore`` over the hosted Postgres REST endpoint."""

  def __init__(self, client: httpx.AsyncClient, settings: Settings):
    self.client = client
    self.settings = settings

  async def _select(self, table: str, filters: Filters, order: Optional[str] = None, select: str = "*", limit: Optional[int] = None):
    params: List[Tuple[str, str]] = [("select", select), *filters]
    if order:
      params.append(("order", order))
    if limit:
      params.append(("limit", str(limit)))
    _, data = await supabase_request(self.client, self.settings, table, params=params)
    return _as_rows(data)

  async def _first(self, table: str, row_id: str, select: str = "*") -> Optional[Dict[str, Any]]:
    rows = await self._select(table, [("id", eq(row_id))], select=select, limit=1)
    return rows[0] if rows else None

  async def get_request(self, request_id):
    return await self._first(REQUESTS_TABLE, request_id)

  async def update_request(self, request_id, patch):
    _, data = await supabase_request(
      self.client,
      self.settings,
      REQUESTS_TABLE,
      method="PATCH",
      params=[("id", eq(request_id))],
      body=patch,
      prefer="return=representation",
    )
    rows = _as_rows(data)
    return rows[0] if rows else None

  async def list_requests(self, filters, order=None, select="*"):
    return await self._select(REQUESTS_TABLE, filters, order=order, select=select)

  async def get_post(self, post_id):
    return await self._first(POSTS_TABLE, post_id)

  async def list_payments(self, filters, order="due_date.asc", select="*"):
    return await self._select(PAYMENTS_TABLE, filters, order=order, select=select)

  async def get_payment(self, payment_id, select="*"):
    return await self._first(PAYMENTS_TABLE, payment_id, select=select)

  async def insert_payments(self, rows):
    if not rows:
      return []
    # duplicates on (request_id, due_date) are skipped by the unique constraint
    _, data = await supabase_request(
      self.client,
      self.settings,
      PAYMENTS_TABLE,
      method="POST",
      params=[("on_conflict", PAYMENT_CONFLICT_KEY)],
      body=rows,
      prefer="return=representation,resolution=ignore-duplicates",
    )
    return _as_rows(data)

  async def update_payments(self, filters, patch):
    _, data = await supabase_request(
      self.client,
      self.settings,
      PAYMENTS_TABLE,
      method="PATCH",
      params=list(filters),
      body=patch,
      prefer="return=representation",
    )
    return _as_rows(data)

  async def delete_payments(self, filters):
    await supabase_request(self.client, self.settings, PAYMENTS_TABLE, method="DELETE", params=list(filters))
