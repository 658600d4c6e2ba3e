import copy
import os
from itertools import count

import pytest
from fastapi import HTTPException, status

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
os.environ.setdefault("OVERDUE_SWEEP_ENABLED", "false")
os.environ.setdefault("REMINDER_ENABLED", "false")

from rentpay.core.settings import get_settings  # noqa: E402

get_settings.cache_clear()


def _as_text(value):
  if isinstance(value, bool):
    return "true" if value else "false"
  return str(value)


def _matches(row, filters):
  for column, expression in filters:
    op, _, raw = expression.partition(".")
    value = row.get(column)
    if value is None:
      return False
    text = _as_text(value)
    if op == "eq" and text != raw:
      return False
    if op == "in" and text not in raw.strip("()").split(","):
      return False
    if op == "lt" and not text < raw:
      return False
    if op == "lte" and not text <= raw:
      return False
    if op == "gt" and not text > raw:
      return False
    if op == "gte" and not text >= raw:
      return False
  return True


def _ordered(rows, order):
  if not order:
    return rows
  column, _, direction = order.partition(".")
  return sorted(rows, key=lambda row: _as_text(row.get(column) or ""), reverse=direction == "desc")


class InMemoryStore:
  """RentalStore kept in dicts; filters follow the same PostgREST syntax."""

  def __init__(self):
    self.requests = {}
    self.posts = {}
    self.payments = []
    self.fail_payment_reads = False
    self.fail_payment_inserts = False
    self._ids = count(1)

  def _unavailable(self):
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Supabase error 503: unavailable")

  def add_request(self, **row):
    self.requests[str(row["id"])] = row
    return row

  def add_post(self, **row):
    self.posts[str(row["id"])] = row
    return row

  def add_payment(self, **row):
    row.setdefault("id", f"pay-{next(self._ids)}")
    row.setdefault("status", "unpaid")
    self.payments.append(row)
    return row

  async def get_request(self, request_id):
    row = self.requests.get(str(request_id))
    return copy.deepcopy(row) if row else None

  async def update_request(self, request_id, patch):
    row = self.requests.get(str(request_id))
    if row is None:
      return None
    row.update(patch)
    return copy.deepcopy(row)

  async def list_requests(self, filters, order=None, select="*"):
    rows = [row for row in self.requests.values() if _matches(row, filters)]
    return copy.deepcopy(_ordered(rows, order))

  async def get_post(self, post_id):
    row = self.posts.get(str(post_id))
    return copy.deepcopy(row) if row else None

  async def list_payments(self, filters, order="due_date.asc", select="*"):
    if self.fail_payment_reads:
      self._unavailable()
    rows = [row for row in self.payments if _matches(row, filters)]
    return copy.deepcopy(_ordered(rows, order))

  async def get_payment(self, payment_id, select="*"):
    rows = await self.list_payments([("id", f"eq.{payment_id}")])
    return rows[0] if rows else None

  async def insert_payments(self, rows):
    if self.fail_payment_inserts:
      self._unavailable()
    taken = {(str(row.get("request_id")), row.get("due_date")) for row in self.payments}
    inserted = []
    for row in rows:
      key = (str(row.get("request_id")), row.get("due_date"))
      if key in taken:
        continue
      taken.add(key)
      inserted.append(self.add_payment(**dict(row)))
    return copy.deepcopy(inserted)

  async def update_payments(self, filters, patch):
    updated = []
    for row in self.payments:
      if _matches(row, filters):
        row.update(patch)
        updated.append(copy.deepcopy(row))
    return updated

  async def delete_payments(self, filters):
    self.payments = [row for row in self.payments if not _matches(row, filters)]


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def settings():
  return get_settings()


@pytest.fixture
def store():
  return InMemoryStore()


@pytest.fixture
def rental_store(store):
  """A confirmed Jan 15 - Apr 15 2026 rental at 3000/month, landlord l1, tenant t1."""
  store.add_post(id="p1", user_id="l1", title="Studio near campus", price_per_night=3000)
  store.add_request(
    id="r1",
    user_id="t1",
    post_id="p1",
    requested=True,
    confirmed=True,
    rental_start_date="2026-01-15",
    rental_end_date="2026-04-15",
    payment_day_of_month=15,
    monthly_rent_amount=3000,
  )
  return store
