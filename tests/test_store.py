import json

import httpx
import pytest
from fastapi import HTTPException

from rentpay.core.settings import Settings
from rentpay.services.store import SupabaseStore, eq

pytestmark = pytest.mark.anyio


def make_store(handler):
  settings = Settings(SUPABASE_URL="https://project.supabase.co", SUPABASE_SERVICE_KEY="service-key")
  client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
  return SupabaseStore(client, settings), client


async def test_list_payments_builds_postgrest_query():
  seen = []

  def handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return httpx.Response(200, json=[{"id": 1, "due_date": "2026-01-15", "status": "unpaid"}])

  store, client = make_store(handler)
  async with client:
    rows = await store.list_payments([("request_id", eq("r1"))])

  assert rows == [{"id": 1, "due_date": "2026-01-15", "status": "unpaid"}]
  request = seen[0]
  assert request.method == "GET"
  assert request.url.path == "/rest/v1/payments"
  assert request.url.params.get("select") == "*"
  assert request.url.params.get("request_id") == "eq.r1"
  assert request.url.params.get("order") == "due_date.asc"
  assert request.headers["apikey"] == "service-key"
  assert request.headers["authorization"] == "Bearer service-key"


async def test_insert_payments_ignores_duplicates():
  seen = []

  def handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return httpx.Response(201, json=json.loads(request.content))

  store, client = make_store(handler)
  async with client:
    rows = await store.insert_payments([{"request_id": "r1", "due_date": "2026-01-15"}])
    assert await store.insert_payments([]) == []

  assert rows == [{"request_id": "r1", "due_date": "2026-01-15"}]
  assert len(seen) == 1
  request = seen[0]
  assert request.method == "POST"
  assert request.url.params.get("on_conflict") == "request_id,due_date"
  assert "resolution=ignore-duplicates" in request.headers["prefer"]


async def test_repeated_filters_on_one_column():
  seen = []

  def handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return httpx.Response(200, json=[])

  store, client = make_store(handler)
  async with client:
    await store.list_payments([("due_date", "gte.2026-02-01"), ("due_date", "lte.2026-02-28")])

  assert seen[0].url.params.get_list("due_date") == ["gte.2026-02-01", "lte.2026-02-28"]


async def test_get_request_returns_first_row_or_none():
  def handler(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("id") == "eq.r1":
      return httpx.Response(200, json=[{"id": "r1", "confirmed": True}])
    return httpx.Response(200, json=[])

  store, client = make_store(handler)
  async with client:
    assert await store.get_request("r1") == {"id": "r1", "confirmed": True}
    assert await store.get_request("r2") is None


async def test_backend_errors_become_bad_gateway():
  def handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, text="boom")

  store, client = make_store(handler)
  async with client:
    with pytest.raises(HTTPException) as excinfo:
      await store.list_payments([])
  assert excinfo.value.status_code == 502
  assert "boom" in excinfo.value.detail


async def test_delete_with_no_content():
  def handler(request: httpx.Request) -> httpx.Response:
    assert request.method == "DELETE"
    return httpx.Response(204)

  store, client = make_store(handler)
  async with client:
    assert await store.delete_payments([("id", eq("pay-1"))]) is None
