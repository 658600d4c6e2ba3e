import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import payments, rentals
from .core.log import setup_logging
from .core.settings import get_settings
from .cron.scheduler import create_scheduler

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
  settings = get_settings()
  setup_logging(settings)
  app = FastAPI(title="RentPay API", version="1.0.0")

  app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )

  http_client = httpx.AsyncClient(timeout=15)
  app.state.http_client = http_client
  app.state.scheduler = None

  @app.on_event("startup")
  async def startup_event():
    if not settings.supabase_configured:
      logger.warning("SUPABASE_URL / SUPABASE_SERVICE_KEY missing; data routes will fail")
    scheduler = create_scheduler(settings, http_client)
    if scheduler:
      scheduler.start()
      app.state.scheduler = scheduler
      logger.info("Scheduler started with jobs: %s", [job.id for job in scheduler.get_jobs()])

  @app.on_event("shutdown")
  async def shutdown_event():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler:
      scheduler.shutdown(wait=False)
    await http_client.aclose()

  app.include_router(rentals.router)
  app.include_router(payments.router)

  @app.get("/api/health")
  async def health():
    return {"status": "ok"}

  return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
  import uvicorn

  settings = get_settings()
  uvicorn.run("rentpay.main:app", host="0.0.0.0", port=settings.port, reload=True)
