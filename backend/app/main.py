from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI

from app.api.health import router as health_router
from app.api.routes_export import router as export_router
from app.api.routes_order import router as order_router
from app.config import settings
from app.db import init_db
from app.services.export_runner import run_archive_cleanup, scheduled_export
from app.utils.log import get_logger

log = get_logger("app.main", "APP")


def build_scheduler() -> BackgroundScheduler:
    """
    Daily export one minute after the cut-off, in the business time zone
    so BST/GMT changes are handled, plus a weekly archive cleanup.
    """
    scheduler = BackgroundScheduler(timezone=settings.BUSINESS_TIMEZONE)
    scheduler.add_job(
        scheduled_export,
        "cron",
        hour=settings.EXPORT_HOUR,
        minute=settings.EXPORT_MINUTE,
        id="daily_export",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        run_archive_cleanup,
        "cron",
        day_of_week="sun",
        hour=3,
        id="archive_cleanup",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(reset=False)

    scheduler = None
    if settings.EXPORT_SCHEDULE_ENABLED:
        scheduler = build_scheduler()
        scheduler.start()
        log.info(
            f"daily export scheduled at {settings.EXPORT_HOUR:02d}:{settings.EXPORT_MINUTE:02d} "
            f"{settings.BUSINESS_TIMEZONE}"
        )

    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Fulfilment Export - Backend", version="1.0.0", lifespan=lifespan)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(export_router, tags=["export"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])
