import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import get_settings
from ..db.session import SessionLocal
from ..services import attendance_service

logger = logging.getLogger(__name__)

NO_SHOW_JOB_ID = "no_show_sweep"


def mark_no_shows() -> attendance_service.SweepResult:
    with SessionLocal() as db:
        result = attendance_service.sweep_no_shows(db)
    if result.batch_full:
        logger.info("No-show backlog remains; next run continues it")
    return result


def get_scheduler() -> AsyncIOScheduler:
    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.timezone)
    scheduler.add_job(
        mark_no_shows,
        "interval",
        minutes=settings.no_show_sweep_interval_min,
        id=NO_SHOW_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
