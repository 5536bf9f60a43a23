"""
Scheduled jobs
Uses APScheduler to run the daily kit expiry sweep
"""

import logging
from datetime import date
from typing import List, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from pathlab.core.config import settings
from pathlab.db.session import SessionLocal
from pathlab.services.kit_ledger import expire_kits

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


async def expire_kits_job(as_of: Optional[date] = None) -> List[int]:
    """Run the expiry sweep in its own session"""
    as_of = as_of or date.today()
    try:
        async with SessionLocal() as db:
            return await expire_kits(db, as_of)
    except Exception:
        logger.exception("❌ Kit expiry sweep failed")
        return []


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.KIT_EXPIRY_SWEEP_ENABLED:
        logger.info("⌛ Kit expiry sweep disabled")
        return

    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        expire_kits_job,
        trigger=CronTrigger(
            hour=settings.KIT_EXPIRY_SWEEP_HOUR,
            minute=settings.KIT_EXPIRY_SWEEP_MINUTE
        ),
        id="kit_expiry_sweep",
        name="Kit expiry sweep",
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"⏰ Scheduler started - kit expiry sweep daily at "
        f"{settings.KIT_EXPIRY_SWEEP_HOUR:02d}:{settings.KIT_EXPIRY_SWEEP_MINUTE:02d}"
    )


def shutdown_scheduler():
    """Stop the scheduler"""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Scheduler stopped")


def get_scheduler_status() -> dict:
    if not scheduler:
        return {
            "enabled": False,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.KIT_EXPIRY_SWEEP_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
