"""
SCHEDULER BOOTSTRAP

Initializes and manages the APScheduler instance.
Scheduler is orchestration-only and contains no business logic.
"""

import logging

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from sip_engine.config import settings
from sip_engine.scheduler.jobs import run_pending_sips_job

_logger = logging.getLogger(__name__)

_SCHEDULER: AsyncIOScheduler | None = None


def start_scheduler() -> AsyncIOScheduler:
    """
    Start the scheduler and register the SIP job.
    Must be called from inside a running event loop.
    """
    global _SCHEDULER

    if _SCHEDULER is not None:
        return _SCHEDULER

    timezone = pytz.timezone(settings.TIMEZONE)
    scheduler = AsyncIOScheduler(timezone=timezone)

    # ------------------------------------------------------------
    # SIP EXECUTION JOB
    # Every day @ SIP_RUN_TIME (IST by default)
    # ------------------------------------------------------------
    hour, minute = settings.sip_run_hour_minute
    scheduler.add_job(
        run_pending_sips_job,
        trigger=CronTrigger(hour=hour, minute=minute),
        id="sip_execution_job",
        name="SIP Execution",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    _SCHEDULER = scheduler

    _logger.info(f"✅ Scheduler started: SIP execution daily at {hour:02d}:{minute:02d} {settings.TIMEZONE}")
    return scheduler


def shutdown_scheduler():
    """
    Shutdown the scheduler safely.
    """
    global _SCHEDULER

    if _SCHEDULER:
        _SCHEDULER.shutdown(wait=False)
        _SCHEDULER = None
        _logger.info("🛑 Scheduler shut down")
