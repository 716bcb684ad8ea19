"""
Scheduled maintenance jobs for the retail ledger.

Jobs run inside the FastAPI process on an AsyncIOScheduler and call the same
MaintenanceService entry points as the ``run-job`` CLI command.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from retail_ledger.core.config import get_settings
from retail_ledger.database import async_session
from retail_ledger.services.maintenance_service import MaintenanceService

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None

# job id -> (display name, cron fields)
JOB_SCHEDULES: Dict[str, tuple] = {
    "daily_inventory_check": ("Daily Inventory Check", {"hour": 2, "minute": 0}),
    "weekly_sales_summary": ("Weekly Sales Summary", {"day_of_week": "sun", "hour": 6, "minute": 0}),
    "monthly_cleanup": ("Monthly Cleanup", {"day": 1, "hour": 3, "minute": 0}),
    "daily_performance_monitor": ("Daily Performance Monitor", {"hour": 23, "minute": 59}),
    "weekly_customer_reengagement": ("Weekly Customer Re-engagement", {"day_of_week": "tue", "hour": 10, "minute": 0}),
}


async def run_job(name: str) -> Dict[str, Any]:
    """
    Run one maintenance job now in a fresh session.

    Raises:
        ValueError: unknown job name
    """
    if name not in JOB_SCHEDULES:
        raise ValueError(f"Unknown job '{name}'. Available: {', '.join(sorted(JOB_SCHEDULES))}")

    logger.info("=== JOB %s STARTING ===", name)
    async with async_session() as db:
        service = MaintenanceService(db)
        return await getattr(service, name)()


async def scheduled_job(name: str):
    """Scheduler entry point; failures are logged and the next run still fires."""
    try:
        summary = await run_job(name)
        logger.info(f"Scheduled job {name} completed: {summary}")
    except Exception as e:
        logger.exception(f"Error in scheduled job {name}: {str(e)}")


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now()}")


def create_scheduler() -> AsyncIOScheduler:
    """Create and configure the scheduler"""
    global scheduler

    if scheduler is not None:
        return scheduler

    scheduler = AsyncIOScheduler()
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    if get_settings().SCHEDULER_ENABLED:
        for job_id, (job_name, cron) in JOB_SCHEDULES.items():
            scheduler.add_job(
                scheduled_job,
                CronTrigger(**cron),
                args=[job_id],
                id=job_id,
                name=job_name,
                replace_existing=True,
                max_instances=1,
                misfire_grace_time=3600,
            )
            logger.info(f"Scheduled job added: {job_name} ({cron})")
    else:
        logger.info("Maintenance scheduling is disabled. Set SCHEDULER_ENABLED=true to enable")

    return scheduler


async def start_scheduler():
    """Start the scheduler"""
    global scheduler

    if scheduler is None:
        scheduler = create_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started successfully")

        jobs = scheduler.get_jobs()
        if jobs:
            logger.info(f"Active scheduled jobs: {len(jobs)}")
            for job in jobs:
                logger.info(f"  - {job.name}: {job.trigger}")
        else:
            logger.info("No scheduled jobs configured")


async def stop_scheduler():
    """Stop the scheduler gracefully"""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped successfully")
    scheduler = None


async def get_scheduler_status():
    """Get current scheduler status and job information"""
    if scheduler is None:
        return {"status": "not_initialized", "jobs": []}

    jobs_info = []
    for job in scheduler.get_jobs():
        jobs_info.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if getattr(job, "next_run_time", None) else None,
            "trigger": str(job.trigger)
        })

    return {
        "status": "running" if scheduler.running else "stopped",
        "jobs": jobs_info
    }
