"""
Background scheduler using APScheduler.
Runs the periodic auto-refresh of every configured source.
"""
import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[BackgroundScheduler] = None


def schedule_auto_refresh(
    job_id: str,
    func: Callable[[], object],
    seconds: int,
    name: Optional[str] = None,
) -> bool:
    """
    Install, replace or remove an interval job.

    An interval of 0 removes the job. replace_existing swaps the trigger in
    one step, so cancelling the old period and scheduling the new one can't
    interleave with a tick. Returns True when a job is scheduled.
    """
    if scheduler is None:
        logger.debug(f"Scheduler not running, '{job_id}' not scheduled")
        return False

    if seconds <= 0:
        if scheduler.get_job(job_id):
            scheduler.remove_job(job_id)
            logger.info(f"Auto refresh disabled ({job_id})")
        return False

    scheduler.add_job(
        func,
        IntervalTrigger(seconds=seconds),
        id=job_id,
        name=name or job_id,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Auto refresh every {seconds}s ({job_id})")
    return True


def run_soon(func: Callable[..., object], job_id: str, **kwargs) -> bool:
    """Queue a one-off job on the scheduler's thread pool."""
    if scheduler is None:
        return False
    scheduler.add_job(func, id=job_id, name=job_id, kwargs=kwargs, replace_existing=True)
    return True


def start_scheduler() -> BackgroundScheduler:
    """Start the background scheduler."""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return scheduler

    scheduler = BackgroundScheduler()
    scheduler.start()
    logger.info("Background scheduler started")
    return scheduler


def stop_scheduler():
    """Stop the background scheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")


def get_scheduler_status() -> dict:
    """Scheduled refresh jobs with their period and next tick."""
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        interval = getattr(job.trigger, "interval", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "interval_seconds": int(interval.total_seconds()) if interval else None,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
        })

    return {"running": scheduler.running, "jobs": jobs}
