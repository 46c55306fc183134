from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from auralog.config import get_settings
from auralog.scheduler.jobs import run_daily_reminders

DAILY_REMINDERS_JOB_ID = "daily_reminders"


def create_scheduler() -> BackgroundScheduler:
    settings = get_settings()
    interval = settings.scheduler_interval_minutes
    if interval <= 0 or 60 % interval != 0:
        raise ValueError(f"scheduler_interval_minutes must divide 60, got {interval}")

    scheduler = BackgroundScheduler(timezone="UTC")

    # Fires on the rounding grid (:00, :15, :30, :45 by default). Ticks must
    # not overlap; a single scheduler process is assumed.
    scheduler.add_job(
        run_daily_reminders,
        CronTrigger(minute=f"*/{interval}", timezone="UTC"),
        id=DAILY_REMINDERS_JOB_ID,
        name="Daily Reminders",
        max_instances=1,
        coalesce=True,
    )

    logger.info(f"Scheduler configured: daily reminders every {interval} minutes")
    return scheduler


def start_scheduler():
    scheduler = create_scheduler()
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
