"""Scheduler process for the recurring link send.

Run separately from manual flows using:
    python -m linksender.jobs.scheduler
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from linksender.config import LinkSenderConfig, load_config, resolve_work_days
from linksender.jobs.tasks import check_configuration, send_all_provider_links

JOB_ID = "telehealth_link_send"

logger = logging.getLogger(__name__)

__all__ = ["build_scheduler", "build_trigger", "main", "resolve_work_days"]


def configure_logging() -> None:
    """Configure process-wide logging for scheduler mode."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_trigger(config: LinkSenderConfig) -> CronTrigger:
    """Fire every ``interval_minutes`` during clinic hours on work days."""
    return CronTrigger(
        day_of_week=config.work_days,
        hour=config.active_hours,
        minute=f"*/{config.interval_minutes}",
        timezone=config.tz,
    )


def _log_job_state(scheduler: BlockingScheduler, event: JobExecutionEvent, config: LinkSenderConfig) -> None:
    """Log last and next run metadata for observability."""
    job = scheduler.get_job(event.job_id)
    job_next_run = getattr(job, "next_run_time", None) if job else None
    next_run = job_next_run.isoformat() if job_next_run else "none"
    last_run_at = (
        event.scheduled_run_time.astimezone(config.tz).isoformat()
        if event.scheduled_run_time
        else datetime.now(tz=config.tz).isoformat()
    )

    if event.exception:
        logger.error(
            "Job %s failed at %s; next run at %s",
            event.job_id,
            last_run_at,
            next_run,
            exc_info=event.exception,
        )
        return

    logger.info("Job %s completed at %s; next run at %s", event.job_id, last_run_at, next_run)


def build_scheduler(config: LinkSenderConfig) -> BlockingScheduler:
    """Build and configure the scheduler instance."""
    scheduler = BlockingScheduler(timezone=config.tz)

    trigger = build_trigger(config)
    scheduler.add_job(
        send_all_provider_links,
        trigger=trigger,
        id=JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=300,
    )

    scheduler.add_listener(
        lambda event: _log_job_state(scheduler, event, config),
        EVENT_JOB_EXECUTED | EVENT_JOB_ERROR,
    )

    next_run = trigger.get_next_fire_time(None, datetime.now(tz=config.tz))
    logger.info(
        "Registered %s every %s minutes, hours %s, days %s %s (next run: %s)",
        JOB_ID,
        config.interval_minutes,
        config.active_hours,
        config.work_days,
        config.timezone,
        next_run.isoformat() if next_run else "none",
    )

    return scheduler


def main() -> None:
    """Entrypoint for a dedicated scheduler process."""
    parser = argparse.ArgumentParser(description="Run the telehealth link send scheduler")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Execute the link send immediately and exit (manual mode)",
    )
    mode.add_argument(
        "--check",
        action="store_true",
        help="Log configuration state and today's workbook lookup, then exit",
    )
    args = parser.parse_args()

    configure_logging()
    config = load_config()

    if args.check:
        from linksender.adapters.sheets_adapter import GoogleWorkbookSource

        check_configuration(config, GoogleWorkbookSource.from_config(config))
        return

    if args.once:
        logger.info("Running in manual mode: executing %s once", JOB_ID)
        send_all_provider_links()
        logger.info("Manual execution of %s completed", JOB_ID)
        return

    scheduler = build_scheduler(config)
    logger.info("Starting scheduler process")
    scheduler.start()


if __name__ == "__main__":
    main()
