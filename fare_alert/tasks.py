"""tasks.py – schedule built with APScheduler.

• on every SCHEDULE_CRON tick – ``FareRunner.run_once``
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Settings
from .runner import FareRunner

logger = logging.getLogger(__name__)


def build_scheduler(settings: Settings, runner: FareRunner) -> BlockingScheduler:
    """Return a scheduler firing *runner* on ``settings.schedule_cron``."""
    sched = BlockingScheduler(timezone=settings.schedule_tz)

    def fetch_job() -> None:
        """Check fares and notify."""
        try:
            runner.run_once()
        except Exception:
            logger.exception("fare check failed")

    sched.add_job(
        fetch_job,
        CronTrigger.from_crontab(
            settings.schedule_cron, timezone=settings.schedule_tz
        ),
        id="fare_check",
        max_instances=1,
        coalesce=True,
    )
    return sched


__all__ = ["build_scheduler"]
