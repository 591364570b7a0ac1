import asyncio
from typing import Awaitable, Callable, Optional
import logging
from datetime import datetime
from zoneinfo import ZoneInfo
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.base import JobLookupError


logger = logging.getLogger(__name__)


class JobScheduler:
    """
    Scheduler for programmed tasks
    """

    def __init__(
        self,
        timezone: str = "UTC",
    ):
        self.timezone = timezone
        self.scheduler: Optional[AsyncIOScheduler] = None

        logger.info(f"JobScheduler initialized with timezone: {timezone}")

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    async def start(self) -> None:
        if self.running:
            logger.debug("The scheduler is already running")
            return

        logger.info("Starting scheduler...")
        self.scheduler = AsyncIOScheduler(
            timezone=ZoneInfo(self.timezone),
            job_defaults={"coalesce": True, "max_instances": 1},
        )

        self.scheduler.start()
        logger.info(f"Scheduler running in timezone: {self.timezone}")

    def add_interval_job(
        self,
        func: Callable[[], Awaitable[object]],
        seconds: float,
        job_id: str,
        run_immediately: bool = False,
    ) -> None:
        """
        Run `func` every `seconds`. At most one instance runs at a time;
        missed runs are coalesced into one.
        """
        if not self.running:
            raise RuntimeError("Scheduler must be started before adding jobs")

        options = {}
        # next_run_time=None would add the job paused
        if run_immediately:
            options["next_run_time"] = datetime.now(ZoneInfo(self.timezone))

        self.scheduler.add_job(
            func,
            IntervalTrigger(seconds=seconds, timezone=ZoneInfo(self.timezone)),
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **options,
        )
        logger.info(f"Job {job_id} scheduled every {seconds}s")

    def has_job(self, job_id: str) -> bool:
        return bool(self.scheduler and self.scheduler.get_job(job_id))

    def remove_job(self, job_id: str) -> None:
        if not self.scheduler:
            return
        try:
            self.scheduler.remove_job(job_id)
            logger.info(f"Job {job_id} removed")
        except JobLookupError:
            logger.warning(f"Job {job_id} was not scheduled")

    async def shutdown(self) -> None:
        if self.running:
            logger.info("Shutting down scheduler...")
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler finishes stopping on the next loop iteration
            await asyncio.sleep(0)
            logger.info("Scheduler shut down correctly")
        self.scheduler = None
