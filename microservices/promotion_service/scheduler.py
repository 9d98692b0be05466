"""
Campaign Sweep Scheduler

APScheduler jobs that keep campaign status in line with campaign dates.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .campaign_service import CampaignService

logger = logging.getLogger(__name__)

EXPIRED_SWEEP_JOB_ID = "promotion_expired_sweep_job"
SCHEDULED_SWEEP_JOB_ID = "promotion_scheduled_sweep_job"


class CampaignSweepScheduler:
    """Runs both lifecycle sweeps every ``interval_seconds``"""

    def __init__(self, service: CampaignService, interval_seconds: int = 60):
        self.service = service
        self.interval_seconds = max(1, interval_seconds)
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def jobs(self) -> list:
        return self._scheduler.get_jobs() if self._scheduler else []

    async def sweep_expired(self) -> None:
        try:
            await self.service.sweep_expired_campaigns()
        except Exception:
            logger.exception("Expired campaign sweep failed")

    async def sweep_scheduled(self) -> None:
        try:
            await self.service.sweep_scheduled_campaigns()
        except Exception:
            logger.exception("Scheduled campaign sweep failed")

    async def run_once(self) -> None:
        """One tick: end expired campaigns first, then open scheduled ones"""
        await self.sweep_expired()
        await self.sweep_scheduled()

    def start(self) -> None:
        """Must be called from a running event loop"""
        if self.running:
            return

        self._scheduler = AsyncIOScheduler()

        for job_id, func in (
            (EXPIRED_SWEEP_JOB_ID, self.sweep_expired),
            (SCHEDULED_SWEEP_JOB_ID, self.sweep_scheduled),
        ):
            self._scheduler.add_job(
                func,
                'interval',
                seconds=self.interval_seconds,
                id=job_id,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )

        self._scheduler.start()
        logger.info(f"Campaign sweep scheduler started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        if not self._scheduler:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Campaign sweep scheduler stopped")


__all__ = [
    "CampaignSweepScheduler",
    "EXPIRED_SWEEP_JOB_ID",
    "SCHEDULED_SWEEP_JOB_ID",
]
