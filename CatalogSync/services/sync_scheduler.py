"""
Catalog Sync Scheduler

Runs the catalogue sync task on a fixed interval using APScheduler.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from CatalogSync.tasks.catalog_sync_task import CatalogSyncTask

logger = logging.getLogger(__name__)


class CatalogSyncScheduler:
    """Manages the periodic catalogue sync job"""

    def __init__(self, task: CatalogSyncTask, interval_minutes: int = 360):
        self.task = task
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler()
        self.sync_job_id = "catalog_sync"

    def schedule(self):
        """Register (or replace) the interval job"""
        self.scheduler.add_job(
            self._run_sync,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=self.sync_job_id,
            name=self.task.name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Catalog sync scheduled every {self.interval_minutes} minutes")

    async def start(self):
        """Start the sync scheduler"""
        try:
            self.schedule()
            self.scheduler.start()
            logger.info("Catalog sync scheduler started successfully")
        except Exception as e:
            logger.error(f"Failed to start catalog sync scheduler: {e}", exc_info=True)

    async def stop(self):
        """Stop the sync scheduler"""
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            logger.info("Catalog sync scheduler stopped")
        except Exception as e:
            logger.error(f"Failed to stop catalog sync scheduler: {e}", exc_info=True)

    async def _run_sync(self):
        """Scheduled job entry point; the run summary is only logged"""
        result = await self.task.run()
        logger.debug(f"Scheduled catalog sync finished with status={result.status}")
