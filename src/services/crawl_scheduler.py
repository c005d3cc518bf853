# src/services/crawl_scheduler.py

"""Which days still need crawling, and when the next daily run is."""

import logging
from datetime import date, datetime, time, timedelta
from enum import Enum

from src.config.settings import Settings
from src.storage.crawl_db import CrawlDB

logger = logging.getLogger("ime_crawler.scheduler")


class CrawlState(Enum):
    """Idempotency state of a (day, group) key."""

    NOT_ATTEMPTED = "not_attempted"
    PARTIAL = "partial"         # offers stored, snapshot missing
    COMPLETE = "complete"


class CrawlScheduler:
    """Backfill planning and daily run timing over the crawl store."""

    def __init__(self, store: CrawlDB) -> None:
        self._store = store

    def missing_dates(
        self,
        start: date,
        end: date,
        group_id: int = Settings.ALL_GROUPS_ID,
    ) -> list[date]:
        """Days in ``[start, end]`` with no snapshot for *group_id*, ascending."""
        if start > end:
            return []
        crawled = self._store.crawled_days(start, end, group_id)
        span = (end - start).days + 1
        missing = [
            d
            for d in (start + timedelta(days=i) for i in range(span))
            if d not in crawled
        ]
        logger.info(
            "Found %d missing dates between %s and %s",
            len(missing),
            start,
            end,
        )
        return missing

    def crawl_state(
        self,
        day: date,
        group_id: int = Settings.ALL_GROUPS_ID,
    ) -> CrawlState:
        """Classify a key as complete, partial, or never attempted."""
        if self._store.snapshot_exists(day, group_id):
            return CrawlState.COMPLETE
        if self._store.offers_exist(day, group_id):
            return CrawlState.PARTIAL
        return CrawlState.NOT_ATTEMPTED

    @staticmethod
    def next_run_time(now: datetime, time_of_day: time) -> datetime:
        """Today at *time_of_day* if still ahead of *now*, else tomorrow."""
        candidate = now.replace(
            hour=time_of_day.hour,
            minute=time_of_day.minute,
            second=time_of_day.second,
            microsecond=time_of_day.microsecond,
        )
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate
