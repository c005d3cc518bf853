# src/services/daily_loop.py

"""Long-running once-a-day crawl loop.

Two states: *waiting* (suspended until the next run time, cancellable
through a stop event) and *running* (one crawl of today's all-groups
key, optionally followed by one crawl per main group).  Each crawl
fails on its own without stopping the others.  A run that fails outside
those crawls is logged and followed by a long back-off wait; it never
ends the loop.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone

from src.config.settings import Settings
from src.dates.jalali import to_jalali
from src.models.offer import FilterParams
from src.scrapers.category_client import CategoryClient
from src.services.crawl_orchestrator import CrawlOrchestrator
from src.services.crawl_scheduler import CrawlScheduler, CrawlState

logger = logging.getLogger("ime_crawler.daily")

Clock = Callable[[], datetime]
Waiter = Callable[[float, asyncio.Event], Awaitable[bool]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def wait_or_stop(seconds: float, stop: asyncio.Event) -> bool:
    """Sleep up to *seconds*; return True if *stop* was set meanwhile."""
    if stop.is_set():
        return True
    try:
        await asyncio.wait_for(stop.wait(), timeout=max(seconds, 0.0))
    except asyncio.TimeoutError:
        return False
    return True


@dataclass
class DailyRunResult:
    """Summary of one *running* phase."""

    day: date
    jalali_date: str
    skipped: CrawlState | None = None
    total_inserted: int = 0
    groups_crawled: int = 0
    group_errors: list[str] = field(
        default_factory=lambda: list[str]()
    )


class DailyLoop:
    """Scheduler-driven control loop around the orchestrator."""

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        scheduler: CrawlScheduler,
        category_client: CategoryClient | None = None,
        *,
        run_time: time | None = None,
        crawl_individual_groups: bool | None = None,
        group_pause: float | None = None,
        failure_backoff: float | None = None,
        clock: Clock | None = None,
        wait: Waiter | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._scheduler = scheduler
        self._categories = category_client
        self.run_time = run_time or Settings.run_time()
        self.crawl_individual_groups = (
            Settings.CRAWL_INDIVIDUAL_GROUPS
            if crawl_individual_groups is None
            else crawl_individual_groups
        )
        self.group_pause = (
            Settings.GROUP_PAUSE if group_pause is None else group_pause
        )
        self.failure_backoff = (
            Settings.FAILURE_BACKOFF
            if failure_backoff is None
            else failure_backoff
        )
        self._clock = clock or _utc_now
        self._wait = wait or wait_or_stop

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Loop until *stop* is set."""
        stop = stop or asyncio.Event()
        logger.info("Daily loop started, runs at %s UTC", self.run_time)

        while not stop.is_set():
            now = self._clock()
            next_run = CrawlScheduler.next_run_time(now, self.run_time)
            delay = (next_run - now).total_seconds()
            logger.info(
                "Next crawl at %s (in %.0fs)", next_run.isoformat(), delay
            )
            if await self._wait(delay, stop):
                break

            try:
                result = await self.run_once(stop)
                logger.info(
                    "Daily crawl finished for %s: inserted=%d groups=%d",
                    result.jalali_date,
                    result.total_inserted,
                    result.groups_crawled,
                )
            except Exception:
                logger.error("Error during daily crawl", exc_info=True)
                if await self._wait(self.failure_backoff, stop):
                    break

        logger.info("Daily loop stopped")

    async def run_once(
        self, stop: asyncio.Event | None = None,
    ) -> DailyRunResult:
        """One *running* phase for today's date.

        Skips entirely when today's all-groups key is complete or
        partially stored.  Each orchestrator call is isolated: its
        failure is logged and collected in ``group_errors``.  Only a
        failing state check propagates.
        """
        stop = stop or asyncio.Event()
        today = self._clock().date()
        jalali = to_jalali(today)
        result = DailyRunResult(day=today, jalali_date=jalali)
        logger.info("Crawling data for %s (%s)", jalali, today)

        state: CrawlState = await asyncio.to_thread(
            self._scheduler.crawl_state, today, Settings.ALL_GROUPS_ID
        )
        if state is CrawlState.COMPLETE:
            logger.info("Snapshot for %s already exists, skipping", jalali)
            result.skipped = state
            return result
        if state is CrawlState.PARTIAL:
            logger.warning(
                "Offers for %s exist but the snapshot is missing; "
                "likely a partial crawl, skipping to avoid duplicates",
                jalali,
            )
            result.skipped = state
            return result

        try:
            crawled = await self._orchestrator.crawl_one_day(
                today,
                jalali,
                Settings.ALL_GROUPS_ID,
                Settings.ALL_GROUPS_NAME,
                FilterParams(),
            )
        except Exception as exc:
            logger.error("Error crawling all groups for %s", jalali, exc_info=True)
            result.group_errors.append(f"{Settings.ALL_GROUPS_ID}: {exc}")
        else:
            result.total_inserted += crawled.inserted_count
            result.groups_crawled += 1
            logger.info(
                "Crawled all groups: %d offers, snapshot %s",
                crawled.inserted_count,
                crawled.snapshot_url,
            )

        if self.crawl_individual_groups and self._categories is not None:
            await self._crawl_groups(
                self._categories, today, jalali, result, stop,
            )

        return result

    async def _crawl_groups(
        self,
        categories: CategoryClient,
        today: date,
        jalali: str,
        result: DailyRunResult,
        stop: asyncio.Event,
    ) -> None:
        try:
            groups = await asyncio.to_thread(categories.list_main_groups)
        except Exception as exc:
            logger.error("Could not list main groups", exc_info=True)
            result.group_errors.append(f"groups: {exc}")
            return
        logger.info("Found %d main groups", len(groups))

        for group in groups:
            if stop.is_set():
                break
            try:
                crawled = await self._orchestrator.crawl_one_day(
                    today,
                    jalali,
                    group.code,
                    group.name,
                    FilterParams(m=group.code),
                )
            except Exception as exc:
                logger.error(
                    "Error crawling main group '%s' (%d)",
                    group.name,
                    group.code,
                    exc_info=True,
                )
                result.group_errors.append(f"{group.code}: {exc}")
            else:
                result.total_inserted += crawled.inserted_count
                result.groups_crawled += 1
                logger.info(
                    "Crawled '%s' (%d): %d offers, snapshot %s",
                    group.name,
                    group.code,
                    crawled.inserted_count,
                    crawled.snapshot_url,
                )
            if await self._wait(self.group_pause, stop):
                break
