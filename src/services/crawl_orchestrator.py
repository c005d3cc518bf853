# src/services/crawl_orchestrator.py

"""Runs one crawl: fetch, normalize, persist, render, snapshot."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from src.dates.jalali import to_gregorian
from src.errors import InvalidFormat
from src.models.offer import FilterParams, OfferRecord
from src.models.snapshot import SnapshotRecord
from src.parsers.response_normalizer import normalize
from src.rendering.image_renderer import ImageRenderer
from src.rendering.report_renderer import (
    ReportRenderer,
    report_title,
    sort_for_report,
)
from src.scrapers.auction_client import AuctionClient
from src.storage.crawl_db import CrawlDB
from src.storage.snapshot_writer import SnapshotWriter

logger = logging.getLogger("ime_crawler.orchestrator")


@dataclass
class CrawlResult:
    """Outcome of a single (day, group) crawl."""

    day: date
    jalali_date: str
    main_group_id: int
    inserted_count: int
    snapshot_url: str
    image_path: Path
    parsed_count: int


class CrawlOrchestrator:
    """Coordinates the collaborators for one (day, group, filter) key.

    Offers are committed before the snapshot marker.  A failure between
    those two writes leaves offers without a snapshot, which the
    scheduler reports as a partial crawl.  The orchestrator does not
    deduplicate; callers decide whether a key may be crawled again.
    """

    def __init__(
        self,
        client: AuctionClient,
        store: CrawlDB,
        image_renderer: ImageRenderer,
        report_renderer: ReportRenderer | None = None,
        snapshot_writer: SnapshotWriter | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._image_renderer = image_renderer
        self._report_renderer = report_renderer or ReportRenderer()
        self._writer = snapshot_writer or SnapshotWriter()

    async def crawl_one_day(
        self,
        day: date,
        jalali_date: str,
        main_group_id: int,
        main_group_name: str,
        params: FilterParams | None = None,
    ) -> CrawlResult:
        """Crawl one key and return the inserted count and snapshot URL."""
        # Reject before any network or storage work
        if to_gregorian(jalali_date) != day:
            raise InvalidFormat(
                f"Jalali date {jalali_date} does not match {day.isoformat()}"
            )
        filters = params or FilterParams()
        logger.info(
            "Crawl start: %s (%s) group=%d '%s' filters=%s",
            jalali_date,
            day,
            main_group_id,
            main_group_name,
            filters,
        )

        # 1. Fetch
        raw: str = await asyncio.to_thread(
            self._client.fetch, jalali_date, filters
        )

        # 2. Normalize (never raises)
        parsed = normalize(raw)
        logger.info(
            "Parsed %d offer(s); first source pk=%s",
            len(parsed),
            parsed[0].source_pk if parsed else None,
        )

        # 3. Persist offers
        records = [
            OfferRecord.from_parsed(
                p, day, main_group_id, main_group_name,
            )
            for p in parsed
        ]
        inserted: int = await asyncio.to_thread(
            self._store.insert_offers, records
        )

        # 4. Sorted report
        html = self._report_renderer.render(
            report_title(main_group_name, jalali_date),
            sort_for_report(parsed),
        )

        # 5. Rasterize
        png = await self._image_renderer.rasterize(html)

        # 6. Write image
        image_path, snapshot_url = await asyncio.to_thread(
            self._writer.write, day, main_group_name, png
        )

        # 7. Snapshot marker
        await asyncio.to_thread(
            self._store.insert_snapshot,
            SnapshotRecord(
                day=day,
                main_group_id=main_group_id,
                main_group_name=main_group_name,
                image_url=snapshot_url,
            ),
        )

        logger.info(
            "Crawl done: %s group=%d inserted=%d snapshot=%s",
            jalali_date,
            main_group_id,
            inserted,
            snapshot_url,
        )
        return CrawlResult(
            day=day,
            jalali_date=jalali_date,
            main_group_id=main_group_id,
            inserted_count=inserted,
            snapshot_url=snapshot_url,
            image_path=image_path,
            parsed_count=len(parsed),
        )
