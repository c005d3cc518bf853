# src/cli/runner.py

"""Operator commands: on-demand crawls, backfill planning, reporting."""

import asyncio
import json
import logging
import signal
import sys
from datetime import date, datetime, timedelta, timezone
from typing import Any

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.dates.jalali import (
    to_gregorian,
    to_jalali,
    today_jalali,
    yesterday_jalali,
)
from src.errors import CrawlerError
from src.models.offer import FilterParams
from src.models.snapshot import MainGroup, SnapshotRecord
from src.rendering.image_renderer import PlaywrightImageRenderer
from src.scrapers.auction_client import AuctionClient
from src.scrapers.category_client import CategoryClient
from src.services.crawl_orchestrator import CrawlOrchestrator, CrawlResult
from src.services.crawl_scheduler import CrawlScheduler
from src.services.daily_loop import DailyLoop
from src.storage.crawl_db import CrawlDB

logger = logging.getLogger("ime_crawler.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _build_orchestrator(store: CrawlDB) -> CrawlOrchestrator:
    return CrawlOrchestrator(
        client=AuctionClient(),
        store=store,
        image_renderer=PlaywrightImageRenderer(),
    )


def _crawl_to_dict(result: CrawlResult) -> dict[str, object]:
    return {
        "jalali": result.jalali_date,
        "gregorian": result.day.isoformat(),
        "inserted": result.inserted_count,
        "snapshotUrl": result.snapshot_url,
    }


def _snapshot_to_dict(s: SnapshotRecord) -> dict[str, object]:
    return {
        "day": s.day.isoformat(),
        "jalali": to_jalali(s.day),
        "mainGroupId": s.main_group_id,
        "mainGroupName": s.main_group_name,
        "imageUrl": s.image_url,
        "createdAtUtc": s.created_at_utc.isoformat(),
    }


# ── Crawls ───────────────────────────────────────────────


async def crawl_day(
    jalali: str,
    group_id: int,
    group_name: str,
    params: FilterParams,
    store: CrawlDB | None = None,
    orchestrator: CrawlOrchestrator | None = None,
) -> int:
    """Crawl one Jalali day on demand; errors are reported, not retried."""
    db = store or CrawlDB()
    orch = orchestrator or _build_orchestrator(db)
    try:
        day = to_gregorian(jalali)
        _err.print(
            f"[bold]Crawling[/bold] {jalali} ({day}) "
            f"[dim]group={group_id} {group_name}[/dim]"
        )
        result = await orch.crawl_one_day(
            day, jalali, group_id, group_name, params,
        )
    except CrawlerError as exc:
        logger.error("Crawl of %s failed: %s", jalali, exc, exc_info=True)
        _err.print(f"[red]{type(exc).__name__}: {exc}[/red]")
        return 1
    finally:
        if store is None:
            db.close()

    _err.print(
        f"[green]✓ {result.inserted_count} offers, "
        f"snapshot {result.snapshot_url}[/green]"
    )
    _emit(_crawl_to_dict(result))
    return 0


async def crawl_today(
    group_id: int,
    group_name: str,
    params: FilterParams,
    now: datetime | None = None,
    store: CrawlDB | None = None,
    orchestrator: CrawlOrchestrator | None = None,
) -> int:
    """Crawl today's (UTC) Jalali date."""
    return await crawl_day(
        today_jalali(now), group_id, group_name, params, store, orchestrator,
    )


async def crawl_yesterday(
    group_id: int,
    group_name: str,
    params: FilterParams,
    now: datetime | None = None,
    store: CrawlDB | None = None,
    orchestrator: CrawlOrchestrator | None = None,
) -> int:
    """Crawl yesterday's (UTC) Jalali date, once its auctions have closed."""
    return await crawl_day(
        yesterday_jalali(now), group_id, group_name, params, store,
        orchestrator,
    )


# ── Reporting ────────────────────────────────────────────


def show_missing(
    start_jalali: str | None,
    end_jalali: str | None,
    output_format: str = "json",
    store: CrawlDB | None = None,
    today: date | None = None,
) -> int:
    """List days with no all-groups snapshot (default: last 30 days)."""
    current = today or datetime.now(timezone.utc).date()
    try:
        start = (
            to_gregorian(start_jalali)
            if start_jalali
            else current - timedelta(days=Settings.MISSING_LOOKBACK_DAYS)
        )
        end = to_gregorian(end_jalali) if end_jalali else current
    except CrawlerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    db = store or CrawlDB()
    try:
        missing = CrawlScheduler(db).missing_dates(start, end)
    finally:
        if store is None:
            db.close()

    if output_format == "table":
        table = Table(
            title=f"Missing days {start} .. {end}",
            title_style="bold cyan",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Gregorian")
        table.add_column("Jalali", style="magenta")
        for idx, d in enumerate(missing, 1):
            table.add_row(str(idx), d.isoformat(), to_jalali(d))
        Console().print(table)
    else:
        _emit({
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "missingCount": len(missing),
            "missingDates": [
                {"gregorian": d.isoformat(), "jalali": to_jalali(d)}
                for d in missing
            ],
        })
    return 0


def show_stats(store: CrawlDB | None = None) -> int:
    """Totals plus the most recent snapshot."""
    db = store or CrawlDB()
    try:
        latest = db.latest_snapshot()
        payload = {
            "totalOffers": db.count_offers(),
            "totalSnapshots": db.count_snapshots(),
            "latestSnapshot": (
                _snapshot_to_dict(latest) if latest else None
            ),
        }
    finally:
        if store is None:
            db.close()
    _emit(payload)
    return 0


def show_snapshots(
    day_iso: str | None,
    output_format: str = "json",
    store: CrawlDB | None = None,
) -> int:
    """Up to SNAPSHOT_LIST_LIMIT snapshots, optionally for one day."""
    day: date | None = None
    if day_iso:
        try:
            day = date.fromisoformat(day_iso)
        except ValueError:
            _err.print(f"[yellow]Ignoring unparseable day {day_iso!r}[/yellow]")

    db = store or CrawlDB()
    try:
        snapshots = db.list_snapshots(day=day)
    finally:
        if store is None:
            db.close()

    if output_format == "table":
        table = Table(
            title="Snapshots", show_lines=True, title_style="bold cyan",
        )
        table.add_column("Day")
        table.add_column("Jalali", style="magenta")
        table.add_column("Group", justify="right")
        table.add_column("Name")
        table.add_column("Image", overflow="fold", style="dim")
        for s in snapshots:
            table.add_row(
                s.day.isoformat(),
                to_jalali(s.day),
                str(s.main_group_id),
                s.main_group_name,
                s.image_url,
            )
        Console().print(table)
    else:
        _emit([_snapshot_to_dict(s) for s in snapshots])
    return 0


def show_groups(
    main_cat: int | None = None,
    cat: int | None = None,
    producers: bool = False,
    client: CategoryClient | None = None,
) -> int:
    """Upstream category lookups.

    Main groups by default; categories of *main_cat*; subcategories of
    *main_cat*/*cat*; or the producer list.
    """
    categories = client or CategoryClient()
    try:
        groups: list[MainGroup]
        if producers:
            groups = categories.list_producers()
        elif main_cat is not None and cat is not None:
            groups = categories.list_subcategories(main_cat, cat)
        elif main_cat is not None:
            groups = categories.list_categories(main_cat)
        else:
            groups = categories.list_main_groups()
    except CrawlerError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    _emit([{"code": g.code, "name": g.name} for g in groups])
    return 0


# ── Daemon ───────────────────────────────────────────────


async def run_daemon() -> int:
    """Run the daily loop until SIGINT/SIGTERM."""
    db = CrawlDB()
    loop = DailyLoop(
        orchestrator=_build_orchestrator(db),
        scheduler=CrawlScheduler(db),
        category_client=CategoryClient(),
    )
    stop = asyncio.Event()
    event_loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            event_loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops lack signal handlers
            pass

    _err.print(
        f"[bold]Daily crawl loop[/bold] at {loop.run_time} UTC "
        f"[dim](Ctrl+C to stop)[/dim]"
    )
    try:
        await loop.run(stop)
    finally:
        db.close()
    return 0
