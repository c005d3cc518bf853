# main.py

"""Entry point for the ime_crawler application."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings
from src.models.offer import FilterParams

logger = logging.getLogger("ime_crawler.main")


def _add_group_args(parser: argparse.ArgumentParser) -> None:
    """Group key and upstream filter flags shared by crawl commands."""
    parser.add_argument(
        "--group-id",
        type=int,
        default=Settings.ALL_GROUPS_ID,
        help="Main group id recorded with the crawl (default: 0, all).",
    )
    parser.add_argument(
        "--group-name",
        default=Settings.ALL_GROUPS_NAME,
        help="Main group display name (default: the all-groups name).",
    )
    for flag, label in (
        ("m", "main group"),
        ("c", "category"),
        ("s", "subcategory"),
        ("p", "producer"),
    ):
        parser.add_argument(
            f"-{flag}",
            type=int,
            default=0,
            help=f"Upstream {label} filter (default: 0).",
        )


def _add_format_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ime_crawler",
        description="IME auction offer crawler and snapshot renderer.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    day = sub.add_parser("day", help="Crawl one Jalali day (yyyy/mm/dd).")
    day.add_argument("jalali", help="Jalali date, e.g. 1404/10/02.")
    _add_group_args(day)

    today = sub.add_parser("today", help="Crawl today's Jalali date.")
    _add_group_args(today)

    yesterday = sub.add_parser(
        "yesterday", help="Crawl yesterday's Jalali date.",
    )
    _add_group_args(yesterday)

    missing = sub.add_parser(
        "missing", help="List days without an all-groups snapshot.",
    )
    missing.add_argument("--start", default=None, help="Jalali start date.")
    missing.add_argument("--end", default=None, help="Jalali end date.")
    _add_format_arg(missing)

    sub.add_parser("stats", help="Show crawl totals.")

    snapshots = sub.add_parser("snapshots", help="List recent snapshots.")
    snapshots.add_argument(
        "--day", default=None, help="Gregorian day (YYYY-MM-DD).",
    )
    _add_format_arg(snapshots)

    groups = sub.add_parser("groups", help="List upstream category codes.")
    groups.add_argument(
        "--main-cat",
        type=int,
        default=None,
        help="List categories of this main group.",
    )
    groups.add_argument(
        "--cat",
        type=int,
        default=None,
        help="With --main-cat, list subcategories of this category.",
    )
    groups.add_argument(
        "--producers", action="store_true", help="List producers instead.",
    )
    sub.add_parser("daemon", help="Run the daily crawl loop.")
    return parser


def _params(args: argparse.Namespace) -> FilterParams:
    return FilterParams(m=args.m, c=args.c, s=args.s, p=args.p)


def main() -> None:
    """Dispatch the selected subcommand and exit with its status."""
    log_file = setup_logging()
    logger.info("ime_crawler starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()
    if (
        args.command == "groups"
        and args.cat is not None
        and args.main_cat is None
    ):
        parser.error("--cat requires --main-cat")

    from src.cli import runner

    if args.command == "day":
        code = asyncio.run(runner.crawl_day(
            args.jalali, args.group_id, args.group_name, _params(args),
        ))
    elif args.command == "today":
        code = asyncio.run(runner.crawl_today(
            args.group_id, args.group_name, _params(args),
        ))
    elif args.command == "yesterday":
        code = asyncio.run(runner.crawl_yesterday(
            args.group_id, args.group_name, _params(args),
        ))
    elif args.command == "missing":
        code = runner.show_missing(
            args.start, args.end, args.output_format,
        )
    elif args.command == "stats":
        code = runner.show_stats()
    elif args.command == "snapshots":
        code = runner.show_snapshots(args.day, args.output_format)
    elif args.command == "groups":
        code = runner.show_groups(args.main_cat, args.cat, args.producers)
    else:
        try:
            code = asyncio.run(runner.run_daemon())
        except Exception:
            logger.critical("Fatal error in daily loop", exc_info=True)
            raise
        finally:
            logger.info("ime_crawler daemon shutting down")
    sys.exit(code)


if __name__ == "__main__":
    main()
