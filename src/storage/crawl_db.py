# src/storage/crawl_db.py

"""SQLite-backed store for crawled offers and snapshot markers."""

import logging
import sqlite3
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

from src.config.settings import Settings
from src.errors import StorageUnavailable
from src.models.offer import OfferRecord
from src.models.snapshot import SnapshotRecord

logger = logging.getLogger("ime_crawler.store")

# (day, source_pk) is indexed, not unique
_SCHEMA = """\
CREATE TABLE IF NOT EXISTS ime_offers (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    day             TEXT    NOT NULL,
    main_group_id   INTEGER NOT NULL,
    main_group_name TEXT    NOT NULL,
    source_pk       INTEGER,
    product_name    TEXT,
    symbol          TEXT,
    talar           TEXT,
    broker          TEXT,
    raw_payload     TEXT    NOT NULL,
    created_at_utc  TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_offers_day_source_pk
    ON ime_offers(day, source_pk);

CREATE INDEX IF NOT EXISTS idx_offers_day_group
    ON ime_offers(day, main_group_id);

CREATE TABLE IF NOT EXISTS ime_snapshots (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    day             TEXT    NOT NULL,
    main_group_id   INTEGER NOT NULL,
    main_group_name TEXT    NOT NULL,
    image_url       TEXT    NOT NULL,
    created_at_utc  TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_day_group
    ON ime_snapshots(day, main_group_id);
"""

_OFFER_COLUMNS = (
    "id, day, main_group_id, main_group_name, source_pk, product_name, "
    "symbol, talar, broker, raw_payload, created_at_utc"
)

_SNAPSHOT_COLUMNS = (
    "id, day, main_group_id, main_group_name, image_url, created_at_utc"
)


def _row_to_snapshot(r: tuple) -> SnapshotRecord:
    return SnapshotRecord(
        id=r[0],
        day=date.fromisoformat(r[1]),
        main_group_id=r[2],
        main_group_name=r[3],
        image_url=r[4],
        created_at_utc=datetime.fromisoformat(r[5]),
    )


def _row_to_offer(r: tuple) -> OfferRecord:
    return OfferRecord(
        id=r[0],
        day=date.fromisoformat(r[1]),
        main_group_id=r[2],
        main_group_name=r[3],
        source_pk=r[4],
        product_name=r[5],
        symbol=r[6],
        talar=r[7],
        broker=r[8],
        raw_payload=r[9],
        created_at_utc=datetime.fromisoformat(r[10]),
    )


class CrawlDB:
    """Persists offers and snapshot markers; days are ISO date strings."""

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.DB_PATH
        try:
            if str(path) != ":memory:":
                path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailable(
                f"Cannot open crawl database at {path}: {exc}"
            ) from exc
        logger.debug("CrawlDB opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Writes ───────────────────────────────────────────

    def insert_offers(self, records: Iterable[OfferRecord]) -> int:
        """Insert a batch of offers in one transaction.

        Returns the number of rows written.
        """
        rows = [
            (
                r.day.isoformat(),
                r.main_group_id,
                r.main_group_name,
                r.source_pk,
                r.product_name,
                r.symbol,
                r.talar,
                r.broker,
                r.raw_payload,
                r.created_at_utc.isoformat(),
            )
            for r in records
        ]
        if not rows:
            return 0
        try:
            with self._conn:
                cur = self._conn.executemany(
                    "INSERT INTO ime_offers (day, main_group_id, "
                    "main_group_name, source_pk, product_name, symbol, "
                    "talar, broker, raw_payload, created_at_utc) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as exc:
            raise StorageUnavailable(
                f"Failed to insert {len(rows)} offers: {exc}"
            ) from exc
        count = cur.rowcount if cur.rowcount >= 0 else len(rows)
        logger.info("Inserted %d offers", count)
        return count

    def insert_snapshot(self, record: SnapshotRecord) -> SnapshotRecord:
        """Insert a snapshot marker and return it with its row id."""
        try:
            with self._conn:
                cur = self._conn.execute(
                    "INSERT INTO ime_snapshots (day, main_group_id, "
                    "main_group_name, image_url, created_at_utc) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        record.day.isoformat(),
                        record.main_group_id,
                        record.main_group_name,
                        record.image_url,
                        record.created_at_utc.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise StorageUnavailable(
                f"Failed to insert snapshot for {record.day}: {exc}"
            ) from exc
        record.id = cur.lastrowid
        logger.info(
            "Snapshot recorded for %s group %d: %s",
            record.day,
            record.main_group_id,
            record.image_url,
        )
        return record

    # ── Existence / idempotency ──────────────────────────

    def snapshot_exists(self, day: date, group_id: int) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM ime_snapshots "
            "WHERE day = ? AND main_group_id = ? LIMIT 1",
            (day.isoformat(), group_id),
        ).fetchone()
        return row is not None

    def offers_exist(self, day: date, group_id: int) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM ime_offers "
            "WHERE day = ? AND main_group_id = ? LIMIT 1",
            (day.isoformat(), group_id),
        ).fetchone()
        return row is not None

    def crawled_days(
        self, start: date, end: date, group_id: int,
    ) -> set[date]:
        """Distinct snapshot days in ``[start, end]`` for *group_id*."""
        rows = self._conn.execute(
            "SELECT DISTINCT day FROM ime_snapshots "
            "WHERE day >= ? AND day <= ? AND main_group_id = ?",
            (start.isoformat(), end.isoformat(), group_id),
        ).fetchall()
        return {date.fromisoformat(r[0]) for r in rows}

    # ── Querying ─────────────────────────────────────────

    def get_offers(self, day: date, group_id: int) -> list[OfferRecord]:
        """All offers for a key, in insertion order."""
        rows = self._conn.execute(
            f"SELECT {_OFFER_COLUMNS} FROM ime_offers "
            "WHERE day = ? AND main_group_id = ? ORDER BY id",
            (day.isoformat(), group_id),
        ).fetchall()
        return [_row_to_offer(r) for r in rows]

    def list_snapshots(
        self,
        day: date | None = None,
        limit: int = Settings.SNAPSHOT_LIST_LIMIT,
    ) -> list[SnapshotRecord]:
        """Snapshots newest day first, then by group id."""
        sql = f"SELECT {_SNAPSHOT_COLUMNS} FROM ime_snapshots "
        params: tuple = ()
        if day is not None:
            sql += "WHERE day = ? "
            params = (day.isoformat(),)
        sql += "ORDER BY day DESC, main_group_id ASC LIMIT ?"
        rows = self._conn.execute(sql, (*params, limit)).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def latest_snapshot(self) -> SnapshotRecord | None:
        row = self._conn.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM ime_snapshots "
            "ORDER BY day DESC, created_at_utc DESC LIMIT 1",
        ).fetchone()
        return _row_to_snapshot(row) if row else None

    def count_offers(self) -> int:
        return int(
            self._conn.execute("SELECT COUNT(*) FROM ime_offers").fetchone()[0]
        )

    def count_snapshots(self) -> int:
        return int(
            self._conn.execute(
                "SELECT COUNT(*) FROM ime_snapshots"
            ).fetchone()[0]
        )
