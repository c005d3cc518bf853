# src/models/snapshot.py

"""Snapshot marker and category models."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone


@dataclass
class SnapshotRecord:
    """Completion marker for one (day, group) crawl."""

    day: date
    main_group_id: int
    main_group_name: str
    image_url: str
    created_at_utc: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    id: int | None = None


@dataclass(frozen=True)
class MainGroup:
    """A top-level upstream category (code, display name)."""

    code: int
    name: str
