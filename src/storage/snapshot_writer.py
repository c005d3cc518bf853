# src/storage/snapshot_writer.py

"""Writes rendered report images under the web root."""

import logging
from datetime import date
from pathlib import Path, PurePosixPath

from src.config.settings import Settings
from src.errors import StorageUnavailable

logger = logging.getLogger("ime_crawler.snapshots")

_SLUG_MAX = 60
_SLUG_FALLBACK = "group"


def slugify(name: str) -> str:
    """Filename-safe form of a group name.

    Keeps letters, digits, spaces, ``-`` and ``_``; spaces become
    underscores; capped at 60 characters; empty becomes ``group``.
    """
    kept = "".join(
        ch for ch in name if ch.isalnum() or ch in " -_"
    )
    cleaned = kept.strip().replace(" ", "_")
    if not cleaned:
        return _SLUG_FALLBACK
    return cleaned[:_SLUG_MAX]


def relative_image_path(day: date, group_name: str) -> PurePosixPath:
    """``reports/ime/<yyyy>/<mm>/ime_<slug>_<yyyymmdd>.png``."""
    return PurePosixPath(
        *Settings.REPORTS_SUBDIR,
        f"{day.year:04d}",
        f"{day.month:02d}",
        f"ime_{slugify(group_name)}_{day:%Y%m%d}.png",
    )


def image_url(day: date, group_name: str) -> str:
    """Root-relative URL under which the web root serves the image."""
    return "/" + str(relative_image_path(day, group_name))


class SnapshotWriter:
    """Persists PNG bytes at their deterministic location."""

    def __init__(self, web_root: Path | None = None) -> None:
        self.web_root: Path = web_root or Settings.WEB_ROOT

    def write(
        self, day: date, group_name: str, png: bytes,
    ) -> tuple[Path, str]:
        """Write *png* and return ``(absolute_path, url)``.

        Raises :class:`~src.errors.StorageUnavailable` when the directory
        cannot be created or the file cannot be written.
        """
        rel = relative_image_path(day, group_name)
        target = self.web_root.joinpath(*rel.parts)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(
                f"Cannot create report directory {target.parent}: {exc}"
            ) from exc
        try:
            target.write_bytes(png)
        except OSError as exc:
            raise StorageUnavailable(
                f"Cannot write report image {target}: {exc}"
            ) from exc

        url = image_url(day, group_name)
        logger.info("Saved %d-byte snapshot to %s", len(png), target)
        return target, url
