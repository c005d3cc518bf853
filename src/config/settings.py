# src/config/settings.py

"""Central configuration for the ime_crawler pipeline."""

import os
from datetime import time
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag such as ``true``/``1``/``yes`` from the env."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the ime_crawler pipeline."""

    # --- Upstream (IME) ---
    AUCTION_URL: str = (
        "https://www.ime.co.ir/subsystems/ime/auction/auction.ashx"
    )
    SERVICES_URL: str = (
        "https://www.ime.co.ir/subsystems/ime/services/home/imedata.asmx"
    )
    MAIN_GROUPS_URL: str = f"{SERVICES_URL}/GetMainGroups"
    CATEGORIES_URL: str = f"{SERVICES_URL}/GetCatGroups"
    SUBCATEGORIES_URL: str = f"{SERVICES_URL}/GetSubCatGroups"
    PRODUCERS_URL: str = f"{SERVICES_URL}/GetProducers"
    REFERER: str = "https://www.ime.co.ir/arze.html"
    LANGUAGE: int = 8                   # Persian UI language code

    # --- Transport ---
    REQUEST_TIMEOUT: int = 30           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Attempts on transient failures
    RETRY_BACKOFF: float = 2.0          # Linear backoff step (2s, 4s, 6s)
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "*/*",
        "Accept-Language": "fa-IR,fa;q=0.9,en-US;q=0.8,en;q=0.7",
        "Referer": REFERER,
    }

    # --- Schedule ---
    CRAWL_HOUR: int = int(os.getenv("IME_CRAWL_HOUR", "2"))
    CRAWL_MINUTE: int = int(os.getenv("IME_CRAWL_MINUTE", "0"))
    CRAWL_INDIVIDUAL_GROUPS: bool = _env_flag(
        "IME_CRAWL_INDIVIDUAL_GROUPS", False
    )
    GROUP_PAUSE: float = 2.0            # Seconds between per-group crawls
    FAILURE_BACKOFF: float = 3600.0     # Wait after a failed daily run

    # --- Groups ---
    ALL_GROUPS_ID: int = 0
    ALL_GROUPS_NAME: str = "همه گروه‌ها"

    # --- Reporting ---
    MISSING_LOOKBACK_DAYS: int = 30
    SNAPSHOT_LIST_LIMIT: int = 100
    REPORTS_SUBDIR: tuple[str, ...] = ("reports", "ime")

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    DB_PATH: Path = Path(
        os.getenv("IME_DB_PATH", str(DATA_DIR / "ime_crawler.db"))
    )
    WEB_ROOT: Path = Path(
        os.getenv("IME_WEB_ROOT", str(BASE_DIR / "wwwroot"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    @classmethod
    def run_time(cls) -> time:
        """Return the configured daily run time (UTC)."""
        return time(hour=cls.CRAWL_HOUR, minute=cls.CRAWL_MINUTE)
