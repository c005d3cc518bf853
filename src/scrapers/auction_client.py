# src/scrapers/auction_client.py

"""Fetches raw auction offers from the IME auction handler."""

from typing import Any

import cloudscraper  # type: ignore[import-untyped]

from src.config.settings import Settings
from src.errors import UpstreamUnavailable
from src.models.offer import FilterParams
from src.scrapers.base_client import BaseClient


def build_query(jalali_date: str, params: FilterParams) -> dict[str, str]:
    """Query string for a single-day auction listing."""
    return {
        "fr": "false",
        "f": jalali_date,
        "t": jalali_date,
        "m": str(params.m),
        "c": str(params.c),
        "s": str(params.s),
        "p": str(params.p),
        "lang": str(Settings.LANGUAGE),
    }


class AuctionClient(BaseClient):
    """Transport for the ``auction.ashx`` endpoint.

    The payload is returned verbatim; shape handling belongs to the
    normalizer.
    """

    def __init__(self) -> None:
        super().__init__("auction")

    def fetch(
        self,
        jalali_date: str,
        params: FilterParams | None = None,
    ) -> str:
        """Return the raw payload for one Jalali day and filter."""
        query = build_query(jalali_date, params or FilterParams())
        url = self.settings.AUCTION_URL

        resp = self._get(url, params=query)
        if resp is not None:
            self.logger.info(
                "[auction] Fetched %s (%d bytes)", jalali_date, len(resp.text)
            )
            return resp.text

        # Fallback: cloudscraper (JS challenge solver)
        self.logger.info(
            "[auction] curl_cffi exhausted, falling back to cloudscraper",
        )
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            fallback_resp: Any = scraper.get(
                url,
                params=query,
                headers=self.settings.DEFAULT_HEADERS,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            raise UpstreamUnavailable(
                f"auction fetch for {jalali_date} failed: {exc}"
            ) from exc

        if fallback_resp.status_code != 200:
            raise UpstreamUnavailable(
                f"auction fetch for {jalali_date} failed: "
                f"HTTP {fallback_resp.status_code}"
            )
        return str(fallback_resp.text)
