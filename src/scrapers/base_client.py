# src/scrapers/base_client.py

"""Shared HTTP plumbing for the IME endpoints."""

import logging
import time
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.errors import UpstreamUnavailable


class BaseClient:
    """curl_cffi session with retry and linear backoff.

    Every non-200 status and every transport exception counts as a failed
    attempt.  After ``MAX_RETRIES`` attempts the caller gets
    :class:`~src.errors.UpstreamUnavailable`.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(f"ime_crawler.{name}")
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def _backoff(self, attempt: int) -> None:
        """Sleep ``RETRY_BACKOFF * (attempt + 1)`` seconds."""
        time.sleep(self.settings.RETRY_BACKOFF * (attempt + 1))

    def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        **kwargs: Any,
    ) -> curl_requests.Response | None:
        """Issue a request with retries; ``None`` when all attempts fail."""
        attempts = self.settings.MAX_RETRIES
        for attempt in range(attempts):
            try:
                resp = self.session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=self._request_timeout,
                    **kwargs,
                )
                if resp.status_code == 200:
                    return resp
                self.logger.warning(
                    "[%s] HTTP %d on attempt %d/%d",
                    self.name,
                    resp.status_code,
                    attempt + 1,
                    attempts,
                )
            except Exception as exc:
                self.logger.warning(
                    "[%s] Request error on attempt %d/%d: %s",
                    self.name,
                    attempt + 1,
                    attempts,
                    exc,
                    exc_info=True,
                )
            if attempt + 1 < attempts:
                self._backoff(attempt)
        return None

    def _get(
        self, url: str, params: dict[str, Any] | None = None,
    ) -> curl_requests.Response | None:
        headers = {**self.settings.DEFAULT_HEADERS}
        return self._request("GET", url, headers, params=params)

    def _post_json(
        self, url: str, payload: dict[str, Any],
    ) -> curl_requests.Response:
        """POST a JSON body; raises UpstreamUnavailable on exhaustion."""
        headers = {
            **self.settings.DEFAULT_HEADERS,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        resp = self._request("POST", url, headers, json=payload)
        if resp is None:
            raise UpstreamUnavailable(
                f"{self.name}: POST {url} failed after "
                f"{self.settings.MAX_RETRIES} attempts"
            )
        return resp
