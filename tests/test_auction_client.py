# tests/test_auction_client.py

"""Tests for the auction transport using mocked HTTP responses."""

import unittest
from unittest.mock import MagicMock, patch

from src.errors import UpstreamUnavailable
from src.models.offer import FilterParams
from src.scrapers.auction_client import AuctionClient, build_query

SESSION_PATH = "src.scrapers.base_client.curl_requests.Session"
CLOUDSCRAPER_PATH = "src.scrapers.auction_client.cloudscraper"


def _resp(status: int, text: str = "") -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.status_code = status
    mock_resp.text = text
    return mock_resp


class TestBuildQuery(unittest.TestCase):
    """Query string construction."""

    def test_single_day_range(self) -> None:
        """From and to dates are the same Jalali day."""
        q = build_query("1404/10/02", FilterParams(m=1, c=2, s=3, p=4))
        self.assertEqual(q["f"], "1404/10/02")
        self.assertEqual(q["t"], "1404/10/02")
        self.assertEqual(q["fr"], "false")
        self.assertEqual(q["lang"], "8")
        self.assertEqual(
            (q["m"], q["c"], q["s"], q["p"]), ("1", "2", "3", "4"),
        )


class TestAuctionClient(unittest.TestCase):
    """AuctionClient.fetch retry and fallback behaviour."""

    @patch(SESSION_PATH)
    def test_fetch_returns_body(self, mock_session_cls: MagicMock) -> None:
        """A 200 response body is returned verbatim."""
        session = MagicMock()
        session.request.return_value = _resp(200, '[{"Talar":"A"}]')
        mock_session_cls.return_value = session

        client = AuctionClient()
        body = client.fetch("1404/10/02")

        self.assertEqual(body, '[{"Talar":"A"}]')
        method, url = session.request.call_args.args[:2]
        self.assertEqual(method, "GET")
        self.assertTrue(url.endswith("auction.ashx"))
        self.assertEqual(
            session.request.call_args.kwargs["params"]["f"], "1404/10/02",
        )

    @patch(SESSION_PATH)
    def test_retries_then_succeeds(self, mock_session_cls: MagicMock) -> None:
        """A transient failure is retried before succeeding."""
        session = MagicMock()
        session.request.side_effect = [
            _resp(503),
            ConnectionError("reset"),
            _resp(200, "ok"),
        ]
        mock_session_cls.return_value = session

        self.assertEqual(AuctionClient().fetch("1404/10/02"), "ok")
        self.assertEqual(session.request.call_count, 3)

    @patch(CLOUDSCRAPER_PATH)
    @patch(SESSION_PATH)
    def test_falls_back_to_cloudscraper(
        self, mock_session_cls: MagicMock, mock_cs: MagicMock,
    ) -> None:
        """Exhausted curl_cffi retries fall back to cloudscraper."""
        session = MagicMock()
        session.request.return_value = _resp(500)
        mock_session_cls.return_value = session
        mock_cs.create_scraper.return_value.get.return_value = _resp(
            200, "fallback",
        )

        self.assertEqual(AuctionClient().fetch("1404/10/02"), "fallback")
        self.assertEqual(session.request.call_count, 3)

    @patch(CLOUDSCRAPER_PATH)
    @patch(SESSION_PATH)
    def test_exhausted_raises_upstream_unavailable(
        self, mock_session_cls: MagicMock, mock_cs: MagicMock,
    ) -> None:
        """Both transports failing raises UpstreamUnavailable."""
        session = MagicMock()
        session.request.return_value = _resp(502)
        mock_session_cls.return_value = session
        mock_cs.create_scraper.return_value.get.return_value = _resp(403)

        with self.assertRaises(UpstreamUnavailable):
            AuctionClient().fetch("1404/10/02")

    @patch(CLOUDSCRAPER_PATH)
    @patch(SESSION_PATH)
    def test_fallback_exception_raises_upstream_unavailable(
        self, mock_session_cls: MagicMock, mock_cs: MagicMock,
    ) -> None:
        """A cloudscraper exception is wrapped in UpstreamUnavailable."""
        session = MagicMock()
        session.request.side_effect = TimeoutError("slow")
        mock_session_cls.return_value = session
        mock_cs.create_scraper.side_effect = RuntimeError("boom")

        with self.assertRaises(UpstreamUnavailable):
            AuctionClient().fetch("1404/10/02")


if __name__ == "__main__":
    unittest.main()
