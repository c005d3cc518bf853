# tests/test_category_client.py

"""Tests for the IME category service client."""

import unittest
from unittest.mock import MagicMock, patch

from src.errors import UpstreamUnavailable
from src.models.snapshot import MainGroup
from src.scrapers.category_client import CategoryClient

SESSION_PATH = "src.scrapers.base_client.curl_requests.Session"


def _json_resp(data: object, status: int = 200) -> MagicMock:
    mock_resp = MagicMock()
    mock_resp.status_code = status
    mock_resp.json.return_value = data
    return mock_resp


class TestCategoryClient(unittest.TestCase):
    """Envelope handling and payloads for category lookups."""

    @patch(SESSION_PATH)
    def test_main_groups_parsed(self, mock_session_cls: MagicMock) -> None:
        """Main groups are read from the d envelope."""
        session = MagicMock()
        session.request.return_value = _json_resp({
            "d": [
                {"code": 1, "Name": "صنعتی"},
                {"code": "2", "Name": "پتروشیمی"},
            ],
        })
        mock_session_cls.return_value = session

        groups = CategoryClient().list_main_groups()

        self.assertEqual(
            groups,
            [MainGroup(1, "صنعتی"), MainGroup(2, "پتروشیمی")],
        )
        kwargs = session.request.call_args.kwargs
        self.assertEqual(kwargs["json"], {"Language": 8})
        self.assertEqual(session.request.call_args.args[0], "POST")

    @patch(SESSION_PATH)
    def test_categories_payload(self, mock_session_cls: MagicMock) -> None:
        """Categories are requested with MainCat and the language code."""
        session = MagicMock()
        session.request.return_value = _json_resp(
            {"d": [{"code": 11, "name": "Steel"}]},
        )
        mock_session_cls.return_value = session

        cats = CategoryClient().list_categories(1)

        self.assertEqual(cats, [MainGroup(11, "Steel")])
        self.assertEqual(
            session.request.call_args.kwargs["json"],
            {"Language": 8, "MainCat": 1},
        )

    @patch(SESSION_PATH)
    def test_subcategories_payload(self, mock_session_cls: MagicMock) -> None:
        """Subcategories are requested with MainCat and Cat."""
        session = MagicMock()
        session.request.return_value = _json_resp({"d": []})
        mock_session_cls.return_value = session

        self.assertEqual(CategoryClient().list_subcategories(1, 11), [])
        self.assertEqual(
            session.request.call_args.kwargs["json"],
            {"Language": 8, "MainCat": 1, "Cat": 11},
        )

    @patch(SESSION_PATH)
    def test_producers(self, mock_session_cls: MagicMock) -> None:
        """Producers are listed from their own endpoint."""
        session = MagicMock()
        session.request.return_value = _json_resp(
            {"d": [{"code": 9, "name": "Mobarakeh"}]},
        )
        mock_session_cls.return_value = session

        self.assertEqual(
            CategoryClient().list_producers(), [MainGroup(9, "Mobarakeh")],
        )

    @patch(SESSION_PATH)
    def test_missing_envelope_empty(self, mock_session_cls: MagicMock) -> None:
        """A response without d yields an empty list."""
        session = MagicMock()
        session.request.return_value = _json_resp([{"code": 1}])
        mock_session_cls.return_value = session

        self.assertEqual(CategoryClient().list_main_groups(), [])

    @patch(SESSION_PATH)
    def test_non_json_empty(self, mock_session_cls: MagicMock) -> None:
        """A non-JSON body yields an empty list."""
        session = MagicMock()
        resp = _json_resp(None)
        resp.json.side_effect = ValueError("no json")
        session.request.return_value = resp
        mock_session_cls.return_value = session

        self.assertEqual(CategoryClient().list_main_groups(), [])

    @patch(SESSION_PATH)
    def test_http_error_raises(self, mock_session_cls: MagicMock) -> None:
        """Exhausted retries raise UpstreamUnavailable."""
        session = MagicMock()
        session.request.return_value = _json_resp({}, status=500)
        mock_session_cls.return_value = session

        with self.assertRaises(UpstreamUnavailable):
            CategoryClient().list_main_groups()
        self.assertEqual(session.request.call_count, 3)


if __name__ == "__main__":
    unittest.main()
