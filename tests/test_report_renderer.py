# tests/test_report_renderer.py

"""Tests for the HTML report renderer and its sort order."""

import unittest

from src.models.offer import ParsedOffer
from src.rendering.report_renderer import (
    ReportRenderer,
    report_title,
    sort_for_report,
)


def _offer(product: str | None, symbol: str | None = None) -> ParsedOffer:
    return ParsedOffer(raw_payload="{}", product_name=product, symbol=symbol)


class TestSortForReport(unittest.TestCase):
    """Deterministic product/symbol ordering."""

    def test_nulls_first_then_ascending(self) -> None:
        """Missing product names sort first, then ascending."""
        offers = [_offer("B"), _offer("A"), _offer(None)]
        names = [o.product_name for o in sort_for_report(offers)]
        self.assertEqual(names, [None, "A", "B"])

    def test_independent_of_input_order(self) -> None:
        """The sorted order does not depend on input order."""
        a = [_offer("B"), _offer(None), _offer("A")]
        b = [_offer("A"), _offer("B"), _offer(None)]
        self.assertEqual(sort_for_report(a), sort_for_report(b))

    def test_empty_string_sorts_with_null(self) -> None:
        """An empty name sorts like a missing one."""
        names = [
            o.product_name
            for o in sort_for_report([_offer("A"), _offer("")])
        ]
        self.assertEqual(names, ["", "A"])

    def test_symbol_breaks_ties(self) -> None:
        """Equal names are ordered by symbol."""
        offers = [_offer("A", "Z1"), _offer("A", None), _offer("A", "B1")]
        symbols = [o.symbol for o in sort_for_report(offers)]
        self.assertEqual(symbols, [None, "B1", "Z1"])


class TestReportRenderer(unittest.TestCase):
    """Rendered markup content."""

    def setUp(self) -> None:
        self.renderer = ReportRenderer()

    def test_document_is_rtl_html(self) -> None:
        """The document is a right-to-left Persian page."""
        doc = self.renderer.render("T", [])
        self.assertTrue(doc.startswith("<!doctype html>"))
        self.assertIn('dir="rtl"', doc)
        self.assertIn("</html>", doc)

    def test_title_escaped(self) -> None:
        """Markup in the title is escaped."""
        doc = self.renderer.render("<b>x</b>", [])
        self.assertIn("&lt;b&gt;x&lt;/b&gt;", doc)
        self.assertNotIn("<b>x</b>", doc)

    def test_row_count_and_cells(self) -> None:
        """The row count and cell values appear in the table."""
        offers = [
            ParsedOffer(
                raw_payload="{}",
                source_pk=5,
                product_name="Wheat",
                symbol="WHT1",
                talar="Agri",
                broker="Broker & Co",
            ),
        ]
        doc = self.renderer.render("T", offers)
        self.assertIn(": 1</div>", doc)
        self.assertIn("<td>Wheat</td>", doc)
        self.assertIn("<td>WHT1</td>", doc)
        self.assertIn("<td>Broker &amp; Co</td>", doc)
        self.assertIn("<td class='small'>5</td>", doc)

    def test_rows_in_given_order(self) -> None:
        """Rows are emitted in the order given."""
        doc = self.renderer.render("T", [_offer("Zinc"), _offer("Alum")])
        self.assertLess(doc.index("Zinc"), doc.index("Alum"))

    def test_missing_fields_render_empty(self) -> None:
        """Missing fields render as empty cells."""
        doc = self.renderer.render("T", [ParsedOffer(raw_payload="x")])
        self.assertIn("<td></td>", doc)
        self.assertNotIn("None", doc)

    def test_report_title(self) -> None:
        """The title joins group name and Jalali date."""
        self.assertEqual(
            report_title("Metals", "1404/10/02"),
            "IME - Metals - 1404/10/02",
        )


if __name__ == "__main__":
    unittest.main()
