# src/rendering/report_renderer.py

"""Render normalized offers as a self-contained RTL HTML report."""

import html
from collections.abc import Iterable

from src.models.offer import ParsedOffer

_STYLE = """\
  body{font-family:Tahoma,Arial,sans-serif;background:#f6f7fb;margin:24px;}
  .card{background:white;border:1px solid #e6e8ef;border-radius:12px;padding:16px;box-shadow:0 2px 10px rgba(0,0,0,.05);}
  h1{font-size:18px;margin:0 0 12px 0;color:#1f2a44;}
  .meta{color:#6b7280;font-size:12px;margin-bottom:12px;}
  table{width:100%;border-collapse:collapse;font-size:12px;}
  th,td{border:1px solid #e6e8ef;padding:8px;vertical-align:top;}
  th{background:#1479b8;color:#fff;}
  tr:nth-child(even){background:#fafbff;}
  .small{color:#6b7280;font-size:11px;}
"""

# Product, symbol, hall, broker, offer code
_HEADERS: tuple[str, ...] = (
    "نام کالا",
    "نماد",
    "تالار",
    "کارگزار",
    "کد عرضه",
)


def report_title(group_name: str, jalali_date: str) -> str:
    """Title used on the rendered snapshot."""
    return f"IME - {group_name} - {jalali_date}"


def sort_for_report(offers: Iterable[ParsedOffer]) -> list[ParsedOffer]:
    """Sort by product name then symbol, missing values first.

    The rendered image is a durable artifact, so the order must depend
    only on the offers themselves.
    """
    return sorted(
        offers,
        key=lambda o: (o.product_name or "", o.symbol or ""),
    )


def _esc(value: object | None) -> str:
    return html.escape("" if value is None else str(value))


class ReportRenderer:
    """Builds the HTML document handed to the image renderer."""

    def render(self, title: str, offers: Iterable[ParsedOffer]) -> str:
        """Return a complete HTML document for *offers* in the given order."""
        rows = list(offers)
        parts: list[str] = [
            "<!doctype html>\n",
            '<html lang="fa" dir="rtl">\n<head>\n',
            '<meta charset="utf-8"/>\n',
            '<meta name="viewport" content="width=device-width, '
            'initial-scale=1"/>\n',
            f"<style>\n{_STYLE}</style>\n</head>\n<body>\n",
            '<div class="card">\n',
            f"  <h1>{_esc(title)}</h1>\n",
            f'  <div class="meta">تعداد ردیف‌ها: {len(rows)}</div>\n',
            "  <table>\n    <thead>\n      <tr>",
        ]
        parts.extend(f"<th>{h}</th>" for h in _HEADERS)
        parts.append("</tr>\n    </thead>\n    <tbody>\n")

        for r in rows:
            parts.append(
                "      <tr>"
                f"<td>{_esc(r.product_name)}</td>"
                f"<td>{_esc(r.symbol)}</td>"
                f"<td>{_esc(r.talar)}</td>"
                f"<td>{_esc(r.broker)}</td>"
                f"<td class='small'>{_esc(r.source_pk)}</td>"
                "</tr>\n"
            )

        parts.append(
            "    </tbody>\n  </table>\n</div>\n</body>\n</html>\n"
        )
        return "".join(parts)
