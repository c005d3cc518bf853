# src/scrapers/category_client.py

"""Category lookups against the IME ``imedata.asmx`` web service."""

from typing import Any

from src.models.snapshot import MainGroup
from src.parsers.response_normalizer import get_int, get_text
from src.scrapers.base_client import BaseClient


class CategoryClient(BaseClient):
    """Main groups, categories, subcategories and producers.

    Responses arrive wrapped as ``{"d": [...]}``; an unexpected envelope
    yields an empty list.
    """

    def __init__(self) -> None:
        super().__init__("category")

    def _list(
        self,
        url: str,
        extra: dict[str, Any] | None = None,
        name_key: str = "name",
    ) -> list[MainGroup]:
        payload: dict[str, Any] = {"Language": self.settings.LANGUAGE}
        payload.update(extra or {})
        resp = self._post_json(url, payload)

        try:
            data: Any = resp.json()
        except ValueError:
            self.logger.warning("[category] Non-JSON response from %s", url)
            return []

        entries = data.get("d") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            self.logger.warning("[category] Missing 'd' envelope from %s", url)
            return []

        groups = [
            MainGroup(
                code=get_int(e, "code") or 0,
                name=get_text(e, name_key) or "",
            )
            for e in entries
            if isinstance(e, dict)
        ]
        self.logger.info("[category] %d entries from %s", len(groups), url)
        return groups

    def list_main_groups(self) -> list[MainGroup]:
        """Top-level groups that partition auction offers."""
        return self._list(self.settings.MAIN_GROUPS_URL, name_key="Name")

    def list_categories(self, main_cat: int) -> list[MainGroup]:
        return self._list(
            self.settings.CATEGORIES_URL, {"MainCat": main_cat},
        )

    def list_subcategories(
        self, main_cat: int, cat: int,
    ) -> list[MainGroup]:
        return self._list(
            self.settings.SUBCATEGORIES_URL,
            {"MainCat": main_cat, "Cat": cat},
        )

    def list_producers(self) -> list[MainGroup]:
        return self._list(self.settings.PRODUCERS_URL)
