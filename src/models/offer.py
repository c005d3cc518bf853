# src/models/offer.py

"""Offer data models for the fetch, normalize and persist stages."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone


@dataclass(frozen=True)
class FilterParams:
    """Upstream auction filter: main group, category, subcategory, producer."""

    m: int = 0
    c: int = 0
    s: int = 0
    p: int = 0


@dataclass(frozen=True)
class ParsedOffer:
    """One normalized upstream row, before day/group are attached."""

    raw_payload: str
    source_pk: int | None = None
    product_name: str | None = None
    symbol: str | None = None
    talar: str | None = None    # venue / hall
    broker: str | None = None


@dataclass
class OfferRecord:
    """A persisted auction offer for a specific (day, group)."""

    day: date
    main_group_id: int
    main_group_name: str
    raw_payload: str
    source_pk: int | None = None
    product_name: str | None = None
    symbol: str | None = None
    talar: str | None = None
    broker: str | None = None
    created_at_utc: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    id: int | None = None

    @classmethod
    def from_parsed(
        cls,
        parsed: ParsedOffer,
        day: date,
        main_group_id: int,
        main_group_name: str,
    ) -> "OfferRecord":
        """Attach the crawl key to a normalized row."""
        return cls(
            day=day,
            main_group_id=main_group_id,
            main_group_name=main_group_name,
            raw_payload=parsed.raw_payload,
            source_pk=parsed.source_pk,
            product_name=parsed.product_name,
            symbol=parsed.symbol,
            talar=parsed.talar,
            broker=parsed.broker,
        )
