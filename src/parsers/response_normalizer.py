# src/parsers/response_normalizer.py

"""Classify and decode upstream auction payloads into ParsedOffer rows.

The auction handler has been observed to answer with several shapes:

1. a JSON array of objects;
2. a JSON object wrapping that array under a container key;
3. a single JSON object;
4. an HTML fragment containing a table;
5. anything else (malformed JSON, scalars, unknown layouts).

Normalization never fails.  Shapes that cannot be field-mapped collapse
to a single raw-only row so the payload is kept for later reprocessing.
"""

import json
import logging
from enum import Enum
from typing import Any

from bs4 import BeautifulSoup

from src.models.offer import ParsedOffer

logger = logging.getLogger("ime_crawler.normalizer")

# Field names used by the IME site's own JS
KEY_SOURCE_PK = "bArzehRadifPK"
KEY_PRODUCT = "xKalaNamadKala"
KEY_SYMBOL = "bArzehRadifNamadKala"
KEY_TALAR = "Talar"
KEY_BROKER = "cBrokerSpcName"

# Container keys, tried in order; first one holding a list wins
WRAPPER_KEYS: tuple[str, ...] = ("rows", "data", "items", "result", "d")

_HTML_TABLE_MARKER = "<table"


class PayloadShape(Enum):
    """Closed set of upstream payload shapes."""

    EMPTY = "empty"
    ARRAY_OF_OBJECTS = "array_of_objects"
    WRAPPED_ARRAY = "wrapped_array"
    SINGLE_OBJECT = "single_object"
    HTML_FRAGMENT = "html_fragment"
    UNRECOGNIZED = "unrecognized"


def _is_object_array(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(v, dict) for v in value)
    )


def _find_wrapped(obj: dict[str, Any]) -> list[Any] | None:
    """Return the first list found under a known wrapper key."""
    for key in WRAPPER_KEYS:
        value = obj.get(key)
        if isinstance(value, list):
            return value
    return None


def _looks_like_html_table(text: str) -> bool:
    if _HTML_TABLE_MARKER not in text.lower():
        return False
    soup = BeautifulSoup(text, "lxml")
    return soup.find("table") is not None


def _decode(text: str) -> tuple[PayloadShape, Any]:
    """Classify *text* (already stripped), returning the decoded JSON too."""
    if not text:
        return PayloadShape.EMPTY, None

    try:
        value = json.loads(text)
    except ValueError:
        if _looks_like_html_table(text):
            return PayloadShape.HTML_FRAGMENT, None
        return PayloadShape.UNRECOGNIZED, None

    if isinstance(value, list):
        if _is_object_array(value):
            return PayloadShape.ARRAY_OF_OBJECTS, value
        return PayloadShape.UNRECOGNIZED, value

    if isinstance(value, dict):
        wrapped = _find_wrapped(value)
        if wrapped is None:
            return PayloadShape.SINGLE_OBJECT, value
        if _is_object_array(wrapped):
            return PayloadShape.WRAPPED_ARRAY, wrapped
        return PayloadShape.UNRECOGNIZED, value

    return PayloadShape.UNRECOGNIZED, value


def classify(raw: str | None) -> PayloadShape:
    """Return the :class:`PayloadShape` of an upstream payload string."""
    shape, _ = _decode((raw or "").strip())
    return shape


# ── Field extraction ─────────────────────────────────────


def get_text(obj: dict[str, Any], key: str) -> str | None:
    """Read a string field; non-string values become compact JSON text."""
    value = obj.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def get_int(obj: dict[str, Any], key: str) -> int | None:
    """Read an integer field given as a JSON number or a decimal string.

    Strings allow an optional leading ``-`` only; ``+5`` and ``1_000``
    are rejected.
    """
    value = obj.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text.startswith("-") else text
        if not digits.isdigit():
            return None
        try:
            return int(text)
        except ValueError:
            return None
    return None


def _offer_from_object(obj: dict[str, Any], raw: str) -> ParsedOffer:
    return ParsedOffer(
        raw_payload=raw,
        source_pk=get_int(obj, KEY_SOURCE_PK),
        product_name=get_text(obj, KEY_PRODUCT),
        symbol=get_text(obj, KEY_SYMBOL),
        talar=get_text(obj, KEY_TALAR),
        broker=get_text(obj, KEY_BROKER),
    )


def normalize(raw: str | None) -> list[ParsedOffer]:
    """Turn an upstream payload into an ordered list of ParsedOffer rows.

    An empty or whitespace-only payload yields ``[]``.  Every other input
    yields at least one row.
    """
    text = (raw or "").strip()
    shape, value = _decode(text)

    if shape is PayloadShape.EMPTY:
        return []

    if shape in (
        PayloadShape.ARRAY_OF_OBJECTS,
        PayloadShape.WRAPPED_ARRAY,
    ):
        offers = [_offer_from_object(obj, text) for obj in value]
    elif shape is PayloadShape.SINGLE_OBJECT:
        offers = [_offer_from_object(value, text)]
    else:
        offers = [ParsedOffer(raw_payload=text)]

    logger.debug(
        "Normalized payload (%d chars) as %s: %d offer(s)",
        len(text),
        shape.value,
        len(offers),
    )
    if shape in (PayloadShape.HTML_FRAGMENT, PayloadShape.UNRECOGNIZED):
        logger.warning(
            "Payload shape %s kept as a single raw-only row",
            shape.value,
        )
    return offers
