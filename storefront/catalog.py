"""
storefront.catalog

Product catalog normalization.

Raw product records come from the admin bulk editor (or a hand-edited
``collections.json``) and can be sloppy: missing ids, prices typed as
``"49,90 €"``, ``active`` absent. Everything that leaves this module has gone
through ``normalize_product`` so the rest of the app can trust the shape.
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any, Dict, Iterable, List

from .documents import COLLECTIONS, DocumentStore

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
_PRICE_JUNK = re.compile(r"[^0-9,.\-]")
_LEADING_FLOAT = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")

SORT_OPTIONS = ("featured", "price-asc", "price-desc", "name-asc")


def _strip_accents(value: str) -> str:
    return _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", value))


def slugify(value: Any) -> str:
    """``"Déjà Vu!!"`` -> ``"deja-vu"``."""
    text = _strip_accents(("" if value is None else str(value)).lower())
    return _NON_ALNUM_RUN.sub("-", text).strip("-")


def parse_price(value: Any) -> float:
    """
    Accepts numbers or locale-formatted strings (``"49,90 €"``).
    Negative, empty or unparsable input is clamped to 0; result has 2 decimals.
    """
    if isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return 0.0
        return max(0.0, round(float(value), 2))

    if not isinstance(value, str):
        return 0.0

    cleaned = _PRICE_JUNK.sub("", value).replace(",", ".", 1).strip()
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0.0
    parsed = float(match.group(0))
    if not math.isfinite(parsed) or parsed < 0:
        return 0.0
    return round(parsed, 2)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_product(raw: Any, index: int) -> Dict[str, Any]:
    item = raw if isinstance(raw, dict) else {}

    title = _text(item.get("title")) or f"Product {index + 1}"
    source_id = _text(item.get("id")) or _text(item.get("slug")) or title
    product_id = slugify(source_id) or f"product-{index + 1}"

    return {
        "id": product_id,
        "title": title,
        "description": _text(item.get("description")),
        "image": _text(item.get("image")),
        "price": parse_price(item.get("price")),
        "tag": _text(item.get("tag")),
        "link": f"product.html?id={product_id}",
        "active": item.get("active") is not False,
    }


def normalize_products(raw_items: Iterable[Any]) -> List[Dict[str, Any]]:
    return [normalize_product(item, index) for index, item in enumerate(raw_items)]


def read_products(store: DocumentStore) -> List[Dict[str, Any]]:
    doc = store.read(COLLECTIONS, {"items": []})
    items = doc.get("items")
    if not isinstance(items, list):
        return []
    return normalize_products(items)


def replace_products(store: DocumentStore, raw_items: List[Any]) -> List[Dict[str, Any]]:
    """Admin bulk replace: the payload becomes the whole catalog."""
    normalized = normalize_products(raw_items)
    store.write(COLLECTIONS, {"items": normalized})
    return normalized


def normalize_search_text(value: Any) -> str:
    text = _strip_accents(str(value or "").lower())
    text = re.sub(r"[^a-z0-9\s-]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def search_products(products: List[Dict[str, Any]], query: str = "", sort: str = "featured") -> List[Dict[str, Any]]:
    needle = normalize_search_text(query)
    result = []
    for product in products:
        if not product.get("active"):
            continue
        if needle:
            haystack = normalize_search_text(
                " ".join([product["title"], product["description"], product["tag"], product["id"]])
            )
            if needle not in haystack:
                continue
        result.append(product)

    if sort == "price-asc":
        result.sort(key=lambda p: p["price"])
    elif sort == "price-desc":
        result.sort(key=lambda p: p["price"], reverse=True)
    elif sort == "name-asc":
        result.sort(key=lambda p: normalize_search_text(p["title"]))
    return result
