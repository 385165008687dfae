"""
storefront.site_content

Editable storefront copy (hero, section titles, contact info, socials).

The admin panel saves the whole document at once. Each known field is
sanitized and length-capped on its own; a field that is missing from the
payload (or has the wrong type) keeps its previously stored value, and keys we
do not know about are carried over untouched.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .documents import SITE, DocumentStore
from .orders import sanitize_text

TITLE_MAX = 160
TEXT_MAX = 2000
URL_MAX = 300

TEXT_FIELDS: Dict[str, int] = {
    "hero_title": TITLE_MAX,
    "hero_subtitle": TEXT_MAX,
    "hero_cta_text": 60,
    "collections_title": TITLE_MAX,
    "collections_subtitle": TEXT_MAX,
    "vision_title": TITLE_MAX,
    "about_text": TEXT_MAX,
    "contact_title": TITLE_MAX,
    "contact_subtitle": TEXT_MAX,
    "newsletter_title": TITLE_MAX,
    "newsletter_subtitle": TEXT_MAX,
    "socials_title": TITLE_MAX,
    "dassi_title": TITLE_MAX,
    "contact_email": 254,
    "contact_button_text": 60,
    "trust_payment_title": TITLE_MAX,
    "trust_payment_text": TEXT_MAX,
    "trust_shipping_title": TITLE_MAX,
    "trust_shipping_text": TEXT_MAX,
    "trust_support_title": TITLE_MAX,
    "trust_support_text": TEXT_MAX,
    "site_url": URL_MAX,
    "ga_measurement_id": 40,
}

HERO_META_MAX_LINES = 6
SOCIALS_MAX = 12


def _sanitize_lines(value: List[Any]) -> List[str]:
    lines = [sanitize_text(v, TITLE_MAX) for v in value if isinstance(v, (str, int, float))]
    return [line for line in lines if line][:HERO_META_MAX_LINES]


def _sanitize_socials(value: List[Any]) -> List[Dict[str, str]]:
    socials = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        name = sanitize_text(entry.get("name"), 60)
        if not name:
            continue
        socials.append(
            {
                "name": name,
                "handle": sanitize_text(entry.get("handle"), 80),
                "url": sanitize_text(entry.get("url"), URL_MAX),
            }
        )
        if len(socials) >= SOCIALS_MAX:
            break
    return socials


def merge_site_content(previous: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(previous or {})

    for field, max_len in TEXT_FIELDS.items():
        value = incoming.get(field)
        if isinstance(value, str):
            merged[field] = sanitize_text(value, max_len)

    if isinstance(incoming.get("hero_meta"), list):
        merged["hero_meta"] = _sanitize_lines(incoming["hero_meta"])

    if isinstance(incoming.get("socials"), list):
        merged["socials"] = _sanitize_socials(incoming["socials"])

    return merged


def read_site(store: DocumentStore) -> Dict[str, Any]:
    return store.read(SITE, {})


def save_site(store: DocumentStore, incoming: Dict[str, Any]) -> Dict[str, Any]:
    return store.update(SITE, {}, lambda previous: merge_site_content(previous, incoming))
