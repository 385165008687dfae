"""
storefront.tracking

First-party analytics events stored in ``events.json`` (newest first, capped).
No raw IP or user agent is persisted, only a 16-char sha256 prefix of both.
"""

from __future__ import annotations

import hashlib
import logging
import math
import uuid
from typing import Any, Dict, Optional

from django.http import HttpRequest

from .documents import EVENTS, DocumentStore
from .orders import now_iso, sanitize_text

log = logging.getLogger("storefront")

TRACKABLE_EVENTS = frozenset(
    {
        "page_view",
        "add_to_cart",
        "remove_from_cart",
        "begin_checkout",
        "checkout_error",
        "purchase",
        "newsletter_signup",
    }
)

MAX_EVENTS = 5000
MAX_PROPS = 20


def client_ip(request: HttpRequest) -> str:
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "") or ""


def hash_ip_ua(request: HttpRequest) -> str:
    ua = request.META.get("HTTP_USER_AGENT", "") or ""
    digest = hashlib.sha256(f"{client_ip(request)}::{ua}".encode("utf-8")).hexdigest()
    return digest[:16]


def sanitize_props(raw: Any) -> Dict[str, Any]:
    """Shallow string/number/bool map; everything else is dropped."""
    if not isinstance(raw, dict):
        return {}

    result: Dict[str, Any] = {}
    for key, value in list(raw.items())[:MAX_PROPS]:
        safe_key = sanitize_text(key, 40)
        if not safe_key:
            continue
        if isinstance(value, bool):
            result[safe_key] = value
        elif isinstance(value, (int, float)):
            if math.isfinite(value):
                result[safe_key] = round(value, 4)
        elif isinstance(value, str):
            result[safe_key] = sanitize_text(value, 160)
    return result


def append_event(
    store: DocumentStore,
    event_name: str,
    props: Optional[Dict[str, Any]] = None,
    request: Optional[HttpRequest] = None,
) -> Dict[str, Any]:
    event = {
        "id": str(uuid.uuid4()),
        "eventName": sanitize_text(event_name, 40),
        "props": props or {},
        "path": sanitize_text(request.path, 160) if request is not None else "",
        "referrer": sanitize_text(request.META.get("HTTP_REFERER"), 200) if request is not None else "",
        "userAgentHash": hash_ip_ua(request) if request is not None else "system",
        "createdAt": now_iso(),
    }

    def _prepend(document):
        events = document.get("events")
        if not isinstance(events, list):
            events = []
        events.insert(0, event)
        document["events"] = events[:MAX_EVENTS]

    store.update(EVENTS, {"events": []}, _prepend)
    log.info("[track] event=%s", event["eventName"])
    return event
