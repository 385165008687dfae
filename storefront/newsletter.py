"""
storefront.newsletter

Append-only subscriber list, deduplicated by (lower-cased) email.
"""

from __future__ import annotations

from typing import Optional

from django.http import HttpRequest

from .documents import NEWSLETTER, DocumentStore
from .errors import InvalidEmail
from .orders import is_valid_email, now_iso
from .tracking import append_event


def subscribe(store: DocumentStore, email: str, request: Optional[HttpRequest] = None) -> bool:
    """Returns True when the address was not subscribed yet."""
    address = (email or "").strip().lower()
    if not is_valid_email(address):
        raise InvalidEmail("Invalid email address.")

    added = {"value": False}

    def _add(document):
        subscribers = document.get("subscribers")
        if not isinstance(subscribers, list):
            subscribers = []
            document["subscribers"] = subscribers
        known = {str(s.get("email", "")).lower() for s in subscribers if isinstance(s, dict)}
        if address not in known:
            subscribers.append({"email": address, "createdAt": now_iso()})
            added["value"] = True

    store.update(NEWSLETTER, {"subscribers": []}, _add)

    append_event(
        store,
        "newsletter_signup",
        {"emailDomain": address.split("@")[1] or "unknown"},
        request=request,
    )
    return added["value"]
