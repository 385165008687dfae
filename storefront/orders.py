"""
storefront.orders

Order ledger persisted in ``orders.json`` as ``{"orders": [...]}``, newest first.

Order record (camelCase keys are the on-disk format shared with the browser
and admin panel scripts):

    id, status, currency, subtotal, items[{id,title,quantity,unitPrice,image}],
    customerEmail, stripeSessionId, stripePaymentIntentId, note,
    createdAt, updatedAt, paidAt

Status is a closed set; any status may replace any other (admin override).
Orders are never deleted.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .documents import ORDERS, DocumentStore
from .errors import InvalidStatus, OrderNotFound

CHECKOUT_PENDING = "checkout_pending"
PAID = "paid"
PROCESSING = "processing"
SHIPPED = "shipped"
DELIVERED = "delivered"
CANCELLED = "cancelled"

ORDER_STATUSES = (CHECKOUT_PENDING, PAID, PROCESSING, SHIPPED, DELIVERED, CANCELLED)

# Statuses that send the customer an email when an order moves into them.
NOTIFIABLE_STATUSES = frozenset({PAID, PROCESSING, SHIPPED, DELIVERED, CANCELLED})

STATUS_LABELS = {
    CHECKOUT_PENDING: "Awaiting payment",
    PAID: "Paid",
    PROCESSING: "Processing",
    SHIPPED: "Shipped",
    DELIVERED: "Delivered",
    CANCELLED: "Cancelled",
}

DEFAULT_CURRENCY = "EUR"
NOTE_MAX_LEN = 280

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

_EMPTY = {"orders": []}


def now_iso() -> str:
    """UTC timestamp in the ``2026-02-11T09:30:00.123Z`` shape the front-end expects."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_order_id() -> str:
    return str(uuid.uuid4())


def sanitize_text(value: Any, max_len: int = 120) -> str:
    text = "" if value is None else str(value)
    return _CONTROL_CHARS.sub("", text).strip()[:max_len]


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.match(value))


def validate_status(status: str) -> str:
    if status not in ORDER_STATUSES:
        raise InvalidStatus("Invalid order status.")
    return status


def normalize_order(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Fill optional keys older records may be missing."""
    order = dict(raw)
    order.setdefault("currency", DEFAULT_CURRENCY)
    order.setdefault("subtotal", 0)
    order.setdefault("customerEmail", None)
    order.setdefault("stripeSessionId", None)
    order.setdefault("stripePaymentIntentId", None)
    order.setdefault("note", "")
    order.setdefault("paidAt", None)
    order.setdefault("createdAt", None)
    order.setdefault("updatedAt", order.get("createdAt"))
    if not isinstance(order.get("items"), list):
        order["items"] = []
    return order


def _orders_of(document: Dict[str, Any]) -> List[Dict[str, Any]]:
    orders = document.get("orders")
    if not isinstance(orders, list):
        orders = []
        document["orders"] = orders
    return orders


def list_orders(store: DocumentStore) -> List[Dict[str, Any]]:
    document = store.read(ORDERS, _EMPTY)
    return [normalize_order(o) for o in _orders_of(document) if isinstance(o, dict)]


def get_order(store: DocumentStore, order_id: str) -> Optional[Dict[str, Any]]:
    for order in list_orders(store):
        if order.get("id") == order_id:
            return order
    return None


def insert_order(store: DocumentStore, order: Dict[str, Any]) -> Dict[str, Any]:
    def _prepend(document):
        _orders_of(document).insert(0, order)

    store.update(ORDERS, _EMPTY, _prepend)
    return order


def patch_order(
    store: DocumentStore,
    order_id: str,
    changes: Dict[str, Any] | Callable[[Dict[str, Any]], Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Merge ``changes`` into the order and bump ``updatedAt``.

    ``changes`` may be a callable receiving the current (normalized) order and
    returning the dict to merge; it runs inside the store's update lock, so
    decisions based on the previous status are not raced by this process.
    Returns ``{"previous": <order before>, "order": <order after>}``.
    """
    outcome: Dict[str, Any] = {}

    def _apply(document):
        orders = _orders_of(document)
        for index, order in enumerate(orders):
            if not isinstance(order, dict) or order.get("id") != order_id:
                continue
            previous = normalize_order(order)
            delta = changes(previous) if callable(changes) else changes
            if not delta:
                outcome["previous"] = previous
                outcome["order"] = previous
                return None
            updated = {**order, **delta, "updatedAt": now_iso()}
            orders[index] = updated
            outcome["previous"] = previous
            outcome["order"] = normalize_order(updated)
            return None
        raise OrderNotFound("Order not found.")

    store.update(ORDERS, _EMPTY, _apply)
    return outcome


def order_summary(order: Dict[str, Any]) -> Dict[str, Any]:
    items = order.get("items") or []
    item_count = 0
    for item in items:
        try:
            item_count += int(item.get("quantity") or 0)
        except (TypeError, ValueError, AttributeError):
            continue
    return {
        "id": order.get("id"),
        "status": order.get("status"),
        "subtotal": order.get("subtotal"),
        "currency": order.get("currency") or DEFAULT_CURRENCY,
        "createdAt": order.get("createdAt"),
        "paidAt": order.get("paidAt"),
        "itemCount": item_count,
    }
