"""
storefront.checkout

Checkout orchestration: cart → pending order → Stripe Checkout Session, plus the
two ways an order changes status afterwards (Stripe webhook, admin PATCH).

Order lifecycle
    checkout_pending -> paid -> processing -> shipped -> delivered
    cancelled is reachable from anywhere (admin, or session creation failure).
Admin updates may set any status over any other; only the webhook path guards
against replays (an order already paid, or moved past paid, is left alone).

LOCKED RULES
- The pending order is written BEFORE Stripe is called, so a crash mid-request
  still leaves an auditable record.
- A Stripe failure cancels that order with a short note; the record is kept.
- No automatic retries anywhere; Stripe retries its own webhook deliveries.

ENV/SETTINGS
- STRIPE_SECRET_KEY       (checkout session creation; 503 when missing)
- STRIPE_WEBHOOK_SECRET   (webhook signature verification)
- STOREFRONT_BASE_URL     (redirect base; falls back to the request host)

========= CHANGE LOG =========
2026-02-12 • ADD: create_checkout(), webhook reconciliation, admin status update.
2026-02-14 • FIX: webhook replay no longer re-sends the "paid" email.
2026-02-16 • CHANGE: subtotal summed with Decimal over 2-decimal unit prices.
2026-02-18 • FIX: replay after processing/shipped/delivered no longer resets the order to paid.
"""

from __future__ import annotations

import json
import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

import stripe
from django.conf import settings
from django.http import HttpRequest

from . import orders as ledger
from .catalog import read_products
from .documents import DocumentStore
from .emailing import notify_order_status
from .errors import (
    CartError,
    InvalidEmail,
    OrderNotFound,
    PaymentNotConfigured,
    PaymentProviderError,
    ProductNotFound,
    WebhookNotConfigured,
    WebhookSignatureError,
)
from .tracking import append_event

log = logging.getLogger("storefront")

MIN_QUANTITY = 1
MAX_QUANTITY = 20
ERROR_NOTE_MAX_LEN = 180

CHECKOUT_CURRENCY = "eur"
SHIPPING_COUNTRIES = ["FR", "US", "CA", "GB", "DE", "BE", "IT", "ES", "PT", "NL"]

CHECKOUT_COMPLETED = "checkout.session.completed"
# A completed session for an order in one of these is a replay.
PAID_OR_LATER = frozenset({ledger.PAID, ledger.PROCESSING, ledger.SHIPPED, ledger.DELIVERED})

_ABSOLUTE_HTTP = re.compile(r"^https?://", re.IGNORECASE)


def _mask(value: str) -> str:
    value = (value or "").strip()
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}…{value[-4:]}"


def base_url_for(request: HttpRequest) -> str:
    configured = (getattr(settings, "STOREFRONT_BASE_URL", "") or "").strip()
    if configured:
        return configured.rstrip("/")
    proto = request.META.get("HTTP_X_FORWARDED_PROTO") or request.scheme
    host = request.META.get("HTTP_X_FORWARDED_HOST") or request.get_host()
    return f"{proto}://{host}"


def _stripe_error_message(exc: Exception) -> str:
    message = getattr(exc, "user_message", None) or str(exc) or exc.__class__.__name__
    return str(message)


def _parse_quantity(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and re.fullmatch(r"\s*\d+\s*", raw):
        return int(raw)
    return None


def build_order_lines(cart_items: List[Dict[str, Any]], products: List[Dict[str, Any]]):
    """
    Validate every cart line against the catalog.

    Returns ``(order_items, stripe_line_items)``; raises on the first bad line
    so no order is ever created from a partially valid cart.
    """
    if not cart_items:
        raise CartError("Cart is empty.")

    by_id = {p["id"]: p for p in products}
    order_items: List[Dict[str, Any]] = []
    line_items: List[Dict[str, Any]] = []

    for cart_item in cart_items:
        cart_item = cart_item if isinstance(cart_item, dict) else {}
        product_id = str(cart_item.get("id") or "").strip()
        quantity = _parse_quantity(cart_item.get("quantity"))

        if not product_id or quantity is None or not (MIN_QUANTITY <= quantity <= MAX_QUANTITY):
            raise CartError("Invalid product or quantity.")

        product = by_id.get(product_id)
        if product is None or not product.get("active"):
            raise ProductNotFound(f"Product not found: {product_id}")

        if not product.get("price") or product["price"] <= 0:
            raise CartError(f'Product "{product["title"]}" has no valid price.')

        order_items.append(
            {
                "id": product["id"],
                "title": product["title"],
                "quantity": quantity,
                "unitPrice": product["price"],
                "image": product["image"],
            }
        )

        product_data: Dict[str, Any] = {"name": product["title"]}
        if product.get("description"):
            product_data["description"] = product["description"]
        if _ABSOLUTE_HTTP.match(product.get("image") or ""):
            product_data["images"] = [product["image"]]

        line_items.append(
            {
                "quantity": quantity,
                "price_data": {
                    "currency": CHECKOUT_CURRENCY,
                    "product_data": product_data,
                    "unit_amount": int((Decimal(str(product["price"])) * 100).to_integral_value()),
                },
            }
        )

    return order_items, line_items


def compute_subtotal(order_items: List[Dict[str, Any]]) -> float:
    total = sum(
        (Decimal(str(item["unitPrice"])) * item["quantity"] for item in order_items),
        Decimal("0"),
    )
    return float(total)


def create_checkout(
    store: DocumentStore,
    cart_items: List[Dict[str, Any]],
    customer_email: str = "",
    *,
    base_url: str,
    request: Optional[HttpRequest] = None,
) -> Dict[str, Any]:
    """Returns ``{"url": <stripe checkout url>, "orderId": <id>}``."""
    secret_key = (getattr(settings, "STRIPE_SECRET_KEY", "") or "").strip()
    if not secret_key:
        raise PaymentNotConfigured("Payments unavailable: STRIPE_SECRET_KEY is not configured.")

    if not cart_items:
        raise CartError("Cart is empty.")

    email = (customer_email or "").strip().lower()
    if email and not ledger.is_valid_email(email):
        raise InvalidEmail("Invalid customer email.")

    order_items, line_items = build_order_lines(cart_items, read_products(store))
    subtotal = compute_subtotal(order_items)
    order_id = ledger.new_order_id()
    created_at = ledger.now_iso()

    ledger.insert_order(
        store,
        {
            "id": order_id,
            "status": ledger.CHECKOUT_PENDING,
            "currency": ledger.DEFAULT_CURRENCY,
            "subtotal": subtotal,
            "items": order_items,
            "customerEmail": email or None,
            "stripeSessionId": None,
            "stripePaymentIntentId": None,
            "note": "",
            "createdAt": created_at,
            "updatedAt": created_at,
            "paidAt": None,
        },
    )
    log.info("[checkout] pending order=%s lines=%s subtotal=%s", order_id, len(order_items), subtotal)

    stripe.api_key = secret_key
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": line_items,
        "success_url": f"{base_url}/checkout-success.html?order_id={order_id}&session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base_url}/checkout-cancel.html?order_id={order_id}",
        "billing_address_collection": "required",
        "shipping_address_collection": {"allowed_countries": SHIPPING_COUNTRIES},
        "phone_number_collection": {"enabled": True},
        "metadata": {"orderId": order_id},
        "allow_promotion_codes": True,
    }
    if email:
        params["customer_email"] = email

    try:
        session = stripe.checkout.Session.create(**params)
        session_id = getattr(session, "id", None)
        session_url = getattr(session, "url", None)
        if not session_id or not session_url:
            raise RuntimeError("Stripe did not return a session URL.")
    except Exception as e:
        message = _stripe_error_message(e)
        log.exception("[checkout] stripe session create failed order=%s", order_id)
        ledger.patch_order(
            store,
            order_id,
            {
                "status": ledger.CANCELLED,
                "note": ledger.sanitize_text(f"Stripe error: {message}", ERROR_NOTE_MAX_LEN),
            },
        )
        append_event(
            store,
            "checkout_error",
            {"orderId": order_id, "message": ledger.sanitize_text(message, ERROR_NOTE_MAX_LEN)},
            request=request,
        )
        raise PaymentProviderError(f"Stripe checkout error: {message}") from e

    ledger.patch_order(store, order_id, {"stripeSessionId": session_id})
    append_event(
        store,
        "begin_checkout",
        {
            "orderId": order_id,
            "value": subtotal,
            "currency": ledger.DEFAULT_CURRENCY,
            "itemCount": sum(item["quantity"] for item in order_items),
        },
        request=request,
    )
    log.info("[checkout] session created order=%s session=%s", order_id, _mask(session_id))
    return {"url": session_url, "orderId": order_id}


# ---------------------------------------------------------------- webhook --


def verify_webhook(payload: bytes, signature: str) -> Dict[str, Any]:
    """Verify the Stripe-Signature header and return the event as a plain dict."""
    secret = (getattr(settings, "STRIPE_WEBHOOK_SECRET", "") or "").strip()
    if not secret or not (getattr(settings, "STRIPE_SECRET_KEY", "") or "").strip():
        raise WebhookNotConfigured("Stripe webhook is not configured.")

    if not signature:
        raise WebhookSignatureError("Webhook signature error: missing Stripe-Signature header.")

    try:
        text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else str(payload)
        stripe.WebhookSignature.verify_header(text, signature, secret, stripe.Webhook.DEFAULT_TOLERANCE)
        event = json.loads(text)
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(f"Webhook signature error: {e}") from e
    except ValueError as e:
        raise WebhookSignatureError("Webhook signature error: invalid payload.") from e

    if not isinstance(event, dict):
        raise WebhookSignatureError("Webhook signature error: invalid payload.")
    return event


def _already_paid(order: Dict[str, Any]) -> bool:
    return bool(order.get("paidAt")) or order.get("status") in PAID_OR_LATER


def handle_webhook_event(store: DocumentStore, event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply a verified Stripe event. Unknown types and unknown orders are
    acknowledged without changes.
    """
    event_type = str(event.get("type") or "")
    if event_type != CHECKOUT_COMPLETED:
        log.info("[webhook] ignored type=%s", event_type)
        return {"event": event_type, "ignored": True}

    data = event.get("data")
    session = data.get("object") if isinstance(data, dict) else None
    if not isinstance(session, dict):
        session = {}
    metadata = session.get("metadata")
    order_id = str((metadata.get("orderId") if isinstance(metadata, dict) else "") or "")
    if not order_id:
        log.warning("[webhook] %s without orderId metadata", CHECKOUT_COMPLETED)
        return {"event": event_type, "orderId": None, "transitioned": False}

    paid_at = ledger.now_iso()

    def _mark_paid(previous: Dict[str, Any]) -> Dict[str, Any]:
        if _already_paid(previous):
            return {}
        return {
            "status": ledger.PAID,
            "stripePaymentIntentId": session.get("payment_intent") or "",
            "stripeSessionId": session.get("id") or previous.get("stripeSessionId"),
            "paidAt": paid_at,
        }

    try:
        outcome = ledger.patch_order(store, order_id, _mark_paid)
    except OrderNotFound:
        log.warning("[webhook] order not found order=%s", order_id)
        return {"event": event_type, "orderId": order_id, "transitioned": False}

    if _already_paid(outcome["previous"]):
        log.info(
            "[webhook] replay ignored order=%s status=%s", order_id, outcome["previous"].get("status")
        )
        return {"event": event_type, "orderId": order_id, "transitioned": False}

    amount_total = session.get("amount_total")
    append_event(
        store,
        "purchase",
        {
            "orderId": order_id,
            "value": (amount_total / 100) if isinstance(amount_total, (int, float)) else 0,
            "currency": session.get("currency") or "eur",
            "source": "stripe_webhook",
        },
    )
    log.info("[webhook] order=%s marked paid", order_id)
    notify_order_status(outcome["order"], ledger.PAID)
    return {"event": event_type, "orderId": order_id, "transitioned": True}


# ------------------------------------------------------------------ admin --


def update_order_status(
    store: DocumentStore,
    order_id: str,
    status: Optional[str] = None,
    note: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Admin PATCH. Any enum value may replace any other. Emails the customer when
    the status actually changes into a notifiable status.
    """
    if status:
        ledger.validate_status(status)

    changes: Dict[str, Any] = {}
    if status:
        changes["status"] = status
    if note is not None:
        changes["note"] = ledger.sanitize_text(note, ledger.NOTE_MAX_LEN)

    outcome = ledger.patch_order(store, order_id, changes)
    previous_status = outcome["previous"].get("status")
    order = outcome["order"]

    notified = False
    if status and status != previous_status and status in ledger.NOTIFIABLE_STATUSES:
        notified = notify_order_status(order, status)

    log.info(
        "[admin] order=%s status=%s->%s notified=%s",
        order_id,
        previous_status,
        order.get("status"),
        notified,
    )
    return order
