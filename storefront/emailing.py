"""
storefront.emailing

Transactional order emails (status notifications).

Purpose
- Tell the customer when their order moves to paid / processing / shipped /
  delivered / cancelled.

LOCKED INTENT
- Sending goes through Django's email API; the backend (Anymail → Mailgun,
  Postmark, SendGrid, or SMTP) is chosen in settings via email_config.
- A failed send is logged and dropped. It never blocks or rolls back the
  status change that triggered it, and it is never retried.

ENV/SETTINGS
- ORDER_EMAIL_ENABLED   (derived from provider credentials in email_config)
- DEFAULT_FROM_EMAIL
- SHOP_NAME             (subject/body branding)
- ORDER_NOTIFY_BCC      (optional shop copy)

========= CHANGE LOG =========
2026-02-12 • ADD: notify_order_status() with text + HTML bodies.
2026-02-15 • CHANGE: cap listed lines at 6 and add "+N more" footer.
2026-02-18 • CHANGE: plain ASCII subject separator and sign-off.
"""

from __future__ import annotations

import html
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives

from .orders import STATUS_LABELS, is_valid_email

log = logging.getLogger("storefront")

MAX_LISTED_ITEMS = 6

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£", "CAD": "$ CA", "CHF": "CHF"}

STATUS_MESSAGES = {
    "paid": "We have received your payment. Thank you for your order!",
    "processing": "Your order is being prepared.",
    "shipped": "Your order is on its way.",
    "delivered": "Your order has been delivered. We hope you love it.",
    "cancelled": "Your order has been cancelled. Reply to this email if this is unexpected.",
}


def _from_email() -> str:
    return (
        getattr(settings, "DEFAULT_FROM_EMAIL", "")
        or getattr(settings, "SERVER_EMAIL", "")
        or "no-reply@localhost"
    )


def _shop_name() -> str:
    return getattr(settings, "SHOP_NAME", "") or "Boutique"


def format_money(amount: Any, currency: str = "EUR") -> str:
    """fr-FR style: ``format_money(1234.5)`` -> ``"1 234,50 €"``."""
    try:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        value = Decimal("0.00")

    sign = "-" if value < 0 else ""
    whole, cents = f"{abs(value):.2f}".split(".")
    groups = []
    while len(whole) > 3:
        groups.insert(0, whole[-3:])
        whole = whole[:-3]
    groups.insert(0, whole)

    code = (currency or "EUR").upper()
    symbol = CURRENCY_SYMBOLS.get(code, code)
    return f"{sign}{' '.join(groups)},{cents} {symbol}"


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def _item_lines(order: Dict[str, Any]) -> List[str]:
    items = [i for i in (order.get("items") or []) if isinstance(i, dict)]
    lines = [f"{i.get('quantity', 1)} × {i.get('title', 'Item')}" for i in items[:MAX_LISTED_ITEMS]]
    hidden = len(items) - MAX_LISTED_ITEMS
    if hidden > 0:
        lines.append(f"+{hidden} more")
    return lines


def build_status_email(order: Dict[str, Any], status: str) -> Dict[str, str]:
    shop = _shop_name()
    label = status_label(status)
    order_id = str(order.get("id", ""))
    total = format_money(order.get("subtotal", 0), order.get("currency") or "EUR")
    message = STATUS_MESSAGES.get(status, f"Your order status is now: {label}.")
    lines = _item_lines(order)

    subject = f"{shop} - Order {order_id}: {label}"

    text_lines = [
        "Hello,",
        "",
        message,
        "",
        f"Order: {order_id}",
        f"Status: {label}",
        f"Total: {total}",
    ]
    if lines:
        text_lines += ["", "Items:"] + [f"- {line}" for line in lines]
    text_lines += ["", shop]
    text_body = "\n".join(text_lines)

    items_html = "".join(f"<li>{html.escape(line)}</li>" for line in lines)
    html_body = f"""
<!doctype html>
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.5;">
    <p>Hello,</p>
    <p>{html.escape(message)}</p>
    <p>
      <strong>Order:</strong> {html.escape(order_id)}<br>
      <strong>Status:</strong> {html.escape(label)}<br>
      <strong>Total:</strong> {html.escape(total)}
    </p>
    {"<ul>" + items_html + "</ul>" if items_html else ""}
    <p>{html.escape(shop)}</p>
  </body>
</html>
""".strip()

    return {"subject": subject, "text": text_body, "html": html_body}


def notify_order_status(order: Dict[str, Any], status: str) -> bool:
    """
    Send the status email for ``order``. Returns True when the backend accepted it.

    No-op (False) when email is not configured or the order has no valid email.
    """
    if not getattr(settings, "ORDER_EMAIL_ENABLED", False):
        log.info("[notify] skipped order=%s status=%s reason=email-disabled", order.get("id"), status)
        return False

    to_email: Optional[str] = order.get("customerEmail")
    if not is_valid_email(to_email):
        log.info("[notify] skipped order=%s status=%s reason=no-valid-email", order.get("id"), status)
        return False

    content = build_status_email(order, status)
    bcc = [a for a in (getattr(settings, "ORDER_NOTIFY_BCC", "") or "").split(",") if a.strip()]

    try:
        msg = EmailMultiAlternatives(
            subject=content["subject"],
            body=content["text"],
            from_email=_from_email(),
            to=[to_email.strip()],
            bcc=[a.strip() for a in bcc],
        )
        msg.attach_alternative(content["html"], "text/html")
        msg.send(fail_silently=False)
    except Exception:
        log.exception("[notify] send failed order=%s status=%s", order.get("id"), status)
        return False

    log.info("[notify] sent order=%s status=%s", order.get("id"), status)
    return True
