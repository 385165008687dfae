"""
storefront.views.stripe_webhook

Stripe webhook endpoint. Marks orders paid on checkout.session.completed.

LOCKED INTENT
- Signature is verified against the raw body before anything is read from it.
- A failed verification mutates nothing and records no event.
- Replays of an already-paid order are acknowledged with 200 and no side effects.

ENV VARS
- STRIPE_WEBHOOK_SECRET (required): Stripe webhook signing secret (whsec_...)
- STRIPE_SECRET_KEY     (required): webhook is treated as unconfigured without it

========= CHANGE LOG =========
2026-02-12 • ADD: webhook receiver with signature verification.
2026-02-14 • FIX: idempotent "paid" transition (no duplicate email on Stripe retry).
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from ..checkout import handle_webhook_event, verify_webhook
from ..documents import get_store
from ..errors import WebhookNotConfigured, WebhookSignatureError
from .utils import _json_error

log = logging.getLogger("storefront")


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")

    try:
        event = verify_webhook(request.body, signature)
    except WebhookNotConfigured as e:
        log.warning("[webhook] rejected: not configured")
        return _json_error(e.message, e.status_code)
    except WebhookSignatureError as e:
        log.warning("[webhook] rejected: %s", e.message)
        return _json_error(e.message, e.status_code)

    result = handle_webhook_event(get_store(), event)
    log.info("[webhook] handled %s", result)
    return JsonResponse({"received": True})
