"""
storefront.views.checkout_session

POST /api/create-checkout-session
Validates the cart, records a pending order, and returns the Stripe Checkout URL.

LOCKED INTENT
- Prices always come from the catalog, never from the client.
- Stripe secret never leaves the server; only the hosted session URL is returned.

========= CHANGE LOG =========
2026-02-12 • ADD: checkout session endpoint backed by storefront.checkout.create_checkout().
2026-02-13 • ADD: per-IP checkout rate limit on top of the general API limit.
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from ..checkout import base_url_for, create_checkout
from ..documents import get_store
from ..errors import CartError
from ..serializers import CheckoutRequestSerializer, validate_payload
from .utils import _parse_json_body, rate_limited, storefront_errors

log = logging.getLogger("storefront")


@csrf_exempt
@require_POST
@rate_limited("api")
@rate_limited("checkout")
@storefront_errors
def create_checkout_session(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err

    payload = validate_payload(CheckoutRequestSerializer, data, CartError, "Invalid product or quantity.")
    result = create_checkout(
        get_store(),
        [dict(item) for item in payload["items"]],
        payload.get("customerEmail") or "",
        base_url=base_url_for(request),
        request=request,
    )
    log.info("[checkout] session ready order=%s", result["orderId"])
    return JsonResponse(result)
