"""
Admin API: order list and status updates, catalog and site-content replacement.
Every endpoint requires the X-Admin-Token header.
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from ..catalog import read_products, replace_products
from ..checkout import update_order_status
from ..documents import get_store
from ..errors import ValidationFailed
from ..orders import list_orders
from ..serializers import ProductsReplaceSerializer, validate_order_update, validate_payload
from ..site_content import read_site, save_site
from .utils import _parse_json_body, rate_limited, require_admin, storefront_errors

log = logging.getLogger("storefront")


@require_GET
@rate_limited("api")
@rate_limited("admin")
@require_admin
def overview(request: HttpRequest) -> JsonResponse:
    store = get_store()
    return JsonResponse(
        {
            "products": read_products(store),
            "orders": list_orders(store),
            "site": read_site(store),
        }
    )


@require_GET
@rate_limited("api")
@rate_limited("admin")
@require_admin
def orders(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"orders": list_orders(get_store())})


@csrf_exempt
@require_http_methods(["PATCH"])
@rate_limited("api")
@rate_limited("admin")
@require_admin
@storefront_errors
def order_detail(request: HttpRequest, order_id: str) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err
    payload = validate_order_update(data)
    order = update_order_status(
        get_store(),
        order_id,
        status=payload.get("status") or None,
        note=payload.get("note"),
    )
    return JsonResponse({"ok": True, "order": order})


@csrf_exempt
@require_http_methods(["PUT"])
@rate_limited("api")
@rate_limited("admin")
@require_admin
@storefront_errors
def products(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err
    payload = validate_payload(ProductsReplaceSerializer, data, ValidationFailed, "items must be an array.")
    items = replace_products(get_store(), payload["items"])
    log.info("[admin] catalog replaced count=%s", len(items))
    return JsonResponse({"ok": True, "items": items})


@csrf_exempt
@require_http_methods(["PUT"])
@rate_limited("api")
@rate_limited("admin")
@require_admin
@storefront_errors
def site(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err
    merged = save_site(get_store(), data)
    log.info("[admin] site content saved")
    return JsonResponse({"ok": True, "site": merged})
