"""
Public storefront endpoints: health, site content, catalog, order summary,
newsletter sign-up and first-party event tracking.
"""

from __future__ import annotations

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from ..catalog import SORT_OPTIONS, read_products, search_products
from ..documents import get_store
from ..errors import InvalidEmail, OrderNotFound, ValidationFailed
from ..newsletter import subscribe
from ..orders import get_order, now_iso, order_summary
from ..serializers import NewsletterSerializer, TrackEventSerializer, validate_payload
from ..site_content import read_site
from ..tracking import TRACKABLE_EVENTS, append_event, sanitize_props
from .utils import _parse_json_body, rate_limited, storefront_errors


@require_GET
@rate_limited("api")
def health(request: HttpRequest) -> JsonResponse:
    admin_token = getattr(settings, "ADMIN_API_TOKEN", "")
    return JsonResponse(
        {
            "ok": True,
            "env": "development" if settings.DEBUG else "production",
            "stripeConfigured": bool(getattr(settings, "STRIPE_SECRET_KEY", "")),
            "adminConfigured": bool(admin_token) and admin_token != getattr(settings, "DEFAULT_ADMIN_API_TOKEN", ""),
            "timestamp": now_iso(),
        }
    )


@require_GET
@rate_limited("api")
def site(request: HttpRequest) -> JsonResponse:
    return JsonResponse(read_site(get_store()))


@require_GET
@rate_limited("api")
def products(request: HttpRequest) -> JsonResponse:
    items = read_products(get_store())
    if request.GET.get("includeInactive") == "1":
        return JsonResponse({"items": items})

    query = request.GET.get("q", "")
    sort = request.GET.get("sort", "featured")
    if sort not in SORT_OPTIONS:
        sort = "featured"
    return JsonResponse({"items": search_products(items, query, sort)})


@require_GET
@rate_limited("api")
@storefront_errors
def order_summary_view(request: HttpRequest, order_id: str) -> JsonResponse:
    order_id = (order_id or "").strip()
    if not order_id:
        raise ValidationFailed("Missing order id.")
    order = get_order(get_store(), order_id)
    if order is None:
        raise OrderNotFound("Order not found.")
    return JsonResponse(order_summary(order))


@csrf_exempt
@require_POST
@rate_limited("api")
@rate_limited("newsletter")
@storefront_errors
def newsletter(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err
    payload = validate_payload(NewsletterSerializer, data, InvalidEmail, "Invalid email address.")
    subscribe(get_store(), payload["email"], request=request)
    return JsonResponse({"ok": True})


@csrf_exempt
@require_POST
@rate_limited("api")
@rate_limited("track")
@storefront_errors
def track(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err
    payload = validate_payload(TrackEventSerializer, data)
    event_name = payload["eventName"].strip().lower()
    if event_name not in TRACKABLE_EVENTS:
        raise ValidationFailed("Event not allowed.")
    append_event(get_store(), event_name, sanitize_props(payload.get("props")), request=request)
    return JsonResponse({"ok": True})


def api_not_found(request: HttpRequest, *args, **kwargs) -> JsonResponse:
    return JsonResponse({"error": "API route not found."}, status=404)
