"""
Helpers shared by the storefront view modules: JSON errors, body parsing,
per-IP rate limits, the admin token gate, and StorefrontError mapping.
"""

from __future__ import annotations

import functools
import hmac
import json
import logging
from typing import Any, Dict, Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, JsonResponse

from ..errors import StorefrontError
from ..tracking import client_ip

log = logging.getLogger("storefront")

# scope -> (max requests, window seconds); overridable via settings.STOREFRONT_RATE_LIMITS
DEFAULT_RATE_LIMITS: Dict[str, Tuple[int, int]] = {
    "api": (400, 15 * 60),
    "checkout": (25, 10 * 60),
    "newsletter": (30, 15 * 60),
    "track": (200, 15 * 60),
    "admin": (240, 10 * 60),
}

RATE_LIMIT_MESSAGES = {
    "api": "Too many API requests. Try again in a few minutes.",
    "checkout": "Too many checkout attempts. Try again later.",
    "newsletter": "Too many sign-ups. Try again later.",
    "track": "Too many events sent.",
    "admin": "Too many admin requests. Try again later.",
}


def _json_error(message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)


def _parse_json_body(request: HttpRequest) -> Tuple[Optional[Dict[str, Any]], Optional[JsonResponse]]:
    try:
        raw = request.body.decode("utf-8") if request.body else ""
        if not raw.strip():
            return {}, None
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None, _json_error("Invalid JSON.", 400)
    if not isinstance(data, dict):
        return None, _json_error("JSON body must be an object.", 400)
    return data, None


def _rate_limit_for(scope: str) -> Tuple[int, int]:
    limits = getattr(settings, "STOREFRONT_RATE_LIMITS", None) or {}
    return tuple(limits.get(scope, DEFAULT_RATE_LIMITS[scope]))  # type: ignore[return-value]


def rate_limited(scope: str):
    """Cache-based fixed-window limit per (client ip, scope)."""

    def decorator(view_func):
        @functools.wraps(view_func)
        def wrapped(request, *args, **kwargs):
            limit, window = _rate_limit_for(scope)
            key = f"sf_rl:{scope}:{client_ip(request)}"
            if cache.add(key, 1, timeout=window):
                count = 1
            else:
                try:
                    count = cache.incr(key)
                except ValueError:
                    # expired between add() and incr()
                    cache.set(key, 1, timeout=window)
                    count = 1
            if count > limit:
                log.info("[ratelimit] scope=%s count=%s limit=%s", scope, count, limit)
                return _json_error(RATE_LIMIT_MESSAGES.get(scope, "Too many requests."), 429)
            return view_func(request, *args, **kwargs)

        return wrapped

    return decorator


def require_admin(view_func):
    """X-Admin-Token must match settings.ADMIN_API_TOKEN. Never logs the token itself."""

    @functools.wraps(view_func)
    def wrapped(request, *args, **kwargs):
        expected = str(getattr(settings, "ADMIN_API_TOKEN", "") or "")
        provided = str(request.META.get("HTTP_X_ADMIN_TOKEN", "") or "").strip()
        ok = bool(expected) and hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
        if not ok:
            log.info("[admin][auth] denied expected_len=%s provided_len=%s", len(expected), len(provided))
            return _json_error("Admin access denied.", 401)
        return view_func(request, *args, **kwargs)

    return wrapped


def storefront_errors(view_func):
    """Map StorefrontError subclasses to ``{"error": message}`` with their status."""

    @functools.wraps(view_func)
    def wrapped(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except StorefrontError as e:
            return _json_error(e.message, e.status_code)

    return wrapped
