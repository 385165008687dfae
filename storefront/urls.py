"""
storefront URL routes, mounted at /api/ by boutique.urls.

CHANGE LOG
----------
2026-02-12
- ADD: public, checkout, webhook and admin routes.
- ADD: JSON 404 fallback for unknown /api/ paths (must stay last).
"""

from django.urls import path, re_path

from .views import admin, public
from .views.checkout_session import create_checkout_session
from .views.stripe_webhook import stripe_webhook

app_name = "storefront"

urlpatterns = [
    path("health", public.health, name="health"),
    path("site", public.site, name="site"),
    path("products", public.products, name="products"),
    path("order/<str:order_id>/summary", public.order_summary_view, name="order-summary"),
    path("newsletter", public.newsletter, name="newsletter"),
    path("track", public.track, name="track"),
    path("create-checkout-session", create_checkout_session, name="create-checkout-session"),
    path("stripe/webhook", stripe_webhook, name="stripe-webhook"),
    path("admin/overview", admin.overview, name="admin-overview"),
    path("admin/orders", admin.orders, name="admin-orders"),
    path("admin/orders/<str:order_id>", admin.order_detail, name="admin-order-detail"),
    path("admin/products", admin.products, name="admin-products"),
    path("admin/site", admin.site, name="admin-site"),
    re_path(r"^.*$", public.api_not_found, name="not-found"),
]
