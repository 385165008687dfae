"""
CHANGE LOG
----------
2026-02-11
- ADD: Mount the storefront JSON API under /api/.
"""

from django.urls import include, path

urlpatterns = [
    path("api/", include("storefront.urls", namespace="storefront")),
]
