"""
storefront.errors

Domain exceptions raised by the storefront core.

Each class carries the HTTP status the views layer should answer with, so
orchestration code never imports Django response classes.

========= CHANGE LOG =========
2026-02-11 • ADD: StorefrontError hierarchy for checkout/admin/webhook flows.
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base class; ``message`` is safe to show to the caller."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(StorefrontError):
    status_code = 400


class CartError(ValidationFailed):
    pass


class InvalidEmail(ValidationFailed):
    pass


class InvalidStatus(ValidationFailed):
    pass


class ProductNotFound(StorefrontError):
    status_code = 404


class OrderNotFound(StorefrontError):
    status_code = 404


class PaymentNotConfigured(StorefrontError):
    status_code = 503


class PaymentProviderError(StorefrontError):
    """Stripe refused or failed the checkout session request."""

    status_code = 500


class WebhookNotConfigured(StorefrontError):
    status_code = 400


class WebhookSignatureError(StorefrontError):
    status_code = 400
