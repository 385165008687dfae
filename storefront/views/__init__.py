"""
storefront.views package

Endpoint modules:
    public            health, site, products, order summary, newsletter, track
    checkout_session  POST /api/create-checkout-session
    stripe_webhook    POST /api/stripe/webhook
    admin             token-gated admin API
"""

from . import admin, public  # noqa: F401
from .checkout_session import create_checkout_session  # noqa: F401
from .stripe_webhook import stripe_webhook  # noqa: F401
