"""
Request schemas for the storefront JSON API.

Shapes are checked here, at the HTTP boundary; business rules (quantity range,
product existence, price > 0) stay in storefront.checkout so they apply to
every caller.
"""

from rest_framework import serializers

from .errors import InvalidStatus, ValidationFailed
from .orders import ORDER_STATUSES


class CartLineSerializer(serializers.Serializer):
    id = serializers.CharField(allow_blank=True, trim_whitespace=True)
    # Range is enforced by the checkout orchestrator.
    quantity = serializers.JSONField(required=False, allow_null=True, default=None)


class CheckoutRequestSerializer(serializers.Serializer):
    items = CartLineSerializer(many=True, allow_empty=True, default=list)
    customerEmail = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")


class OrderUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ORDER_STATUSES, required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=True)


class ProductsReplaceSerializer(serializers.Serializer):
    items = serializers.ListField(allow_empty=True)


class TrackEventSerializer(serializers.Serializer):
    eventName = serializers.CharField(allow_blank=True, trim_whitespace=True)
    props = serializers.JSONField(required=False, default=dict)


class NewsletterSerializer(serializers.Serializer):
    email = serializers.CharField(allow_blank=True, trim_whitespace=True)


def validate_payload(serializer_class, data, error_class=ValidationFailed, message="Invalid payload."):
    """Run a serializer; raise ``error_class(message)`` instead of DRF's ValidationError."""
    serializer = serializer_class(data=data if isinstance(data, dict) else {})
    if not serializer.is_valid():
        raise error_class(message)
    return serializer.validated_data


def validate_order_update(data):
    serializer = OrderUpdateSerializer(data=data if isinstance(data, dict) else {})
    if not serializer.is_valid():
        if "status" in serializer.errors:
            raise InvalidStatus("Invalid order status.")
        raise ValidationFailed("Invalid payload.")
    return serializer.validated_data
