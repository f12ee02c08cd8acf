"""Public interface for the Stripe adapter."""

from __future__ import annotations

from .client import StripeAPIError, StripeBillingClient
from .schema import ErrorResponse, StripePrice, StripeProduct, StripeWebhookEndpoint
from .translator import parse_price, parse_product, parse_webhook_endpoint

__all__ = [
    "ErrorResponse",
    "StripeAPIError",
    "StripeBillingClient",
    "StripePrice",
    "StripeProduct",
    "StripeWebhookEndpoint",
    "parse_price",
    "parse_product",
    "parse_webhook_endpoint",
]
