"""Domain port definitions for adapters."""

from __future__ import annotations

from .billing import (
    REQUIRED_WEBHOOK_EVENTS,
    BillingProvider,
    PriceInput,
    ProductInput,
    ProductUpdate,
    SnapshotProvider,
    WebhookEndpointInput,
    WebhookEndpointUpdate,
)

__all__ = [
    "REQUIRED_WEBHOOK_EVENTS",
    "BillingProvider",
    "PriceInput",
    "ProductInput",
    "ProductUpdate",
    "SnapshotProvider",
    "WebhookEndpointInput",
    "WebhookEndpointUpdate",
]
