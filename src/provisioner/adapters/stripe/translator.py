"""Translate Stripe payloads into remote snapshot entities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from provisioner.domain.provisioning.model import (
    Interval,
    RemotePrice,
    RemoteProduct,
    RemoteWebhookEndpoint,
)

if TYPE_CHECKING:
    from .schema import StripePrice, StripeProduct, StripeWebhookEndpoint


def parse_product(payload: StripeProduct) -> RemoteProduct:
    return RemoteProduct(
        id=payload.id,
        name=payload.name,
        description=payload.description,
        metadata=dict(payload.metadata),
        active=payload.active,
    )


def parse_price(payload: StripePrice) -> RemotePrice:
    interval: Interval | None = None
    interval_count = 1
    if payload.recurring is not None:
        interval = Interval(payload.recurring.interval)
        interval_count = payload.recurring.interval_count
    return RemotePrice(
        id=payload.id,
        product_id=payload.product,
        unit_amount=payload.unit_amount,
        currency=payload.currency.lower(),
        interval=interval,
        interval_count=interval_count,
        metadata=dict(payload.metadata),
        active=payload.active,
    )


def parse_webhook_endpoint(payload: StripeWebhookEndpoint) -> RemoteWebhookEndpoint:
    return RemoteWebhookEndpoint(
        id=payload.id,
        url=payload.url,
        enabled_events=tuple(payload.enabled_events),
        status=payload.status,
        metadata=dict(payload.metadata),
        secret=payload.secret,
    )
