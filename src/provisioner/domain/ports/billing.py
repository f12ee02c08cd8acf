"""Port for the billing provider consumed by the provisioning engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from provisioner.domain.provisioning.model import (
        Interval,
        RemotePrice,
        RemoteProduct,
        RemoteSnapshot,
        RemoteWebhookEndpoint,
    )

REQUIRED_WEBHOOK_EVENTS: tuple[str, ...] = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "invoice.payment_succeeded",
    "invoice.payment_failed",
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductInput:
    name: str
    description: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductUpdate:
    name: str | None = None
    description: str | None = None
    metadata: Mapping[str, str] | None = None
    active: bool | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PriceInput:
    product_id: str
    unit_amount: int
    currency: str
    interval: Interval | None = None
    interval_count: int = 1
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class WebhookEndpointInput:
    url: str
    enabled_events: Sequence[str]
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class WebhookEndpointUpdate:
    url: str | None = None
    enabled_events: Sequence[str] | None = None
    metadata: Mapping[str, str] | None = None


class BillingProvider(Protocol):
    """Narrow capability surface over the billing provider.

    Implementations raise ``ProviderCallError`` when a call fails.
    """

    def list_products(self) -> Sequence[RemoteProduct]: ...

    def create_product(self, product: ProductInput) -> RemoteProduct: ...

    def update_product(self, product_id: str, update: ProductUpdate) -> RemoteProduct: ...

    def list_prices(self) -> Sequence[RemotePrice]: ...

    def create_price(self, price: PriceInput) -> RemotePrice: ...

    def list_webhook_endpoints(self) -> Sequence[RemoteWebhookEndpoint]: ...

    def create_webhook_endpoint(self, endpoint: WebhookEndpointInput) -> RemoteWebhookEndpoint: ...

    def update_webhook_endpoint(
        self,
        endpoint_id: str,
        update: WebhookEndpointUpdate,
    ) -> RemoteWebhookEndpoint: ...


@runtime_checkable
class SnapshotProvider(Protocol):
    """Providers that can survey all resource kinds in one (concurrent) pass."""

    def snapshot(self, *, include_webhooks: bool = True) -> RemoteSnapshot: ...


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
