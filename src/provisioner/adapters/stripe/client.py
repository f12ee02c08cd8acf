"""HTTP client for the Stripe REST API.

Requests are form-encoded (Stripe does not accept JSON bodies). List calls
follow ``has_more``/``starting_after`` cursors until exhausted. Every POST
carries a fresh ``Idempotency-Key`` so a transport-level retry of the same
call cannot create a second resource.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

import httpx
from pydantic import ValidationError

from provisioner.adapters.http_resilience import ResilientClient
from provisioner.config.stripe import StripeConfig, get_stripe_config
from provisioner.domain.errors import ProviderCallError
from provisioner.domain.ports.billing import BillingProvider, SnapshotProvider
from provisioner.domain.provisioning.model import RemoteSnapshot

from .schema import (
    ErrorResponse,
    PriceList,
    ProductList,
    StripeBaseModel,
    StripeList,
    StripePrice,
    StripeProduct,
    StripeWebhookEndpoint,
    WebhookEndpointList,
)
from .translator import parse_price, parse_product, parse_webhook_endpoint

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from provisioner.config.http_resilience import ResilienceConfig
    from provisioner.domain.ports.billing import (
        PriceInput,
        ProductInput,
        ProductUpdate,
        WebhookEndpointInput,
        WebhookEndpointUpdate,
    )
    from provisioner.domain.provisioning.model import (
        RemotePrice,
        RemoteProduct,
        RemoteWebhookEndpoint,
    )

log = getLogger(__name__)

PAGE_SIZE = 100

type FormData = dict[str, str | list[str]]


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class StripeAPIError(ProviderCallError):
    """Raised when Stripe answers a call with an error status."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, operation=operation)
        self.status_code = status_code
        self.code = code


def _form_bool(value: bool) -> str:  # noqa: FBT001
    return "true" if value else "false"


def _form_metadata(metadata: Mapping[str, str]) -> FormData:
    return {f"metadata[{key}]": value for key, value in metadata.items()}


def _error_from_response(response: httpx.Response, operation: str) -> StripeAPIError:
    try:
        detail = ErrorResponse.model_validate(response.json()).error
    except ValueError:
        message = f"Stripe {operation} failed with HTTP {response.status_code}"
        return StripeAPIError(message, operation=operation, status_code=response.status_code)
    message = f"Stripe {operation} failed: {detail.message}"
    if detail.code:
        message += f" (code={detail.code})"
    return StripeAPIError(
        message,
        operation=operation,
        status_code=response.status_code,
        code=detail.code,
    )


async def _no_webhook_endpoints() -> list[RemoteWebhookEndpoint]:
    return []


@dataclass(slots=True)
class StripeBillingClient:
    """Billing provider backed by Stripe.

    Each public call is synchronous and runs its own event loop. ``snapshot``
    lists products, prices and webhook endpoints concurrently on one client.
    """

    config: StripeConfig = field(default_factory=get_stripe_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def list_products(self) -> list[RemoteProduct]:
        return asyncio.run(self._with_client(self._list_products))

    def create_product(self, product: ProductInput) -> RemoteProduct:
        data: FormData = {"name": product.name, **_form_metadata(product.metadata)}
        if product.description:
            data["description"] = product.description
        payload = asyncio.run(self._post("/products", data, operation="create product"))
        return parse_product(self._validate(StripeProduct, payload, "create product"))

    def update_product(self, product_id: str, update: ProductUpdate) -> RemoteProduct:
        data: FormData = {}
        if update.name is not None:
            data["name"] = update.name
        if update.description is not None:
            data["description"] = update.description
        if update.metadata is not None:
            data.update(_form_metadata(update.metadata))
        if update.active is not None:
            data["active"] = _form_bool(update.active)
        payload = asyncio.run(
            self._post(f"/products/{product_id}", data, operation="update product")
        )
        return parse_product(self._validate(StripeProduct, payload, "update product"))

    def list_prices(self) -> list[RemotePrice]:
        return asyncio.run(self._with_client(self._list_prices))

    def create_price(self, price: PriceInput) -> RemotePrice:
        data: FormData = {
            "product": price.product_id,
            "unit_amount": str(price.unit_amount),
            "currency": price.currency,
            **_form_metadata(price.metadata),
        }
        if price.interval is not None:
            data["recurring[interval]"] = price.interval.value
            data["recurring[interval_count]"] = str(price.interval_count)
        payload = asyncio.run(self._post("/prices", data, operation="create price"))
        return parse_price(self._validate(StripePrice, payload, "create price"))

    def list_webhook_endpoints(self) -> list[RemoteWebhookEndpoint]:
        return asyncio.run(self._with_client(self._list_webhook_endpoints))

    def create_webhook_endpoint(self, endpoint: WebhookEndpointInput) -> RemoteWebhookEndpoint:
        data: FormData = {
            "url": endpoint.url,
            "enabled_events[]": list(endpoint.enabled_events),
            **_form_metadata(endpoint.metadata),
        }
        payload = asyncio.run(
            self._post("/webhook_endpoints", data, operation="create webhook endpoint")
        )
        return parse_webhook_endpoint(
            self._validate(StripeWebhookEndpoint, payload, "create webhook endpoint")
        )

    def update_webhook_endpoint(
        self,
        endpoint_id: str,
        update: WebhookEndpointUpdate,
    ) -> RemoteWebhookEndpoint:
        data: FormData = {}
        if update.url is not None:
            data["url"] = update.url
        if update.enabled_events is not None:
            data["enabled_events[]"] = list(update.enabled_events)
        if update.metadata is not None:
            data.update(_form_metadata(update.metadata))
        payload = asyncio.run(
            self._post(
                f"/webhook_endpoints/{endpoint_id}",
                data,
                operation="update webhook endpoint",
            )
        )
        return parse_webhook_endpoint(
            self._validate(StripeWebhookEndpoint, payload, "update webhook endpoint")
        )

    def snapshot(self, *, include_webhooks: bool = True) -> RemoteSnapshot:
        return asyncio.run(self._snapshot_async(include_webhooks=include_webhooks))

    async def _snapshot_async(self, *, include_webhooks: bool) -> RemoteSnapshot:
        async with self.client_factory(self._resilience()) as client:
            products, prices, endpoints = await asyncio.gather(
                self._list_products(client),
                self._list_prices(client),
                self._list_webhook_endpoints(client)
                if include_webhooks
                else _no_webhook_endpoints(),
            )
        log.debug(
            "Stripe snapshot: %s products, %s prices, %s webhook endpoints",
            len(products),
            len(prices),
            len(endpoints),
        )
        return RemoteSnapshot(
            products=tuple(products),
            prices=tuple(prices),
            webhook_endpoints=tuple(endpoints),
        )

    def _resilience(self) -> ResilienceConfig:
        resilience = self.config.resilience
        headers = dict(resilience.default_headers or {})
        headers["Authorization"] = f"Bearer {self.config.secret_key}"
        headers["Stripe-Version"] = self.config.api_version
        return replace(resilience, default_headers=headers)

    async def _with_client[T](self, func: Callable[[ResilientClient], Awaitable[T]]) -> T:
        async with self.client_factory(self._resilience()) as client:
            return await func(client)

    async def _list_products(self, client: ResilientClient) -> list[RemoteProduct]:
        pages = await self._paginate(client, "/products", ProductList, operation="list products")
        return [parse_product(item) for page in pages for item in page.data]

    async def _list_prices(self, client: ResilientClient) -> list[RemotePrice]:
        pages = await self._paginate(client, "/prices", PriceList, operation="list prices")
        return [parse_price(item) for page in pages for item in page.data]

    async def _list_webhook_endpoints(self, client: ResilientClient) -> list[RemoteWebhookEndpoint]:
        pages = await self._paginate(
            client,
            "/webhook_endpoints",
            WebhookEndpointList,
            operation="list webhook endpoints",
        )
        return [parse_webhook_endpoint(item) for page in pages for item in page.data]

    async def _paginate[L: StripeList](
        self,
        client: ResilientClient,
        path: str,
        model: type[L],
        *,
        operation: str,
    ) -> list[L]:
        pages: list[L] = []
        cursor: str | None = None
        while True:
            params: dict[str, str | int] = {"limit": PAGE_SIZE}
            if cursor is not None:
                params["starting_after"] = cursor
            payload = await self._request(client, "GET", path, params=params, operation=operation)
            page = self._validate(model, payload, operation)
            pages.append(page)
            if not page.has_more or not page.data:
                return pages
            cursor = page.data[-1].id

    async def _post(self, path: str, data: FormData, *, operation: str) -> object:
        async with self.client_factory(self._resilience()) as client:
            return await self._request(client, "POST", path, data=data, operation=operation)

    async def _request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        operation: str,
        params: Mapping[str, str | int] | None = None,
        data: FormData | None = None,
    ) -> object:
        headers = {"Idempotency-Key": str(uuid4())} if method == "POST" else None
        try:
            response = await client.request(
                method,
                path,
                params=params,
                data=data,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            log.error(f"Stripe {operation} failed after retries: {exc}")
            msg = f"Stripe {operation} failed: {exc}"
            raise ProviderCallError(msg, operation=operation) from exc

        if response.is_error:
            error = _error_from_response(response, operation)
            log.error(str(error))
            raise error

        try:
            return response.json()
        except ValueError as exc:
            raise StripeAPIError(
                f"Stripe {operation} returned a non-JSON response",
                operation=operation,
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _validate[M: StripeBaseModel](
        model: type[M],
        payload: object,
        operation: str,
    ) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise StripeAPIError(
                f"Unexpected Stripe response payload for {operation}",
                operation=operation,
            ) from exc


if TYPE_CHECKING:
    _billing_check: BillingProvider = StripeBillingClient()
    _snapshot_check: SnapshotProvider = StripeBillingClient()
