"""Minimal Pydantic models for the Stripe REST API."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _none_to_dict(value: object) -> object:
    return {} if value is None else value


class StripeBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class StripeObject(StripeBaseModel):
    id: str


class StripeProduct(StripeObject):
    name: str
    description: str | None = None
    active: bool = True
    metadata: dict[str, str] = Field(default_factory=dict)

    _normalize_metadata = field_validator("metadata", mode="before")(_none_to_dict)


class StripeRecurring(StripeBaseModel):
    interval: str
    interval_count: int = 1


class StripePrice(StripeObject):
    product: str
    unit_amount: int | None = None
    currency: str
    active: bool = True
    recurring: StripeRecurring | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    _normalize_metadata = field_validator("metadata", mode="before")(_none_to_dict)

    @field_validator("product", mode="before")
    @classmethod
    def _expandable_product(cls, value: object) -> object:
        # ``product`` is an id unless the request asked to expand it.
        if isinstance(value, dict) and "id" in value:
            return value["id"]
        return value


class StripeWebhookEndpoint(StripeObject):
    url: str
    enabled_events: list[str] = Field(default_factory=list[str])
    status: str = "enabled"
    metadata: dict[str, str] = Field(default_factory=dict)
    secret: str | None = None

    _normalize_metadata = field_validator("metadata", mode="before")(_none_to_dict)


class StripeList(StripeBaseModel):
    data: Sequence[StripeObject] = ()
    has_more: bool = False


class ProductList(StripeList):
    data: list[StripeProduct] = Field(default_factory=list["StripeProduct"])


class PriceList(StripeList):
    data: list[StripePrice] = Field(default_factory=list["StripePrice"])


class WebhookEndpointList(StripeList):
    data: list[StripeWebhookEndpoint] = Field(default_factory=list["StripeWebhookEndpoint"])


class StripeErrorDetail(StripeBaseModel):
    message: str = "Unknown Stripe error"
    type: str | None = None
    code: str | None = None
    param: str | None = None


class ErrorResponse(StripeBaseModel):
    error: StripeErrorDetail
