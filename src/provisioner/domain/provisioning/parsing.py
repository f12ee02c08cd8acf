"""Parse the desired billing catalog from a single configuration string.

Two grammars are accepted:

1. structured: a JSON array of product objects (recommended)::

       [{"name": "Founders", "prices": [{"amount": 2500, "currency": "usd", "interval": "month"}]}]

2. legacy compact form, kept for older ``.env`` files::

       Founders:2500,usd,month;Scale:4900,usd,month

The input is first classified into one of the two document variants; each
variant has its own parser and both produce the same ``DesiredProduct`` list,
so nothing downstream branches on the input format.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from provisioner.domain.errors import (
    ConfigParseError,
    LegacyConfigError,
    StructuredConfigError,
)

from .model import DesiredPrice, DesiredProduct, Interval

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pydantic_core import ErrorDetails

DEFAULT_FIELD = "STRIPE_PRODUCTS"

_INTEGER = re.compile(r"^-?\d+$")
_INTERVAL_CHOICES = "day, week, month, or year"


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class PriceDefinitionModel(_DefinitionModel):
    amount: int = Field(ge=0)
    currency: str = Field(min_length=1)
    interval: Interval | None = None
    interval_count: int = Field(default=1, ge=1, alias="intervalCount")
    metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("currency")
    @classmethod
    def _lowercase_currency(cls, value: str) -> str:
        return value.lower()

    @field_validator("interval", mode="before")
    @classmethod
    def _normalize_interval(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip().lower()
            return stripped or None
        return value

    @model_validator(mode="after")
    def _one_time_prices_have_no_count(self) -> PriceDefinitionModel:
        if self.interval is None:
            self.interval_count = 1
        return self


class ProductDefinitionModel(_DefinitionModel):
    name: str = Field(min_length=1)
    description: str | None = None
    prices: list[PriceDefinitionModel] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)


_PRODUCT_LIST = TypeAdapter(list[ProductDefinitionModel])


@dataclass(frozen=True, slots=True)
class StructuredDocument:
    payload: object


@dataclass(frozen=True, slots=True)
class LegacyDocument:
    text: str


type DefinitionDocument = StructuredDocument | LegacyDocument


def parse_product_definitions(
    raw: str | None,
    *,
    field: str = DEFAULT_FIELD,
) -> list[DesiredProduct]:
    """Parse ``raw`` into desired products, preserving declaration order.

    Blank input yields an empty catalog. Raises ``StructuredConfigError`` or
    ``LegacyConfigError`` (both ``ConfigParseError``) naming ``field``.
    """

    if raw is None or not raw.strip():
        return []

    document = classify_definitions(raw, field=field)
    match document:
        case StructuredDocument(payload=payload):
            products = _parse_structured(payload, field=field)
            _ensure_unique(products, field=field, error_type=StructuredConfigError)
        case LegacyDocument(text=text):
            products = _parse_legacy(text, field=field)
            _ensure_unique(products, field=field, error_type=LegacyConfigError)
    return products


def classify_definitions(raw: str, *, field: str = DEFAULT_FIELD) -> DefinitionDocument:
    """Decide which grammar ``raw`` is written in.

    Anything that parses as JSON is structured, whatever its shape. Text that
    fails to parse falls through to the legacy grammar, unless it opens like a
    JSON document, in which case the JSON error is the useful one.
    """

    text = raw.strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        if text[:1] in {"[", "{"}:
            msg = (
                f"Failed to parse {field} as JSON: {exc.msg} "
                f"(line {exc.lineno}, column {exc.colno})"
            )
            raise StructuredConfigError(msg, field=field) from exc
        return LegacyDocument(text=text)
    return StructuredDocument(payload=payload)


def _parse_structured(payload: object, *, field: str) -> list[DesiredProduct]:
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        msg = f"{field} must be a JSON array of product objects"
        raise StructuredConfigError(msg, field=field)

    try:
        models = _PRODUCT_LIST.validate_python(payload)
    except ValidationError as exc:
        msg = _describe_validation_error(exc, field=field)
        raise StructuredConfigError(msg, field=field) from exc

    return [
        DesiredProduct(
            name=model.name,
            description=model.description,
            metadata=dict(model.metadata),
            prices=tuple(
                DesiredPrice(
                    amount=price.amount,
                    currency=price.currency,
                    interval=price.interval,
                    interval_count=price.interval_count,
                    metadata=dict(price.metadata),
                )
                for price in model.prices
            ),
        )
        for model in models
    ]


def _describe_validation_error(exc: ValidationError, *, field: str) -> str:
    details: Sequence[ErrorDetails] = exc.errors()
    if not details:
        return f"Invalid {field}"
    first = details[0]
    location = field
    for part in first["loc"]:
        location += f"[{part}]" if isinstance(part, int) else f".{part}"
    suffix = f" ({len(details) - 1} more)" if len(details) > 1 else ""
    return f"Invalid {location}: {first['msg']}{suffix}"


def _parse_legacy(text: str, *, field: str) -> list[DesiredProduct]:
    products: list[DesiredProduct] = []
    for entry in text.split(";"):
        if not entry.strip():
            continue
        products.append(_parse_legacy_entry(entry.strip(), field=field))
    return products


def _parse_legacy_entry(entry: str, *, field: str) -> DesiredProduct:
    name_part, separator, price_part = entry.partition(":")
    name = name_part.strip()
    if not separator or not name or not price_part.strip():
        raise LegacyConfigError(f'Invalid product entry: "{entry}"', field=field)

    parts = [part.strip() for part in price_part.split(",")]
    if len(parts) not in {2, 3} or not parts[0] or not parts[1]:
        msg = f'Invalid price format for "{name}": expected "amount,currency[,interval]"'
        raise LegacyConfigError(msg, field=field)

    amount_text, currency = parts[0], parts[1]
    if not _INTEGER.match(amount_text):
        msg = f'Invalid amount for "{name}": "{amount_text}" is not a number'
        raise LegacyConfigError(msg, field=field)
    amount = int(amount_text)
    if amount < 0:
        msg = f'Invalid amount for "{name}": "{amount_text}" must not be negative'
        raise LegacyConfigError(msg, field=field)

    interval: Interval | None = None
    if len(parts) == 3 and parts[2]:
        try:
            interval = Interval(parts[2].lower())
        except ValueError:
            msg = f'Invalid interval for "{name}": "{parts[2]}" (must be {_INTERVAL_CHOICES})'
            raise LegacyConfigError(msg, field=field) from None

    price = DesiredPrice(amount=amount, currency=currency.lower(), interval=interval)
    return DesiredProduct(name=name, prices=(price,))


def _ensure_unique(
    products: list[DesiredProduct],
    *,
    field: str,
    error_type: type[ConfigParseError],
) -> None:
    seen_names: set[str] = set()
    for product in products:
        if product.name in seen_names:
            raise error_type(f'Duplicate product "{product.name}" in {field}', field=field)
        seen_names.add(product.name)

        seen_prices: set[tuple[object, ...]] = set()
        for price in product.prices:
            if price.identity in seen_prices:
                msg = f'Duplicate price {price.label()} for "{product.name}" in {field}'
                raise error_type(msg, field=field)
            seen_prices.add(price.identity)
