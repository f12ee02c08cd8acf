"""Machine-readable outputs of a provisioning run for the caller to persist."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import DesiredProduct
    from .plan import ExecutionResult

_SLUG_UNSAFE = re.compile(r"[^a-z0-9]")


def generated_env_updates(
    result: ExecutionResult,
    *,
    webhook_url: str | None = None,
) -> dict[str, str]:
    """Environment values produced by an applied run.

    Dry runs produce nothing: placeholder ids must never reach env files.
    """

    if result.dry_run:
        return {}

    updates = {
        "STRIPE_PRODUCT_IDS": ",".join(product.product_id for product in result.products),
        "STRIPE_PRICE_IDS": ",".join(
            price_id for product in result.products for price_id in product.price_ids
        ),
    }
    if result.webhook is not None and result.webhook.webhook_secret:
        updates["STRIPE_WEBHOOK_SECRET"] = result.webhook.webhook_secret
    if webhook_url:
        updates["STRIPE_WEBHOOK_URL"] = webhook_url
    return updates


def build_products_payload(
    products: Sequence[DesiredProduct],
    result: ExecutionResult | None = None,
) -> str:
    """JSON catalog for the web app: one row per configured price.

    Products missing from ``result`` fall back to a slug of their name and an
    empty price id.
    """

    provisioned = {product.product_name: product for product in (result.products if result else [])}
    rows: list[dict[str, object]] = []
    for definition in products:
        match = provisioned.get(definition.name)
        product_id = match.product_id if match else _SLUG_UNSAFE.sub("-", definition.name.lower())
        price_ids = match.price_ids if match else ()
        for index, price in enumerate(definition.prices):
            row: dict[str, object] = {
                "id": product_id,
                "name": definition.name,
                "priceId": price_ids[index] if index < len(price_ids) else "",
                "unitAmount": price.amount,
                "currency": price.currency,
                "metadata": {**definition.metadata, **price.metadata},
            }
            if definition.description is not None:
                row["description"] = definition.description
            if price.interval is not None:
                row["interval"] = price.interval.value
            rows.append(row)
    return json.dumps(rows)
