from __future__ import annotations

import json

from provisioner.domain.provisioning.exports import build_products_payload, generated_env_updates
from provisioner.domain.provisioning.model import DesiredPrice, DesiredProduct, Interval
from provisioner.domain.provisioning.plan import (
    ExecutionResult,
    ProvisionedProduct,
    ProvisionedWebhook,
)

URL = "https://acme.example/api/webhooks/stripe"


def _result(*, dry_run: bool = False) -> ExecutionResult:
    return ExecutionResult(
        dry_run=dry_run,
        products=[
            ProvisionedProduct(
                product_id="prod_1",
                product_name="Pro",
                price_ids=("price_1", "price_2"),
            ),
            ProvisionedProduct(
                product_id="prod_2",
                product_name="Lifetime",
                price_ids=("price_3",),
            ),
        ],
        webhook=ProvisionedWebhook(webhook_id="we_1", webhook_url=URL, webhook_secret="whsec_1"),
    )


def test_generated_env_updates_lists_ids_and_webhook() -> None:
    updates = generated_env_updates(_result(), webhook_url=URL)

    assert updates == {
        "STRIPE_PRODUCT_IDS": "prod_1,prod_2",
        "STRIPE_PRICE_IDS": "price_1,price_2,price_3",
        "STRIPE_WEBHOOK_SECRET": "whsec_1",
        "STRIPE_WEBHOOK_URL": URL,
    }


def test_generated_env_updates_are_empty_for_dry_run() -> None:
    assert generated_env_updates(_result(dry_run=True), webhook_url=URL) == {}


def test_generated_env_updates_skip_unknown_webhook_secret() -> None:
    result = ExecutionResult(webhook=ProvisionedWebhook(webhook_id="we_1", webhook_url=URL))

    updates = generated_env_updates(result)

    assert "STRIPE_WEBHOOK_SECRET" not in updates
    assert "STRIPE_WEBHOOK_URL" not in updates


def test_products_payload_has_one_row_per_price() -> None:
    products = [
        DesiredProduct(
            name="Pro",
            description="For professionals",
            metadata={"tier": "pro"},
            prices=(
                DesiredPrice(amount=2500, currency="usd", interval=Interval.MONTH),
                DesiredPrice(
                    amount=25000,
                    currency="usd",
                    interval=Interval.YEAR,
                    metadata={"tier": "pro-annual"},
                ),
            ),
        ),
    ]

    rows = json.loads(build_products_payload(products, _result()))

    assert rows == [
        {
            "id": "prod_1",
            "name": "Pro",
            "description": "For professionals",
            "priceId": "price_1",
            "unitAmount": 2500,
            "currency": "usd",
            "interval": "month",
            "metadata": {"tier": "pro"},
        },
        {
            "id": "prod_1",
            "name": "Pro",
            "description": "For professionals",
            "priceId": "price_2",
            "unitAmount": 25000,
            "currency": "usd",
            "interval": "year",
            "metadata": {"tier": "pro-annual"},
        },
    ]


def test_products_payload_without_result_uses_slugs() -> None:
    products = [
        DesiredProduct(name="Lifetime Access", prices=(DesiredPrice(amount=9900, currency="usd"),))
    ]

    (row,) = json.loads(build_products_payload(products))

    assert row["id"] == "lifetime-access"
    assert row["priceId"] == ""
    assert "interval" not in row
    assert "description" not in row
