from __future__ import annotations

from provisioner.domain.provisioning.formatting import format_plan, format_result
from provisioner.domain.provisioning.plan import (
    BillingPlan,
    EdgePlan,
    ExecutionResult,
    OutcomeStatus,
    PlanStep,
    ProvisionedProduct,
    ProvisionedWebhook,
    StepStatus,
)


def test_format_plan_lists_steps_notes_and_warnings() -> None:
    plan = BillingPlan(
        project_id="acme",
        steps=[
            PlanStep(
                id="product:Pro",
                title="Product: Pro",
                status=StepStatus.CREATE,
                detail="Create new product",
            )
        ],
        notes=["Project: acme"],
        warnings=["Something looks off"],
    )

    assert format_plan(plan).splitlines() == [
        "Provider: stripe",
        "Steps:",
        "  create: Product: Pro — Create new product",
        "Notes:",
        "  Project: acme",
        "Warnings:",
        "  ⚠ Something looks off",
    ]


def test_format_plan_omits_empty_warnings_and_shows_account() -> None:
    plan = EdgePlan(
        project_id="acme",
        account_id="acc_123",
        worker_name="acme-worker",
        d1_database_name="acme-d1",
        r2_bucket="acme-assets",
        notes=["Project: acme"],
    )

    text = format_plan(plan)

    assert text.startswith("Provider: cloudflare (account acc_123)")
    assert "Warnings:" not in text
    assert "Notes:" in text


def test_format_result_summarises_products_webhook_and_outcomes() -> None:
    result = ExecutionResult(
        products=[
            ProvisionedProduct(product_id="prod_1", product_name="Pro", price_ids=("price_1",))
        ],
        webhook=ProvisionedWebhook(
            webhook_id="we_1",
            webhook_url="https://acme.example/api/webhooks/stripe",
            webhook_secret="whsec_1",
        ),
    )
    result.record("product:Pro", OutcomeStatus.APPLIED, "prod_1")
    result.record("webhook", OutcomeStatus.FAILED)

    lines = format_result(result).splitlines()

    assert lines[0] == "Provider: stripe (applied)"
    assert "  Pro: prod_1 (prices: price_1)" in lines
    assert "  we_1 -> https://acme.example/api/webhooks/stripe" in lines
    assert "  applied: product:Pro — prod_1" in lines
    assert "  failed: webhook" in lines
    assert "whsec_1" not in "\n".join(lines)


def test_format_result_marks_dry_run() -> None:
    assert format_result(ExecutionResult(dry_run=True)) == "Provider: stripe (dry run)"
