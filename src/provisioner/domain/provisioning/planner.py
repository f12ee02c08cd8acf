"""Build the billing provisioning plan.

The planner surveys the provider once (list calls only) and then runs the
three stages of the dependency chain over that snapshot:

1) product stage: one decision per desired product
2) price stage: one decision per desired price, under its product decision
3) webhook stage: a single decision when a webhook URL is requested

``plan_from_snapshot`` is a pure function of (desired state, snapshot).
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from provisioner.domain.ports.billing import SnapshotProvider

from .matching import match_price, match_product, match_webhook
from .model import RemoteSnapshot
from .plan import BillingPlan, ProductDecision

if TYPE_CHECKING:
    from collections.abc import Sequence

    from provisioner.domain.ports.billing import BillingProvider

    from .model import DesiredProduct
    from .plan import PlanStep, PriceDecision, WebhookDecision

log = getLogger(__name__)


def survey(provider: BillingProvider, *, include_webhooks: bool = True) -> RemoteSnapshot:
    """Fetch the remote snapshot once for this run.

    A ``ProviderCallError`` propagates: a plan cannot be trusted on partial
    remote data.
    """

    if isinstance(provider, SnapshotProvider):
        return provider.snapshot(include_webhooks=include_webhooks)

    products = tuple(provider.list_products())
    prices = tuple(provider.list_prices())
    endpoints = tuple(provider.list_webhook_endpoints()) if include_webhooks else ()
    return RemoteSnapshot(products=products, prices=prices, webhook_endpoints=endpoints)


def build_stripe_plan(
    products: Sequence[DesiredProduct],
    provider: BillingProvider,
    *,
    project_id: str,
    webhook_url: str | None = None,
) -> BillingPlan:
    snapshot = survey(provider, include_webhooks=webhook_url is not None)
    log.debug(
        "Surveyed Stripe: products=%s, prices=%s, webhook_endpoints=%s",
        len(snapshot.products),
        len(snapshot.prices),
        len(snapshot.webhook_endpoints),
    )
    return plan_from_snapshot(products, snapshot, project_id=project_id, webhook_url=webhook_url)


def plan_from_snapshot(
    products: Sequence[DesiredProduct],
    snapshot: RemoteSnapshot,
    *,
    project_id: str,
    webhook_url: str | None = None,
) -> BillingPlan:
    warnings: list[str] = []

    product_decisions: list[ProductDecision] = []
    for desired in products:
        matched = match_product(desired, snapshot, project_id=project_id)
        warnings.extend(matched.warnings)
        product_decisions.append(matched.decision)

    with_prices: list[ProductDecision] = []
    for decision in product_decisions:
        price_decisions: list[PriceDecision] = []
        for price in decision.desired.prices:
            matched_price = match_price(
                decision.desired,
                price,
                snapshot,
                project_id=project_id,
                remote_product=decision.match,
            )
            warnings.extend(matched_price.warnings)
            price_decisions.append(matched_price.decision)
        with_prices.append(replace(decision, prices=tuple(price_decisions)))

    webhook: WebhookDecision | None = None
    if webhook_url is not None:
        matched_webhook = match_webhook(webhook_url, snapshot, project_id=project_id)
        warnings.extend(matched_webhook.warnings)
        webhook = matched_webhook.decision

    steps: list[PlanStep] = [decision.step for decision in with_prices]
    steps.extend(price.step for decision in with_prices for price in decision.prices)
    if webhook is not None:
        steps.append(webhook.step)

    notes = [f"Project: {project_id}", f"Products configured: {len(products)}"]
    if webhook_url is not None:
        notes.append(f"Webhook URL: {webhook_url}")

    return BillingPlan(
        project_id=project_id,
        steps=steps,
        notes=notes,
        warnings=warnings,
        products=tuple(with_prices),
        webhook=webhook,
    )
