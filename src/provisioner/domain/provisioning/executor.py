"""Apply a billing plan against the provider.

Stages run in dependency order (``STAGE_ORDER``): each product stage yields
the product id its price stage consumes; the webhook stage runs last.

Failure handling: a ``ProviderCallError`` on a mutating call fails that step,
skips the rest of its chain (a product and its prices) and moves on to the
next chain. Nothing already applied is undone; the next run's planner picks
up from whatever now exists remotely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from provisioner.domain.errors import ProviderCallError
from provisioner.domain.ports.billing import (
    REQUIRED_WEBHOOK_EVENTS,
    PriceInput,
    ProductInput,
    WebhookEndpointInput,
    WebhookEndpointUpdate,
)

from .keys import tagged_metadata
from .matching import merged_events
from .plan import (
    ExecutionResult,
    OutcomeStatus,
    ProvisionedProduct,
    ProvisionedWebhook,
    StepStatus,
)
from .planner import build_stripe_plan

if TYPE_CHECKING:
    from collections.abc import Sequence

    from provisioner.domain.ports.billing import BillingProvider

    from .model import DesiredProduct
    from .plan import BillingPlan, PriceDecision, ProductDecision, WebhookDecision

log = getLogger(__name__)

DRY_RUN_PRODUCT_ID = "prod_dry_run_id"
DRY_RUN_PRICE_ID = "price_dry_run_id"
DRY_RUN_WEBHOOK_ID = "we_dry_run_id"
DRY_RUN_WEBHOOK_SECRET = "whsec_dry_run_secret"  # noqa: S105


class _ChainAborted(Exception):
    """Internal signal: the current dependency chain cannot continue."""


@dataclass(slots=True)
class _StripeExecution:
    provider: BillingProvider
    plan: BillingPlan
    dry_run: bool
    webhook_secret: str | None
    result: ExecutionResult = field(init=False)

    def __post_init__(self) -> None:
        self.result = ExecutionResult(dry_run=self.dry_run, warnings=list(self.plan.warnings))

    @property
    def prefix(self) -> str:
        return "[dry-run]" if self.dry_run else "[apply]"

    def run(self) -> ExecutionResult:
        for decision in self.plan.products:
            self._run_chain(decision)
        if self.plan.webhook is not None:
            self._run_webhook_stage(self.plan.webhook)
        if self.dry_run:
            log.info("Dry run completed without side effects.")
        return self.result

    def _run_chain(self, decision: ProductDecision) -> None:
        pending = [price.step.id for price in decision.prices]
        try:
            product_id = self._run_product_stage(decision)
            price_ids: list[str] = []
            for price in decision.prices:
                price_ids.append(self._run_price_stage(decision, price, product_id=product_id))
                pending.remove(price.step.id)
        except _ChainAborted:
            for step_id in pending:
                self.result.record(
                    step_id,
                    OutcomeStatus.SKIPPED,
                    f"Skipped after failure in chain for {decision.desired.name}",
                )
            return

        self.result.products.append(
            ProvisionedProduct(
                product_id=product_id,
                product_name=decision.desired.name,
                price_ids=tuple(price_ids),
            )
        )

    def _run_product_stage(self, decision: ProductDecision) -> str:
        desired = decision.desired
        if decision.match is not None and decision.step.status is StepStatus.EXISTING:
            log.info("%s Product %s exists (%s)", self.prefix, desired.name, decision.match.id)
            self.result.record(decision.step.id, OutcomeStatus.UNCHANGED, decision.match.id)
            return decision.match.id

        if self.dry_run:
            log.info("%s Would create product: %s", self.prefix, desired.name)
            self.result.record(decision.step.id, OutcomeStatus.PLANNED, DRY_RUN_PRODUCT_ID)
            return DRY_RUN_PRODUCT_ID

        log.info("%s Creating product: %s", self.prefix, desired.name)
        product = ProductInput(
            name=desired.name,
            description=desired.description,
            metadata=tagged_metadata(decision.key, self.plan.project_id, desired.metadata),
        )
        try:
            created = self.provider.create_product(product)
        except ProviderCallError as exc:
            self._fail(decision.step.id, f"Failed to create product {desired.name}: {exc}")
            raise _ChainAborted from exc
        log.info("Created product: %s", created.id)
        self.result.record(decision.step.id, OutcomeStatus.APPLIED, created.id)
        return created.id

    def _run_price_stage(
        self,
        product: ProductDecision,
        decision: PriceDecision,
        *,
        product_id: str,
    ) -> str:
        desired = decision.desired
        if decision.match is not None and decision.step.status is StepStatus.EXISTING:
            log.info("%s Price exists (%s)", self.prefix, decision.match.id)
            self.result.record(decision.step.id, OutcomeStatus.UNCHANGED, decision.match.id)
            return decision.match.id

        if self.dry_run:
            log.info("%s Would create price: %s", self.prefix, desired.label())
            self.result.record(decision.step.id, OutcomeStatus.PLANNED, DRY_RUN_PRICE_ID)
            return DRY_RUN_PRICE_ID

        log.info("%s Creating price: %s", self.prefix, desired.label())
        price = PriceInput(
            product_id=product_id,
            unit_amount=desired.amount,
            currency=desired.currency,
            interval=desired.interval,
            interval_count=desired.interval_count,
            metadata=tagged_metadata(decision.key, self.plan.project_id, desired.metadata),
        )
        try:
            created = self.provider.create_price(price)
        except ProviderCallError as exc:
            self._fail(
                decision.step.id,
                f"Failed to create price {desired.label()} for {product.desired.name}: {exc}",
            )
            raise _ChainAborted from exc
        log.info("Created price: %s", created.id)
        self.result.record(decision.step.id, OutcomeStatus.APPLIED, created.id)
        return created.id

    def _run_webhook_stage(self, decision: WebhookDecision) -> None:
        step_id = decision.step.id
        match = decision.match
        if match is None:
            self._create_webhook(decision)
            return

        if decision.step.status is StepStatus.EXISTING:
            log.info("%s Webhook endpoint exists and matches (%s)", self.prefix, match.id)
            self.result.record(step_id, OutcomeStatus.UNCHANGED, match.id)
            self.result.webhook = ProvisionedWebhook(
                webhook_id=match.id,
                webhook_url=decision.url,
                webhook_secret=self.webhook_secret,
            )
            return

        if self.dry_run:
            log.info("%s Would update webhook endpoint %s", self.prefix, match.id)
            self.result.record(step_id, OutcomeStatus.PLANNED, match.id)
            self.result.webhook = ProvisionedWebhook(
                webhook_id=match.id,
                webhook_url=decision.url,
                webhook_secret=DRY_RUN_WEBHOOK_SECRET,
            )
            return

        log.info("%s Updating webhook endpoint %s for %s", self.prefix, match.id, decision.url)
        update = WebhookEndpointUpdate(
            url=decision.url if decision.url_changed else None,
            enabled_events=merged_events(match.enabled_events, REQUIRED_WEBHOOK_EVENTS),
            metadata=tagged_metadata(decision.key, self.plan.project_id, match.metadata),
        )
        try:
            updated = self.provider.update_webhook_endpoint(match.id, update)
        except ProviderCallError as exc:
            self._fail(step_id, f"Failed to update webhook endpoint {match.id}: {exc}")
            return
        log.info("Updated webhook: %s", updated.id)
        self.result.record(step_id, OutcomeStatus.APPLIED, updated.id)
        # Stripe only reveals the signing secret at creation time.
        self.result.webhook = ProvisionedWebhook(
            webhook_id=updated.id,
            webhook_url=decision.url,
            webhook_secret=self.webhook_secret,
        )

    def _create_webhook(self, decision: WebhookDecision) -> None:
        step_id = decision.step.id
        if self.dry_run:
            log.info("%s Would create webhook endpoint: %s", self.prefix, decision.url)
            self.result.record(step_id, OutcomeStatus.PLANNED, DRY_RUN_WEBHOOK_ID)
            self.result.webhook = ProvisionedWebhook(
                webhook_id=DRY_RUN_WEBHOOK_ID,
                webhook_url=decision.url,
                webhook_secret=DRY_RUN_WEBHOOK_SECRET,
            )
            return

        log.info("%s Creating webhook endpoint: %s", self.prefix, decision.url)
        endpoint = WebhookEndpointInput(
            url=decision.url,
            enabled_events=REQUIRED_WEBHOOK_EVENTS,
            metadata=tagged_metadata(decision.key, self.plan.project_id),
        )
        try:
            created = self.provider.create_webhook_endpoint(endpoint)
        except ProviderCallError as exc:
            self._fail(step_id, f"Failed to create webhook endpoint {decision.url}: {exc}")
            return
        log.info("Created webhook: %s", created.id)
        self.result.record(step_id, OutcomeStatus.APPLIED, created.id)
        self.result.webhook = ProvisionedWebhook(
            webhook_id=created.id,
            webhook_url=decision.url,
            webhook_secret=created.secret,
        )

    def _fail(self, step_id: str, message: str) -> None:
        log.error(message)
        self.result.record(step_id, OutcomeStatus.FAILED, message)


def execute_stripe_plan(
    provider: BillingProvider,
    plan: BillingPlan,
    *,
    dry_run: bool = False,
    webhook_secret: str | None = None,
) -> ExecutionResult:
    """Apply ``plan``; with ``dry_run`` no mutating provider call is made.

    ``webhook_secret`` is reported for endpoints that already existed, since
    the provider does not return their secret again.
    """

    execution = _StripeExecution(
        provider=provider,
        plan=plan,
        dry_run=dry_run,
        webhook_secret=webhook_secret,
    )
    return execution.run()


def provision_stripe(
    products: Sequence[DesiredProduct],
    provider: BillingProvider,
    *,
    project_id: str,
    dry_run: bool = False,
    webhook_url: str | None = None,
    webhook_secret: str | None = None,
) -> ExecutionResult:
    """Rebuild the plan against the current remote state, then execute it."""

    plan = build_stripe_plan(products, provider, project_id=project_id, webhook_url=webhook_url)
    return execute_stripe_plan(provider, plan, dry_run=dry_run, webhook_secret=webhook_secret)
