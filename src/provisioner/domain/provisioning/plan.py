"""Plan and execution-result types shared by planner, executor and formatter.

A plan is the contract between:
- the read-only survey + diff (planner)
- the mutating apply (executor)
- text rendering (formatter)

Billing plans keep the per-stage decisions next to the display steps, so a
prebuilt plan can be executed without surveying the provider again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import (
        DesiredPrice,
        DesiredProduct,
        RemotePrice,
        RemoteProduct,
        RemoteWebhookEndpoint,
    )


class Provider(StrEnum):
    STRIPE = "stripe"
    CLOUDFLARE = "cloudflare"


class StepStatus(StrEnum):
    """Decision for one plan step.

    Billing steps are ``create``/``update``/``existing``. Edge steps are
    declarative and use ``ensure``/``skipped``.
    """

    CREATE = "create"
    UPDATE = "update"
    EXISTING = "existing"
    ENSURE = "ensure"
    SKIPPED = "skipped"


class Stage(StrEnum):
    """Billing dependency chain, in execution order."""

    PRODUCT = "product"
    PRICE = "price"
    WEBHOOK = "webhook"


STAGE_ORDER: tuple[Stage, ...] = (Stage.PRODUCT, Stage.PRICE, Stage.WEBHOOK)


@dataclass(frozen=True, slots=True, kw_only=True)
class PlanStep:
    id: str
    title: str
    status: StepStatus
    detail: str


@dataclass(slots=True, kw_only=True)
class Plan:
    provider: Provider
    steps: list[PlanStep] = field(default_factory=list["PlanStep"])
    notes: list[str] = field(default_factory=list[str])
    warnings: list[str] = field(default_factory=list[str])

    def step(self, step_id: str) -> PlanStep | None:
        return next((step for step in self.steps if step.id == step_id), None)

    def steps_with(self, status: StepStatus) -> list[PlanStep]:
        return [step for step in self.steps if step.status is status]

    @property
    def has_changes(self) -> bool:
        return any(step.status in {StepStatus.CREATE, StepStatus.UPDATE} for step in self.steps)


@dataclass(frozen=True, slots=True, kw_only=True)
class PriceDecision:
    step: PlanStep
    desired: DesiredPrice
    key: str
    match: RemotePrice | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductDecision:
    """Product stage decision plus the price decisions that depend on it."""

    step: PlanStep
    desired: DesiredProduct
    key: str
    match: RemoteProduct | None = None
    prices: tuple[PriceDecision, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class WebhookDecision:
    step: PlanStep
    url: str
    key: str
    match: RemoteWebhookEndpoint | None = None
    missing_events: tuple[str, ...] = ()
    url_changed: bool = False


@dataclass(slots=True, kw_only=True)
class BillingPlan(Plan):
    provider: Provider = Provider.STRIPE
    project_id: str
    products: tuple[ProductDecision, ...] = ()
    webhook: WebhookDecision | None = None


@dataclass(slots=True, kw_only=True)
class EdgePlan(Plan):
    provider: Provider = Provider.CLOUDFLARE
    project_id: str
    account_id: str | None
    worker_name: str
    d1_database_name: str
    r2_bucket: str


class OutcomeStatus(StrEnum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    PLANNED = "planned"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True, kw_only=True)
class StepOutcome:
    step_id: str
    status: OutcomeStatus
    detail: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvisionedProduct:
    product_id: str
    product_name: str
    price_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class ProvisionedWebhook:
    webhook_id: str
    webhook_url: str
    webhook_secret: str | None = None


@dataclass(slots=True, kw_only=True)
class ExecutionResult:
    provider: Provider = Provider.STRIPE
    dry_run: bool = False
    products: list[ProvisionedProduct] = field(default_factory=list["ProvisionedProduct"])
    webhook: ProvisionedWebhook | None = None
    warnings: list[str] = field(default_factory=list[str])
    outcomes: list[StepOutcome] = field(default_factory=list["StepOutcome"])

    @property
    def failed(self) -> list[StepOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is OutcomeStatus.FAILED]

    @property
    def succeeded(self) -> bool:
        return not self.failed

    def record(self, step_id: str, status: OutcomeStatus, detail: str = "") -> None:
        self.outcomes.append(StepOutcome(step_id=step_id, status=status, detail=detail))
