"""Billing provisioning reconciliation.

Flow for one run:
1) parse the desired catalog (``parsing``)
2) survey the provider once and diff (``planner`` + ``matching``)
3) optionally apply the plan (``executor``)
4) render the plan/result (``formatting``) and export ids (``exports``)
"""

from __future__ import annotations

from .executor import execute_stripe_plan, provision_stripe
from .exports import build_products_payload, generated_env_updates
from .formatting import format_plan, format_result
from .model import (
    DesiredPrice,
    DesiredProduct,
    Interval,
    RemotePrice,
    RemoteProduct,
    RemoteSnapshot,
    RemoteWebhookEndpoint,
)
from .parsing import parse_product_definitions
from .plan import (
    BillingPlan,
    EdgePlan,
    ExecutionResult,
    OutcomeStatus,
    Plan,
    PlanStep,
    Provider,
    ProvisionedProduct,
    ProvisionedWebhook,
    StepOutcome,
    StepStatus,
)
from .planner import build_stripe_plan, plan_from_snapshot

__all__ = [
    "BillingPlan",
    "DesiredPrice",
    "DesiredProduct",
    "EdgePlan",
    "ExecutionResult",
    "Interval",
    "OutcomeStatus",
    "Plan",
    "PlanStep",
    "Provider",
    "ProvisionedProduct",
    "ProvisionedWebhook",
    "RemotePrice",
    "RemoteProduct",
    "RemoteSnapshot",
    "RemoteWebhookEndpoint",
    "StepOutcome",
    "StepStatus",
    "build_products_payload",
    "build_stripe_plan",
    "execute_stripe_plan",
    "format_plan",
    "format_result",
    "generated_env_updates",
    "parse_product_definitions",
    "plan_from_snapshot",
    "provision_stripe",
]
