"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from provisioner.adapters.stripe import StripeBillingClient
from provisioner.config import get_stripe_config
from provisioner.domain.edge import build_cloudflare_plan
from provisioner.domain.provisioning import (
    build_stripe_plan,
    generated_env_updates,
    parse_product_definitions,
    provision_stripe,
)

if TYPE_CHECKING:
    from provisioner.config import BootstrapEnv, ResilienceConfig
    from provisioner.domain.edge import EdgeCapabilities
    from provisioner.domain.ports.billing import BillingProvider
    from provisioner.domain.provisioning import (
        BillingPlan,
        DesiredProduct,
        EdgePlan,
        ExecutionResult,
    )


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StripeRun:
    """Outcome of ``apply_stripe``: what was asked for and what happened."""

    products: tuple[DesiredProduct, ...]
    result: ExecutionResult
    env_updates: dict[str, str] = field(default_factory=dict[str, str])


def build_stripe_provider(*, resilience: ResilienceConfig | None = None) -> StripeBillingClient:
    return StripeBillingClient(config=get_stripe_config(resilience=resilience))


def load_desired_products(env: BootstrapEnv) -> list[DesiredProduct]:
    """Parse the configured catalog; raises ``ConfigParseError`` before any provider call."""

    return parse_product_definitions(env.stripe_products, field=env.stripe_products_field)


def plan_stripe(
    env: BootstrapEnv,
    *,
    provider: BillingProvider | None = None,
    resilience: ResilienceConfig | None = None,
) -> BillingPlan | None:
    """Survey Stripe and diff it against the configured catalog.

    Returns ``None`` when no products are configured.
    """

    if not env.has_stripe_products:
        log.info("No Stripe products configured; skipping Stripe plan")
        return None

    products = load_desired_products(env)
    effective_provider = provider or build_stripe_provider(resilience=resilience)
    webhook_url = env.webhook_url()
    log.info(
        "Planning Stripe resources: project=%s, products=%s, webhook_url=%s",
        env.project_id,
        len(products),
        webhook_url,
    )
    return build_stripe_plan(
        products,
        effective_provider,
        project_id=env.project_id,
        webhook_url=webhook_url,
    )


def apply_stripe(
    env: BootstrapEnv,
    *,
    provider: BillingProvider | None = None,
    resilience: ResilienceConfig | None = None,
    dry_run: bool = False,
) -> StripeRun | None:
    """Reconcile Stripe against the configured catalog.

    Returns ``None`` when no products are configured.
    """

    if not env.has_stripe_products:
        log.info("No Stripe products configured; skipping Stripe provisioning")
        return None

    products = load_desired_products(env)
    effective_provider = provider or build_stripe_provider(resilience=resilience)
    webhook_url = env.webhook_url()
    log.info(
        "Starting Stripe provisioning: project=%s, products=%s, dry_run=%s",
        env.project_id,
        len(products),
        dry_run,
    )

    result = provision_stripe(
        products,
        effective_provider,
        project_id=env.project_id,
        dry_run=dry_run,
        webhook_url=webhook_url,
        webhook_secret=env.stripe_webhook_secret,
    )

    log.info(
        f"Finished Stripe provisioning: products={len(result.products)}, "
        f"failed={len(result.failed)}, warnings={len(result.warnings)}, dry_run={dry_run}"
    )

    return StripeRun(
        products=tuple(products),
        result=result,
        env_updates=generated_env_updates(result, webhook_url=webhook_url),
    )


def plan_cloudflare(
    env: BootstrapEnv,
    *,
    capabilities: EdgeCapabilities | None = None,
) -> EdgePlan:
    return build_cloudflare_plan(
        project_id=env.project_id,
        account_id=env.cloudflare_account_id,
        zone_id=env.cloudflare_zone_id,
        d1_database_name=env.d1_database_name,
        r2_bucket=env.r2_bucket,
        stripe_webhook_configured=bool(env.stripe_webhook_secret),
        capabilities=capabilities,
    )
