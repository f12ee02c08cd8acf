from __future__ import annotations

import pytest

from provisioner.app import apply_stripe, plan_cloudflare, plan_stripe
from provisioner.config import BootstrapEnv, get_bootstrap_env
from provisioner.domain.errors import LegacyConfigError
from tests.support.billing import FakeBillingProvider

URL = "https://acme.example/api/webhooks/stripe"


@pytest.mark.usefixtures("project_env")
def test_plan_stripe_uses_configured_catalog_and_webhook() -> None:
    provider = FakeBillingProvider()

    plan = plan_stripe(get_bootstrap_env(), provider=provider)

    assert plan is not None
    assert plan.webhook is not None
    assert plan.webhook.url == URL
    assert [decision.desired.name for decision in plan.products] == ["Founders", "Scale"]
    assert provider.mutation_count == 0


def test_stripe_is_skipped_without_products() -> None:
    env = BootstrapEnv(project_id="acme")
    provider = FakeBillingProvider()

    assert plan_stripe(env, provider=provider) is None
    assert apply_stripe(env, provider=provider) is None
    assert sum(provider.calls.values()) == 0


def test_invalid_catalog_fails_before_any_provider_call() -> None:
    env = BootstrapEnv(project_id="acme", stripe_products="Pro:abc,usd")
    provider = FakeBillingProvider()

    with pytest.raises(LegacyConfigError):
        apply_stripe(env, provider=provider)

    assert sum(provider.calls.values()) == 0


@pytest.mark.usefixtures("project_env")
def test_apply_stripe_returns_env_updates() -> None:
    provider = FakeBillingProvider()

    run = apply_stripe(get_bootstrap_env(), provider=provider)

    assert run is not None
    assert run.result.succeeded
    assert run.env_updates["STRIPE_WEBHOOK_URL"] == URL
    assert run.env_updates["STRIPE_PRODUCT_IDS"].count(",") == 1
    assert [product.name for product in run.products] == ["Founders", "Scale"]


@pytest.mark.usefixtures("project_env")
def test_apply_stripe_dry_run_has_no_env_updates() -> None:
    provider = FakeBillingProvider()

    run = apply_stripe(get_bootstrap_env(), provider=provider, dry_run=True)

    assert run is not None
    assert run.env_updates == {}
    assert provider.mutation_count == 0


def test_plan_cloudflare_maps_bootstrap_env() -> None:
    env = BootstrapEnv(
        project_id="acme",
        cloudflare_account_id="acc_1",
        r2_bucket="uploads",
        stripe_webhook_secret="whsec_1",
    )

    plan = plan_cloudflare(env)

    assert plan.account_id == "acc_1"
    assert plan.r2_bucket == "uploads"
    assert plan.d1_database_name == "acme-d1"
    assert "Stripe webhook: configured" in plan.notes
