"""Project-level bootstrap settings shared by the provider planners."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .env import optional_env_var, require_env_vars

if TYPE_CHECKING:
    from collections.abc import Mapping

WEBHOOK_PATH = "/api/webhooks/stripe"

# Order matters: the first non-empty source wins.
PRODUCT_DEFINITION_VARS = ("STRIPE_PRODUCT_DEFINITIONS", "STRIPE_PRODUCTS")


@dataclass(frozen=True, slots=True, kw_only=True)
class BootstrapEnv:
    """Resolved environment for one bootstrap run."""

    project_id: str
    project_domain: str | None = None
    stripe_products: str = ""
    stripe_products_field: str = "STRIPE_PRODUCTS"
    stripe_webhook_url: str | None = None
    stripe_webhook_secret: str | None = None
    cloudflare_account_id: str | None = None
    cloudflare_zone_id: str | None = None
    d1_database_name: str | None = None
    r2_bucket: str | None = None

    @property
    def has_stripe_products(self) -> bool:
        return bool(self.stripe_products.strip())

    def webhook_url(self) -> str | None:
        """Explicit webhook URL, else one derived from the project domain."""

        if self.stripe_webhook_url:
            return self.stripe_webhook_url
        if self.project_domain:
            return f"{self.project_domain.rstrip('/')}{WEBHOOK_PATH}"
        return None

    def summary(self) -> tuple[tuple[str, str | None], ...]:
        return (
            ("PROJECT_ID", self.project_id),
            ("PROJECT_DOMAIN", self.project_domain),
            ("STRIPE_WEBHOOK_URL", self.webhook_url()),
            ("STRIPE_WEBHOOK_SECRET", self.stripe_webhook_secret),
            ("CLOUDFLARE_ACCOUNT_ID", self.cloudflare_account_id),
            ("CLOUDFLARE_ZONE_ID", self.cloudflare_zone_id),
            ("D1_DATABASE_NAME", self.d1_database_name),
            ("CLOUDFLARE_R2_BUCKET", self.r2_bucket),
        )


def get_bootstrap_env(*, overrides: Mapping[str, str | None] | None = None) -> BootstrapEnv:
    values = require_env_vars(("PROJECT_ID",), overrides=overrides)

    products = ""
    products_field = PRODUCT_DEFINITION_VARS[-1]
    for name in PRODUCT_DEFINITION_VARS:
        raw = optional_env_var(name, overrides=overrides)
        if raw is not None:
            products, products_field = raw, name
            break

    return BootstrapEnv(
        project_id=values["PROJECT_ID"],
        project_domain=optional_env_var("PROJECT_DOMAIN", overrides=overrides),
        stripe_products=products,
        stripe_products_field=products_field,
        stripe_webhook_url=optional_env_var("STRIPE_WEBHOOK_URL", overrides=overrides),
        stripe_webhook_secret=optional_env_var("STRIPE_WEBHOOK_SECRET", overrides=overrides),
        cloudflare_account_id=optional_env_var("CLOUDFLARE_ACCOUNT_ID", overrides=overrides),
        cloudflare_zone_id=optional_env_var("CLOUDFLARE_ZONE_ID", overrides=overrides),
        d1_database_name=optional_env_var("D1_DATABASE_NAME", overrides=overrides),
        r2_bucket=optional_env_var("CLOUDFLARE_R2_BUCKET", overrides=overrides),
    )
