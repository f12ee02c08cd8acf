"""Stripe configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping

STRIPE_BASE_URL = "https://api.stripe.com/v1"
STRIPE_API_VERSION = "2024-11-20.acacia"
STRIPE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class StripeConfig:
    """Holds Stripe API configuration values."""

    secret_key: str
    resilience: ResilienceConfig
    api_version: str = STRIPE_API_VERSION


def default_stripe_resilience(
    *,
    retry: RetryPolicy | None = None,
    timeout_seconds: float | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="stripe",
        base_url=STRIPE_BASE_URL,
        timeout_seconds=timeout_seconds or STRIPE_TIMEOUT_SECONDS,
        retry=retry or RetryPolicy(),
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
    )


def get_stripe_config(
    *,
    overrides: Mapping[str, str | None] | None = None,
    resilience: ResilienceConfig | None = None,
) -> StripeConfig:
    values = require_env_vars(("STRIPE_SECRET_KEY",), overrides=overrides)
    return StripeConfig(
        secret_key=values["STRIPE_SECRET_KEY"],
        resilience=resilience or default_stripe_resilience(),
    )
