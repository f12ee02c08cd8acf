"""Application configuration helpers."""

from __future__ import annotations

from .bootstrap import BootstrapEnv, get_bootstrap_env
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, format_redacted, redact_value
from .stripe import StripeConfig, default_stripe_resilience, get_stripe_config

__all__ = [
    "BootstrapEnv",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StripeConfig",
    "configure_logging",
    "default_stripe_resilience",
    "format_redacted",
    "get_bootstrap_env",
    "get_stripe_config",
    "optional_env_var",
    "redact_value",
    "require_env_var",
    "require_env_vars",
]
