"""Errors raised while resolving provisioner settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """An environment value such as ``STRIPE_SECRET_KEY`` or a CLI override is unusable."""


class MissingConfigurationError(ConfigurationError):
    """A required variable (``PROJECT_ID``, ``STRIPE_SECRET_KEY``) is unset or blank."""
