"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def require_env_vars(
    names: Sequence[str],
    *,
    overrides: Mapping[str, str | None] | None = None,
) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank.

    ``overrides`` take precedence over the process environment; a blank
    override counts as missing.
    """

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = optional_env_var(name, overrides=overrides)
        if value is None:
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def require_env_var(name: str, *, overrides: Mapping[str, str | None] | None = None) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name], overrides=overrides)[name]


def optional_env_var(
    name: str,
    *,
    overrides: Mapping[str, str | None] | None = None,
) -> str | None:
    """Return a stripped environment value, or ``None`` when unset or blank."""

    value = overrides.get(name) if overrides is not None and name in overrides else None
    if value is None:
        value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()
