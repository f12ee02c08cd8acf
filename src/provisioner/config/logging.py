"""Shared logging helpers for the provisioner."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

_SENSITIVE_KEY = re.compile(r"(TOKEN|SECRET|KEY|PASSWORD|CLIENT|AUTH)", re.IGNORECASE)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def redact_value(key: str, value: str | None) -> str:
    """Mask ``value`` when ``key`` looks like it names a credential."""

    if not value:
        return "<empty>"
    if not _SENSITIVE_KEY.search(key):
        return value
    if len(value) <= 4:
        return f"{value[0]}***"
    return f"{value[:4]}...{value[-2:]}"


def format_redacted(entries: Iterable[tuple[str, str | None]], *, indent: str = "  ") -> str:
    return "\n".join(f"{indent}{key}={redact_value(key, value)}" for key, value in entries)
