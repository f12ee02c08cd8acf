"""Idempotency keys linking desired resources to remote ones.

The key is written into provider metadata when a resource is created and read
back on every later run. It is the only durable link between runs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .model import ONE_TIME

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .model import DesiredPrice

IDEMPOTENCY_KEY_FIELD = "idempotency_key"
PROJECT_ID_FIELD = "project_id"
KEY_PREFIX = "bootstrap"


def product_key(project_id: str, product_name: str) -> str:
    return f"{KEY_PREFIX}:{project_id}:{product_name}"


def price_key_prefix(project_id: str, product_name: str) -> str:
    return f"{product_key(project_id, product_name)}:price:"


def price_key(project_id: str, product_name: str, price: DesiredPrice) -> str:
    interval = price.interval.value if price.interval is not None else ONE_TIME
    return (
        f"{price_key_prefix(project_id, product_name)}"
        f"{price.amount}:{price.currency}:{interval}:{price.interval_count}"
    )


def webhook_key(project_id: str) -> str:
    return f"{KEY_PREFIX}:{project_id}:webhook"


def key_of(metadata: Mapping[str, str]) -> str | None:
    return metadata.get(IDEMPOTENCY_KEY_FIELD)


def tagged_metadata(
    key: str,
    project_id: str,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Metadata for a created resource; the tags always win over ``extra``."""

    metadata = dict(extra or {})
    metadata[IDEMPOTENCY_KEY_FIELD] = key
    metadata[PROJECT_ID_FIELD] = project_id
    return metadata
