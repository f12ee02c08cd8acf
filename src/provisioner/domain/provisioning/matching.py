"""Match desired billing resources against the remote snapshot.

Responsibilities of this stage:
- compute the idempotency key of every desired resource
- find remote resources carrying that key in their metadata
- classify each desired resource as ``create`` / ``update`` / ``existing``
- collect drift and duplicate warnings (never raise them)

Matching policy:
- products match by key only; description drift is ignored
- prices match by key among the prices of the matched product, and are
  ``existing`` only if the identity tuple is unchanged; a changed definition
  is always a new price, never an edit of the old one
- webhook endpoints match by URL first (manual endpoints carry no key), then
  by key when the URL has moved

Out of scope for this stage:
- provider calls
- mutation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from provisioner.domain.ports.billing import REQUIRED_WEBHOOK_EVENTS

from .keys import key_of, price_key, price_key_prefix, product_key, webhook_key
from .model import ONE_TIME
from .plan import PlanStep, PriceDecision, ProductDecision, StepStatus, WebhookDecision

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

    from .model import (
        DesiredPrice,
        DesiredProduct,
        RemotePrice,
        RemoteProduct,
        RemoteSnapshot,
        RemoteWebhookEndpoint,
    )

WEBHOOK_STEP_ID = "webhook"
WEBHOOK_STEP_TITLE = "Webhook endpoint"
ALL_EVENTS = "*"


@dataclass(frozen=True, slots=True)
class Matched[D]:
    decision: D
    warnings: tuple[str, ...] = ()


def product_step_id(product_name: str) -> str:
    return f"product:{product_name}"


def price_step_id(product_name: str, price: DesiredPrice) -> str:
    interval = price.interval.value if price.interval is not None else ONE_TIME
    return f"price:{product_name}:{price.amount}:{price.currency}:{interval}:{price.interval_count}"


def match_product(
    desired: DesiredProduct,
    snapshot: RemoteSnapshot,
    *,
    project_id: str,
) -> Matched[ProductDecision]:
    key = product_key(project_id, desired.name)
    candidates = [product for product in snapshot.products if key_of(product.metadata) == key]
    match = _prefer_active(candidates)

    warnings: list[str] = []
    if match is not None and len(candidates) > 1:
        others = ", ".join(product.id for product in candidates if product.id != match.id)
        warnings.append(
            f"Found {len(candidates)} products tagged for {desired.name}; "
            f"using {match.id}, ignoring {others}"
        )

    if match is None:
        status, detail = StepStatus.CREATE, "Create new product"
    else:
        status, detail = StepStatus.EXISTING, f"Existing product found ({match.id})"

    step = PlanStep(
        id=product_step_id(desired.name),
        title=f"Product: {desired.name}",
        status=status,
        detail=detail,
    )
    decision = ProductDecision(step=step, desired=desired, key=key, match=match)
    return Matched(decision, tuple(warnings))


def match_price(
    product: DesiredProduct,
    desired: DesiredPrice,
    snapshot: RemoteSnapshot,
    *,
    project_id: str,
    remote_product: RemoteProduct | None,
) -> Matched[PriceDecision]:
    """Decide the price step for ``desired`` under ``product``.

    ``remote_product`` is the product match from the product stage; with no
    matched product there is nothing to compare against and the price is new.
    """

    key = price_key(project_id, product.name, desired)

    def decided(
        status: StepStatus,
        detail: str,
        *,
        match: RemotePrice | None = None,
        warnings: Iterable[str] = (),
    ) -> Matched[PriceDecision]:
        step = PlanStep(
            id=price_step_id(product.name, desired),
            title=f"Price: {desired.label()}",
            status=status,
            detail=detail,
        )
        decision = PriceDecision(step=step, desired=desired, key=key, match=match)
        return Matched(decision, tuple(warnings))

    if remote_product is None:
        return decided(StepStatus.CREATE, "Create price for new product")

    remote_prices = snapshot.prices_for(remote_product.id)
    keyed = [price for price in remote_prices if key_of(price.metadata) == key]
    # A drifted price keeps its key after the replacement is created under it.
    unchanged = _prefer_active([price for price in keyed if price.identity == desired.identity])
    if unchanged is not None:
        return decided(
            StepStatus.EXISTING,
            f"Existing price matches ({unchanged.id})",
            match=unchanged,
        )

    match = _prefer_active(keyed)
    if match is not None:
        warning = (
            f"Price definition changed for {product.name}: {match.id} no longer matches "
            f"{desired.label()}, creating new price instead of updating"
        )
        return decided(
            StepStatus.CREATE,
            "Create new price (definition changed)",
            warnings=(warning,),
        )

    superseded = _superseded_prices(product, remote_prices, project_id=project_id)
    if superseded:
        previous = ", ".join(price.id for price in superseded)
        warning = (
            f"Price definition changed for {product.name}: creating new price "
            f"{desired.label()} (previous: {previous})"
        )
        return decided(
            StepStatus.CREATE,
            "Create new price (definition changed)",
            warnings=(warning,),
        )

    return decided(StepStatus.CREATE, "Create new price")


def match_webhook(
    url: str,
    snapshot: RemoteSnapshot,
    *,
    project_id: str,
    required_events: Sequence[str] = REQUIRED_WEBHOOK_EVENTS,
) -> Matched[WebhookDecision]:
    key = webhook_key(project_id)
    endpoints = snapshot.webhook_endpoints
    at_url = [endpoint for endpoint in endpoints if endpoint.url == url]

    warnings: list[str] = []
    if len(at_url) > 1:
        ids = ", ".join(endpoint.id for endpoint in at_url)
        warnings.append(
            f"{len(at_url)} duplicate webhook endpoints detected for {url} ({ids}); "
            "consider cleaning up manually"
        )

    tagged = [endpoint for endpoint in at_url if key_of(endpoint.metadata) == key]
    match: RemoteWebhookEndpoint | None = tagged[0] if tagged else next(iter(at_url), None)
    url_changed = False
    if match is None:
        match = next((ep for ep in endpoints if key_of(ep.metadata) == key), None)
        url_changed = match is not None

    def decided(
        status: StepStatus,
        detail: str,
        *,
        missing: tuple[str, ...] = (),
    ) -> Matched[WebhookDecision]:
        step = PlanStep(id=WEBHOOK_STEP_ID, title=WEBHOOK_STEP_TITLE, status=status, detail=detail)
        decision = WebhookDecision(
            step=step,
            url=url,
            key=key,
            match=match,
            missing_events=missing,
            url_changed=url_changed,
        )
        return Matched(decision, tuple(warnings))

    if match is None:
        return decided(StepStatus.CREATE, f"Create webhook for {url}")

    missing = missing_events(match.enabled_events, required_events)
    if url_changed:
        detail = f"Move endpoint {match.id} from {match.url} to {url}"
        if missing:
            detail += f"; add events: {', '.join(missing)}"
        return decided(StepStatus.UPDATE, detail, missing=missing)
    if missing:
        return decided(
            StepStatus.UPDATE,
            f"Update events for {url}; add events: {', '.join(missing)}",
            missing=missing,
        )
    return decided(StepStatus.EXISTING, f"Existing endpoint matches ({match.id})")


def missing_events(enabled: Collection[str], required: Sequence[str]) -> tuple[str, ...]:
    """Required events not covered by ``enabled``; order follows ``required``."""

    if ALL_EVENTS in enabled:
        return ()
    present = set(enabled)
    return tuple(event for event in required if event not in present)


def merged_events(enabled: Sequence[str], required: Sequence[str]) -> tuple[str, ...]:
    """Keep the endpoint's own events and append the required ones it lacks."""

    return (*enabled, *missing_events(enabled, required))


def _superseded_prices(
    product: DesiredProduct,
    remote_prices: Iterable[RemotePrice],
    *,
    project_id: str,
) -> list[RemotePrice]:
    prefix = price_key_prefix(project_id, product.name)
    desired_keys = {price_key(project_id, product.name, price) for price in product.prices}
    superseded: list[RemotePrice] = []
    for price in remote_prices:
        key = key_of(price.metadata)
        if price.active and key is not None and key.startswith(prefix) and key not in desired_keys:
            superseded.append(price)
    return superseded


def _prefer_active[R: (RemoteProduct, RemotePrice)](candidates: Sequence[R]) -> R | None:
    for candidate in candidates:
        if candidate.active:
            return candidate
    return candidates[0] if candidates else None
