"""Desired-state and remote-snapshot types for billing provisioning.

Desired types describe what the configuration asks for; remote types mirror
what the billing provider currently holds. Neither side knows about the
other: matching them is the job of :mod:`.matching`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

ONE_TIME = "one_time"


class Interval(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


type PriceIdentity = tuple[int | None, str, Interval | None, int]


@dataclass(frozen=True, slots=True, kw_only=True)
class DesiredPrice:
    """One price of a desired product.

    Identity is ``(amount, currency, interval, interval_count)``; any change
    to those fields describes a different price, never an edit of an old one.
    """

    amount: int
    currency: str
    interval: Interval | None = None
    interval_count: int = 1
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def identity(self) -> PriceIdentity:
        return (self.amount, self.currency, self.interval, self.interval_count)

    @property
    def is_recurring(self) -> bool:
        return self.interval is not None

    def label(self) -> str:
        """Human readable price, e.g. ``25.00 USD/month``."""

        amount = f"{self.amount / 100:.2f} {self.currency.upper()}"
        if self.interval is None:
            return amount
        if self.interval_count == 1:
            return f"{amount}/{self.interval}"
        return f"{amount}/{self.interval_count} {self.interval}s"


@dataclass(frozen=True, slots=True, kw_only=True)
class DesiredProduct:
    name: str
    description: str | None = None
    prices: tuple[DesiredPrice, ...] = ()
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteProduct:
    id: str
    name: str
    description: str | None = None
    metadata: dict[str, str] = field(default_factory=dict, hash=False)
    active: bool = True


@dataclass(frozen=True, slots=True, kw_only=True)
class RemotePrice:
    id: str
    product_id: str
    unit_amount: int | None
    currency: str
    interval: Interval | None = None
    interval_count: int = 1
    metadata: dict[str, str] = field(default_factory=dict, hash=False)
    active: bool = True

    @property
    def identity(self) -> PriceIdentity:
        # Stripe reports interval_count for recurring prices only.
        count = self.interval_count if self.interval is not None else 1
        return (self.unit_amount, self.currency, self.interval, count)


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteWebhookEndpoint:
    id: str
    url: str
    enabled_events: tuple[str, ...] = ()
    status: str = "enabled"
    metadata: dict[str, str] = field(default_factory=dict, hash=False)
    secret: str | None = None


@dataclass(frozen=True, slots=True)
class RemoteSnapshot:
    """Remote state surveyed once per run; never cached across runs."""

    products: tuple[RemoteProduct, ...] = ()
    prices: tuple[RemotePrice, ...] = ()
    webhook_endpoints: tuple[RemoteWebhookEndpoint, ...] = ()

    def prices_for(self, product_id: str) -> tuple[RemotePrice, ...]:
        return tuple(price for price in self.prices if price.product_id == product_id)
