from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StripeProductRecord:
    id: str
    name: str
    description: str | None
    active: bool


@dataclass(frozen=True)
class StripePriceRecord:
    id: str
    product_id: str | None
    unit_amount: int | None
    currency: str
    interval: str | None
    interval_count: int | None
    nickname: str | None
    active: bool
