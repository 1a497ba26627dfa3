from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Plan:
    """A purchasable price of a product, as shown in the storefront."""

    id: str
    product_id: str
    unit_amount: int
    currency: str
    interval: str | None
    interval_count: int | None
    nickname: str
    active: bool


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str | None
    active: bool
    prices: tuple[Plan, ...]


def derive_nickname(*, nickname: str | None, interval: str | None, interval_count: int | None) -> str:
    if nickname:
        return nickname
    return f"{interval_count or 1} {interval or 'one-time'}"


def is_quarterly(plan: Plan) -> bool:
    return plan.interval == "month" and plan.interval_count == 3
