from __future__ import annotations

from pydantic import BaseModel


class PriceResponse(BaseModel):
    id: str
    product_id: str
    unit_amount: int
    currency: str
    interval: str | None = None
    interval_count: int | None = None
    nickname: str
    active: bool


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    active: bool
    prices: list[PriceResponse]


class ProductsResponse(BaseModel):
    products: list[ProductResponse]
