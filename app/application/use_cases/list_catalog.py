from __future__ import annotations

from app.application.dto.catalog import StripePriceRecord, StripeProductRecord
from app.application.ports.stripe_port import StripePort
from app.domain.entities.plan import Plan, Product, derive_nickname


class ListCatalogUseCase:
    def __init__(self, *, stripe_port: StripePort):
        self._stripe_port = stripe_port

    def execute(self) -> list[Product]:
        products = self._stripe_port.list_active_products()
        prices = self._stripe_port.list_active_prices()
        return build_catalog(products, prices)


def build_catalog(
    products: list[StripeProductRecord],
    prices: list[StripePriceRecord],
) -> list[Product]:
    catalog: list[Product] = []
    for product in products:
        plans = tuple(
            _to_plan(price, product_id=product.id)
            for price in prices
            if price.product_id == product.id
        )
        if not plans:
            continue
        catalog.append(
            Product(
                id=product.id,
                name=product.name,
                description=product.description or None,
                active=product.active,
                prices=plans,
            )
        )
    return catalog


def _to_plan(price: StripePriceRecord, *, product_id: str) -> Plan:
    return Plan(
        id=price.id,
        product_id=product_id,
        unit_amount=price.unit_amount or 0,
        currency=price.currency,
        interval=price.interval,
        interval_count=price.interval_count,
        nickname=derive_nickname(
            nickname=price.nickname,
            interval=price.interval,
            interval_count=price.interval_count,
        ),
        active=price.active,
    )
