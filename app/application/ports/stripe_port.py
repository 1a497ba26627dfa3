from __future__ import annotations

from typing import Protocol

from app.application.dto.billing import StripePaymentIntentCreate, StripePriceDetails
from app.application.dto.catalog import StripePriceRecord, StripeProductRecord
from app.domain.entities.payment import PaymentIntent, SetupIntent


class StripePort(Protocol):
    def find_customer_id_by_email(self, *, email: str) -> str | None:
        ...

    def create_customer(self, *, email: str) -> str:
        ...

    def get_price(self, *, price_id: str) -> StripePriceDetails:
        ...

    def create_payment_intent(self, payload: StripePaymentIntentCreate) -> PaymentIntent:
        ...

    def get_payment_intent(self, *, payment_intent_id: str) -> PaymentIntent:
        ...

    def get_setup_intent(self, *, setup_intent_id: str) -> SetupIntent:
        ...

    def set_default_payment_method(self, *, customer_id: str, payment_method_id: str) -> None:
        ...

    def update_subscription_payment_method(
        self,
        *,
        subscription_id: str,
        payment_method_id: str,
        metadata: dict[str, str],
    ) -> None:
        ...

    def list_customer_payment_intents(self, *, customer_id: str, limit: int) -> list[PaymentIntent]:
        ...

    def cancel_payment_intent(self, *, payment_intent_id: str) -> None:
        ...

    def list_active_products(self) -> list[StripeProductRecord]:
        ...

    def list_active_prices(self) -> list[StripePriceRecord]:
        ...
