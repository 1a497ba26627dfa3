from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CreateCheckoutInput:
    price_id: str | None
    email: str | None


@dataclass(frozen=True)
class CreateCheckoutOutput:
    client_secret: str
    payment_intent_id: str


@dataclass(frozen=True)
class VerifyPaymentInput:
    id: str | None
    type: str | None = "payment_intent"


@dataclass(frozen=True)
class StripePriceDetails:
    id: str
    product_id: str
    unit_amount: int | None
    currency: str | None


@dataclass(frozen=True)
class StripePaymentIntentCreate:
    amount: int
    currency: str
    customer_id: str
    payment_method_types: list[str]
    metadata: dict[str, str]
    receipt_email: str
