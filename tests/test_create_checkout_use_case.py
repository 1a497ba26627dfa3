from __future__ import annotations

import pytest

from app.application.dto.billing import (
    CreateCheckoutInput,
    StripePaymentIntentCreate,
    StripePriceDetails,
)
from app.application.use_cases.create_checkout import CreateCheckoutUseCase
from app.domain.entities.payment import PaymentIntent
from app.domain.exceptions import UpstreamError, ValidationError


class FakeStripePort:
    def __init__(self, *, prices: dict[str, StripePriceDetails], customers: dict[str, str] | None = None):
        self.prices = prices
        self.customers = dict(customers or {})
        self.created_customers: list[str] = []
        self.created_intents: list[StripePaymentIntentCreate] = []
        self.calls = 0

    def find_customer_id_by_email(self, *, email: str) -> str | None:
        self.calls += 1
        return self.customers.get(email)

    def create_customer(self, *, email: str) -> str:
        self.calls += 1
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers[email] = customer_id
        self.created_customers.append(email)
        return customer_id

    def get_price(self, *, price_id: str) -> StripePriceDetails:
        self.calls += 1
        if price_id not in self.prices:
            raise UpstreamError("Failed to retrieve Stripe price.", provider_message=f"No such price: '{price_id}'")
        return self.prices[price_id]

    def create_payment_intent(self, payload: StripePaymentIntentCreate) -> PaymentIntent:
        self.calls += 1
        self.created_intents.append(payload)
        intent_id = f"pi_{len(self.created_intents)}"
        return PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            customer_id=payload.customer_id,
            payment_method_id=None,
            payment_method_types=tuple(payload.payment_method_types),
            metadata=payload.metadata,
            client_secret=f"{intent_id}_secret_abc",
        )


QUARTERLY = StripePriceDetails(id="price_quarterly", product_id="prod_1", unit_amount=2999, currency="eur")


def _use_case(port: FakeStripePort) -> CreateCheckoutUseCase:
    return CreateCheckoutUseCase(stripe_port=port, payment_method_type="paypal")


def test_creates_intent_with_price_amount_and_currency():
    port = FakeStripePort(prices={"price_quarterly": QUARTERLY})

    output = _use_case(port).execute(CreateCheckoutInput(price_id="price_quarterly", email="test@example.com"))

    assert output.client_secret == "pi_1_secret_abc"
    assert output.payment_intent_id == "pi_1"
    intent = port.created_intents[0]
    assert intent.amount == 2999
    assert intent.currency == "eur"
    assert intent.payment_method_types == ["paypal"]
    assert intent.receipt_email == "test@example.com"
    assert intent.metadata == {
        "price_id": "price_quarterly",
        "product_id": "prod_1",
        "email": "test@example.com",
    }


def test_missing_amount_and_currency_fall_back_to_defaults():
    port = FakeStripePort(
        prices={"price_free": StripePriceDetails(id="price_free", product_id="prod_2", unit_amount=None, currency=None)}
    )

    _use_case(port).execute(CreateCheckoutInput(price_id="price_free", email="test@example.com"))

    assert port.created_intents[0].amount == 0
    assert port.created_intents[0].currency == "eur"


def test_reuses_existing_customer():
    port = FakeStripePort(prices={"price_quarterly": QUARTERLY}, customers={"test@example.com": "cus_existing"})

    _use_case(port).execute(CreateCheckoutInput(price_id="price_quarterly", email="test@example.com"))

    assert port.created_customers == []
    assert port.created_intents[0].customer_id == "cus_existing"


def test_creates_customer_when_none_exists():
    port = FakeStripePort(prices={"price_quarterly": QUARTERLY})

    _use_case(port).execute(CreateCheckoutInput(price_id="price_quarterly", email="new@example.com"))

    assert port.created_customers == ["new@example.com"]


@pytest.mark.parametrize(
    ("price_id", "email"),
    [(None, "test@example.com"), ("price_quarterly", None), ("", "test@example.com"), ("price_quarterly", "  ")],
)
def test_missing_fields_fail_before_any_provider_call(price_id, email):
    port = FakeStripePort(prices={"price_quarterly": QUARTERLY})

    with pytest.raises(ValidationError, match="Both Price ID and Email are required"):
        _use_case(port).execute(CreateCheckoutInput(price_id=price_id, email=email))

    assert port.calls == 0


def test_provider_failure_surfaces_as_upstream_error():
    port = FakeStripePort(prices={})

    with pytest.raises(UpstreamError) as exc_info:
        _use_case(port).execute(CreateCheckoutInput(price_id="price_missing", email="test@example.com"))

    assert "price_missing" in exc_info.value.provider_message
    assert port.created_intents == []
