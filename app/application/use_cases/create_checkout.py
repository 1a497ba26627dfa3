from __future__ import annotations

import logging

from app.application.dto.billing import (
    CreateCheckoutInput,
    CreateCheckoutOutput,
    StripePaymentIntentCreate,
)
from app.application.ports.stripe_port import StripePort
from app.domain.exceptions import UpstreamError, ValidationError


logger = logging.getLogger(__name__)


class CreateCheckoutUseCase:
    def __init__(
        self,
        *,
        stripe_port: StripePort,
        payment_method_type: str,
        default_currency: str = "eur",
    ):
        self._stripe_port = stripe_port
        self._payment_method_type = payment_method_type
        self._default_currency = default_currency

    def execute(self, command: CreateCheckoutInput) -> CreateCheckoutOutput:
        price_id = (command.price_id or "").strip()
        email = (command.email or "").strip()
        if not price_id or not email:
            raise ValidationError("Both Price ID and Email are required")

        customer_id = self._find_or_create_customer(email)
        price = self._stripe_port.get_price(price_id=price_id)

        intent = self._stripe_port.create_payment_intent(
            StripePaymentIntentCreate(
                amount=price.unit_amount or 0,
                currency=price.currency or self._default_currency,
                customer_id=customer_id,
                payment_method_types=[self._payment_method_type],
                metadata={
                    "price_id": price_id,
                    "product_id": price.product_id,
                    "email": email,
                },
                receipt_email=email,
            )
        )
        if not intent.client_secret:
            raise UpstreamError("Stripe payment intent is missing client_secret.")

        logger.info(
            "create_checkout: payment_intent_created intent=%s customer=%s price=%s",
            intent.id,
            customer_id,
            price_id,
        )
        return CreateCheckoutOutput(client_secret=intent.client_secret, payment_intent_id=intent.id)

    def _find_or_create_customer(self, email: str) -> str:
        # Not atomic: the adapter's idempotency key narrows, but does not close, the race.
        customer_id = self._stripe_port.find_customer_id_by_email(email=email)
        if customer_id:
            return customer_id
        return self._stripe_port.create_customer(email=email)
