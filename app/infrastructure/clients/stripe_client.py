from __future__ import annotations

import hashlib
import logging
from typing import Any

import stripe

from app.application.dto.billing import StripePaymentIntentCreate, StripePriceDetails
from app.application.dto.catalog import StripePriceRecord, StripeProductRecord
from app.application.ports.stripe_port import StripePort
from app.domain.entities.payment import PaymentIntent, SetupIntent
from app.domain.exceptions import UpstreamError
from app.shared.config import Settings


logger = logging.getLogger(__name__)


def build_stripe_client(settings: Settings) -> stripe.StripeClient:
    if not settings.stripe_secret_key:
        raise RuntimeError("STRIPE_SECRET_KEY is required.")
    return stripe.StripeClient(
        settings.stripe_secret_key,
        stripe_version=settings.stripe_api_version,
        max_network_retries=settings.stripe_max_network_retries,
    )


class StripeGateway(StripePort):
    """Maps Stripe resources to domain objects; every ``StripeError`` becomes ``UpstreamError``."""

    def __init__(self, client: stripe.StripeClient):
        self._client = client

    def verify_connection(self) -> bool:
        try:
            self._client.v1.balance.retrieve()
        except stripe.StripeError as exc:
            logger.error("stripe_client: connection_check_failed error=%s", _provider_message(exc))
            return False
        logger.info("stripe_client: connection_verified")
        return True

    def find_customer_id_by_email(self, *, email: str) -> str | None:
        try:
            customers = self._client.v1.customers.list(params={"email": email, "limit": 1})
        except stripe.StripeError as exc:
            raise _upstream("Failed to look up Stripe customer.", exc) from exc

        data = _get(customers, "data") or []
        if not data:
            return None
        return _object_id(data[0])

    def create_customer(self, *, email: str) -> str:
        try:
            customer = self._client.v1.customers.create(
                params={"email": email},
                options={"idempotency_key": _customer_idempotency_key(email)},
            )
        except stripe.StripeError as exc:
            raise _upstream("Failed to create Stripe customer.", exc) from exc

        customer_id = _object_id(customer)
        if not customer_id:
            raise UpstreamError("Stripe customer id is missing.")
        return customer_id

    def get_price(self, *, price_id: str) -> StripePriceDetails:
        try:
            price = self._client.v1.prices.retrieve(price_id, params={"expand": ["product"]})
        except stripe.StripeError as exc:
            raise _upstream("Failed to retrieve Stripe price.", exc) from exc

        product_id = _object_id(_get(price, "product"))
        if not product_id:
            raise UpstreamError("Stripe price has no product.")
        return StripePriceDetails(
            id=str(_get(price, "id", price_id)),
            product_id=product_id,
            unit_amount=_get(price, "unit_amount"),
            currency=_get(price, "currency"),
        )

    def create_payment_intent(self, payload: StripePaymentIntentCreate) -> PaymentIntent:
        try:
            intent = self._client.v1.payment_intents.create(
                params={
                    "amount": payload.amount,
                    "currency": payload.currency,
                    "customer": payload.customer_id,
                    "payment_method_types": list(payload.payment_method_types),
                    "metadata": dict(payload.metadata),
                    "receipt_email": payload.receipt_email,
                }
            )
        except stripe.StripeError as exc:
            raise _upstream("Failed to create Stripe payment intent.", exc) from exc
        return _to_payment_intent(intent)

    def get_payment_intent(self, *, payment_intent_id: str) -> PaymentIntent:
        try:
            intent = self._client.v1.payment_intents.retrieve(
                payment_intent_id,
                params={"expand": ["customer", "payment_method"]},
            )
        except stripe.StripeError as exc:
            raise _upstream("Failed to retrieve Stripe payment intent.", exc) from exc
        return _to_payment_intent(intent)

    def get_setup_intent(self, *, setup_intent_id: str) -> SetupIntent:
        try:
            intent = self._client.v1.setup_intents.retrieve(
                setup_intent_id,
                params={"expand": ["customer", "payment_method"]},
            )
        except stripe.StripeError as exc:
            raise _upstream("Failed to retrieve Stripe setup intent.", exc) from exc

        status = _get(intent, "status")
        if not status:
            raise UpstreamError("Stripe setup intent has no status.")
        return SetupIntent(
            id=str(_get(intent, "id", setup_intent_id)),
            status=str(status),
            customer_id=_object_id(_get(intent, "customer")),
            payment_method_id=_object_id(_get(intent, "payment_method")),
        )

    def set_default_payment_method(self, *, customer_id: str, payment_method_id: str) -> None:
        try:
            self._client.v1.customers.update(
                customer_id,
                params={"invoice_settings": {"default_payment_method": payment_method_id}},
            )
        except stripe.StripeError as exc:
            raise _upstream("Failed to update Stripe customer.", exc) from exc

    def update_subscription_payment_method(
        self,
        *,
        subscription_id: str,
        payment_method_id: str,
        metadata: dict[str, str],
    ) -> None:
        try:
            self._client.v1.subscriptions.update(
                subscription_id,
                params={
                    "default_payment_method": payment_method_id,
                    "metadata": dict(metadata),
                },
            )
        except stripe.StripeError as exc:
            raise _upstream("Failed to update Stripe subscription.", exc) from exc

    def list_customer_payment_intents(self, *, customer_id: str, limit: int) -> list[PaymentIntent]:
        try:
            intents = self._client.v1.payment_intents.list(params={"customer": customer_id, "limit": limit})
        except stripe.StripeError as exc:
            raise _upstream("Failed to list Stripe payment intents.", exc) from exc
        return [_to_payment_intent(item) for item in _get(intents, "data") or []]

    def cancel_payment_intent(self, *, payment_intent_id: str) -> None:
        try:
            self._client.v1.payment_intents.cancel(payment_intent_id)
        except stripe.StripeError as exc:
            raise _upstream("Failed to cancel Stripe payment intent.", exc) from exc

    def list_active_products(self) -> list[StripeProductRecord]:
        try:
            products = self._client.v1.products.list(params={"active": True})
        except stripe.StripeError as exc:
            raise _upstream("Failed to fetch products from Stripe", exc) from exc

        return [
            StripeProductRecord(
                id=str(_get(product, "id")),
                name=str(_get(product, "name") or ""),
                description=_get(product, "description"),
                active=bool(_get(product, "active", False)),
            )
            for product in _get(products, "data") or []
        ]

    def list_active_prices(self) -> list[StripePriceRecord]:
        try:
            prices = self._client.v1.prices.list(params={"active": True, "expand": ["data.product"]})
        except stripe.StripeError as exc:
            raise _upstream("Failed to fetch prices from Stripe", exc) from exc

        records: list[StripePriceRecord] = []
        for price in _get(prices, "data") or []:
            recurring = _get(price, "recurring")
            records.append(
                StripePriceRecord(
                    id=str(_get(price, "id")),
                    product_id=_object_id(_get(price, "product")),
                    unit_amount=_get(price, "unit_amount"),
                    currency=str(_get(price, "currency") or ""),
                    interval=_get(recurring, "interval"),
                    interval_count=_get(recurring, "interval_count"),
                    nickname=_get(price, "nickname"),
                    active=bool(_get(price, "active", False)),
                )
            )
        return records


def _to_payment_intent(intent: Any) -> PaymentIntent:
    intent_id = _get(intent, "id")
    status = _get(intent, "status")
    if not intent_id or not status:
        raise UpstreamError("Stripe payment intent response is incomplete.")
    return PaymentIntent(
        id=str(intent_id),
        status=str(status),
        customer_id=_object_id(_get(intent, "customer")),
        payment_method_id=_object_id(_get(intent, "payment_method")),
        payment_method_types=tuple(str(item) for item in _get(intent, "payment_method_types") or ()),
        metadata=_metadata(_get(intent, "metadata")),
        client_secret=_get(intent, "client_secret"),
    )


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _object_id(value: Any) -> str | None:
    """Expanded fields arrive as objects, collapsed ones as plain ids."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    object_id = _get(value, "id")
    return str(object_id) if object_id else None


def _metadata(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) and hasattr(value, "to_dict"):
        value = value.to_dict()
    return {str(key): str(item) for key, item in dict(value).items() if item is not None}


def _customer_idempotency_key(email: str) -> str:
    digest = hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()
    return f"customer-create-{digest}"


def _provider_message(exc: stripe.StripeError) -> str:
    return getattr(exc, "user_message", None) or str(exc) or exc.__class__.__name__


def _upstream(message: str, exc: stripe.StripeError) -> UpstreamError:
    return UpstreamError(message, provider_message=_provider_message(exc))
