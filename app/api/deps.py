from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from app.application.ports.stripe_port import StripePort
from app.application.use_cases.create_checkout import CreateCheckoutUseCase
from app.application.use_cases.list_catalog import ListCatalogUseCase
from app.application.use_cases.verify_payment import VerifyPaymentUseCase
from app.shared.config import Settings, get_settings


STRIPE_KEY_REQUIRED_MESSAGE = "STRIPE_SECRET_KEY is required."
CATALOG_KEY_MISSING_MESSAGE = "Stripe API key is missing"


def get_app_settings() -> Settings:
    return get_settings()


def _stripe_gateway(request: Request, *, missing_message: str) -> StripePort:
    gateway = getattr(request.app.state, "stripe_gateway", None)
    if gateway is None:
        raise HTTPException(status_code=500, detail=missing_message)
    return gateway


def get_stripe_port(request: Request) -> StripePort:
    return _stripe_gateway(request, missing_message=STRIPE_KEY_REQUIRED_MESSAGE)


def get_catalog_stripe_port(request: Request) -> StripePort:
    return _stripe_gateway(request, missing_message=CATALOG_KEY_MISSING_MESSAGE)


def get_create_checkout_use_case(
    stripe_port: StripePort = Depends(get_stripe_port),
    settings: Settings = Depends(get_app_settings),
) -> CreateCheckoutUseCase:
    return CreateCheckoutUseCase(
        stripe_port=stripe_port,
        payment_method_type=settings.checkout_payment_method_type,
        default_currency=settings.checkout_default_currency,
    )


def get_verify_payment_use_case(
    stripe_port: StripePort = Depends(get_stripe_port),
    settings: Settings = Depends(get_app_settings),
) -> VerifyPaymentUseCase:
    return VerifyPaymentUseCase(
        stripe_port=stripe_port,
        payment_method_type=settings.checkout_payment_method_type,
    )


def get_list_catalog_use_case(
    stripe_port: StripePort = Depends(get_catalog_stripe_port),
) -> ListCatalogUseCase:
    return ListCatalogUseCase(stripe_port=stripe_port)
