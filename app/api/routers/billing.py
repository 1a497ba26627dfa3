from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import (
    get_app_settings,
    get_create_checkout_use_case,
    get_verify_payment_use_case,
)
from app.api.schemas.billing import (
    CheckoutConfigResponse,
    CreateCheckoutRequest,
    CreateCheckoutResponse,
    ErrorResponse,
    VerifyPaymentErrorResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from app.application.dto.billing import CreateCheckoutInput, VerifyPaymentInput
from app.application.use_cases.create_checkout import CreateCheckoutUseCase
from app.application.use_cases.verify_payment import VerifyPaymentUseCase
from app.domain.exceptions import DomainError, UpstreamError, ValidationError
from app.shared.config import Settings


logger = logging.getLogger(__name__)

router = APIRouter()

PAYMENT_METHOD_ORDER = ["card", "paypal"]
VERIFY_PAYMENT_PATH = "/verify-payment"


@router.post(
    "/checkout",
    response_model=CreateCheckoutResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_checkout(
    req: CreateCheckoutRequest,
    use_case: CreateCheckoutUseCase = Depends(get_create_checkout_use_case),
):
    try:
        output = use_case.execute(CreateCheckoutInput(price_id=req.price_id, email=req.email))
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except UpstreamError as exc:
        logger.error(
            "billing_router: create_checkout_failed error=%s provider_message=%s",
            exc,
            exc.provider_message,
        )
        return JSONResponse(status_code=500, content={"error": "Error creating payment intent"})

    return CreateCheckoutResponse(client_secret=output.client_secret)


@router.post(
    VERIFY_PAYMENT_PATH,
    response_model=VerifyPaymentResponse,
    responses={400: {"model": VerifyPaymentErrorResponse}, 500: {"model": VerifyPaymentErrorResponse}},
)
def verify_payment(
    req: VerifyPaymentRequest,
    use_case: VerifyPaymentUseCase = Depends(get_verify_payment_use_case),
    settings: Settings = Depends(get_app_settings),
):
    try:
        result = use_case.execute(VerifyPaymentInput(id=req.id, type=req.type))
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})
    except DomainError as exc:
        _log_verification_failure(exc, include_stack=settings.is_development)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Error verifying payment status",
                "error_code": "verification_failed",
            },
        )

    return VerifyPaymentResponse(success=result.success, status=result.status, message=result.message)


@router.get("/checkout-config", response_model=CheckoutConfigResponse)
def checkout_config(settings: Settings = Depends(get_app_settings)):
    return CheckoutConfigResponse(
        publishable_key=settings.stripe_publishable_key or None,
        payment_method_type=settings.checkout_payment_method_type,
        payment_method_order=PAYMENT_METHOD_ORDER,
        success_path=settings.checkout_success_path,
        retry_count=settings.payment_verify_max_attempts,
        retry_delay_seconds=settings.payment_verify_retry_delay_seconds,
    )


def _log_verification_failure(exc: DomainError, *, include_stack: bool) -> None:
    error: dict = {
        "name": exc.__class__.__name__,
        "message": str(exc),
        "provider_message": getattr(exc, "provider_message", None),
    }
    if include_stack:
        error["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    details = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoint": "verify-payment",
        "error": error,
    }
    logger.error("billing_router: verification_failed %s", json.dumps(details, indent=2))
