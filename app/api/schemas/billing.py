from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    error: str


class CreateCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: str | None = Field(default=None, alias="priceId")
    email: str | None = None


class CreateCheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    client_secret: str = Field(..., alias="clientSecret")


class VerifyPaymentRequest(BaseModel):
    id: str | None = None
    type: str | None = "payment_intent"
    session_id: str | None = None


class VerifyPaymentResponse(BaseModel):
    success: bool
    status: str | None
    message: str


class VerifyPaymentErrorResponse(BaseModel):
    success: bool = False
    message: str
    error_code: str | None = None


class CheckoutConfigResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    publishable_key: str | None = Field(default=None, alias="publishableKey")
    payment_method_type: str = Field(..., alias="paymentMethodType")
    payment_method_order: list[str] = Field(..., alias="paymentMethodOrder")
    success_path: str = Field(..., alias="successPath")
    retry_count: int = Field(..., alias="retryCount")
    retry_delay_seconds: float = Field(..., alias="retryDelaySeconds")
