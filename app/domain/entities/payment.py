from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


IntentType = Literal["payment_intent", "setup_intent"]

PAYMENT_INTENT: IntentType = "payment_intent"
SETUP_INTENT: IntentType = "setup_intent"
INTENT_TYPES: frozenset[str] = frozenset({PAYMENT_INTENT, SETUP_INTENT})

SUCCESSFUL_PAYMENT_STATUSES: frozenset[str] = frozenset({"succeeded", "processing"})

STATUS_MESSAGES: dict[str, str] = {
    "succeeded": "Payment succeeded",
    "processing": "Payment is still processing",
    "requires_payment_method": "Payment method failed, please try again with a different payment method",
    "requires_action": "Additional authentication required",
    "canceled": "Payment was canceled",
}
UNKNOWN_STATUS_MESSAGE = "Payment is in an unknown state"


def status_message(status: str | None) -> str:
    if status is None:
        return UNKNOWN_STATUS_MESSAGE
    return STATUS_MESSAGES.get(status, UNKNOWN_STATUS_MESSAGE)


def is_indeterminate_status(status: str | None) -> bool:
    return status not in STATUS_MESSAGES


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    status: str
    customer_id: str | None
    payment_method_id: str | None
    payment_method_types: tuple[str, ...] = ()
    metadata: dict[str, str] = field(default_factory=dict)
    client_secret: str | None = None

    @property
    def price_id(self) -> str | None:
        return self.metadata.get("price_id")

    @property
    def subscription_id(self) -> str | None:
        return self.metadata.get("subscription_id") or None

    def allows_method(self, method_type: str) -> bool:
        return method_type in self.payment_method_types


@dataclass(frozen=True)
class SetupIntent:
    id: str
    status: str
    customer_id: str | None
    payment_method_id: str | None


@dataclass(frozen=True)
class VerificationResult:
    success: bool
    status: str | None
    message: str
