from __future__ import annotations

import logging

from app.application.dto.billing import VerifyPaymentInput
from app.application.ports.stripe_port import StripePort
from app.domain.entities.payment import (
    INTENT_TYPES,
    PAYMENT_INTENT,
    SUCCESSFUL_PAYMENT_STATUSES,
    PaymentIntent,
    VerificationResult,
    is_indeterminate_status,
    status_message,
)
from app.domain.exceptions import DomainError, ReconciliationWarning, ValidationError
from app.domain.services.reconciliation import select_sibling_intents


logger = logging.getLogger(__name__)

RECENT_INTENTS_LIMIT = 10


class VerifyPaymentUseCase:
    """Reads an intent's status and reconciles the customer's billing state after success.

    Post-success bookkeeping (default payment method, subscription update,
    sibling cancellation) is best-effort: every failure is logged as a
    ``ReconciliationWarning`` and never changes the reported outcome.
    """

    def __init__(self, *, stripe_port: StripePort, payment_method_type: str):
        self._stripe_port = stripe_port
        self._payment_method_type = payment_method_type

    def execute(self, command: VerifyPaymentInput) -> VerificationResult:
        intent_id = (command.id or "").strip()
        if not intent_id:
            raise ValidationError("Missing payment identifier")
        intent_type = command.type or PAYMENT_INTENT
        if intent_type not in INTENT_TYPES:
            raise ValidationError("Invalid payment type specified")

        if intent_type == PAYMENT_INTENT:
            return self._verify_payment_intent(intent_id)
        return self._verify_setup_intent(intent_id)

    def _verify_payment_intent(self, intent_id: str) -> VerificationResult:
        intent = self._stripe_port.get_payment_intent(payment_intent_id=intent_id)
        is_successful = intent.status in SUCCESSFUL_PAYMENT_STATUSES

        if is_successful and intent.customer_id and intent.payment_method_id:
            self._set_default_payment_method(intent.customer_id, intent.payment_method_id)
            if intent.subscription_id:
                self._reconcile_subscription(intent)

        return self._result(intent_id=intent.id, success=is_successful, status=intent.status)

    def _verify_setup_intent(self, intent_id: str) -> VerificationResult:
        setup_intent = self._stripe_port.get_setup_intent(setup_intent_id=intent_id)
        is_successful = setup_intent.status == "succeeded"

        if is_successful and setup_intent.customer_id and setup_intent.payment_method_id:
            self._set_default_payment_method(setup_intent.customer_id, setup_intent.payment_method_id)

        return self._result(intent_id=setup_intent.id, success=is_successful, status=setup_intent.status)

    def _result(self, *, intent_id: str, success: bool, status: str) -> VerificationResult:
        if is_indeterminate_status(status):
            logger.info("verify_payment: indeterminate_status intent=%s status=%s", intent_id, status)
        return VerificationResult(success=success, status=status, message=status_message(status))

    def _set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        try:
            self._stripe_port.set_default_payment_method(
                customer_id=customer_id,
                payment_method_id=payment_method_id,
            )
        except DomainError as exc:
            _warn(
                ReconciliationWarning(f"Failed to set default payment method for customer {customer_id}."),
                exc,
            )

    def _reconcile_subscription(self, intent: PaymentIntent) -> None:
        subscription_id = intent.subscription_id
        try:
            self._stripe_port.update_subscription_payment_method(
                subscription_id=subscription_id,
                payment_method_id=intent.payment_method_id,
                metadata={
                    "payment_intent_status": intent.status,
                    "payment_method_id": intent.payment_method_id,
                },
            )
        except DomainError as exc:
            _warn(ReconciliationWarning(f"Failed to update subscription {subscription_id}."), exc)

        if intent.allows_method(self._payment_method_type):
            self._cancel_sibling_intents(intent)

    def _cancel_sibling_intents(self, intent: PaymentIntent) -> None:
        try:
            recent = self._stripe_port.list_customer_payment_intents(
                customer_id=intent.customer_id,
                limit=RECENT_INTENTS_LIMIT,
            )
        except DomainError as exc:
            _warn(ReconciliationWarning(f"Failed to list payment intents for customer {intent.customer_id}."), exc)
            return

        siblings = select_sibling_intents(recent, current_intent_id=intent.id, price_id=intent.price_id)
        for sibling in siblings:
            try:
                self._stripe_port.cancel_payment_intent(payment_intent_id=sibling.id)
            except DomainError as exc:
                _warn(ReconciliationWarning(f"Failed to cancel redundant payment intent {sibling.id}."), exc)
                continue
            logger.info(
                "verify_payment: canceled_redundant_intent intent=%s kept=%s price=%s",
                sibling.id,
                intent.id,
                intent.price_id,
            )


def _warn(warning: ReconciliationWarning, cause: Exception) -> None:
    logger.warning("verify_payment: reconciliation_warning %s cause=%s", warning, cause)
