from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from app.application.dto.storefront import (
    PollOutcome,
    PollState,
    RedirectParams,
    RetryPaymentOutcome,
)
from app.application.ports.checkout_api_port import CheckoutApiPort
from app.application.ports.retained_session_port import RetainedSessionPort
from app.domain.entities.payment import (
    PAYMENT_INTENT,
    SETUP_INTENT,
    SUCCESSFUL_PAYMENT_STATUSES,
    VerificationResult,
)
from app.domain.exceptions import CheckoutApiError, ValidationError


logger = logging.getLogger(__name__)

PAYMENT_NOT_SUCCESSFUL_MESSAGE = "Your payment was not successful."
VERIFICATION_FAILED_MESSAGE = "Payment verification failed"
VERIFICATION_UNREACHABLE_MESSAGE = "Could not verify payment status"
STATUS_UNDETERMINED_MESSAGE = "Could not determine payment status"
RETRY_FAILED_MESSAGE = "Failed to initialize payment retry. Please try again from the homepage."
RETRY_REDIRECT = "/?payment_failed=true"


class PaymentResultPoller:
    """State machine behind the payment result page.

    Starts in ``processing`` and ends in ``success`` or ``failure``. For the
    restricted payment method family a non-successful verification is retried
    after a fixed delay, at most ``max_attempts`` times. The delay can be
    interrupted with :meth:`cancel`, which leaves the poller in ``processing``.
    """

    def __init__(
        self,
        *,
        checkout_api: CheckoutApiPort,
        sessions: RetainedSessionPort,
        restricted_method_type: str = "paypal",
        max_attempts: int = 3,
        retry_delay_seconds: float = 2.0,
        wait: Callable[[float], object] | None = None,
    ):
        self._checkout_api = checkout_api
        self._sessions = sessions
        self._restricted_method_type = restricted_method_type
        self._max_attempts = max_attempts
        self._retry_delay_seconds = retry_delay_seconds
        self._cancelled = threading.Event()
        self._wait = wait or self._cancelled.wait

        self.state = PollState.PROCESSING
        self.message: str | None = None
        self.is_payment_failed = False
        self.attempts = 0
        self.status: str | None = None

    def run(self, params: RedirectParams) -> PollOutcome:
        session = self._sessions.load()
        session_id = params.session_id or session.payment_session_id
        if params.payment_intent_id:
            self._sessions.remember_payment_intent(payment_intent_id=params.payment_intent_id)

        while not self._cancelled.is_set():
            if not self._check(params, session_id=session_id):
                break
            self.attempts += 1
            logger.info(
                "poll_payment_result: retry_scheduled attempt=%s/%s delay=%s status=%s",
                self.attempts,
                self._max_attempts,
                self._retry_delay_seconds,
                self.status,
            )
            self._wait(self._retry_delay_seconds)

        return self.outcome()

    def cancel(self) -> None:
        self._cancelled.set()

    def outcome(self) -> PollOutcome:
        return PollOutcome(
            state=self.state,
            message=self.message,
            is_payment_failed=self.is_payment_failed,
            attempts=self.attempts,
            status=self.status,
        )

    def should_retry(self, result: VerificationResult, *, payment_type: str | None) -> bool:
        return (
            payment_type == self._restricted_method_type
            and self.attempts < self._max_attempts
            and result.status != "canceled"
        )

    def retry_payment(self) -> RetryPaymentOutcome:
        if self.state is not PollState.FAILURE or not self.is_payment_failed:
            raise ValidationError("Retry is only available after a failed payment.")

        session = self._sessions.load()
        if not session.can_recreate_checkout:
            return RetryPaymentOutcome(redirect_to=RETRY_REDIRECT, client_secret=None)

        try:
            client_secret = self._checkout_api.create_checkout(
                price_id=session.selected_price_id,
                email=session.email,
            )
        except CheckoutApiError as exc:
            logger.warning("poll_payment_result: retry_checkout_failed error=%s", exc)
            self.message = RETRY_FAILED_MESSAGE
            return RetryPaymentOutcome(redirect_to=RETRY_REDIRECT, client_secret=None)

        self._sessions.stash_client_secret(client_secret, price_id=session.selected_price_id, email=session.email)
        return RetryPaymentOutcome(redirect_to=RETRY_REDIRECT, client_secret=client_secret)

    def _check(self, params: RedirectParams, *, session_id: str | None) -> bool:
        """Run one verification pass; returns True when another pass should follow."""
        if params.redirect_status == "failed":
            self._fail(params.error_message or PAYMENT_NOT_SUCCESSFUL_MESSAGE, payment_failed=True)
            return False

        if params.payment_intent_id:
            result = self._verify(params.payment_intent_id, PAYMENT_INTENT, session_id)
            if result is None:
                return False
            if result.success and result.status in SUCCESSFUL_PAYMENT_STATUSES:
                self._succeed()
                return False
            if self.should_retry(result, payment_type=params.payment_type):
                return True
            self._fail(result.message or VERIFICATION_FAILED_MESSAGE, payment_failed=True)
            return False

        if params.setup_intent_id:
            result = self._verify(params.setup_intent_id, SETUP_INTENT, session_id)
            if result is None:
                return False
            if result.success:
                self._succeed()
            else:
                self._fail(result.message or VERIFICATION_FAILED_MESSAGE, payment_failed=True)
            return False

        if params.redirect_status == "succeeded":
            self._succeed()
        else:
            self._fail(STATUS_UNDETERMINED_MESSAGE, payment_failed=False)
        return False

    def _verify(self, intent_id: str, intent_type: str, session_id: str | None) -> VerificationResult | None:
        try:
            result = self._checkout_api.verify_payment(
                intent_id=intent_id,
                intent_type=intent_type,
                session_id=session_id,
            )
        except CheckoutApiError as exc:
            logger.warning("poll_payment_result: verify_failed intent=%s error=%s", intent_id, exc)
            self._fail(VERIFICATION_UNREACHABLE_MESSAGE, payment_failed=True)
            return None
        self.status = result.status
        return result

    def _succeed(self) -> None:
        self.state = PollState.SUCCESS
        self.message = None
        self.is_payment_failed = False
        self._sessions.clear()

    def _fail(self, message: str, *, payment_failed: bool) -> None:
        self.state = PollState.FAILURE
        self.message = message
        self.is_payment_failed = payment_failed
