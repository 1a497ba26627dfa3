from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Mapping

from app.application.dto.storefront import ResumeDecision
from app.application.ports.checkout_api_port import CheckoutApiPort
from app.application.ports.retained_session_port import RetainedSessionPort
from app.domain.entities.plan import Plan, Product, is_quarterly
from app.domain.exceptions import CatalogUnavailableError, CheckoutApiError, ValidationError


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


class CheckoutFlow:
    """Storefront side of checkout: plan choice, email, and session creation."""

    def __init__(
        self,
        *,
        checkout_api: CheckoutApiPort,
        sessions: RetainedSessionPort,
        success_path: str = "/success",
        clock: Callable[[], float] = time.time,
    ):
        self._checkout_api = checkout_api
        self._sessions = sessions
        self._success_path = success_path
        self._clock = clock

        self.products: list[Product] = []
        self.selected_plan: Plan | None = None
        self.email = self._sessions.load().email or ""

    @property
    def has_valid_email(self) -> bool:
        return is_valid_email(self.email)

    def load_catalog(self) -> list[Product]:
        try:
            products = self._checkout_api.list_products()
        except CheckoutApiError as exc:
            logger.warning("checkout_flow: catalog_fetch_failed error=%s", exc)
            raise CatalogUnavailableError("Failed to load subscription options. Please try again later.") from exc
        if not products:
            raise CatalogUnavailableError("No pricing plans are currently available.")

        self.products = products
        if self.selected_plan is None:
            saved_plan = self.find_plan(self._sessions.load().selected_price_id)
            default_plan = saved_plan or next((plan for plan in self._plans() if is_quarterly(plan)), None)
            if default_plan is not None:
                self.select_plan(default_plan)
        return products

    def find_plan(self, price_id: str | None) -> Plan | None:
        if not price_id:
            return None
        return next((plan for plan in self._plans() if plan.id == price_id), None)

    def select_plan(self, plan: Plan) -> None:
        self.selected_plan = plan
        self._sessions.remember_selection(price_id=plan.id)

    def set_email(self, email: str) -> bool:
        self.email = email.strip()
        return self.has_valid_email

    def begin_checkout(self) -> str:
        """Persist the choice and return the client secret for the payment widget."""
        if self.selected_plan is None or not self.has_valid_email:
            raise ValidationError("Select a plan and enter a valid email address.")

        self._sessions.remember_checkout(
            email=self.email,
            price_id=self.selected_plan.id,
            started_at=self._now_ms(),
        )
        pending = self._sessions.take_client_secret(price_id=self.selected_plan.id, email=self.email)
        if pending:
            return pending
        return self._checkout_api.create_checkout(price_id=self.selected_plan.id, email=self.email)

    def record_confirmation(self, client_secret: str) -> None:
        self._sessions.record_payment_session(session_id=client_secret, started_at=self._now_ms())

    def resume(self, query: Mapping[str, str]) -> ResumeDecision:
        """Restore the saved plan after a ``retry`` or ``payment_failed`` redirect."""
        should_retry = query.get("retry") == "true"
        payment_failed = query.get("payment_failed") == "true"
        session = self._sessions.load()

        if not (should_retry or payment_failed) or not session.selected_price_id:
            return ResumeDecision(selected_plan=self.selected_plan, open_checkout=False, show_pricing=False)

        plan = self.find_plan(session.selected_price_id)
        if plan is None:
            return ResumeDecision(
                selected_plan=self.selected_plan,
                open_checkout=False,
                show_pricing=should_retry and session.can_recreate_checkout,
            )

        self.selected_plan = plan
        return ResumeDecision(selected_plan=plan, open_checkout=should_retry, show_pricing=True)

    def return_url(self, origin: str) -> str:
        return origin.rstrip("/") + self._success_path

    def _plans(self) -> list[Plan]:
        return [plan for product in self.products for plan in product.prices]

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
