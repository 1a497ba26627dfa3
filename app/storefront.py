from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from app.application.use_cases.checkout_flow import CheckoutFlow
from app.application.use_cases.poll_payment_result import PaymentResultPoller
from app.infrastructure.clients.checkout_api_client import CheckoutApiClient, CheckoutApiClientSettings
from app.infrastructure.storage.key_value_store import build_key_value_store
from app.infrastructure.storage.retained_session_repository import RetainedSessionRepository
from app.shared.config import Settings


@dataclass(frozen=True)
class Storefront:
    """Shopper-side checkout wired against a running checkout API."""

    settings: Settings
    checkout_api: CheckoutApiClient
    sessions: RetainedSessionRepository
    flow: CheckoutFlow

    def result_poller(self, *, wait: Callable[[float], object] | None = None) -> PaymentResultPoller:
        # One poller per result page; it holds the page's state.
        return PaymentResultPoller(
            checkout_api=self.checkout_api,
            sessions=self.sessions,
            restricted_method_type=self.settings.checkout_payment_method_type,
            max_attempts=self.settings.payment_verify_max_attempts,
            retry_delay_seconds=self.settings.payment_verify_retry_delay_seconds,
            wait=wait,
        )


def build_storefront(
    settings: Settings,
    *,
    base_url: str,
    namespace: str,
    transport: httpx.BaseTransport | None = None,
) -> Storefront:
    checkout_api = CheckoutApiClient(CheckoutApiClientSettings(base_url=base_url), transport=transport)
    sessions = RetainedSessionRepository(build_key_value_store(settings, namespace=namespace))
    flow = CheckoutFlow(
        checkout_api=checkout_api,
        sessions=sessions,
        success_path=settings.checkout_success_path,
    )
    return Storefront(settings=settings, checkout_api=checkout_api, sessions=sessions, flow=flow)
