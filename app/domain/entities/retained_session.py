from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetainedSession:
    """Checkout state kept between page loads.

    Advisory only: the provider's intent status is always re-read before any
    decision is made, these values merely seed the next request.
    """

    selected_price_id: str | None = None
    email: str | None = None
    last_payment_intent_id: str | None = None
    checkout_started_at: int | None = None
    payment_session_id: str | None = None
    payment_started_at: int | None = None
    pending_client_secret: str | None = None
    pending_price_id: str | None = None
    pending_email: str | None = None

    @property
    def can_recreate_checkout(self) -> bool:
        return bool(self.selected_price_id and self.email)
