from __future__ import annotations

from typing import Protocol

from app.domain.entities.payment import VerificationResult
from app.domain.entities.plan import Product


class CheckoutApiPort(Protocol):
    def list_products(self) -> list[Product]:
        ...

    def create_checkout(self, *, price_id: str, email: str) -> str:
        ...

    def verify_payment(
        self,
        *,
        intent_id: str,
        intent_type: str,
        session_id: str | None = None,
    ) -> VerificationResult:
        ...
