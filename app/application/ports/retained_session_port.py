from __future__ import annotations

from typing import Protocol

from app.domain.entities.retained_session import RetainedSession


class RetainedSessionPort(Protocol):
    def load(self) -> RetainedSession:
        ...

    def remember_selection(self, *, price_id: str) -> None:
        ...

    def remember_checkout(self, *, email: str, price_id: str, started_at: int) -> None:
        ...

    def remember_payment_intent(self, *, payment_intent_id: str) -> None:
        ...

    def record_payment_session(self, *, session_id: str, started_at: int) -> None:
        ...

    def stash_client_secret(self, client_secret: str, *, price_id: str, email: str) -> None:
        ...

    def take_client_secret(self, *, price_id: str, email: str) -> str | None:
        ...

    def clear(self) -> None:
        ...
