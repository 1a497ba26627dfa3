from __future__ import annotations

from app.application.ports.key_value_store_port import KeyValueStorePort
from app.application.ports.retained_session_port import RetainedSessionPort
from app.domain.entities.retained_session import RetainedSession


SELECTED_PRICE_ID_KEY = "selectedPriceId"
EMAIL_KEY = "userEmail"
LAST_PAYMENT_INTENT_ID_KEY = "last_payment_intent_id"
CHECKOUT_STARTED_AT_KEY = "payment_attempt_timestamp"
PAYMENT_SESSION_ID_KEY = "payment_session_id"
PAYMENT_STARTED_AT_KEY = "payment_timestamp"
PENDING_CLIENT_SECRET_KEY = "payment_client_secret"
PENDING_PRICE_ID_KEY = "payment_client_secret_price_id"
PENDING_EMAIL_KEY = "payment_client_secret_email"


class RetainedSessionRepository(RetainedSessionPort):
    def __init__(self, store: KeyValueStorePort):
        self._store = store

    def load(self) -> RetainedSession:
        return RetainedSession(
            selected_price_id=self._store.get(SELECTED_PRICE_ID_KEY),
            email=self._store.get(EMAIL_KEY),
            last_payment_intent_id=self._store.get(LAST_PAYMENT_INTENT_ID_KEY),
            checkout_started_at=_to_int(self._store.get(CHECKOUT_STARTED_AT_KEY)),
            payment_session_id=self._store.get(PAYMENT_SESSION_ID_KEY),
            payment_started_at=_to_int(self._store.get(PAYMENT_STARTED_AT_KEY)),
            pending_client_secret=self._store.get(PENDING_CLIENT_SECRET_KEY),
            pending_price_id=self._store.get(PENDING_PRICE_ID_KEY),
            pending_email=self._store.get(PENDING_EMAIL_KEY),
        )

    def remember_selection(self, *, price_id: str) -> None:
        self._store.set(SELECTED_PRICE_ID_KEY, price_id)

    def remember_checkout(self, *, email: str, price_id: str, started_at: int) -> None:
        self._store.set(EMAIL_KEY, email)
        self._store.set(SELECTED_PRICE_ID_KEY, price_id)
        self._store.set(CHECKOUT_STARTED_AT_KEY, str(started_at))

    def remember_payment_intent(self, *, payment_intent_id: str) -> None:
        self._store.set(LAST_PAYMENT_INTENT_ID_KEY, payment_intent_id)

    def record_payment_session(self, *, session_id: str, started_at: int) -> None:
        self._store.set(PAYMENT_SESSION_ID_KEY, session_id)
        self._store.set(PAYMENT_STARTED_AT_KEY, str(started_at))

    def stash_client_secret(self, client_secret: str, *, price_id: str, email: str) -> None:
        self._store.set(PENDING_CLIENT_SECRET_KEY, client_secret)
        self._store.set(PENDING_PRICE_ID_KEY, price_id)
        self._store.set(PENDING_EMAIL_KEY, email)

    def take_client_secret(self, *, price_id: str, email: str) -> str | None:
        """Consume the stashed secret; it is returned only for the plan and email it was created for."""
        client_secret = self._store.get(PENDING_CLIENT_SECRET_KEY)
        stashed_price_id = self._store.get(PENDING_PRICE_ID_KEY)
        stashed_email = self._store.get(PENDING_EMAIL_KEY)
        for key in (PENDING_CLIENT_SECRET_KEY, PENDING_PRICE_ID_KEY, PENDING_EMAIL_KEY):
            self._store.remove(key)

        if client_secret is None or stashed_price_id != price_id:
            return None
        if _normalize_email(stashed_email) != _normalize_email(email):
            return None
        return client_secret

    def clear(self) -> None:
        """Forget the confirmed payment; email and plan choice are kept for the next checkout."""
        self._store.remove(PAYMENT_SESSION_ID_KEY)
        self._store.remove(PAYMENT_STARTED_AT_KEY)
        self._store.remove(CHECKOUT_STARTED_AT_KEY)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
