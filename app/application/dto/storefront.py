from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qsl, urlsplit

from app.domain.entities.plan import Plan


class PollState(str, Enum):
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class RedirectParams:
    """Query parameters the payment widget appends when it redirects back."""

    redirect_status: str | None = None
    payment_intent_id: str | None = None
    setup_intent_id: str | None = None
    payment_type: str | None = None
    error_message: str | None = None
    session_id: str | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "RedirectParams":
        def _value(name: str) -> str | None:
            return query.get(name) or None

        return cls(
            redirect_status=_value("redirect_status"),
            payment_intent_id=_value("payment_intent"),
            setup_intent_id=_value("setup_intent"),
            payment_type=_value("payment_type"),
            error_message=_value("error_message"),
            session_id=_value("session_id"),
        )

    @classmethod
    def from_url(cls, url: str) -> "RedirectParams":
        return cls.from_query(dict(parse_qsl(urlsplit(url).query)))


@dataclass(frozen=True)
class PollOutcome:
    state: PollState
    message: str | None
    is_payment_failed: bool
    attempts: int
    status: str | None


@dataclass(frozen=True)
class RetryPaymentOutcome:
    redirect_to: str
    client_secret: str | None


@dataclass(frozen=True)
class ResumeDecision:
    selected_plan: Plan | None
    open_checkout: bool
    show_pricing: bool
