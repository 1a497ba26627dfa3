from __future__ import annotations

from collections.abc import Iterable

from app.domain.entities.payment import PaymentIntent


_SETTLED_STATUSES = frozenset({"succeeded", "canceled"})


def select_sibling_intents(
    intents: Iterable[PaymentIntent],
    *,
    current_intent_id: str,
    price_id: str | None,
) -> list[PaymentIntent]:
    """Return the unsettled intents that compete with ``current_intent_id`` for the same price."""
    return [
        intent
        for intent in intents
        if intent.id != current_intent_id
        and intent.price_id == price_id
        and intent.status not in _SETTLED_STATUSES
    ]
