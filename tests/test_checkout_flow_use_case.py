from __future__ import annotations

import pytest

from app.application.use_cases.checkout_flow import CheckoutFlow, is_valid_email
from app.domain.entities.plan import Plan, Product
from app.domain.exceptions import CatalogUnavailableError, CheckoutApiError, ValidationError
from app.infrastructure.storage.key_value_store import InMemoryKeyValueStore
from app.infrastructure.storage.retained_session_repository import RetainedSessionRepository


def _plan(price_id: str, *, interval: str = "month", interval_count: int = 1, unit_amount: int = 999) -> Plan:
    return Plan(
        id=price_id,
        product_id="prod_1",
        unit_amount=unit_amount,
        currency="eur",
        interval=interval,
        interval_count=interval_count,
        nickname=f"{interval_count} {interval}",
        active=True,
    )


MONTHLY = _plan("price_m")
QUARTERLY = _plan("price_q", interval_count=3, unit_amount=2999)
CATALOG = [Product(id="prod_1", name="Premium", description=None, active=True, prices=(MONTHLY, QUARTERLY))]


class FakeCheckoutApi:
    def __init__(self, products: list[Product] | None = None, *, fail_catalog: bool = False):
        self._products = CATALOG if products is None else products
        self._fail_catalog = fail_catalog
        self.checkout_calls: list[tuple[str, str]] = []

    def list_products(self) -> list[Product]:
        if self._fail_catalog:
            raise CheckoutApiError("Request to /prices failed: 500")
        return self._products

    def create_checkout(self, *, price_id: str, email: str) -> str:
        self.checkout_calls.append((price_id, email))
        return "pi_1_secret"

    def verify_payment(self, **_kwargs):
        raise NotImplementedError


def _flow(api: FakeCheckoutApi, store: InMemoryKeyValueStore | None = None) -> tuple[CheckoutFlow, InMemoryKeyValueStore]:
    store = store or InMemoryKeyValueStore()
    flow = CheckoutFlow(
        checkout_api=api,
        sessions=RetainedSessionRepository(store),
        clock=lambda: 1700000000.5,
    )
    return flow, store


def test_load_catalog_preselects_quarterly_plan():
    flow, store = _flow(FakeCheckoutApi())

    flow.load_catalog()

    assert flow.selected_plan == QUARTERLY
    assert store.get("selectedPriceId") == "price_q"


def test_empty_catalog_is_unavailable():
    flow, _ = _flow(FakeCheckoutApi(products=[]))

    with pytest.raises(CatalogUnavailableError, match="No pricing plans are currently available."):
        flow.load_catalog()


def test_catalog_fetch_failure_is_unavailable():
    flow, _ = _flow(FakeCheckoutApi(fail_catalog=True))

    with pytest.raises(CatalogUnavailableError, match="Failed to load subscription options"):
        flow.load_catalog()


@pytest.mark.parametrize(
    ("email", "valid"),
    [("test@example.com", True), ("test@example", False), ("test example@x.io", False), ("", False)],
)
def test_email_validation(email: str, valid: bool):
    assert is_valid_email(email) is valid


def test_end_to_end_checkout_persists_choice_and_returns_secret():
    api = FakeCheckoutApi()
    flow, store = _flow(api)
    flow.load_catalog()

    assert flow.set_email("test@example.com") is True
    client_secret = flow.begin_checkout()
    flow.record_confirmation(client_secret)

    assert client_secret == "pi_1_secret"
    assert api.checkout_calls == [("price_q", "test@example.com")]
    assert store.get("userEmail") == "test@example.com"
    assert store.get("payment_attempt_timestamp") == "1700000000500"
    assert store.get("payment_session_id") == "pi_1_secret"
    assert store.get("payment_timestamp") == "1700000000500"


def test_begin_checkout_requires_plan_and_valid_email():
    flow, _ = _flow(FakeCheckoutApi(products=[]))
    flow.set_email("not-an-email")

    with pytest.raises(ValidationError):
        flow.begin_checkout()


def test_begin_checkout_uses_stashed_client_secret_once():
    api = FakeCheckoutApi()
    store = InMemoryKeyValueStore(
        {
            "payment_client_secret": "pi_retry_secret",
            "payment_client_secret_price_id": "price_q",
            "payment_client_secret_email": "test@example.com",
            "userEmail": "test@example.com",
        }
    )
    flow, _ = _flow(api, store)
    flow.load_catalog()

    first = flow.begin_checkout()
    second = flow.begin_checkout()

    assert first == "pi_retry_secret"
    assert second == "pi_1_secret"
    assert api.checkout_calls == [("price_q", "test@example.com")]


def test_begin_checkout_ignores_stashed_secret_after_plan_change():
    api = FakeCheckoutApi()
    store = InMemoryKeyValueStore(
        {
            "payment_client_secret": "pi_quarterly_secret",
            "payment_client_secret_price_id": "price_q",
            "payment_client_secret_email": "test@example.com",
            "selectedPriceId": "price_q",
            "userEmail": "test@example.com",
        }
    )
    flow, _ = _flow(api, store)
    flow.load_catalog()
    flow.select_plan(MONTHLY)

    client_secret = flow.begin_checkout()

    assert client_secret == "pi_1_secret"
    assert api.checkout_calls == [("price_m", "test@example.com")]
    assert store.get("payment_client_secret") is None


def test_begin_checkout_ignores_stashed_secret_after_email_change():
    api = FakeCheckoutApi()
    store = InMemoryKeyValueStore(
        {
            "payment_client_secret": "pi_retry_secret",
            "payment_client_secret_price_id": "price_q",
            "payment_client_secret_email": "test@example.com",
            "userEmail": "test@example.com",
        }
    )
    flow, _ = _flow(api, store)
    flow.load_catalog()
    flow.set_email("someone@example.com")

    assert flow.begin_checkout() == "pi_1_secret"
    assert api.checkout_calls == [("price_q", "someone@example.com")]


def test_resume_retry_reopens_checkout_with_saved_plan():
    store = InMemoryKeyValueStore({"selectedPriceId": "price_m", "userEmail": "test@example.com"})
    flow, _ = _flow(FakeCheckoutApi(), store)
    flow.load_catalog()

    decision = flow.resume({"retry": "true"})

    assert decision.selected_plan == MONTHLY
    assert decision.open_checkout is True
    assert decision.show_pricing is True


def test_resume_after_failed_payment_only_shows_pricing():
    store = InMemoryKeyValueStore({"selectedPriceId": "price_m"})
    flow, _ = _flow(FakeCheckoutApi(), store)
    flow.load_catalog()

    decision = flow.resume({"payment_failed": "true"})

    assert decision.selected_plan == MONTHLY
    assert decision.open_checkout is False
    assert decision.show_pricing is True


def test_resume_without_flags_keeps_current_selection():
    flow, _ = _flow(FakeCheckoutApi())
    flow.load_catalog()

    decision = flow.resume({})

    assert decision.selected_plan == QUARTERLY
    assert decision.open_checkout is False


def test_return_url_points_at_success_page():
    flow, _ = _flow(FakeCheckoutApi())

    assert flow.return_url("https://shop.test/") == "https://shop.test/success"
