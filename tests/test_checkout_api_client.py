from __future__ import annotations

import json

import httpx
import pytest

from app.domain.exceptions import CheckoutApiError
from app.infrastructure.clients.checkout_api_client import (
    CheckoutApiClient,
    CheckoutApiClientSettings,
)


def _client(handler) -> CheckoutApiClient:
    return CheckoutApiClient(
        CheckoutApiClientSettings(base_url="http://shop.test"),
        transport=httpx.MockTransport(handler),
    )


def test_list_products_parses_catalog():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/prices"
        return httpx.Response(
            200,
            json={
                "products": [
                    {
                        "id": "prod_1",
                        "name": "Premium",
                        "active": True,
                        "prices": [
                            {
                                "id": "price_q",
                                "product_id": "prod_1",
                                "unit_amount": 2999,
                                "currency": "eur",
                                "interval": "month",
                                "interval_count": 3,
                                "nickname": "3 month",
                                "active": True,
                            }
                        ],
                    }
                ]
            },
        )

    products = _client(handler).list_products()

    assert products[0].name == "Premium"
    assert products[0].prices[0].interval_count == 3
    assert products[0].prices[0].unit_amount == 2999


def test_list_products_rejects_payload_without_products():
    with pytest.raises(CheckoutApiError, match="No pricing options found."):
        _client(lambda request: httpx.Response(200, json={"error": "nope"})).list_products()


def test_list_products_raises_on_http_error():
    with pytest.raises(CheckoutApiError):
        _client(lambda request: httpx.Response(500, json={"error": "Stripe API key is missing"})).list_products()


def test_create_checkout_posts_price_and_email():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "clientSecret": "pi_1_secret"})

    client_secret = _client(handler).create_checkout(price_id="price_q", email="test@example.com")

    assert client_secret == "pi_1_secret"
    assert seen == {"path": "/checkout", "body": {"priceId": "price_q", "email": "test@example.com"}}


def test_create_checkout_without_secret_is_invalid():
    with pytest.raises(CheckoutApiError, match="Invalid response from server"):
        _client(lambda request: httpx.Response(200, json={"success": True})).create_checkout(
            price_id="price_q",
            email="test@example.com",
        )


def test_verify_payment_reads_error_bodies():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            500,
            json={
                "success": False,
                "message": "Error verifying payment status",
                "error_code": "verification_failed",
            },
        )

    result = _client(handler).verify_payment(intent_id="pi_1", intent_type="payment_intent")

    assert result.success is False
    assert result.status is None
    assert result.message == "Error verifying payment status"


def test_verify_payment_sends_type_and_session():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "status": "succeeded", "message": "Payment succeeded"})

    result = _client(handler).verify_payment(intent_id="seti_1", intent_type="setup_intent", session_id="sess")

    assert result.success is True
    assert seen["body"] == {"id": "seti_1", "type": "setup_intent", "session_id": "sess"}


def test_transport_failure_becomes_checkout_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CheckoutApiError):
        _client(handler).verify_payment(intent_id="pi_1", intent_type="payment_intent")
