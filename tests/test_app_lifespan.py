from __future__ import annotations

from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

from app.infrastructure.clients.stripe_client import StripeGateway
from app.main import app


class FakeBalanceService:
    def __init__(self, *, fail: bool):
        self._fail = fail
        self.calls = 0

    def retrieve(self):
        self.calls += 1
        if self._fail:
            raise stripe.StripeError("Invalid API Key provided")
        return {"object": "balance"}


def test_startup_fails_without_secret_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "")

    with pytest.raises(RuntimeError, match="STRIPE_SECRET_KEY"):
        with TestClient(app):
            pass


def test_startup_builds_gateway_once_and_checks_connection_in_development(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_PUBLISHABLE_KEY", "")
    monkeypatch.setenv("APP_ENV", "development")
    balance = FakeBalanceService(fail=True)
    built = []

    def fake_build(settings):
        built.append(settings.stripe_secret_key)
        return SimpleNamespace(v1=SimpleNamespace(balance=balance))

    monkeypatch.setattr("app.main.build_stripe_client", fake_build)

    with TestClient(app) as client:
        assert isinstance(app.state.stripe_gateway, StripeGateway)
        assert client.get("/health").json() == {"status": "ok"}
        client.get("/health")

    assert built == ["sk_test_123"]
    assert balance.calls == 1
    assert app.state.stripe_gateway is None
