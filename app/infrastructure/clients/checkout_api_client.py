from __future__ import annotations

from dataclasses import dataclass
import logging

import httpx

from app.application.ports.checkout_api_port import CheckoutApiPort
from app.domain.entities.payment import VerificationResult
from app.domain.entities.plan import Plan, Product, derive_nickname
from app.domain.exceptions import CheckoutApiError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutApiClientSettings:
    base_url: str
    timeout_seconds: float = 10.0


class CheckoutApiClient(CheckoutApiPort):
    def __init__(
        self,
        settings: CheckoutApiClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport

    def list_products(self) -> list[Product]:
        payload = self._request("GET", "/prices", expect_ok=True)
        if not isinstance(payload, dict) or "products" not in payload:
            raise CheckoutApiError("No pricing options found.")
        rows = payload["products"]
        if not isinstance(rows, list):
            raise CheckoutApiError("Invalid data format received")
        return [_to_product(row) for row in rows]

    def create_checkout(self, *, price_id: str, email: str) -> str:
        payload = self._request(
            "POST",
            "/checkout",
            json={"priceId": price_id, "email": email},
            expect_ok=True,
        )
        client_secret = payload.get("clientSecret") if isinstance(payload, dict) else None
        if not (isinstance(payload, dict) and payload.get("success") and client_secret):
            raise CheckoutApiError("Invalid response from server")
        return str(client_secret)

    def verify_payment(
        self,
        *,
        intent_id: str,
        intent_type: str,
        session_id: str | None = None,
    ) -> VerificationResult:
        # Error statuses still carry a verification body, so they are not raised here.
        payload = self._request(
            "POST",
            "/verify-payment",
            json={"id": intent_id, "type": intent_type, "session_id": session_id},
            expect_ok=False,
        )
        if not isinstance(payload, dict) or "success" not in payload:
            raise CheckoutApiError("Invalid verification response")
        return VerificationResult(
            success=bool(payload.get("success")),
            status=payload.get("status"),
            message=str(payload.get("message") or "Payment verification failed"),
        )

    def _request(self, method: str, path: str, *, json: dict | None = None, expect_ok: bool):
        try:
            with httpx.Client(
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = client.request(method, path, json=json)
                if expect_ok:
                    response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "checkout_api_client: http_error method=%s path=%s status=%s",
                method,
                path,
                exc.response.status_code,
            )
            raise CheckoutApiError(f"Request to {path} failed: {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("checkout_api_client: request_failed method=%s path=%s error=%s", method, path, exc)
            raise CheckoutApiError(f"Request to {path} failed.") from exc


def _to_product(row: dict) -> Product:
    return Product(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        description=row.get("description"),
        active=bool(row.get("active", True)),
        prices=tuple(_to_plan(price, product_id=str(row["id"])) for price in row.get("prices") or []),
    )


def _to_plan(row: dict, *, product_id: str) -> Plan:
    interval = row.get("interval")
    interval_count = row.get("interval_count")
    return Plan(
        id=str(row["id"]),
        product_id=str(row.get("product_id") or product_id),
        unit_amount=int(row.get("unit_amount") or 0),
        currency=str(row.get("currency") or ""),
        interval=interval,
        interval_count=interval_count,
        nickname=derive_nickname(
            nickname=row.get("nickname"),
            interval=interval,
            interval_count=interval_count,
        ),
        active=bool(row.get("active", True)),
    )
