from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json_list(name: str, default: list[str]) -> list[str]:
    value = _env(name)
    if not value:
        return list(default)
    parsed = json.loads(value)
    if not isinstance(parsed, list):
        raise ValueError(f"{name} must be a JSON list.")
    return [str(item) for item in parsed]


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    cors_allow_origins: list[str]
    stripe_secret_key: str
    stripe_publishable_key: str
    stripe_api_version: str
    stripe_max_network_retries: int
    checkout_payment_method_type: str
    checkout_default_currency: str
    checkout_success_path: str
    payment_verify_max_attempts: int
    payment_verify_retry_delay_seconds: float
    checkout_session_store_dsn: str = ""
    checkout_session_store_path: str = ""

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


def get_settings() -> Settings:
    return Settings(
        app_env=_env("APP_ENV", "production"),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        cors_allow_origins=_json_list("CORS_ALLOW_ORIGINS", ["*"]),
        stripe_secret_key=_env("STRIPE_SECRET_KEY", ""),
        stripe_publishable_key=_env("STRIPE_PUBLISHABLE_KEY", ""),
        stripe_api_version=_env("STRIPE_API_VERSION", "2025-03-31.basil"),
        stripe_max_network_retries=int(_env("STRIPE_MAX_NETWORK_RETRIES", "3")),
        checkout_payment_method_type=_env("CHECKOUT_PAYMENT_METHOD_TYPE", "paypal"),
        checkout_default_currency=_env("CHECKOUT_DEFAULT_CURRENCY", "eur"),
        checkout_success_path=_env("CHECKOUT_SUCCESS_PATH", "/success"),
        payment_verify_max_attempts=int(_env("PAYMENT_VERIFY_MAX_ATTEMPTS", "3")),
        payment_verify_retry_delay_seconds=float(_env("PAYMENT_VERIFY_RETRY_DELAY_SECONDS", "2")),
        checkout_session_store_dsn=_env("CHECKOUT_SESSION_STORE_DSN", ""),
        checkout_session_store_path=_env("CHECKOUT_SESSION_STORE_PATH", ""),
    )
