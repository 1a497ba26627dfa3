from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routers import billing, catalog
from app.infrastructure.clients.stripe_client import StripeGateway, build_stripe_client
from app.shared.config import get_settings


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    if not settings.stripe_publishable_key:
        logger.warning("main: stripe_publishable_key_missing payment widget cannot be initialized")

    gateway = StripeGateway(build_stripe_client(settings))
    if settings.is_development:
        gateway.verify_connection()

    app.state.stripe_gateway = gateway
    logger.info("main: started env=%s payment_method_type=%s", settings.app_env, settings.checkout_payment_method_type)
    try:
        yield
    finally:
        app.state.stripe_gateway = None


app = FastAPI(title="Checkout API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=_error_content(request, str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info("main: invalid_request_body path=%s errors=%s", request.url.path, errors)
    return JSONResponse(status_code=400, content=_error_content(request, _validation_message(errors)))


def _error_content(request: Request, message: str) -> dict:
    """Verification answers keep the {success, message} shape; every other route uses {error}."""
    if request.url.path == billing.VERIFY_PAYMENT_PATH:
        return {"success": False, "message": message}
    return {"error": message}


def _validation_message(errors) -> str:
    if not errors:
        return "Invalid request body"
    error = errors[0]
    fields = [part for part in tuple(error.get("loc", ()))[1:] if isinstance(part, str)]
    if not fields:
        return f"Invalid request body: {error.get('msg')}"
    return f"Invalid {'.'.join(fields)}: {error.get('msg')}"


app.include_router(billing.router)
app.include_router(catalog.router)


@app.get("/health")
def health():
    return {"status": "ok"}
