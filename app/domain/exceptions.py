from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class ValidationError(DomainError):
    """Missing or malformed request fields."""


class UpstreamError(DomainError):
    """A payment provider call failed or returned an unexpected shape."""

    def __init__(self, message: str, *, provider_message: str | None = None):
        super().__init__(message)
        self.provider_message = provider_message


class ReconciliationWarning(DomainError):
    """A best-effort side effect after a successful payment failed."""


class CatalogUnavailableError(DomainError):
    """The plan catalog could not be loaded or is empty."""


class CheckoutApiError(DomainError):
    """The checkout HTTP API could not be reached or answered unexpectedly."""
