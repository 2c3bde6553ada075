"""
Application error taxonomy.

Services raise these; the API layer maps them to HTTP responses via
``status_code`` (see config/api.py).
"""


class AppError(Exception):
    """Base exception for WhatThePack domain errors."""

    status_code = 400
    default_message = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotAuthenticatedError(AppError):
    """No authenticated identity on the request."""

    status_code = 401
    default_message = "Not authenticated"


class AccessDeniedError(AppError):
    """Authenticated, but the role or organization does not allow the action."""

    status_code = 403
    default_message = "Access denied"


class RateLimitedError(AppError):
    """Too many attempts for a rate-limited operation."""

    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: str | None = None, retry_after: int = 0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ValidationError(AppError):
    """Input failed validation (slug format, stock levels, confirmations)."""

    pass


class SlugTakenError(AppError):
    """Slug already used by another organization."""

    status_code = 409
    default_message = "This subdomain is already taken"


class SlugExhaustedError(AppError):
    """No free slug candidate within the attempt bound."""

    status_code = 409
    default_message = "Could not find an available subdomain"


class AlreadyOnboardedError(AppError):
    """The user already belongs to an organization."""

    status_code = 409
    default_message = "User already has an organization"


class NotFoundError(AppError):
    """Requested record does not exist (or is outside the caller's tenant)."""

    status_code = 404
    default_message = "Not found"


class RemoteProvisioningError(AppError):
    """Identity provider could not provision the remote organization."""

    status_code = 502
    default_message = "Failed to provision remote organization"


class ExternalServiceError(AppError):
    """An external collaborator (email, LLM) failed."""

    status_code = 502
    default_message = "External service unavailable"
