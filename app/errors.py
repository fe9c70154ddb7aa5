"""Application error taxonomy.

Every error a route can surface is an ``AppError`` carrying its HTTP status,
a short ``error`` label and an optional human-readable ``message``. The
exception handlers in ``app.main`` render them into the JSON envelope
``{"success": false, "error": ..., "message": ...}``.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors rendered as JSON error envelopes."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        error: str | None = None,
        details: str | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(message or error or self.error)
        self.message = message
        if error is not None:
            self.error = error
        self.details = details
        self.extra = extra

    def to_content(self) -> dict[str, Any]:
        """Build the JSON body for this error."""
        content: dict[str, Any] = {"success": False, "error": self.error}
        if self.message:
            content["message"] = self.message
        if self.details:
            content["details"] = self.details
        content.update(self.extra)
        return content


# Client errors


class ValidationError(AppError):
    """Malformed client input."""

    status_code = 400
    error = "Invalid request"


class AuthError(AppError):
    """Missing, invalid or expired credential."""

    status_code = 401
    error = "Unauthorized"


class BillingError(AppError):
    """Model provider credit exhaustion."""

    status_code = 402
    error = "Insufficient API Credits"


class NotFoundError(AppError):
    """Resource absent or not owned by the caller."""

    status_code = 404
    error = "Not found"


class ConflictError(AppError):
    """Unique value already taken."""

    status_code = 409
    error = "Conflict"


class RateLimitedError(AppError):
    """API key quota exhausted."""

    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, usage: int, rate_limit: int) -> None:
        super().__init__(
            f"API key has reached its usage limit of {rate_limit} requests",
            usage=usage,
            rateLimit=rate_limit,
        )
        self.usage = usage
        self.rate_limit = rate_limit


# Server-side errors


class UpstreamError(AppError):
    """Store, model or network failure."""

    status_code = 500
    error = "Internal server error"


# API key validation


class MissingKeyError(ValidationError):
    error = "API key is required"


class KeyNotFoundError(AuthError):
    error = "Invalid API key"


class StoreError(UpstreamError):
    error = "Credential store unavailable"


# Session authentication


class MissingTokenError(AuthError):
    error = "Authorization token required"


class InvalidTokenError(AuthError):
    error = "Invalid or expired token"


class UserNotFoundError(AuthError):
    error = "User not found"


class InternalError(UpstreamError):
    pass


# Summarization pipeline


class InvalidUrlError(ValidationError):
    error = "Invalid GitHub URL"


class ReadmeNotFoundError(NotFoundError):
    error = "README.md not found in repository"


class CredentialsMissingError(UpstreamError):
    error = "LLM credentials not configured"


class InsufficientCreditError(BillingError):
    pass


class SummarizationFailedError(UpstreamError):
    error = "Failed to generate summary"


class GitHubUnavailableError(SummarizationFailedError):
    error = "GitHub unavailable"


# Service health


class ServiceUnavailableError(AppError):
    """A dependency the service needs is not ready."""

    status_code = 503
    error = "Service not ready"
