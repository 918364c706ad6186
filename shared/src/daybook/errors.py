"""Typed failures shared by the store, the version lifecycle and the API layer.

Every error carries an HTTP-style ``status_code`` and a user-safe ``message``.
Internal detail (driver messages, upstream bodies) goes in ``detail`` and is
only exposed to clients outside production.
"""

from __future__ import annotations


class DaybookError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


# Caller errors


class ValidationError(DaybookError):
    status_code = 400
    default_message = "Invalid request"


class InvalidEndpointError(ValidationError):
    default_message = "Invalid endpoint"


class PayloadTooLargeError(DaybookError):
    status_code = 413
    default_message = "Payload too large"


# Lookup failures


class NotFoundError(DaybookError):
    status_code = 404
    default_message = "Not found"


class VersionNotFoundError(NotFoundError):
    default_message = "Version not found or does not belong to this endpoint"


class NoPromptFoundError(NotFoundError):
    default_message = "No prompt found for this endpoint"


# Business rule violations


class ForbiddenVersionError(DaybookError):
    status_code = 403
    default_message = "Operation not allowed on this version"


class ProtectedVersionError(ForbiddenVersionError):
    default_message = "Cannot delete default version (v0)"


class ActiveVersionError(ForbiddenVersionError):
    default_message = "Cannot delete currently active version. Switch to another version first."


class VersionNotDeletableError(ForbiddenVersionError):
    default_message = "Version cannot be deleted (protected or currently active)"


class DuplicateVersionError(DaybookError):
    status_code = 409
    default_message = "Version already exists"


# Store failures


class StoreError(DaybookError):
    default_message = "Database error"


class StoreUnavailableError(StoreError):
    default_message = "Database unavailable"


class ResourceExhaustedError(StoreError):
    default_message = "Database connection pool exhausted"


# Upstream provider failures


class ConfigurationError(DaybookError):
    default_message = "Server configuration error"


class UpstreamError(DaybookError):
    status_code = 502
    default_message = "Upstream provider error"


class UpstreamAuthError(UpstreamError):
    status_code = 401
    default_message = "Upstream API key is invalid"


class UpstreamQuotaError(UpstreamError):
    status_code = 402
    default_message = "Upstream API quota exceeded"
