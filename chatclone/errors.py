"""
Error taxonomy for the chat backend.

Every error carries the HTTP status it maps to; the exception handlers in
chatclone.main turn them into {"error": message} responses.
"""


class ChatCloneError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ChatCloneError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(ChatCloneError):
    status_code = 401
    default_message = "Authentication failed"


class MissingCredential(AuthError):
    status_code = 401
    default_message = "No token provided"


class InvalidCredential(AuthError):
    status_code = 403
    default_message = "Invalid token"


class Forbidden(ChatCloneError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ChatCloneError):
    status_code = 404
    default_message = "Not found"


class DuplicateKey(ChatCloneError):
    status_code = 409
    default_message = "Record already exists"


class StorageError(ChatCloneError):
    default_message = "Database operation failed"


class ProviderError(ChatCloneError):
    """Completion provider call failed (after retries, if any)."""

    default_message = "Completion provider request failed"

    def __init__(self, message: str | None = None, *, provider_status: int | None = None):
        super().__init__(message)
        self.provider_status = provider_status


class RateLimitExceeded(ProviderError):
    default_message = "Completion provider rate limit exceeded"


class InvalidProviderResponse(ProviderError):
    default_message = "Invalid response from completion provider"
