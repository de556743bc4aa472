"""Insight-Engine exception hierarchy.

Every error carries the HTTP status it maps to; the app-level handler renders
them as ``{"error": message}``.
"""


class InsightError(Exception):
    """Base exception for all Insight-Engine errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "INSIGHT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class AuthenticationMissingError(InsightError):
    """Raised when a request carries no valid principal."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class AuthorizationDeniedError(InsightError):
    """Raised when a principal lacks the role a resource requires."""

    status_code = 403

    def __init__(self, message: str = "Unauthorized - Master admin access required"):
        super().__init__(message, code="UNAUTHORIZED")


class ValidationFailedError(InsightError):
    """Raised when a required input field is missing or malformed."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="VALIDATION_FAILED")


class MissingFieldError(ValidationFailedError):
    """Raised when a named required field is absent."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required field: {field}")


class ReferenceNotFoundError(InsightError):
    """Raised when a referenced record does not exist."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class ConflictError(InsightError):
    """Raised when a write collides with an existing unique key."""

    status_code = 409

    def __init__(self, message: str = "Already exists", code: str = "CONFLICT"):
        super().__init__(message, code=code)


class DuplicateEventError(ConflictError):
    """Raised when an ingested event collides with an existing idempotency key."""

    def __init__(self, message: str = "Duplicate entry detected"):
        super().__init__(message, code="DUPLICATE")


class StoreFailureError(InsightError):
    """Raised when the underlying store fails; the message stays generic."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="STORE_FAILURE")
