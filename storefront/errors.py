"""Exception hierarchy for the storefront API and its HTTP status mapping."""


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    status_code = 500


class NotFoundError(StorefrontError):
    """Requested resource does not exist (404)."""

    status_code = 404


class ValidationFailedError(StorefrontError):
    """Request body failed validation (400)."""

    status_code = 400

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ConflictError(StorefrontError):
    """Request clashes with an existing resource (409)."""

    status_code = 409


class UnauthorizedError(StorefrontError):
    """Missing or invalid admin credentials (401)."""

    status_code = 401


def error_body(error: StorefrontError) -> dict:
    """JSON body sent for *error*."""
    body: dict = {"error": str(error)}
    if isinstance(error, ValidationFailedError) and error.details:
        body["details"] = error.details
    return body
