from __future__ import annotations


class OrderLifecycleError(ValueError):
    """Base for rule violations raised by the order services.

    ``code`` is the stable machine-readable identifier sent to clients and
    ``status_code`` the HTTP status the API maps it to.
    """

    code = "ORDER_ERROR"
    status_code = 400

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationFailed(OrderLifecycleError):
    code = "VALIDATION_FAILED"
    status_code = 400


class NotFound(OrderLifecycleError):
    code = "NOT_FOUND"
    status_code = 404


class Forbidden(OrderLifecycleError):
    code = "FORBIDDEN"
    status_code = 403


class IllegalTransition(OrderLifecycleError):
    code = "ILLEGAL_TRANSITION"
    status_code = 409


class VersionConflict(OrderLifecycleError):
    code = "VERSION_CONFLICT"
    status_code = 409


class OutOfStock(OrderLifecycleError):
    code = "OUT_OF_STOCK"
    status_code = 409
