"""
Structured error classes for entitlement evaluation.

"Not entitled" is never an exception: it is a normal Decision. These errors
mean the engine could not decide at all, and callers must not map them to
either allow or deny.
"""

from typing import Optional

from fastapi import status


class EntitlementError(Exception):
    """Base exception for entitlement errors."""
    pass


class InvalidEvaluationInput(EntitlementError):
    """
    Raised for programmer errors: arguments no valid call could carry
    (e.g. product_ids=None passed to the coverage guard).
    """

    def __init__(self, argument: str, detail: str):
        self.argument = argument
        self.detail = detail
        super().__init__(f"Invalid argument '{argument}': {detail}")


class EntitlementStoreError(EntitlementError):
    """
    Raised when a backing store read fails (unreachable, timed out).

    Carries a machine-readable error_code for the caller's error response.
    """

    error_code = "ENTITLEMENT_STORE_UNAVAILABLE"
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        operation: str,
        detail: str,
        cause: Optional[Exception] = None,
    ):
        self.operation = operation
        self.detail = detail
        self.cause = cause
        super().__init__(f"Store read '{operation}' failed: {detail}")

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.detail,
            "operation": self.operation,
        }


class EvaluationCancelledError(EntitlementStoreError):
    """Raised when a cancellation token fires before a store read."""

    error_code = "ENTITLEMENT_EVALUATION_CANCELLED"
    http_status = status.HTTP_504_GATEWAY_TIMEOUT
