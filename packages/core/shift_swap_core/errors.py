"""Error types raised by the shift swap engine.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer should answer with. None of them is retried inside the engine.
"""

from typing import Any


class SwapEngineError(Exception):
    """Base class for all shift swap engine errors."""

    code = "SWAP_ENGINE_ERROR"
    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidTransitionError(SwapEngineError):
    """Raised when the actor's role or the request status forbids an action."""

    code = "INVALID_TRANSITION"
    status_code = 400

    def __init__(self, action: str, status: str, reason: str):
        super().__init__(
            f"Cannot {action} a swap request in status '{status}': {reason}",
            action=action,
            status=status,
        )
        self.action = action
        self.status = status
        self.reason = reason


class SwapValidationError(SwapEngineError):
    """Raised when swap request input is malformed or inconsistent."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field: str, value: Any, constraint: str):
        super().__init__(
            f"Validation failed for field '{field}': {constraint}",
            field=field,
        )
        self.field = field
        self.value = value
        self.constraint = constraint


class ResourceNotFoundError(SwapEngineError):
    """Raised when a swap request or a referenced shift does not exist."""

    code = "RESOURCE_NOT_FOUND"
    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            resource_type=resource_type,
            resource_id=resource_id,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConcurrencyConflict(SwapEngineError):
    """Raised when another writer changed the request since it was read."""

    code = "CONCURRENCY_ERROR"
    status_code = 409

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        expected_status: str,
        actual_status: str,
    ):
        super().__init__(
            f"Concurrency conflict for {resource_type} {resource_id}: "
            f"expected state '{expected_status}' but found '{actual_status}'",
            resource_type=resource_type,
            resource_id=resource_id,
            expected_status=expected_status,
            actual_status=actual_status,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.expected_status = expected_status
        self.actual_status = actual_status


class ExchangeFailure(SwapEngineError):
    """Raised when schedule writes fail after the status change committed.

    The request keeps its new status while the schedule records are left as
    they were before the exchange or reversal started. Operators must
    reconcile by hand; blind retries risk double-swapping.
    """

    code = "SWAP_EXECUTION_FAILED"
    status_code = 500

    def __init__(self, request_id: str, operation: str, cause: Exception, swap_request=None):
        super().__init__(
            f"Shift swap {operation} failed for request {request_id}: {cause}",
            request_id=request_id,
            operation=operation,
        )
        self.request_id = request_id
        self.operation = operation
        self.cause = cause
        self.swap_request = swap_request
