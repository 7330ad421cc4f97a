"""Shift Swap Core - Shared models, database plumbing and errors."""

# Pydantic models (for API request/response validation)
from shift_swap_core.models import (
    STATUS_LABELS,
    AssignmentChange,
    AuditEvent,
    Comment,
    ErrorResponse,
    SwapAction,
    SwapRequest,
    SwapRequestCreate,
    SwapRequestStatus,
    SwapTransition,
    UserRole,
)

# Database utilities
from shift_swap_core.database import (
    get_session,
    get_session_factory,
    get_engine,
    init_db,
    reset_engine,
    Base,
)

# SQLAlchemy models (for database queries)
# Import with DB prefix to distinguish from Pydantic models
from shift_swap_core.db_models import (
    User as DBUser,
    Shift as DBShift,
    SwapRequest as DBSwapRequest,
    Comment as DBComment,
    Setting as DBSetting,
)

from shift_swap_core.errors import (
    ConcurrencyConflict,
    ExchangeFailure,
    InvalidTransitionError,
    ResourceNotFoundError,
    SwapEngineError,
    SwapValidationError,
)

__all__ = [
    # Enums
    "UserRole",
    "SwapRequestStatus",
    "SwapAction",
    "STATUS_LABELS",
    # Pydantic models (API)
    "AssignmentChange",
    "SwapRequest",
    "SwapRequestCreate",
    "SwapTransition",
    "AuditEvent",
    "Comment",
    "ErrorResponse",
    # Database utilities
    "get_session",
    "get_session_factory",
    "get_engine",
    "init_db",
    "reset_engine",
    "Base",
    # SQLAlchemy models (Database)
    "DBUser",
    "DBShift",
    "DBSwapRequest",
    "DBComment",
    "DBSetting",
    # Errors
    "SwapEngineError",
    "InvalidTransitionError",
    "SwapValidationError",
    "ResourceNotFoundError",
    "ConcurrencyConflict",
    "ExchangeFailure",
]
