"""Pydantic models for Shift Swap data types."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, Enum):
    """User role options."""

    AGENT = "agent"
    TL = "tl"
    WFM = "wfm"


class SwapRequestStatus(str, Enum):
    """Swap request lifecycle states."""

    PENDING_ACCEPTANCE = "pending_acceptance"
    PENDING_TL = "pending_tl"
    PENDING_WFM = "pending_wfm"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        """Human-readable label used in audit comments."""
        return STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (SwapRequestStatus.APPROVED, SwapRequestStatus.REJECTED)


STATUS_LABELS = {
    SwapRequestStatus.PENDING_ACCEPTANCE: "Pending Acceptance",
    SwapRequestStatus.PENDING_TL: "Pending TL",
    SwapRequestStatus.PENDING_WFM: "Pending WFM",
    SwapRequestStatus.APPROVED: "Approved",
    SwapRequestStatus.REJECTED: "Rejected",
}


class SwapAction(str, Enum):
    """Actions that move a swap request between states."""

    CREATE = "create"
    ACCEPT = "accept"
    DECLINE = "decline"
    TL_APPROVE = "tl_approve"
    TL_REJECT = "tl_reject"
    WFM_APPROVE = "wfm_approve"
    WFM_REJECT = "wfm_reject"
    CANCEL = "cancel"
    REVOKE = "revoke"


# =============================================================================
# Exchange Models
# =============================================================================


class AssignmentChange(BaseModel):
    """A single schedule record rewritten by an exchange or a reversal."""

    employee_id: str
    date: date
    old_value: str | None
    new_value: str


# =============================================================================
# Swap Request Models
# =============================================================================


class SwapRequest(BaseModel):
    """Swap request data model."""

    id: str
    requester_id: str
    target_user_id: str
    requester_shift_id: str | None = None
    target_shift_id: str | None = None
    requester_date: date
    target_date: date
    status: SwapRequestStatus
    tl_approved_at: datetime | None = None
    wfm_approved_at: datetime | None = None
    requester_value_on_requester_date: str | None = None
    target_value_on_requester_date: str | None = None
    requester_value_on_target_date: str | None = None
    target_value_on_target_date: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class SwapRequestCreate(BaseModel):
    """Payload for creating a swap request."""

    requester_id: str
    target_user_id: str
    requester_shift_id: str
    target_shift_id: str


class SwapTransition(BaseModel):
    """Payload for moving a swap request through the approval pipeline."""

    actor_id: str
    actor_role: UserRole
    actor_name: str | None = None
    action: SwapAction
    expected_status: SwapRequestStatus


# =============================================================================
# Audit Models
# =============================================================================


class AuditEvent(BaseModel):
    """A structured record of one swap request transition."""

    request_id: str
    action: SwapAction
    actor_id: str
    actor_name: str
    actor_role: UserRole
    from_status: SwapRequestStatus | None = None
    to_status: SwapRequestStatus
    auto_approved: bool = False
    shifts_restored: bool = False
    occurred_at: datetime


class Comment(BaseModel):
    """A comment on a swap request; system comments form the audit trail."""

    id: str
    request_id: str
    user_id: str | None = None
    content: str
    is_system: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class ErrorResponse(BaseModel):
    """Error body returned by the API."""

    code: str
    detail: str
    context: dict = Field(default_factory=dict)
