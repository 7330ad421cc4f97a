"""Audit trail for swap request transitions.

The state machine emits one structured ``AuditEvent`` per transition. Turning
the event into human-readable text belongs to the recorder; the default
recorder stores it as a system comment on the request.
"""

import logging
from typing import Protocol

from sqlalchemy.orm import Session

from shift_swap_core.database import get_session
from shift_swap_core.db_models import Comment as DBComment
from shift_swap_core.models import AuditEvent, Comment, SwapAction, SwapRequestStatus

logger = logging.getLogger(__name__)

REQUEST_TYPE = "swap"


class AuditRecorder(Protocol):
    """Receives one event per committed transition."""

    def record(self, event: AuditEvent) -> None: ...


# =============================================================================
# Rendering
# =============================================================================


def _label(status: SwapRequestStatus | None) -> str:
    return status.label if status is not None else "New"


def render_audit_message(event: AuditEvent) -> str:
    """Render an audit event as the comment text shown on the request.

    Examples:
        "Alice accepted the swap request. Status changed from Pending Acceptance to Pending TL"
        "Bob approved (auto-approved by system). Status changed from Pending TL to Approved"
    """
    name = event.actor_name
    change = f"Status changed from {_label(event.from_status)} to {_label(event.to_status)}"

    if event.action == SwapAction.CREATE:
        return f"{name} created the swap request. Status set to {_label(event.to_status)}"
    if event.action == SwapAction.ACCEPT:
        return f"{name} accepted the swap request. {change}"
    if event.action == SwapAction.DECLINE:
        return f"{name} declined the swap request. {change}"
    if event.action == SwapAction.CANCEL:
        return f"{name} cancelled the swap request. {change}"
    if event.action in (SwapAction.TL_APPROVE, SwapAction.WFM_APPROVE):
        if event.auto_approved:
            return f"{name} approved (auto-approved by system). {change}"
        return f"{name} approved. {change}"
    if event.action in (SwapAction.TL_REJECT, SwapAction.WFM_REJECT):
        return f"{name} rejected. {change}"
    if event.action == SwapAction.REVOKE:
        message = (
            f"{name} revoked decision. Status reset from "
            f"{_label(event.from_status)} to {_label(event.to_status)}."
        )
        if event.shifts_restored:
            message += " All 4 shifts restored to original values."
        return message

    return f"{name} performed {event.action.value}. {change}"


def list_comments(session: Session, request_id: str) -> list[Comment]:
    """Get all comments on a swap request, oldest first."""
    rows = (
        session.query(DBComment)
        .filter(DBComment.request_type == REQUEST_TYPE)
        .filter(DBComment.request_id == request_id)
        .order_by(DBComment.created_at.asc())
        .all()
    )
    return [Comment.model_validate(row) for row in rows]


# =============================================================================
# Recorders
# =============================================================================


class CommentAuditRecorder:
    """Stores audit events as system comments on the swap request."""

    def record(self, event: AuditEvent) -> None:
        content = render_audit_message(event)
        with get_session() as session:
            session.add(
                DBComment(
                    request_type=REQUEST_TYPE,
                    request_id=event.request_id,
                    user_id=event.actor_id,
                    content=content,
                    is_system=True,
                    created_at=event.occurred_at,
                )
            )
        logger.info("Audit [%s]: %s", event.request_id, content)
