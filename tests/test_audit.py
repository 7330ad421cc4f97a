"""Tests for audit rendering and the comment-backed recorder."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import D1, D2
from shift_swap_core.database import get_session
from shift_swap_core.errors import ResourceNotFoundError
from shift_swap_core.models import AuditEvent, SwapAction, SwapRequestStatus, UserRole
from shift_swap_engine.audit import CommentAuditRecorder, list_comments, render_audit_message
from shift_swap_engine.state_machine import ApprovalStateMachine

Status = SwapRequestStatus
Action = SwapAction

NOW = datetime(2024, 2, 1, 9, 30, tzinfo=timezone.utc)


def event(action, from_status, to_status, **kwargs) -> AuditEvent:
    defaults = {
        "request_id": "swap-1",
        "actor_id": "user-1",
        "actor_name": "Alice",
        "actor_role": UserRole.AGENT,
        "occurred_at": NOW,
    }
    defaults.update(kwargs)
    return AuditEvent(action=action, from_status=from_status, to_status=to_status, **defaults)


# =============================================================================
# Rendering
# =============================================================================


@pytest.mark.parametrize(
    "audit_event, expected",
    [
        (
            event(Action.CREATE, None, Status.PENDING_ACCEPTANCE),
            "Alice created the swap request. Status set to Pending Acceptance",
        ),
        (
            event(Action.ACCEPT, Status.PENDING_ACCEPTANCE, Status.PENDING_TL, actor_name="Bob"),
            "Bob accepted the swap request. Status changed from Pending Acceptance to Pending TL",
        ),
        (
            event(Action.DECLINE, Status.PENDING_ACCEPTANCE, Status.REJECTED, actor_name="Bob"),
            "Bob declined the swap request. Status changed from Pending Acceptance to Rejected",
        ),
        (
            event(Action.CANCEL, Status.PENDING_WFM, Status.REJECTED),
            "Alice cancelled the swap request. Status changed from Pending WFM to Rejected",
        ),
        (
            event(Action.TL_APPROVE, Status.PENDING_TL, Status.PENDING_WFM, actor_name="Tina"),
            "Tina approved. Status changed from Pending TL to Pending WFM",
        ),
        (
            event(
                Action.TL_APPROVE, Status.PENDING_TL, Status.APPROVED,
                actor_name="Tina", auto_approved=True,
            ),
            "Tina approved (auto-approved by system). Status changed from Pending TL to Approved",
        ),
        (
            event(Action.WFM_REJECT, Status.PENDING_WFM, Status.REJECTED, actor_name="Walt"),
            "Walt rejected. Status changed from Pending WFM to Rejected",
        ),
        (
            event(Action.REVOKE, Status.REJECTED, Status.PENDING_TL, actor_name="Walt"),
            "Walt revoked decision. Status reset from Rejected to Pending TL.",
        ),
        (
            event(
                Action.REVOKE, Status.APPROVED, Status.PENDING_TL,
                actor_name="Walt", shifts_restored=True,
            ),
            "Walt revoked decision. Status reset from Approved to Pending TL. "
            "All 4 shifts restored to original values.",
        ),
    ],
)
def test_render_audit_message(audit_event, expected):
    assert render_audit_message(audit_event) == expected


# =============================================================================
# Comment recorder
# =============================================================================


def test_recorder_stores_system_comments_in_order(database):
    recorder = CommentAuditRecorder()
    recorder.record(event(Action.ACCEPT, Status.PENDING_ACCEPTANCE, Status.PENDING_TL,
                          occurred_at=NOW + timedelta(minutes=5)))
    recorder.record(event(Action.CREATE, None, Status.PENDING_ACCEPTANCE))
    recorder.record(event(Action.CREATE, None, Status.PENDING_ACCEPTANCE, request_id="swap-2"))

    with get_session() as session:
        comments = list_comments(session, "swap-1")

    assert [c.content for c in comments] == [
        "Alice created the swap request. Status set to Pending Acceptance",
        "Alice accepted the swap request. Status changed from Pending Acceptance to Pending TL",
    ]
    assert all(c.is_system for c in comments)
    assert all(c.user_id == "user-1" for c in comments)


def test_audit_trail_for_unknown_request_raises_not_found(database):
    with pytest.raises(ResourceNotFoundError):
        ApprovalStateMachine().audit_trail("missing")


def test_state_machine_writes_audit_trail_by_default(people, schedule):
    machine = ApprovalStateMachine(auto_approve=lambda: True)
    created = machine.create(people["alice"], people["bob"], schedule["alice"][D1], schedule["bob"][D2])
    machine.transition(created.id, people["bob"], UserRole.AGENT, Action.ACCEPT, Status.PENDING_ACCEPTANCE)
    machine.transition(created.id, people["tina"], UserRole.TL, Action.TL_APPROVE, Status.PENDING_TL)
    machine.transition(created.id, people["walt"], UserRole.WFM, Action.REVOKE, Status.APPROVED)

    contents = [c.content for c in machine.audit_trail(created.id)]

    assert contents == [
        "Alice created the swap request. Status set to Pending Acceptance",
        "Bob accepted the swap request. Status changed from Pending Acceptance to Pending TL",
        "Tina approved (auto-approved by system). Status changed from Pending TL to Approved",
        "Walt revoked decision. Status reset from Approved to Pending TL. "
        "All 4 shifts restored to original values.",
    ]
