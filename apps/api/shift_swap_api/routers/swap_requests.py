"""Swap request API routes."""

from fastapi import APIRouter, Query

from shift_swap_api.dependencies import StateMachineDep
from shift_swap_core.models import (
    Comment,
    SwapRequest,
    SwapRequestCreate,
    SwapRequestStatus,
    SwapTransition,
)

router = APIRouter(prefix="/api/swap-requests", tags=["swap-requests"])


@router.post("", response_model=SwapRequest, status_code=201)
def create_swap_request(
    payload: SwapRequestCreate,
    state_machine: StateMachineDep,
) -> SwapRequest:
    """Create a swap request.

    Both dates are taken from the referenced shifts, and the four current
    assignments are stored so an approval can later be revoked.
    """
    return state_machine.create(
        requester_id=payload.requester_id,
        target_user_id=payload.target_user_id,
        requester_shift_id=payload.requester_shift_id,
        target_shift_id=payload.target_shift_id,
    )


@router.get("", response_model=list[SwapRequest])
def list_swap_requests(
    state_machine: StateMachineDep,
    user_id: str | None = Query(None, description="Requests where this user is requester or target"),
    status: SwapRequestStatus | None = Query(None, description="Filter by status"),
    pending: bool = Query(False, description="Only requests still awaiting action"),
) -> list[SwapRequest]:
    """List swap requests.

    - **user_id**: Only requests involving this user
    - **status**: Only requests in this status; without it and without
      `user_id`, all pending requests
    - **pending**: Drop approved and rejected requests
    """
    if user_id is not None:
        requests = state_machine.list_for_user(user_id)
        if status is not None:
            requests = [r for r in requests if r.status == status]
    else:
        requests = state_machine.list_pending(status=status)

    if pending:
        requests = [r for r in requests if not r.status.is_terminal]
    return requests


@router.get("/{request_id}", response_model=SwapRequest)
def get_swap_request(
    request_id: str,
    state_machine: StateMachineDep,
) -> SwapRequest:
    """Get a single swap request by ID."""
    return state_machine.get(request_id)


@router.post("/{request_id}/transitions", response_model=SwapRequest)
def transition_swap_request(
    request_id: str,
    payload: SwapTransition,
    state_machine: StateMachineDep,
) -> SwapRequest:
    """Accept, decline, approve, reject, cancel or revoke a swap request.

    `expected_status` must be the status the caller last saw. A 409 means
    someone else acted first; refetch and decide again.
    """
    return state_machine.transition(
        request_id=request_id,
        actor_id=payload.actor_id,
        actor_role=payload.actor_role,
        action=payload.action,
        expected_status=payload.expected_status,
        actor_name=payload.actor_name,
    )


@router.get("/{request_id}/comments", response_model=list[Comment])
def get_swap_request_comments(
    request_id: str,
    state_machine: StateMachineDep,
) -> list[Comment]:
    """Get the comment and audit trail of a swap request, oldest first."""
    return state_machine.audit_trail(request_id)
