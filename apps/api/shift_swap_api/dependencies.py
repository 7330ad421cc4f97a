"""Dependency injection for Shift Swap API."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from shift_swap_engine.audit import CommentAuditRecorder
from shift_swap_engine.state_machine import ApprovalStateMachine


@lru_cache
def get_audit_recorder() -> CommentAuditRecorder:
    """Get a cached audit recorder."""
    return CommentAuditRecorder()


@lru_cache
def get_state_machine() -> ApprovalStateMachine:
    """Get a cached state machine wired to the default database and settings.

    The state machine holds no per-request state, so one instance serves
    every request.
    """
    return ApprovalStateMachine(audit=get_audit_recorder())


# Type alias for injecting the state machine
StateMachineDep = Annotated[ApprovalStateMachine, Depends(get_state_machine)]
