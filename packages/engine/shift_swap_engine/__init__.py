"""Shift Swap Engine - approval pipeline and schedule exchange."""

from shift_swap_engine.audit import (
    AuditRecorder,
    CommentAuditRecorder,
    render_audit_message,
)
from shift_swap_engine.concurrency import OptimisticConcurrencyController
from shift_swap_engine.exchange import AssignmentSnapshot, ExchangeEngine
from shift_swap_engine.logging_config import configure_logging
from shift_swap_engine.settings import get_auto_approve_flag, set_auto_approve_flag
from shift_swap_engine.state_machine import (
    TRANSITION_RULES,
    ApprovalStateMachine,
)
from shift_swap_engine.store import ScheduleStore

__all__ = [
    # Schedule store
    "ScheduleStore",
    # Exchange
    "AssignmentSnapshot",
    "ExchangeEngine",
    # Concurrency
    "OptimisticConcurrencyController",
    # State machine
    "ApprovalStateMachine",
    "TRANSITION_RULES",
    # Audit
    "AuditRecorder",
    "CommentAuditRecorder",
    "render_audit_message",
    # Settings
    "get_auto_approve_flag",
    "set_auto_approve_flag",
    # Logging
    "configure_logging",
]
