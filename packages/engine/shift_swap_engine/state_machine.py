"""Approval state machine for shift swap requests.

Lifecycle:

    pending_acceptance --accept--> pending_tl --tl_approve--> pending_wfm --wfm_approve--> approved

- ``rejected`` is reachable from every non-terminal state (decline, tl_reject,
  wfm_reject, cancel).
- With the auto-approve setting on, ``tl_approve`` goes straight to
  ``approved`` and stamps both approval timestamps.
- A scheduling admin may ``wfm_approve``/``wfm_reject`` from ``pending_tl``,
  skipping the team-lead stage.
- ``revoke`` sends ``approved``, ``rejected`` and ``pending_wfm`` back to
  ``pending_tl``, clears both timestamps and, from ``approved``, restores the
  original shifts.

Every status change is a compare-and-swap against the caller's
``expected_status``. Entering ``approved`` runs the schedule exchange in the
same transaction; if the exchange fails the status change still commits and
``ExchangeFailure`` is raised.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, ContextManager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shift_swap_core.database import get_session
from shift_swap_core.db_models import SwapRequest as DBSwapRequest, utcnow
from shift_swap_core.errors import (
    ExchangeFailure,
    InvalidTransitionError,
    ResourceNotFoundError,
    SwapValidationError,
)
from shift_swap_core.models import (
    AuditEvent,
    Comment,
    SwapAction,
    SwapRequest,
    SwapRequestStatus,
    UserRole,
)

from shift_swap_engine.audit import AuditRecorder, CommentAuditRecorder, list_comments
from shift_swap_engine.concurrency import OptimisticConcurrencyController
from shift_swap_engine.exchange import ExchangeEngine
from shift_swap_engine.settings import get_auto_approve_flag
from shift_swap_engine.store import ScheduleStore

logger = logging.getLogger(__name__)

Status = SwapRequestStatus

OPEN_STATUSES = frozenset(s for s in Status if not s.is_terminal)

DUPLICATE_OPEN_REQUEST = "An open swap request already exists for these employees and dates"


# =============================================================================
# Transition Rules
# =============================================================================


def _is_target(swap: DBSwapRequest, actor_id: str, actor_role: UserRole) -> bool:
    return actor_id == swap.target_user_id


def _is_party(swap: DBSwapRequest, actor_id: str, actor_role: UserRole) -> bool:
    return actor_id in (swap.requester_id, swap.target_user_id)


def _is_team_lead(swap: DBSwapRequest, actor_id: str, actor_role: UserRole) -> bool:
    return actor_role == UserRole.TL


def _is_scheduling_admin(swap: DBSwapRequest, actor_id: str, actor_role: UserRole) -> bool:
    return actor_role == UserRole.WFM


@dataclass(frozen=True)
class TransitionRule:
    """Who may perform an action, and from which states."""

    allowed_from: frozenset
    actor_check: Callable[[DBSwapRequest, str, UserRole], bool]
    actor_description: str


TRANSITION_RULES: dict[SwapAction, TransitionRule] = {
    SwapAction.ACCEPT: TransitionRule(
        frozenset({Status.PENDING_ACCEPTANCE}), _is_target, "the target user"
    ),
    SwapAction.DECLINE: TransitionRule(
        frozenset({Status.PENDING_ACCEPTANCE}), _is_target, "the target user"
    ),
    SwapAction.TL_APPROVE: TransitionRule(
        frozenset({Status.PENDING_TL}), _is_team_lead, "a team lead"
    ),
    SwapAction.TL_REJECT: TransitionRule(
        frozenset({Status.PENDING_TL}), _is_team_lead, "a team lead"
    ),
    SwapAction.WFM_APPROVE: TransitionRule(
        frozenset({Status.PENDING_WFM, Status.PENDING_TL}), _is_scheduling_admin, "a scheduling admin"
    ),
    SwapAction.WFM_REJECT: TransitionRule(
        frozenset({Status.PENDING_WFM, Status.PENDING_TL}), _is_scheduling_admin, "a scheduling admin"
    ),
    SwapAction.CANCEL: TransitionRule(OPEN_STATUSES, _is_party, "the requester or the target user"),
    SwapAction.REVOKE: TransitionRule(
        frozenset({Status.APPROVED, Status.REJECTED, Status.PENDING_WFM}),
        _is_scheduling_admin,
        "a scheduling admin",
    ),
}


@dataclass
class TransitionPlan:
    """The effect of one legal transition, decided before anything is written."""

    to_status: SwapRequestStatus
    fields: dict[str, Any] = field(default_factory=dict)
    execute_swap: bool = False
    reverse_swap: bool = False
    auto_approved: bool = False


# =============================================================================
# State Machine
# =============================================================================


class ApprovalStateMachine:
    """Drives swap requests through the approval pipeline.

    Stateless between calls: every operation opens its own session and any
    number of instances may run in parallel.

    Args:
        auto_approve: Zero-argument callable returning the auto-approve flag
        audit: Recorder receiving one event per committed transition
        session_factory: Context manager factory yielding a committing session
        store_factory: Builds the schedule store accessor for a session
        exchange: Snapshot and exchange engine
        concurrency: Optimistic concurrency controller
    """

    def __init__(
        self,
        auto_approve: Callable[[], bool] = get_auto_approve_flag,
        audit: AuditRecorder | None = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
        store_factory: Callable[[Session], ScheduleStore] = ScheduleStore,
        exchange: ExchangeEngine | None = None,
        concurrency: OptimisticConcurrencyController | None = None,
    ):
        self._auto_approve = auto_approve
        self._audit = audit if audit is not None else CommentAuditRecorder()
        self._session_factory = session_factory
        self._store_factory = store_factory
        self._exchange = exchange or ExchangeEngine()
        self._concurrency = concurrency or OptimisticConcurrencyController()

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        requester_id: str,
        target_user_id: str,
        requester_shift_id: str,
        target_shift_id: str,
    ) -> SwapRequest:
        """Create a swap request in ``pending_acceptance``.

        Resolves both dates from the given shifts and captures the four
        original assignment values for later reversal.

        Args:
            requester_id: The employee asking for the swap
            target_user_id: The employee asked to swap
            requester_shift_id: A shift owned by the requester
            target_shift_id: A shift owned by the target user

        Returns:
            The new swap request

        Raises:
            SwapValidationError: If the parties or shifts are inconsistent, or
                an open request already exists for the same parties and dates
            ResourceNotFoundError: If either shift does not exist
        """
        if requester_id == target_user_id:
            raise SwapValidationError("target_user_id", target_user_id, "Cannot swap shifts with yourself")
        if requester_shift_id == target_shift_id:
            raise SwapValidationError("target_shift_id", target_shift_id, "Cannot swap the same shift")

        with self._session_factory() as session:
            store = self._store_factory(session)

            requester_shift = store.get_shift(requester_shift_id)
            target_shift = store.get_shift(target_shift_id)

            if requester_shift.user_id != requester_id:
                raise SwapValidationError(
                    "requester_shift_id", requester_shift_id, "Requester shift must belong to the requester"
                )
            if target_shift.user_id != target_user_id:
                raise SwapValidationError(
                    "target_shift_id", target_shift_id, "Target shift must belong to the target user"
                )

            requester_date = requester_shift.date
            target_date = target_shift.date

            open_request = self._find_open_request(
                session, requester_id, target_user_id, requester_date, target_date
            )
            if open_request is not None:
                raise SwapValidationError("swap_request", open_request.id, DUPLICATE_OPEN_REQUEST)

            snapshot = self._exchange.capture(
                store, requester_id, target_user_id, requester_date, target_date
            )

            row = DBSwapRequest(
                requester_id=requester_id,
                target_user_id=target_user_id,
                requester_shift_id=requester_shift_id,
                target_shift_id=target_shift_id,
                requester_date=requester_date,
                target_date=target_date,
                status=Status.PENDING_ACCEPTANCE.value,
                created_at=utcnow(),
                **snapshot.model_dump(),
            )
            session.add(row)
            try:
                session.flush()
            except IntegrityError as exc:
                # A concurrent create for the same parties and dates won the race
                logger.warning("Rejected duplicate open swap request: %s", exc.orig)
                raise SwapValidationError("swap_request", None, DUPLICATE_OPEN_REQUEST) from exc

            created = SwapRequest.model_validate(row)
            actor_name, actor_role = self._describe_actor(store, requester_id)

        logger.info(
            "Created swap request %s: %s (%s) <-> %s (%s)",
            created.id, requester_id, requester_date, target_user_id, target_date,
        )
        self._emit(
            AuditEvent(
                request_id=created.id,
                action=SwapAction.CREATE,
                actor_id=requester_id,
                actor_name=actor_name,
                actor_role=actor_role,
                from_status=None,
                to_status=created.status,
                occurred_at=created.created_at,
            )
        )
        return created

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(
        self,
        request_id: str,
        actor_id: str,
        actor_role: UserRole,
        action: SwapAction,
        expected_status: SwapRequestStatus,
        actor_name: str | None = None,
    ) -> SwapRequest:
        """Apply one action to a swap request.

        Args:
            request_id: The swap request ID
            actor_id: The user performing the action
            actor_role: The user's role
            action: One of accept, decline, tl_approve, tl_reject,
                    wfm_approve, wfm_reject, cancel, revoke
            expected_status: The status the actor last saw
            actor_name: Display name for the audit trail (looked up if omitted)

        Returns:
            The updated swap request

        Raises:
            InvalidTransitionError: If the role or status forbids the action
            ConcurrencyConflict: If the request changed since it was read
            ResourceNotFoundError: If the request does not exist
            ExchangeFailure: If the status changed but the shift writes failed
        """
        try:
            actor_role = UserRole(actor_role)
            action = SwapAction(action)
            expected_status = SwapRequestStatus(expected_status)
        except ValueError as exc:
            raise InvalidTransitionError(
                getattr(action, "value", str(action)),
                getattr(expected_status, "value", str(expected_status)),
                str(exc),
            ) from exc

        # Read outside the transaction; the settings store has its own session
        auto_approve = action == SwapAction.TL_APPROVE and self._auto_approve()
        failure: ExchangeFailure | None = None

        with self._session_factory() as session:
            store = self._store_factory(session)

            row = session.get(DBSwapRequest, request_id)
            if row is None:
                raise ResourceNotFoundError("SwapRequest", request_id)

            plan = self._plan(row, actor_id, actor_role, action, expected_status, auto_approve)

            try:
                self._concurrency.apply(
                    session, request_id, expected_status, plan.to_status, **plan.fields
                )
            except IntegrityError as exc:
                # Revoke would reopen a request while a newer one is still open
                raise InvalidTransitionError(
                    action.value, expected_status.value, DUPLICATE_OPEN_REQUEST
                ) from exc

            try:
                if plan.execute_swap:
                    self._exchange.execute(store, row)
                elif plan.reverse_swap:
                    self._exchange.reverse(store, row)
            except ExchangeFailure as exc:
                failure = exc

            session.refresh(row)
            updated = SwapRequest.model_validate(row)
            actor_name, actor_role = self._describe_actor(store, actor_id, actor_name, actor_role)

        logger.info(
            "Swap request %s: %s by %s (%s), %s -> %s",
            request_id, action.value, actor_id, actor_role.value,
            expected_status.value, updated.status.value,
        )
        self._emit(
            AuditEvent(
                request_id=request_id,
                action=action,
                actor_id=actor_id,
                actor_name=actor_name,
                actor_role=actor_role,
                from_status=expected_status,
                to_status=updated.status,
                auto_approved=plan.auto_approved,
                shifts_restored=plan.reverse_swap and failure is None,
                occurred_at=utcnow(),
            )
        )

        if failure is not None:
            failure.swap_request = updated
            raise failure
        return updated

    def _plan(
        self,
        row: DBSwapRequest,
        actor_id: str,
        actor_role: UserRole,
        action: SwapAction,
        expected_status: SwapRequestStatus,
        auto_approve: bool = False,
    ) -> TransitionPlan:
        """Check preconditions and decide the effect of an action."""
        rule = TRANSITION_RULES.get(action)
        if rule is None:
            raise InvalidTransitionError(action.value, expected_status.value, "unsupported action")

        if expected_status not in rule.allowed_from:
            allowed = ", ".join(sorted(s.value for s in rule.allowed_from))
            raise InvalidTransitionError(
                action.value, expected_status.value, f"allowed only from {allowed}"
            )
        if not rule.actor_check(row, actor_id, actor_role):
            raise InvalidTransitionError(
                action.value, expected_status.value, f"only {rule.actor_description} may do this"
            )

        now = utcnow()

        if action == SwapAction.ACCEPT:
            return TransitionPlan(Status.PENDING_TL)

        if action == SwapAction.TL_APPROVE:
            if auto_approve:
                return TransitionPlan(
                    Status.APPROVED,
                    {"tl_approved_at": now, "wfm_approved_at": now},
                    execute_swap=True,
                    auto_approved=True,
                )
            return TransitionPlan(Status.PENDING_WFM, {"tl_approved_at": now})

        if action == SwapAction.WFM_APPROVE:
            fields: dict[str, datetime] = {"wfm_approved_at": now}
            if row.tl_approved_at is None:
                fields["tl_approved_at"] = now
            return TransitionPlan(Status.APPROVED, fields, execute_swap=True)

        if action == SwapAction.REVOKE:
            return TransitionPlan(
                Status.PENDING_TL,
                {"tl_approved_at": None, "wfm_approved_at": None},
                reverse_swap=expected_status == Status.APPROVED,
            )

        # decline, tl_reject, wfm_reject, cancel
        return TransitionPlan(Status.REJECTED)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, request_id: str) -> SwapRequest:
        """Get a swap request by ID.

        Raises:
            ResourceNotFoundError: If the request does not exist
        """
        with self._session_factory() as session:
            row = session.get(DBSwapRequest, request_id)
            if row is None:
                raise ResourceNotFoundError("SwapRequest", request_id)
            return SwapRequest.model_validate(row)

    def list_for_user(self, user_id: str) -> list[SwapRequest]:
        """Get requests where the user is requester or target, newest first."""
        with self._session_factory() as session:
            rows = (
                session.query(DBSwapRequest)
                .filter(
                    (DBSwapRequest.requester_id == user_id)
                    | (DBSwapRequest.target_user_id == user_id)
                )
                .order_by(DBSwapRequest.created_at.desc())
                .all()
            )
            return [SwapRequest.model_validate(row) for row in rows]

    def list_pending(self, status: SwapRequestStatus | None = None) -> list[SwapRequest]:
        """Get requests awaiting action, newest first.

        Args:
            status: Restrict to one status; defaults to all non-terminal states
        """
        statuses = [status.value] if status is not None else [s.value for s in OPEN_STATUSES]
        with self._session_factory() as session:
            rows = (
                session.query(DBSwapRequest)
                .filter(DBSwapRequest.status.in_(statuses))
                .order_by(DBSwapRequest.created_at.desc())
                .all()
            )
            return [SwapRequest.model_validate(row) for row in rows]

    def audit_trail(self, request_id: str) -> list[Comment]:
        """Get the comments and system audit entries of a request, oldest first.

        Raises:
            ResourceNotFoundError: If the request does not exist
        """
        with self._session_factory() as session:
            if session.get(DBSwapRequest, request_id) is None:
                raise ResourceNotFoundError("SwapRequest", request_id)
            return list_comments(session, request_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _find_open_request(
        self,
        session: Session,
        requester_id: str,
        target_user_id: str,
        requester_date: date,
        target_date: date,
    ) -> DBSwapRequest | None:
        return (
            session.query(DBSwapRequest)
            .filter(DBSwapRequest.requester_id == requester_id)
            .filter(DBSwapRequest.target_user_id == target_user_id)
            .filter(DBSwapRequest.requester_date == requester_date)
            .filter(DBSwapRequest.target_date == target_date)
            .filter(DBSwapRequest.status.in_([s.value for s in OPEN_STATUSES]))
            .first()
        )

    def _describe_actor(
        self,
        store: ScheduleStore,
        actor_id: str,
        actor_name: str | None = None,
        actor_role: UserRole | None = None,
    ) -> tuple[str, UserRole]:
        """Resolve a display name and role for the audit trail."""
        user = None
        if not actor_name or actor_role is None:
            user = store.get_user(actor_id)

        name = actor_name or (user.name if user is not None else actor_id)
        role = actor_role or (UserRole(user.role) if user is not None else UserRole.AGENT)
        return name, role

    def _emit(self, event: AuditEvent) -> None:
        """Hand an event to the audit recorder; failures never fail the transition."""
        try:
            self._audit.record(event)
        except Exception:
            logger.warning(
                "Failed to record audit event for %s (%s)",
                event.request_id, event.action.value, exc_info=True,
            )
