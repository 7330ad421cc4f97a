"""Snapshot and exchange engine.

Captures the four schedule values a swap touches, exchanges two employees'
assignments across two dates on approval, and restores the captured values
when an approval is revoked.

Every exchange or reversal runs inside a single SAVEPOINT: either all record
writes land or none do. A failure is re-raised as ``ExchangeFailure``.
"""

import logging
from datetime import date
from typing import Protocol

from pydantic import BaseModel

from shift_swap_core.errors import ExchangeFailure
from shift_swap_core.models import AssignmentChange

from shift_swap_engine.store import ScheduleStore

logger = logging.getLogger(__name__)


class SwapParties(Protocol):
    """The swap request fields the exchange engine reads."""

    id: str
    requester_id: str
    target_user_id: str
    requester_date: date
    target_date: date
    requester_value_on_requester_date: str | None
    target_value_on_requester_date: str | None
    requester_value_on_target_date: str | None
    target_value_on_target_date: str | None


class AssignmentSnapshot(BaseModel):
    """Original assignment values captured when a swap request is created."""

    requester_value_on_requester_date: str | None = None
    target_value_on_requester_date: str | None = None
    requester_value_on_target_date: str | None = None
    target_value_on_target_date: str | None = None


def _swap_dates(swap: SwapParties) -> list[date]:
    """The distinct dates a swap touches, requester date first."""
    if swap.requester_date == swap.target_date:
        return [swap.requester_date]
    return [swap.requester_date, swap.target_date]


def _describe(changes: list[AssignmentChange]) -> str:
    return ", ".join(
        f"{c.employee_id}@{c.date.isoformat()}: {c.old_value} -> {c.new_value}" for c in changes
    )


class ExchangeEngine:
    """Applies and reverses the four-record schedule exchange."""

    def capture(
        self,
        store: ScheduleStore,
        requester_id: str,
        target_user_id: str,
        requester_date: date,
        target_date: date,
    ) -> AssignmentSnapshot:
        """Read the current assignments of both employees on both dates.

        Missing records are captured as None.
        """
        return AssignmentSnapshot(
            requester_value_on_requester_date=store.get_assignment(requester_id, requester_date),
            target_value_on_requester_date=store.get_assignment(target_user_id, requester_date),
            requester_value_on_target_date=store.get_assignment(requester_id, target_date),
            target_value_on_target_date=store.get_assignment(target_user_id, target_date),
        )

    def execute(self, store: ScheduleStore, swap: SwapParties) -> list[AssignmentChange]:
        """Exchange the two employees' assignments on both swap dates.

        Each date is handled on its own: the current values of the requester
        and the target are swapped when both records exist. If either record
        is missing that date is left untouched.

        Args:
            store: Schedule store bound to the caller's session
            swap: The approved swap request

        Returns:
            The records rewritten, with their old and new values

        Raises:
            ExchangeFailure: If any record write failed; no writes are kept
        """
        try:
            with store.atomic():
                changes = []
                for day in _swap_dates(swap):
                    changes.extend(self._exchange_day(store, swap, day))
        except Exception as exc:
            logger.error("Swap execution failed for request %s", swap.id, exc_info=True)
            raise ExchangeFailure(swap.id, "execute", exc) from exc

        logger.info(
            "Executed swap %s: %d shift(s) updated [%s]", swap.id, len(changes), _describe(changes)
        )
        return changes

    def _exchange_day(
        self, store: ScheduleStore, swap: SwapParties, day: date
    ) -> list[AssignmentChange]:
        requester_value = store.get_assignment(swap.requester_id, day)
        target_value = store.get_assignment(swap.target_user_id, day)

        if requester_value is None or target_value is None:
            logger.info(
                "Skipping %s for swap %s: requester=%s target=%s",
                day, swap.id, requester_value, target_value,
            )
            return []

        store.set_assignment(swap.requester_id, day, target_value)
        store.set_assignment(swap.target_user_id, day, requester_value)
        return [
            AssignmentChange(
                employee_id=swap.requester_id,
                date=day,
                old_value=requester_value,
                new_value=target_value,
            ),
            AssignmentChange(
                employee_id=swap.target_user_id,
                date=day,
                old_value=target_value,
                new_value=requester_value,
            ),
        ]

    def reverse(self, store: ScheduleStore, swap: SwapParties) -> list[AssignmentChange]:
        """Restore every record to the value captured at request creation.

        Snapshot fields that are None, and records that no longer exist, are
        skipped.

        Raises:
            ExchangeFailure: If any record write failed; no writes are kept
        """
        originals = [
            (swap.requester_id, swap.requester_date, swap.requester_value_on_requester_date),
            (swap.target_user_id, swap.requester_date, swap.target_value_on_requester_date),
            (swap.requester_id, swap.target_date, swap.requester_value_on_target_date),
            (swap.target_user_id, swap.target_date, swap.target_value_on_target_date),
        ]

        try:
            with store.atomic():
                changes = []
                for employee_id, day, original in originals:
                    if original is None:
                        continue
                    current = store.get_assignment(employee_id, day)
                    if current is None:
                        continue
                    store.set_assignment(employee_id, day, original)
                    changes.append(
                        AssignmentChange(
                            employee_id=employee_id,
                            date=day,
                            old_value=current,
                            new_value=original,
                        )
                    )
        except Exception as exc:
            logger.error("Swap reversal failed for request %s", swap.id, exc_info=True)
            raise ExchangeFailure(swap.id, "reverse", exc) from exc

        logger.info(
            "Reversed swap %s: %d shift(s) restored [%s]", swap.id, len(changes), _describe(changes)
        )
        return changes
