"""Schedule store accessor.

Reads and overwrites individual day-schedule records keyed by
(employee, date). Records are never created or deleted here; a missing record
is reported as ``None`` and it is up to the caller to skip it.
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Generator

from sqlalchemy.orm import Session, SessionTransaction

from shift_swap_core.db_models import Shift, User
from shift_swap_core.errors import ResourceNotFoundError

logger = logging.getLogger(__name__)


class ScheduleStore:
    """Per-record access to the shifts table through one session."""

    def __init__(self, session: Session):
        self.session = session

    def _find(self, employee_id: str, day: date) -> Shift | None:
        return (
            self.session.query(Shift)
            .filter(Shift.user_id == employee_id)
            .filter(Shift.date == day)
            .first()
        )

    def get_assignment(self, employee_id: str, day: date) -> str | None:
        """Get the assignment label of one employee on one date.

        Args:
            employee_id: The employee (user) ID
            day: The calendar date

        Returns:
            The shift type, or None if the employee has no record that day
        """
        shift = self._find(employee_id, day)
        if shift is None:
            return None
        return shift.shift_type

    def set_assignment(self, employee_id: str, day: date, value: str) -> None:
        """Overwrite the assignment label of an existing record.

        Raises:
            ResourceNotFoundError: If no record exists for (employee_id, day)
        """
        shift = self._find(employee_id, day)
        if shift is None:
            raise ResourceNotFoundError("Shift", f"{employee_id}@{day.isoformat()}")

        logger.debug(
            "Setting shift %s on %s: %s -> %s", employee_id, day, shift.shift_type, value
        )
        shift.shift_type = value
        self.session.flush()

    def get_shift(self, shift_id: str) -> Shift:
        """Get a shift record by ID.

        Raises:
            ResourceNotFoundError: If the shift does not exist
        """
        shift = self.session.get(Shift, shift_id)
        if shift is None:
            raise ResourceNotFoundError("Shift", shift_id)
        return shift

    def get_user(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    @contextmanager
    def atomic(self) -> Generator[SessionTransaction, None, None]:
        """Group record writes into an all-or-nothing SAVEPOINT."""
        with self.session.begin_nested() as savepoint:
            yield savepoint
