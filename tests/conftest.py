"""Shared fixtures for the shift swap test suite.

Every test gets its own SQLite database file in a temporary directory.
"""

from datetime import date

import pytest

from shift_swap_core.database import get_session, init_db, reset_engine
from shift_swap_core.db_models import Shift, User
from shift_swap_core.models import AuditEvent
from shift_swap_engine.state_machine import ApprovalStateMachine

D1 = date(2024, 2, 1)
D2 = date(2024, 2, 5)


class RecordingAudit:
    """Audit recorder that keeps events in memory."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self.events.append(event)


@pytest.fixture
def database(tmp_path, monkeypatch):
    """Point the engine at a fresh SQLite database."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def people(database) -> dict[str, str]:
    """Two agents, a team lead and a scheduling admin, keyed by first name."""
    users = {
        "alice": User(email="alice@example.com", name="Alice", role="agent"),
        "bob": User(email="bob@example.com", name="Bob", role="agent"),
        "tina": User(email="tina@example.com", name="Tina", role="tl"),
        "walt": User(email="walt@example.com", name="Walt", role="wfm"),
    }
    with get_session() as session:
        session.add_all(users.values())
        session.flush()
        return {key: user.id for key, user in users.items()}


def add_shifts(user_id: str, shifts: dict[date, str]) -> dict[date, str]:
    """Create shift records for one user; returns shift IDs keyed by date."""
    ids = {}
    with get_session() as session:
        for day, shift_type in shifts.items():
            shift = Shift(user_id=user_id, date=day, shift_type=shift_type)
            session.add(shift)
            session.flush()
            ids[day] = shift.id
    return ids


def assignments(user_id: str, *days: date) -> tuple:
    """The shift types of one user on the given dates (None if absent)."""
    with get_session() as session:
        result = []
        for day in days:
            shift = (
                session.query(Shift)
                .filter(Shift.user_id == user_id)
                .filter(Shift.date == day)
                .first()
            )
            result.append(shift.shift_type if shift else None)
        return tuple(result)


@pytest.fixture
def schedule(people) -> dict[str, dict[date, str]]:
    """Alice works (AM, OFF) and Bob (PM, PM) on D1 and D2."""
    return {
        "alice": add_shifts(people["alice"], {D1: "AM", D2: "OFF"}),
        "bob": add_shifts(people["bob"], {D1: "PM", D2: "PM"}),
    }


@pytest.fixture
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture
def make_machine(audit):
    """Build a state machine with a fixed auto-approve flag."""

    def _make(auto_approve: bool = False, **kwargs) -> ApprovalStateMachine:
        return ApprovalStateMachine(auto_approve=lambda: auto_approve, audit=audit, **kwargs)

    return _make


@pytest.fixture
def swap_request(people, schedule, make_machine):
    """A fresh request from Alice (D1 shift) to Bob (D2 shift)."""
    machine = make_machine()
    return machine.create(
        people["alice"], people["bob"], schedule["alice"][D1], schedule["bob"][D2]
    )
