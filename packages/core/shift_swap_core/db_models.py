"""SQLAlchemy models for the Shift Swap database.

These models are used for all Python database queries. Status and role columns
hold the string values of the enums in ``shift_swap_core.models``.

Note: the four ``*_value_on_*`` columns of ``SwapRequest`` are the original
assignment snapshots captured at creation. They are written once and are the
only source used to reverse an approved swap.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from shift_swap_core.database import Base
from shift_swap_core.models import SwapRequestStatus, UserRole


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a new primary key."""
    return str(uuid.uuid4())


# At most one open request per (requester, target, requester date, target date)
_OPEN_REQUEST_FILTER = text(
    "status IN (" + ", ".join(f"'{s.value}'" for s in SwapRequestStatus if not s.is_terminal) + ")"
)


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """User model - an employee, team lead or scheduling admin."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, default=UserRole.AGENT.value, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    shifts = relationship("Shift", back_populates="user", cascade="all, delete-orphan")


class Shift(Base):
    """Shift model - one employee's assignment on one calendar date."""

    __tablename__ = "shifts"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    shift_type = Column(String, nullable=False)  # AM, PM, BET, OFF, ...
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="shifts")

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uix_shift_user_date"),
    )


class SwapRequest(Base):
    """SwapRequest model - a proposal to exchange two employees' schedules."""

    __tablename__ = "swap_requests"

    id = Column(String, primary_key=True, default=new_id)
    requester_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    requester_shift_id = Column(String, ForeignKey("shifts.id"), nullable=True)
    target_shift_id = Column(String, ForeignKey("shifts.id"), nullable=True)
    requester_date = Column(Date, nullable=False)
    target_date = Column(Date, nullable=False)
    status = Column(String, default=SwapRequestStatus.PENDING_ACCEPTANCE.value, nullable=False)
    tl_approved_at = Column(DateTime(timezone=True), nullable=True)
    wfm_approved_at = Column(DateTime(timezone=True), nullable=True)

    # Original assignment snapshots (nullable: the employee may have no record that day)
    requester_value_on_requester_date = Column(String, nullable=True)
    target_value_on_requester_date = Column(String, nullable=True)
    requester_value_on_target_date = Column(String, nullable=True)
    target_value_on_target_date = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_swap_requests_requester", "requester_id"),
        Index("idx_swap_requests_target", "target_user_id"),
        Index("idx_swap_requests_status", "status"),
        Index(
            "uix_swap_requests_open",
            "requester_id",
            "target_user_id",
            "requester_date",
            "target_date",
            unique=True,
            sqlite_where=_OPEN_REQUEST_FILTER,
            postgresql_where=_OPEN_REQUEST_FILTER,
        ),
    )


class Comment(Base):
    """Comment model - the per-request comment and audit log."""

    __tablename__ = "comments"

    id = Column(String, primary_key=True, default=new_id)
    request_type = Column(String, default="swap", nullable=False)
    request_id = Column(String, nullable=False)
    user_id = Column(String, nullable=True)  # Acting user, if known
    content = Column(Text, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_comments_request", "request_type", "request_id"),
    )


class Setting(Base):
    """Setting model - key/value application configuration."""

    __tablename__ = "settings"

    id = Column(String, primary_key=True, default=new_id)
    key = Column(String, unique=True, nullable=False)
    value = Column(String, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
