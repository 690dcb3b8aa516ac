from sqlalchemy import Column, Integer, String, Date, Float, Boolean, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from attendly.database import Base
import enum


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_HOLD = "on-hold"


class HalfDayType(str, enum.Enum):
    FIRST_HALF = "first-half"
    SECOND_HALF = "second-half"


# Statuses that still hold days on the calendar for overlap checks
BLOCKING_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value, LeaveStatus.ON_HOLD.value)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    from_date = Column(Date, nullable=False, index=True)
    to_date = Column(Date, nullable=False, index=True)
    reason = Column(Text, nullable=False)
    status = Column(String, default=LeaveStatus.PENDING.value, nullable=False, index=True)  # String keeps SQLite simple
    manager_remarks = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    attachment = Column(String, nullable=True)
    total_days = Column(Float, nullable=False)
    is_half_day = Column(Boolean, default=False, nullable=False)
    half_day_type = Column(String, nullable=True)
    delegated_to = Column(Integer, ForeignKey("users.id"), nullable=True)
    delegation_note = Column(Text, nullable=True)
    balance_year = Column(Integer, nullable=False)  # Ledger row reserved at submission
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id], back_populates="leave_requests")
    leave_type = relationship("LeaveType")
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    delegate = relationship("User", foreign_keys=[delegated_to])
