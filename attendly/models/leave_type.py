from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text
from sqlalchemy.sql import func
from attendly.database import Base


class LeaveType(Base):
    """Leave catalogue entry. Never hard-deleted; deactivated via is_active."""
    __tablename__ = "leave_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    code = Column(String, unique=True, index=True, nullable=False)  # e.g. "CL", "SL"
    description = Column(Text, nullable=True)
    yearly_quota = Column(Float, nullable=False, default=0.0)
    carry_forward = Column(Boolean, default=False, nullable=False)
    max_carry_forward = Column(Float, default=0.0, nullable=False)
    requires_attachment = Column(Boolean, default=False, nullable=False)
    color_code = Column(String, default="#3b82f6")
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    max_continuous_days = Column(Float, nullable=True)  # None means no limit
    allow_half_day = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<LeaveType {self.code}: {self.name}>"
