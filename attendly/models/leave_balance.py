from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from attendly.database import Base


class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "leave_type_id", "year", name="uq_leave_balance_user_type_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    total_allocated = Column(Float, default=0.0, nullable=False)
    used = Column(Float, default=0.0, nullable=False)
    pending = Column(Float, default=0.0, nullable=False)
    carried_forward = Column(Float, default=0.0, nullable=False)
    balance = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="leave_balances")
    leave_type = relationship("LeaveType")

    def recompute(self) -> float:
        self.balance = (
            (self.total_allocated or 0.0)
            + (self.carried_forward or 0.0)
            - (self.used or 0.0)
            - (self.pending or 0.0)
        )
        return self.balance
