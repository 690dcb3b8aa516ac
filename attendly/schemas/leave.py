from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import List, Optional

from attendly.schemas.auth import UserSummary
from attendly.schemas.leave_type import LeaveTypeSummary


class LeaveRequestCreate(BaseModel):
    leave_type_id: int
    from_date: date
    to_date: date
    reason: str
    is_half_day: bool = False
    half_day_type: Optional[str] = None
    delegated_to: Optional[int] = None
    delegation_note: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    leave_type_id: int
    from_date: date
    to_date: date
    reason: str
    status: str
    total_days: float
    is_half_day: bool
    half_day_type: Optional[str] = None
    manager_remarks: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    attachment: Optional[str] = None
    delegated_to: Optional[int] = None
    delegation_note: Optional[str] = None
    created_at: Optional[datetime] = None

    user: Optional[UserSummary] = None
    leave_type: Optional[LeaveTypeSummary] = None


class LeaveReviewRequest(BaseModel):
    manager_remarks: Optional[str] = None


class LeaveConflict(BaseModel):
    name: str
    employee_code: Optional[str] = None
    from_date: date
    to_date: date


class ConflictWarning(BaseModel):
    message: str
    conflicts: List[LeaveConflict]


class LeaveReviewResponse(BaseModel):
    message: str
    leave: LeaveRequestResponse
    conflict_warning: Optional[ConflictWarning] = None


class LeaveBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    leave_type_id: int
    year: int
    total_allocated: float
    used: float
    pending: float
    carried_forward: float
    balance: float

    leave_type: Optional[LeaveTypeSummary] = None


class TodayLeaveResponse(BaseModel):
    has_leave: bool
    leave: Optional[LeaveRequestResponse] = None
