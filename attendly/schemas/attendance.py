from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import List, Optional

from attendly.schemas.auth import UserSummary


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    date: date
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    status: str
    total_hours: float

    user: Optional[UserSummary] = None


class AttendanceActionResponse(BaseModel):
    message: str
    attendance: AttendanceResponse
    badge_task_id: Optional[int] = None


class TodayAttendanceResponse(BaseModel):
    attendance: Optional[AttendanceResponse] = None
    can_check_in: bool
    can_check_out: bool


class AttendanceSummary(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0
    total_hours: float = 0.0
    total_days: int = 0


class MySummaryResponse(BaseModel):
    summary: AttendanceSummary
    month: int
    year: int


class TeamSummaryResponse(BaseModel):
    total_employees: int
    summary: AttendanceSummary
    attendance: List[AttendanceResponse]
    month: int
    year: int


class TodayStatusResponse(BaseModel):
    total_employees: int
    present: int
    absent: int
    late: int
    attendance: List[AttendanceResponse]
    absent_list: List[UserSummary]
