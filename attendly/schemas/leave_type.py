from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class LeaveTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    description: Optional[str] = None
    yearly_quota: float = Field(..., ge=0)
    carry_forward: bool = False
    max_carry_forward: float = Field(0.0, ge=0)
    requires_attachment: bool = False
    color_code: str = "#3b82f6"
    max_continuous_days: Optional[float] = Field(None, gt=0)
    allow_half_day: bool = True


class LeaveTypeCreate(LeaveTypeBase):
    pass


class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    description: Optional[str] = None
    yearly_quota: Optional[float] = Field(None, ge=0)
    carry_forward: Optional[bool] = None
    max_carry_forward: Optional[float] = Field(None, ge=0)
    requires_attachment: Optional[bool] = None
    color_code: Optional[str] = None
    max_continuous_days: Optional[float] = Field(None, gt=0)
    allow_half_day: Optional[bool] = None
    is_active: Optional[bool] = None


class LeaveTypeResponse(LeaveTypeBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    is_active: bool


class LeaveTypeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    color_code: Optional[str] = None
