from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import List, Optional
from attendly.models.user import UserRole
from datetime import datetime


class UserBase(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    department: Optional[str] = None


class UserCreate(UserBase):
    """Public self-registration; the account is always created as an employee."""
    password: str = Field(..., min_length=6)


class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: UserRole
    employee_code: Optional[str] = None
    badges: List[str] = []
    current_streak: int = 0
    longest_streak: int = 0
    created_at: Optional[datetime] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    employee_code: Optional[str] = None
    department: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user: Optional[dict] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
