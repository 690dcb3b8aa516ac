from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Any, Dict, List, Optional


class BadgeInfo(BaseModel):
    id: str
    name: str
    description: str
    icon: str


class BadgeProgress(BaseModel):
    badges: List[str]
    current_streak: int
    longest_streak: int


class MyBadgesResponse(BaseModel):
    badges: List[BadgeInfo]
    current_streak: int
    longest_streak: int
    all_badges: Dict[str, BadgeInfo]


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    status: str
    attempts: int
    result: Optional[Any] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
