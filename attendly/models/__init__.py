# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, leave_type, leave_balance, leave_request,
    attendance, notification, task
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .leave_type import LeaveType
from .leave_balance import LeaveBalance
from .leave_request import LeaveRequest, LeaveStatus
from .attendance import AttendanceRecord, AttendanceStatus
from .notification import Notification
from .task import Task

__all__ = [
    "User",
    "UserRole",
    "LeaveType",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "AttendanceRecord",
    "AttendanceStatus",
    "Notification",
    "Task",
]
