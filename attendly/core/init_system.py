import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from attendly.database import SessionLocal
from attendly.models.leave_type import LeaveType
from attendly.models.user import User, UserRole
from attendly.services.auth import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_LEAVE_TYPES = (
    {
        "name": "Casual Leave", "code": "CL", "description": "Casual leave for personal work",
        "yearly_quota": 12, "carry_forward": True, "max_carry_forward": 3,
        "requires_attachment": False, "color_code": "#3b82f6",
        "max_continuous_days": 3, "allow_half_day": True,
    },
    {
        "name": "Sick Leave", "code": "SL", "description": "Medical leave for health issues",
        "yearly_quota": 10, "carry_forward": False, "max_carry_forward": 0,
        "requires_attachment": True, "color_code": "#ef4444",
        "max_continuous_days": None, "allow_half_day": True,
    },
    {
        "name": "Earned Leave", "code": "EL", "description": "Earned leave based on service",
        "yearly_quota": 15, "carry_forward": True, "max_carry_forward": 10,
        "requires_attachment": False, "color_code": "#10b981",
        "max_continuous_days": None, "allow_half_day": True,
    },
    {
        "name": "Comp Off", "code": "CO", "description": "Compensatory off for working on holidays",
        "yearly_quota": 5, "carry_forward": True, "max_carry_forward": 2,
        "requires_attachment": False, "color_code": "#f59e0b",
        "max_continuous_days": None, "allow_half_day": True,
    },
    {
        "name": "Work From Home", "code": "WFH", "description": "Work from home request",
        "yearly_quota": 20, "carry_forward": False, "max_carry_forward": 0,
        "requires_attachment": False, "color_code": "#8b5cf6",
        "max_continuous_days": 5, "allow_half_day": False,
    },
)


def seed_leave_types(db: Session) -> int:
    """Insert the default leave catalogue when no leave type exists yet."""
    if db.query(LeaveType).count() > 0:
        return 0
    for data in DEFAULT_LEAVE_TYPES:
        db.add(LeaveType(**data))
    db.commit()
    return len(DEFAULT_LEAVE_TYPES)


def init_system_data(db: Optional[Session] = None):
    """
    Checks if the system needs initialization and seeds reference data.
    """
    owns_session = db is None
    db = db or SessionLocal()
    try:
        created = seed_leave_types(db)
        if created:
            logger.info(f"Seeded {created} default leave types")
        else:
            logger.info("System initialization check: leave types already present.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        if owns_session:
            db.close()


DEMO_USERS = (
    ("John Manager", "manager@company.com", "manager123", UserRole.MANAGER, "MGR001", "Management"),
    ("Alice Johnson", "alice@company.com", "employee123", UserRole.EMPLOYEE, "EMP001", "Engineering"),
    ("Bob Smith", "bob@company.com", "employee123", UserRole.EMPLOYEE, "EMP002", "Engineering"),
    ("Carol Williams", "carol@company.com", "employee123", UserRole.EMPLOYEE, "EMP003", "Sales"),
    ("David Brown", "david@company.com", "employee123", UserRole.EMPLOYEE, "EMP004", "Sales"),
    ("Eva Davis", "eva@company.com", "employee123", UserRole.EMPLOYEE, "EMP005", "HR"),
)


def seed_demo_users(db: Session) -> List[User]:
    """Create the demo manager and employees, skipping any email that already exists."""
    created = []
    for name, email, password, role, code, department in DEMO_USERS:
        if db.query(User).filter(User.email == email).first():
            logger.info(f"User {email} already exists. Skipping.")
            continue
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            name=name,
            role=role,
            employee_code=code,
            department=department,
            badges=[],
            is_active=True,
        )
        db.add(user)
        created.append(user)
    db.commit()
    return created
