from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from attendly.core.exceptions import NotFound, ValidationError
from attendly.database import get_db
from attendly.models.leave_type import LeaveType
from attendly.models.user import User
from attendly.routers.auth_deps import get_current_user, require_manager
from attendly.schemas.leave_type import LeaveTypeCreate, LeaveTypeResponse, LeaveTypeUpdate

router = APIRouter(prefix="/leave-types", tags=["Leave Types"])

CLEARABLE_FIELDS = {"description", "max_continuous_days"}


def _ensure_unique(db: Session, name: str, code: str, exclude_id: int = None):
    query = db.query(LeaveType).filter(
        or_(func.lower(LeaveType.name) == name.lower(), LeaveType.code == code)
    )
    if exclude_id is not None:
        query = query.filter(LeaveType.id != exclude_id)
    if query.first():
        raise ValidationError("Leave type with this name or code already exists")


def _get_leave_type(db: Session, leave_type_id: int) -> LeaveType:
    leave_type = db.get(LeaveType, leave_type_id)
    if not leave_type:
        raise NotFound("Leave type not found")
    return leave_type


@router.get("/", response_model=List[LeaveTypeResponse])
def list_leave_types(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return (
        db.query(LeaveType)
        .filter(LeaveType.is_active == True)  # noqa: E712
        .order_by(LeaveType.name)
        .all()
    )


@router.get("/{leave_type_id}", response_model=LeaveTypeResponse)
def get_leave_type(leave_type_id: int, db: Session = Depends(get_db),
                   current_user: User = Depends(get_current_user)):
    return _get_leave_type(db, leave_type_id)


@router.post("/", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
def create_leave_type(
    payload: LeaveTypeCreate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    data = payload.model_dump()
    data["code"] = data["code"].strip().upper()
    data["name"] = data["name"].strip()
    _ensure_unique(db, data["name"], data["code"])

    leave_type = LeaveType(**data)
    db.add(leave_type)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(leave_type)
    return leave_type


@router.put("/{leave_type_id}", response_model=LeaveTypeResponse)
def update_leave_type(
    leave_type_id: int,
    payload: LeaveTypeUpdate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    leave_type = _get_leave_type(db, leave_type_id)
    updates = payload.model_dump(exclude_unset=True)
    for field in ("name", "code"):
        if field in updates and not (updates[field] or "").strip():
            raise ValidationError("Leave type name and code cannot be empty", details={"field": field})
    # Only these columns accept null; a null for any other field leaves it unchanged.
    updates = {
        field: value for field, value in updates.items()
        if value is not None or field in CLEARABLE_FIELDS
    }
    if "name" in updates:
        updates["name"] = updates["name"].strip()
    if "code" in updates:
        updates["code"] = updates["code"].strip().upper()
    if "name" in updates or "code" in updates:
        _ensure_unique(db, updates.get("name", leave_type.name), updates.get("code", leave_type.code),
                       exclude_id=leave_type.id)

    for field, value in updates.items():
        setattr(leave_type, field, value)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(leave_type)
    return leave_type


@router.delete("/{leave_type_id}")
def deactivate_leave_type(
    leave_type_id: int,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    """Soft delete: existing requests and balances keep referring to the type."""
    leave_type = _get_leave_type(db, leave_type_id)
    leave_type.is_active = False
    db.commit()
    return {"message": "Leave type deactivated successfully"}
