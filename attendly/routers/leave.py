import logging
from datetime import date
from typing import List, Optional

import pydantic
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from attendly.core.exceptions import ValidationError
from attendly.database import get_db
from attendly.models.user import User
from attendly.routers.auth_deps import get_current_user, require_manager
from attendly.schemas.leave import (
    LeaveBalanceResponse,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveReviewRequest,
    LeaveReviewResponse,
    TodayLeaveResponse,
)
from attendly.services import leave_service
from attendly.services.leave_service import AttachmentUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaves", tags=["Leaves"])


def _remarks(review: Optional[LeaveReviewRequest]) -> Optional[str]:
    return review.manager_remarks if review else None


@router.post("/request", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
def request_leave(
    leave_type_id: Optional[str] = Form(None),
    from_date: Optional[str] = Form(None),
    to_date: Optional[str] = Form(None),
    reason: Optional[str] = Form(None),
    is_half_day: bool = Form(False),
    half_day_type: Optional[str] = Form(None),
    delegated_to: Optional[str] = Form(None),
    delegation_note: Optional[str] = Form(None),
    attachment: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Submit a leave request as multipart form data, optionally with a supporting document.
    """
    if not leave_type_id or not from_date or not to_date or not reason:
        raise ValidationError("Please provide all required fields")

    try:
        data = LeaveRequestCreate(
            leave_type_id=leave_type_id,
            from_date=from_date,
            to_date=to_date,
            reason=reason,
            is_half_day=is_half_day,
            half_day_type=half_day_type or None,
            delegated_to=delegated_to or None,
            delegation_note=delegation_note or None,
        )
    except pydantic.ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise ValidationError("Invalid leave request fields", details={"fields": fields})

    upload = None
    if attachment is not None and attachment.filename:
        upload = AttachmentUpload(filename=attachment.filename, stream=attachment.file, size=attachment.size)

    return leave_service.submit_leave(db, current_user, data, upload)


@router.get("/my-leaves", response_model=List[LeaveRequestResponse])
def my_leaves(
    status: Optional[str] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return leave_service.list_my_leaves(db, current_user.id, status, year)


@router.get("/balance", response_model=List[LeaveBalanceResponse])
def my_balance(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return leave_service.get_balances(db, current_user.id, year or date.today().year)


@router.get("/calendar", response_model=List[LeaveRequestResponse])
def leave_calendar(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    today = date.today()
    return leave_service.leave_calendar(db, current_user.id, month or today.month, year or today.year)


@router.get("/check-today", response_model=TodayLeaveResponse)
def check_today(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    leave = leave_service.approved_leave_on(db, current_user.id, date.today())
    return {"has_leave": leave is not None, "leave": leave}


# --- Manager endpoints ---

@router.get("/pending", response_model=List[LeaveRequestResponse])
def pending_leaves(db: Session = Depends(get_db), manager: User = Depends(require_manager)):
    return leave_service.list_pending(db)


@router.get("/all", response_model=List[LeaveRequestResponse])
def all_leaves(
    status: Optional[str] = None,
    department: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    return leave_service.list_all(db, status, department, start_date, end_date)


@router.put("/{leave_id}/approve", response_model=LeaveReviewResponse)
def approve_leave(
    leave_id: int,
    review: Optional[LeaveReviewRequest] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    leave, conflict_warning = leave_service.approve_leave(db, leave_id, manager, _remarks(review))
    return {
        "message": "Leave approved successfully",
        "leave": leave,
        "conflict_warning": conflict_warning,
    }


@router.put("/{leave_id}/reject", response_model=LeaveReviewResponse)
def reject_leave(
    leave_id: int,
    review: Optional[LeaveReviewRequest] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    leave = leave_service.reject_leave(db, leave_id, manager, _remarks(review))
    return {"message": "Leave rejected", "leave": leave}


@router.put("/{leave_id}/hold", response_model=LeaveReviewResponse)
def hold_leave(
    leave_id: int,
    review: Optional[LeaveReviewRequest] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    leave = leave_service.hold_leave(db, leave_id, manager, _remarks(review))
    return {"message": "Leave put on hold", "leave": leave}
