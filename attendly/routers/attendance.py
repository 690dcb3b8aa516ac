import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from sqlalchemy.orm import Session, sessionmaker

from attendly.core.exceptions import NotFound
from attendly.database import get_db, get_session_factory
from attendly.models.user import User
from attendly.routers.auth_deps import get_current_user, require_manager
from attendly.schemas.attendance import (
    AttendanceActionResponse,
    AttendanceResponse,
    MySummaryResponse,
    TeamSummaryResponse,
    TodayAttendanceResponse,
    TodayStatusResponse,
)
from attendly.services import attendance_service, report_service
from attendly.services.task_service import BADGE_EVALUATION, TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def _enqueue_badge_evaluation(background_tasks: BackgroundTasks, db: Session,
                              session_factory: sessionmaker, user: User) -> Optional[int]:
    """The attendance write is already committed; a failure here must not undo it."""
    try:
        task = TaskService(background_tasks, db, session_factory).enqueue(
            BADGE_EVALUATION, {"user_id": user.id}
        )
    except Exception as e:
        logger.error(f"Could not enqueue badge evaluation for user {user.id}: {e}", exc_info=True)
        return None
    return task.id


@router.post("/checkin", response_model=AttendanceActionResponse)
def check_in(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(get_current_user),
):
    record = attendance_service.check_in(db, current_user)
    task_id = _enqueue_badge_evaluation(background_tasks, db, session_factory, current_user)
    return {"message": "Checked in successfully", "attendance": record, "badge_task_id": task_id}


@router.post("/checkout", response_model=AttendanceActionResponse)
def check_out(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(get_current_user),
):
    record = attendance_service.check_out(db, current_user)
    task_id = _enqueue_badge_evaluation(background_tasks, db, session_factory, current_user)
    return {"message": "Checked out successfully", "attendance": record, "badge_task_id": task_id}


@router.get("/today", response_model=TodayAttendanceResponse)
def get_today(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return attendance_service.today_state(db, current_user.id)


@router.get("/my-history", response_model=List[AttendanceResponse])
def my_history(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return attendance_service.my_history(db, current_user.id, month, year)


@router.get("/my-summary", response_model=MySummaryResponse)
def my_summary(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    today = date.today()
    month = month or today.month
    year = year or today.year
    return {
        "summary": attendance_service.my_summary(db, current_user.id, month, year),
        "month": month,
        "year": year,
    }


# --- Manager endpoints ---

@router.get("/all", response_model=List[AttendanceResponse])
def all_attendance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    return attendance_service.list_all(db, start_date, end_date, employee_id, status, department)


@router.get("/employee/{user_id}", response_model=List[AttendanceResponse])
def employee_attendance(
    user_id: int,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    if not db.get(User, user_id):
        raise NotFound("Employee not found")
    return attendance_service.employee_history(db, user_id, month, year)


@router.get("/summary", response_model=TeamSummaryResponse)
def team_summary(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    today = date.today()
    return attendance_service.team_summary(db, month or today.month, year or today.year, department)


@router.get("/today-status", response_model=TodayStatusResponse)
def today_status(db: Session = Depends(get_db), manager: User = Depends(require_manager)):
    return attendance_service.today_status(db)


@router.get("/export")
def export_attendance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_id: Optional[str] = None,
    status: Optional[str] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    records = attendance_service.list_all(
        db, start_date, end_date, employee_id, status, department, limit=None
    )
    content = report_service.attendance_csv(records)
    filename = f"attendance-{date.today().isoformat()}.csv"
    logger.info(f"Manager {manager.id} exported {len(records)} attendance record(s)")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
