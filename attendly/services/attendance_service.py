"""
Daily attendance: check-in / check-out with late and half-day derivation.

Times are local server wall-clock time. One record per user per day.
"""
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from attendly.core.config import settings
from attendly.core.exceptions import AlreadyCheckedIn, AlreadyCheckedOut, NotCheckedIn
from attendly.models.attendance import AttendanceRecord, AttendanceStatus
from attendly.models.user import User, UserRole
from attendly.services.leave_service import month_bounds

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100
ALL_RECORDS_LIMIT = 500


def status_at_check_in(check_in: datetime) -> AttendanceStatus:
    cutoff = datetime.combine(check_in.date(), settings.attendance.late_after)
    return AttendanceStatus.LATE if check_in > cutoff else AttendanceStatus.PRESENT


def hours_between(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / 3600, 2)


def status_at_check_out(current: str, check_in: datetime, check_out: datetime) -> str:
    """Short days become half-day, except that a late arrival stays late."""
    elapsed = (check_out - check_in).total_seconds() / 3600
    if elapsed < settings.attendance.half_day_hours and current != AttendanceStatus.LATE.value:
        return AttendanceStatus.HALF_DAY.value
    return current


def get_record(db: Session, user_id: int, day: date) -> Optional[AttendanceRecord]:
    return db.query(AttendanceRecord).filter(
        AttendanceRecord.user_id == user_id,
        AttendanceRecord.date == day,
    ).first()


def check_in(db: Session, user: User, now: Optional[datetime] = None) -> AttendanceRecord:
    now = now or datetime.now()
    today = now.date()

    record = get_record(db, user.id, today)
    if record and record.check_in_time:
        raise AlreadyCheckedIn()

    status = status_at_check_in(now)
    if record is None:
        record = AttendanceRecord(user_id=user.id, date=today)
        db.add(record)
    record.check_in_time = now
    record.status = status.value
    record.total_hours = 0.0

    try:
        db.commit()
    except IntegrityError:
        # Concurrent check-in won the unique (user_id, date) race
        db.rollback()
        raise AlreadyCheckedIn()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(f"User {user.id} checked in ({record.status})")
    return record


def check_out(db: Session, user: User, now: Optional[datetime] = None) -> AttendanceRecord:
    now = now or datetime.now()
    record = get_record(db, user.id, now.date())

    if not record or not record.check_in_time:
        raise NotCheckedIn()
    if record.check_out_time:
        raise AlreadyCheckedOut()

    record.check_out_time = now
    record.status = status_at_check_out(record.status, record.check_in_time, now)
    record.total_hours = hours_between(record.check_in_time, now)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(f"User {user.id} checked out after {record.total_hours}h ({record.status})")
    return record


def today_state(db: Session, user_id: int, today: Optional[date] = None) -> Dict:
    record = get_record(db, user_id, today or date.today())
    return {
        "attendance": record,
        "can_check_in": record is None or record.check_in_time is None,
        "can_check_out": bool(record and record.check_in_time and not record.check_out_time),
    }


def summarize(records: Iterable[AttendanceRecord]) -> Dict:
    records = list(records)
    counts = {status.value: 0 for status in AttendanceStatus}
    for record in records:
        counts[record.status] = counts.get(record.status, 0) + 1
    return {
        "present": counts[AttendanceStatus.PRESENT.value],
        "absent": counts[AttendanceStatus.ABSENT.value],
        "late": counts[AttendanceStatus.LATE.value],
        "half_day": counts[AttendanceStatus.HALF_DAY.value],
        "total_hours": round(sum(r.total_hours or 0.0 for r in records), 2),
        "total_days": len(records),
    }


def _in_month(query, year: int, month: int):
    start, end = month_bounds(year, month)
    return query.filter(AttendanceRecord.date >= start, AttendanceRecord.date <= end)


def my_history(db: Session, user_id: int, month: Optional[int] = None,
               year: Optional[int] = None) -> List[AttendanceRecord]:
    query = db.query(AttendanceRecord).filter(AttendanceRecord.user_id == user_id)
    if month and year:
        query = _in_month(query, year, month)
    return query.order_by(AttendanceRecord.date.desc()).limit(HISTORY_LIMIT).all()


def my_summary(db: Session, user_id: int, month: int, year: int) -> Dict:
    query = db.query(AttendanceRecord).filter(AttendanceRecord.user_id == user_id)
    return summarize(_in_month(query, year, month).all())


def _user_ids_in_department(db: Session, department: str) -> List[int]:
    return [row.id for row in db.query(User.id).filter(User.department == department)]


def list_all(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_code: Optional[str] = None,
    status: Optional[str] = None,
    department: Optional[str] = None,
    limit: Optional[int] = ALL_RECORDS_LIMIT,
) -> List[AttendanceRecord]:
    query = db.query(AttendanceRecord).options(joinedload(AttendanceRecord.user))
    if start_date and end_date:
        query = query.filter(AttendanceRecord.date >= start_date, AttendanceRecord.date <= end_date)
    if employee_code:
        user = db.query(User).filter(User.employee_code == employee_code).first()
        if not user:
            return []
        query = query.filter(AttendanceRecord.user_id == user.id)
    if status:
        query = query.filter(AttendanceRecord.status == status)
    if department:
        user_ids = _user_ids_in_department(db, department)
        if not user_ids:
            return []
        query = query.filter(AttendanceRecord.user_id.in_(user_ids))
    query = query.order_by(AttendanceRecord.date.desc(), AttendanceRecord.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def employee_history(db: Session, user_id: int, month: Optional[int] = None,
                     year: Optional[int] = None) -> List[AttendanceRecord]:
    query = (
        db.query(AttendanceRecord)
        .options(joinedload(AttendanceRecord.user))
        .filter(AttendanceRecord.user_id == user_id)
    )
    if month and year:
        query = _in_month(query, year, month)
    return query.order_by(AttendanceRecord.date.desc()).all()


def team_summary(db: Session, month: int, year: int, department: Optional[str] = None) -> Dict:
    if department:
        user_ids = _user_ids_in_department(db, department)
    else:
        user_ids = [row.id for row in db.query(User.id).filter(User.role == UserRole.EMPLOYEE)]

    records = []
    if user_ids:
        query = (
            db.query(AttendanceRecord)
            .options(joinedload(AttendanceRecord.user))
            .filter(AttendanceRecord.user_id.in_(user_ids))
        )
        records = _in_month(query, year, month).order_by(AttendanceRecord.date.desc()).all()

    return {
        "total_employees": len(user_ids),
        "summary": summarize(records),
        "attendance": records,
        "month": month,
        "year": year,
    }


def today_status(db: Session, today: Optional[date] = None) -> Dict:
    records = (
        db.query(AttendanceRecord)
        .options(joinedload(AttendanceRecord.user))
        .filter(AttendanceRecord.date == (today or date.today()))
        .all()
    )
    employees = db.query(User).filter(User.role == UserRole.EMPLOYEE, User.is_active == True).all()  # noqa: E712
    seen = {r.user_id for r in records}

    present_statuses = (AttendanceStatus.PRESENT.value, AttendanceStatus.LATE.value)
    absent = [emp for emp in employees if emp.id not in seen]
    return {
        "total_employees": len(employees),
        "present": sum(1 for r in records if r.status in present_statuses),
        "absent": len(absent),
        "late": sum(1 for r in records if r.status == AttendanceStatus.LATE.value),
        "attendance": records,
        "absent_list": absent,
    }
