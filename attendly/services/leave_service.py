"""
Leave request workflow.

pending -> approved | rejected | on-hold, and on-hold -> approved | rejected.
Each transition writes the request, its ledger adjustment and the resulting
notifications in one transaction.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import BinaryIO, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from attendly.core.exceptions import (
    DateRangeError,
    InvalidTransition,
    InsufficientBalance,
    MissingRemarks,
    NotFound,
    OverlapError,
    PolicyViolation,
    ValidationError,
)
from attendly.models.leave_balance import LeaveBalance
from attendly.models.leave_request import BLOCKING_STATUSES, HalfDayType, LeaveRequest, LeaveStatus
from attendly.models.leave_type import LeaveType
from attendly.models.user import User, UserRole
from attendly.schemas.leave import LeaveRequestCreate
from attendly.services import leave_ledger, storage
from attendly.services.leave_ledger import LedgerAction
from attendly.services.notification import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class AttachmentUpload:
    filename: str
    stream: BinaryIO
    size: Optional[int] = None


def calculate_total_days(from_date: date, to_date: date, is_half_day: bool = False) -> float:
    """Inclusive calendar-day count; a half-day request is always 0.5."""
    if is_half_day:
        return 0.5
    return float((to_date - from_date).days + 1)


def _overlapping_query(db: Session, from_date: date, to_date: date):
    return db.query(LeaveRequest).filter(
        LeaveRequest.from_date <= to_date,
        LeaveRequest.to_date >= from_date,
    )


def find_overlapping_requests(db: Session, user_id: int, from_date: date, to_date: date) -> List[LeaveRequest]:
    return _overlapping_query(db, from_date, to_date).filter(
        LeaveRequest.user_id == user_id,
        LeaveRequest.status.in_(BLOCKING_STATUSES),
    ).all()


def find_department_conflicts(db: Session, leave: LeaveRequest) -> List[LeaveRequest]:
    """Approved leaves of the requester's department colleagues that share a day with this one."""
    department = leave.user.department if leave.user else None
    if not department:
        return []
    return (
        _overlapping_query(db, leave.from_date, leave.to_date)
        .join(User, LeaveRequest.user_id == User.id)
        .options(joinedload(LeaveRequest.user))
        .filter(
            User.department == department,
            LeaveRequest.status == LeaveStatus.APPROVED.value,
            LeaveRequest.id != leave.id,
        )
        .all()
    )


def _get_leave(db: Session, leave_id: int, lock: bool = False) -> LeaveRequest:
    query = db.query(LeaveRequest).filter(LeaveRequest.id == leave_id)
    if lock:
        query = query.with_for_update()
    leave = query.first()
    if not leave:
        raise NotFound("Leave request not found")
    return leave


def _validate_submission(db: Session, user: User, data: LeaveRequestCreate,
                         attachment: Optional[AttachmentUpload], today: date) -> Tuple[LeaveType, float]:
    if not data.reason or not data.reason.strip():
        raise ValidationError("Please provide all required fields")

    if data.from_date > data.to_date:
        raise DateRangeError("From date cannot be after to date")
    if data.from_date < today:
        raise DateRangeError("Cannot request leave for past dates")

    overlapping = find_overlapping_requests(db, user.id, data.from_date, data.to_date)
    if overlapping:
        raise OverlapError(details={"overlapping_leave_ids": [leave.id for leave in overlapping]})

    total_days = calculate_total_days(data.from_date, data.to_date, data.is_half_day)

    leave_type = db.get(LeaveType, data.leave_type_id)
    if not leave_type or not leave_type.is_active:
        raise ValidationError("Invalid or inactive leave type")

    if leave_type.max_continuous_days and total_days > leave_type.max_continuous_days:
        raise PolicyViolation(f"Maximum continuous days allowed: {leave_type.max_continuous_days:g}")

    if data.is_half_day:
        if not leave_type.allow_half_day:
            raise PolicyViolation("Half day not allowed for this leave type")
        if data.half_day_type is not None:
            try:
                HalfDayType(data.half_day_type)
            except ValueError:
                raise ValidationError("half_day_type must be 'first-half' or 'second-half'")

    if leave_type.requires_attachment and attachment is None:
        raise PolicyViolation("Attachment is required for this leave type")
    if attachment is not None:
        storage.validate_attachment(attachment.filename, attachment.size)

    if data.delegated_to is not None:
        if data.delegated_to == user.id:
            raise ValidationError("You cannot delegate work to yourself")
        delegate = db.get(User, data.delegated_to)
        if not delegate or not delegate.is_active:
            raise ValidationError("Delegate not found")

    return leave_type, total_days


def submit_leave(
    db: Session,
    user: User,
    data: LeaveRequestCreate,
    attachment: Optional[AttachmentUpload] = None,
    today: Optional[date] = None,
) -> LeaveRequest:
    today = today or date.today()
    leave_type, total_days = _validate_submission(db, user, data, attachment, today)
    year = data.from_date.year

    attachment_path = None
    try:
        balance = leave_ledger.ensure(db, user.id, leave_type, year, lock=True)
        available = balance.balance - balance.pending
        if available < total_days:
            raise InsufficientBalance(available=available, requested=total_days)

        if attachment is not None:
            attachment_path = storage.save_leave_attachment(user.id, attachment.filename, attachment.stream)

        leave = LeaveRequest(
            user_id=user.id,
            leave_type_id=leave_type.id,
            from_date=data.from_date,
            to_date=data.to_date,
            reason=data.reason.strip(),
            status=LeaveStatus.PENDING.value,
            is_half_day=data.is_half_day,
            half_day_type=data.half_day_type if data.is_half_day else None,
            attachment=attachment_path,
            delegated_to=data.delegated_to,
            delegation_note=data.delegation_note,
            total_days=total_days,
            balance_year=year,
        )
        db.add(leave)
        db.flush()

        leave_ledger.adjust(db, user.id, leave_type, year, total_days, LedgerAction.RESERVE)

        manager_ids = [
            row.id for row in db.query(User.id).filter(
                User.role == UserRole.MANAGER,
                User.is_active == True,  # noqa: E712
            )
        ]
        NotificationService.notify_many(
            db,
            manager_ids,
            "new-leave-request",
            "New Leave Request",
            f"{user.name} has submitted a leave request from {data.from_date:%a %b %d %Y} "
            f"to {data.to_date:%a %b %d %Y}",
            related_leave_id=leave.id,
        )
        db.commit()
    except Exception:
        db.rollback()
        storage.delete_leave_attachment(attachment_path)
        raise

    db.refresh(leave)
    logger.info(f"Leave request {leave.id} submitted by user {user.id} for {total_days:g} day(s)")
    return leave


def _mark_reviewed(leave: LeaveRequest, status: LeaveStatus, reviewer: User,
                   remarks: Optional[str], now: Optional[datetime]):
    leave.status = status.value
    leave.manager_remarks = remarks or ""
    leave.reviewed_by = reviewer.id
    leave.reviewed_at = now or datetime.now(timezone.utc)


def approve_leave(
    db: Session,
    leave_id: int,
    reviewer: User,
    remarks: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[LeaveRequest, Optional[Dict]]:
    """Approve a pending or on-hold request. Department clashes are reported, not enforced."""
    leave = _get_leave(db, leave_id, lock=True)
    if leave.status not in (LeaveStatus.PENDING.value, LeaveStatus.ON_HOLD.value):
        raise InvalidTransition("Leave request is not in a valid state for approval")

    conflicts = find_department_conflicts(db, leave)
    conflict_warning = None
    if conflicts:
        conflict_warning = {
            "message": f"Warning: {len(conflicts)} other employee(s) from the same department "
                       f"are on leave during these dates",
            "conflicts": [
                {
                    "name": c.user.name,
                    "employee_code": c.user.employee_code,
                    "from_date": c.from_date,
                    "to_date": c.to_date,
                }
                for c in conflicts
            ],
        }

    try:
        _mark_reviewed(leave, LeaveStatus.APPROVED, reviewer, remarks, now)
        leave_ledger.adjust(db, leave.user_id, leave.leave_type, leave.balance_year,
                            leave.total_days, LedgerAction.COMMIT)
        NotificationService.create_notification(
            db,
            leave.user_id,
            "leave-approved",
            "Leave Approved",
            f"Your leave request from {leave.from_date:%a %b %d %Y} to {leave.to_date:%a %b %d %Y} "
            f"has been approved.",
            related_leave_id=leave.id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(leave)
    logger.info(f"Leave request {leave.id} approved by user {reviewer.id}",
                extra={"department_conflicts": len(conflicts)})
    return leave, conflict_warning


def reject_leave(
    db: Session,
    leave_id: int,
    reviewer: User,
    remarks: Optional[str],
    now: Optional[datetime] = None,
) -> LeaveRequest:
    leave = _get_leave(db, leave_id, lock=True)
    if leave.status not in (LeaveStatus.PENDING.value, LeaveStatus.ON_HOLD.value):
        raise InvalidTransition("Leave request is not in a valid state for rejection")
    if not remarks or not remarks.strip():
        raise MissingRemarks()

    try:
        _mark_reviewed(leave, LeaveStatus.REJECTED, reviewer, remarks.strip(), now)
        leave_ledger.adjust(db, leave.user_id, leave.leave_type, leave.balance_year,
                            leave.total_days, LedgerAction.RELEASE)
        NotificationService.create_notification(
            db,
            leave.user_id,
            "leave-rejected",
            "Leave Rejected",
            f"Your leave request has been rejected. Remarks: {leave.manager_remarks}",
            related_leave_id=leave.id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(leave)
    logger.info(f"Leave request {leave.id} rejected by user {reviewer.id}")
    return leave


def hold_leave(
    db: Session,
    leave_id: int,
    reviewer: User,
    remarks: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LeaveRequest:
    """Park a pending request. Its days stay reserved as pending."""
    leave = _get_leave(db, leave_id, lock=True)
    if leave.status != LeaveStatus.PENDING.value:
        raise InvalidTransition("Only pending leave requests can be put on hold")

    try:
        _mark_reviewed(leave, LeaveStatus.ON_HOLD, reviewer, remarks, now)
        NotificationService.create_notification(
            db,
            leave.user_id,
            "leave-on-hold",
            "Leave On Hold",
            f"Your leave request has been put on hold. Remarks: {remarks or 'No remarks provided'}",
            related_leave_id=leave.id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(leave)
    logger.info(f"Leave request {leave.id} put on hold by user {reviewer.id}")
    return leave


# --- Queries ---

def _with_relations(query):
    return query.options(
        joinedload(LeaveRequest.user),
        joinedload(LeaveRequest.leave_type),
    )


def list_my_leaves(db: Session, user_id: int, status: Optional[str] = None,
                   year: Optional[int] = None) -> List[LeaveRequest]:
    query = _with_relations(db.query(LeaveRequest)).filter(LeaveRequest.user_id == user_id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    if year:
        query = query.filter(LeaveRequest.balance_year == year)
    return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()


def list_pending(db: Session) -> List[LeaveRequest]:
    return (
        _with_relations(db.query(LeaveRequest))
        .filter(LeaveRequest.status == LeaveStatus.PENDING.value)
        .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        .all()
    )


def list_all(db: Session, status: Optional[str] = None, department: Optional[str] = None,
             start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[LeaveRequest]:
    query = _with_relations(db.query(LeaveRequest)).join(User, LeaveRequest.user_id == User.id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    if start_date and end_date:
        query = query.filter(LeaveRequest.from_date <= end_date, LeaveRequest.to_date >= start_date)
    if department:
        query = query.filter(User.department == department)
    return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()


def leave_calendar(db: Session, user_id: int, month: int, year: int) -> List[LeaveRequest]:
    start, end = month_bounds(year, month)
    return (
        _with_relations(_overlapping_query(db, start, end))
        .filter(LeaveRequest.user_id == user_id)
        .order_by(LeaveRequest.from_date)
        .all()
    )


def approved_leave_on(db: Session, user_id: int, day: date) -> Optional[LeaveRequest]:
    return (
        _with_relations(_overlapping_query(db, day, day))
        .filter(
            LeaveRequest.user_id == user_id,
            LeaveRequest.status == LeaveStatus.APPROVED.value,
        )
        .first()
    )


def get_balances(db: Session, user_id: int, year: int) -> List[LeaveBalance]:
    """Balances for every active leave type, creating missing rows on first read."""
    leave_types = (
        db.query(LeaveType)
        .filter(LeaveType.is_active == True)  # noqa: E712
        .order_by(LeaveType.name)
        .all()
    )
    try:
        balances = [leave_ledger.ensure(db, user_id, lt, year) for lt in leave_types]
        db.commit()
    except Exception:
        db.rollback()
        raise
    return balances


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, date.fromordinal(end.toordinal() - 1)
