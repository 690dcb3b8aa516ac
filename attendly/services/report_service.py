"""
CSV exports and leave analytics.
"""
import csv
import calendar
import io
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from attendly.models.attendance import AttendanceRecord
from attendly.models.leave_request import LeaveRequest, LeaveStatus
from attendly.models.user import User

ATTENDANCE_CSV_HEADER = [
    "Date", "Employee ID", "Name", "Email", "Department",
    "Check In", "Check Out", "Status", "Total Hours",
]
LEAVE_CSV_HEADER = [
    "Date", "Employee ID", "Name", "Email", "Department", "Leave Type",
    "From Date", "To Date", "Total Days", "Status", "Manager Remarks", "Reviewed By",
]


def _to_csv(header: List[str], rows: Iterable[List]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def attendance_csv(records: Iterable[AttendanceRecord]) -> str:
    rows = []
    for r in records:
        user = r.user
        rows.append([
            r.date.isoformat(),
            user.employee_code or "",
            user.name,
            user.email,
            user.department or "",
            r.check_in_time.isoformat() if r.check_in_time else "N/A",
            r.check_out_time.isoformat() if r.check_out_time else "N/A",
            r.status,
            r.total_hours or 0,
        ])
    return _to_csv(ATTENDANCE_CSV_HEADER, rows)


def leave_csv(leaves: Iterable[LeaveRequest]) -> str:
    rows = []
    for leave in leaves:
        user = leave.user
        rows.append([
            leave.created_at.date().isoformat() if leave.created_at else "",
            user.employee_code or "",
            user.name,
            user.email,
            user.department or "",
            leave.leave_type.name,
            leave.from_date.isoformat(),
            leave.to_date.isoformat(),
            leave.total_days,
            leave.status,
            leave.manager_remarks or "",
            leave.reviewer.name if leave.reviewer else "",
        ])
    return _to_csv(LEAVE_CSV_HEADER, rows)


def leave_export_rows(leaves: Iterable[LeaveRequest]) -> List[Dict]:
    return [
        {
            "id": leave.id,
            "employee_code": leave.user.employee_code,
            "name": leave.user.name,
            "email": leave.user.email,
            "department": leave.user.department,
            "leave_type": leave.leave_type.name,
            "from_date": leave.from_date,
            "to_date": leave.to_date,
            "total_days": leave.total_days,
            "status": leave.status,
            "reason": leave.reason,
            "manager_remarks": leave.manager_remarks,
            "reviewed_by": leave.reviewer.name if leave.reviewer else None,
            "created_at": leave.created_at,
        }
        for leave in leaves
    ]


def _leaves_in_year(db: Session, year: int, user_id: Optional[int] = None) -> List[LeaveRequest]:
    query = db.query(LeaveRequest).options(
        joinedload(LeaveRequest.user),
        joinedload(LeaveRequest.leave_type),
    ).filter(LeaveRequest.balance_year == year)
    if user_id is not None:
        query = query.filter(LeaveRequest.user_id == user_id)
    return query.all()


def _approved(leaves: Iterable[LeaveRequest]) -> List[LeaveRequest]:
    return [leave for leave in leaves if leave.status == LeaveStatus.APPROVED.value]


def employee_leave_analytics(db: Session, user_id: int, year: int) -> Dict:
    leaves = _leaves_in_year(db, year, user_id)
    approved = _approved(leaves)
    statuses = Counter(leave.status for leave in leaves)

    monthly = []
    for month in range(1, 13):
        in_month = [leave for leave in approved if leave.from_date.month == month]
        monthly.append({
            "month": month,
            "month_name": calendar.month_name[month],
            "count": len(in_month),
            "days": sum(leave.total_days for leave in in_month),
        })

    by_type: Dict[str, Dict] = {}
    for leave in approved:
        entry = by_type.setdefault(leave.leave_type.name, {"count": 0, "days": 0.0})
        entry["count"] += 1
        entry["days"] += leave.total_days

    return {
        "year": year,
        "summary": {
            "total_leaves": len(leaves),
            "approved_leaves": statuses[LeaveStatus.APPROVED.value],
            "pending_leaves": statuses[LeaveStatus.PENDING.value],
            "rejected_leaves": statuses[LeaveStatus.REJECTED.value],
            "total_days_taken": sum(leave.total_days for leave in approved),
            "half_days": sum(1 for leave in approved if leave.is_half_day),
        },
        "monthly_distribution": monthly,
        "leave_type_distribution": by_type,
    }


def manager_leave_analytics(db: Session, year: int, department: Optional[str] = None) -> Dict:
    leaves = _leaves_in_year(db, year)
    if department:
        leaves = [leave for leave in leaves if leave.user.department == department]
    approved = _approved(leaves)

    departments: Dict[str, Dict] = {}
    for leave in leaves:
        dept = leave.user.department or "Unassigned"
        stats = departments.setdefault(dept, {
            "total_leaves": 0, "approved_leaves": 0, "pending_leaves": 0,
            "total_days": 0.0, "employees": set(),
        })
        stats["total_leaves"] += 1
        stats["employees"].add(leave.user_id)
        if leave.status == LeaveStatus.APPROVED.value:
            stats["approved_leaves"] += 1
            stats["total_days"] += leave.total_days
        elif leave.status == LeaveStatus.PENDING.value:
            stats["pending_leaves"] += 1
    for stats in departments.values():
        stats["employees"] = len(stats["employees"])

    monthly = []
    for month in range(1, 13):
        in_month = [leave for leave in approved if leave.from_date.month == month]
        monthly.append({
            "month": month,
            "month_name": calendar.month_name[month],
            "leaves": len(in_month),
            "days": sum(leave.total_days for leave in in_month),
            "employees": len({leave.user_id for leave in in_month}),
        })

    day_frequency: Counter = Counter()
    for leave in approved:
        day = leave.from_date
        while day <= leave.to_date:
            day_frequency[day.isoformat()] += 1
            day += timedelta(days=1)

    return {
        "year": year,
        "department_stats": departments,
        "monthly_consumption": monthly,
        "most_frequent_days": [
            {"date": day, "count": count} for day, count in day_frequency.most_common(10)
        ],
        "total_leaves": len(leaves),
    }


def leaves_for_export(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None,
                      department: Optional[str] = None) -> List[LeaveRequest]:
    query = db.query(LeaveRequest).options(
        joinedload(LeaveRequest.user),
        joinedload(LeaveRequest.leave_type),
        joinedload(LeaveRequest.reviewer),
    ).join(User, LeaveRequest.user_id == User.id)
    if start_date and end_date:
        query = query.filter(LeaveRequest.from_date <= end_date, LeaveRequest.to_date >= start_date)
    if department:
        query = query.filter(User.department == department)
    return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()
