"""
Leave balance ledger.

One row per (user, leave type, year). Every mutation recomputes
balance = total_allocated + carried_forward - used - pending.
Functions here only flush; the calling service commits.
"""
import enum
import logging
from typing import Optional

from sqlalchemy.orm import Session

from attendly.core.exceptions import InvalidState, ValidationError
from attendly.models.leave_balance import LeaveBalance
from attendly.models.leave_type import LeaveType

logger = logging.getLogger(__name__)


class LedgerAction(str, enum.Enum):
    RESERVE = "reserve"   # new request: pending += days
    COMMIT = "commit"     # approval: pending -= days, used += days
    RELEASE = "release"   # rejection / cancellation: pending -= days


def _find(db: Session, user_id: int, leave_type_id: int, year: int, lock: bool = False) -> Optional[LeaveBalance]:
    query = db.query(LeaveBalance).filter(
        LeaveBalance.user_id == user_id,
        LeaveBalance.leave_type_id == leave_type_id,
        LeaveBalance.year == year,
    )
    if lock:
        # Row lock on PostgreSQL; ignored by SQLite
        query = query.with_for_update()
    return query.first()


def _carry_over(db: Session, user_id: int, leave_type: LeaveType, year: int) -> float:
    if not leave_type.carry_forward:
        return 0.0
    previous = _find(db, user_id, leave_type.id, year - 1)
    if previous is None:
        return 0.0
    cap = leave_type.max_carry_forward or 0.0
    return max(0.0, min(previous.balance or 0.0, cap))


def ensure(db: Session, user_id: int, leave_type: LeaveType, year: int, lock: bool = False) -> LeaveBalance:
    """Return the balance row for the tuple, creating it from the type's quota if missing."""
    balance = _find(db, user_id, leave_type.id, year, lock=lock)
    if balance is not None:
        return balance

    balance = LeaveBalance(
        user_id=user_id,
        leave_type_id=leave_type.id,
        year=year,
        total_allocated=leave_type.yearly_quota or 0.0,
        used=0.0,
        pending=0.0,
        carried_forward=_carry_over(db, user_id, leave_type, year),
    )
    balance.recompute()
    db.add(balance)
    db.flush()
    logger.info(
        f"Created leave balance user={user_id} type={leave_type.code} year={year}",
        extra={"allocated": balance.total_allocated, "carried_forward": balance.carried_forward},
    )
    return balance


def adjust(
    db: Session,
    user_id: int,
    leave_type: LeaveType,
    year: int,
    days: float,
    action: LedgerAction,
) -> LeaveBalance:
    if days is None or days <= 0:
        raise ValidationError("Days to adjust must be positive", details={"days": days})
    action = LedgerAction(action)

    balance = ensure(db, user_id, leave_type, year, lock=True)
    pending = balance.pending or 0.0
    used = balance.used or 0.0

    if action == LedgerAction.RESERVE:
        pending += days
    elif action == LedgerAction.COMMIT:
        pending -= days
        used += days
    else:
        pending -= days

    if pending < 0 or used < 0:
        raise InvalidState(
            f"Ledger {action.value} of {days} day(s) would leave a negative balance component",
            details={"pending": pending, "used": used, "balance_id": balance.id},
        )

    balance.pending = pending
    balance.used = used
    balance.recompute()
    db.flush()
    logger.info(
        f"Ledger {action.value}: user={user_id} type={leave_type.code} year={year} days={days}",
        extra={"pending": balance.pending, "used": balance.used, "balance": balance.balance},
    )
    return balance
