import pytest

from attendly.core.exceptions import InvalidState, ValidationError
from attendly.models.leave_balance import LeaveBalance
from attendly.models.leave_type import LeaveType
from attendly.services import leave_ledger
from attendly.services.leave_ledger import LedgerAction

YEAR = 2030


def test_ensure_seeds_from_quota(db_session, employee, leave_type):
    balance = leave_ledger.ensure(db_session, employee.id, leave_type, YEAR)
    assert balance.total_allocated == 12
    assert balance.used == 0
    assert balance.pending == 0
    assert balance.carried_forward == 0
    assert balance.balance == 12


def test_ensure_is_idempotent(db_session, employee, leave_type):
    first = leave_ledger.ensure(db_session, employee.id, leave_type, YEAR)
    db_session.commit()
    second = leave_ledger.ensure(db_session, employee.id, leave_type, YEAR)

    assert first.id == second.id
    rows = db_session.query(LeaveBalance).filter(
        LeaveBalance.user_id == employee.id,
        LeaveBalance.leave_type_id == leave_type.id,
        LeaveBalance.year == YEAR,
    ).count()
    assert rows == 1


@pytest.mark.parametrize("used_last_year, expected_carry", [
    (4, 3),     # 8 left, capped at 3
    (10, 2),    # 2 left, below the cap
    (14, 0),    # overdrawn, never negative
])
def test_ensure_carries_forward_capped_balance(db_session, employee, leave_type, used_last_year, expected_carry):
    previous = leave_ledger.ensure(db_session, employee.id, leave_type, YEAR - 1)
    previous.used = used_last_year
    previous.recompute()
    db_session.commit()

    balance = leave_ledger.ensure(db_session, employee.id, leave_type, YEAR)
    assert balance.carried_forward == expected_carry
    assert balance.balance == 12 + expected_carry


def test_no_carry_forward_when_type_disallows_it(db_session, employee):
    no_carry = LeaveType(name="Comp Off", code="CO", yearly_quota=5, carry_forward=False, max_carry_forward=2)
    db_session.add(no_carry)
    db_session.commit()
    leave_ledger.ensure(db_session, employee.id, no_carry, YEAR - 1)

    balance = leave_ledger.ensure(db_session, employee.id, no_carry, YEAR)
    assert balance.carried_forward == 0
    assert balance.balance == 5


def test_reserve_commit_release_arithmetic(db_session, employee, leave_type):
    balance = leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 3, LedgerAction.RESERVE)
    assert (balance.pending, balance.used, balance.balance) == (3, 0, 9)

    balance = leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 2, LedgerAction.COMMIT)
    assert (balance.pending, balance.used, balance.balance) == (1, 2, 9)

    balance = leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 1, LedgerAction.RELEASE)
    assert (balance.pending, balance.used, balance.balance) == (0, 2, 10)


def test_balance_always_matches_its_components(db_session, employee, leave_type):
    leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 2.5, LedgerAction.RESERVE)
    balance = leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 0.5, LedgerAction.COMMIT)
    expected = balance.total_allocated + balance.carried_forward - balance.used - balance.pending
    assert balance.balance == expected


@pytest.mark.parametrize("days", [0, -1])
def test_adjust_rejects_non_positive_days(db_session, employee, leave_type, days):
    with pytest.raises(ValidationError):
        leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, days, LedgerAction.RESERVE)


def test_release_more_than_pending_is_invalid(db_session, employee, leave_type):
    leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 1, LedgerAction.RESERVE)
    with pytest.raises(InvalidState):
        leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 2, LedgerAction.RELEASE)


def test_commit_without_reservation_is_invalid(db_session, employee, leave_type):
    with pytest.raises(InvalidState):
        leave_ledger.adjust(db_session, employee.id, leave_type, YEAR, 1, LedgerAction.COMMIT)
