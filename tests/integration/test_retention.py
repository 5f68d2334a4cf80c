"""Integration tests for the settled-expense purge"""

from datetime import date, datetime, timezone
from sqlalchemy.orm import Session

from roomie_ledger.infrastructure.database.models import SettlementTransferRecord
from roomie_ledger.services.ledger import LedgerService
from roomie_ledger.services.retention import purge_settled_expenses


def fixed_clock(moment: datetime):
    return lambda: moment


def test_purge_deletes_only_settled_expenses_from_month(db: Session, group_id: str):
    february = LedgerService(db, clock=fixed_clock(datetime(2026, 2, 10, tzinfo=timezone.utc)))
    march = LedgerService(db, clock=fixed_clock(datetime(2026, 3, 5, tzinfo=timezone.utc)))

    february.add_expense(group_id, "alice", "Rent", 3000, ["alice", "bob", "carol"])
    february.settle_all(group_id, "alice")
    february.add_expense(group_id, "bob", "Milk", 1000, ["bob", "carol"])  # unsettled
    march.add_expense(group_id, "carol", "Soap", 600, ["alice", "carol"])

    balances_before = march.preview(group_id).balances

    deleted = purge_settled_expenses(db, today=date(2026, 3, 1))

    assert deleted == 1
    remaining = march.list_expenses(group_id, include_settled=True)
    assert sorted(e.title for e in remaining) == ["Milk", "Soap"]
    assert march.preview(group_id).balances == balances_before
    assert db.query(SettlementTransferRecord).count() == 2


def test_purge_explicit_month_with_nothing_to_delete(db: Session, group_id: str):
    assert purge_settled_expenses(db, month="2020-01") == 0
