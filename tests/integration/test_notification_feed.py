"""Integration tests for the notification feed"""

import pytest
from sqlalchemy.orm import Session

from roomie_ledger.domain.exceptions import ForbiddenError, NotFoundError
from roomie_ledger.domain.models import NotificationType
from roomie_ledger.services.ledger import LedgerService
from roomie_ledger.services.notifications import DatabaseNotificationSink, NotificationService


def test_ledger_operations_emit_events(service: LedgerService, group_id: str, db: Session):
    expense = service.add_expense(group_id, "alice", "Milk", 450, ["alice", "bob"])
    service.remove_expense(group_id, "alice", expense.expense_id)
    service.add_expense(group_id, "alice", "Groceries", 3000, ["alice", "bob", "carol"])
    service.settle_all(group_id, "bob")

    events, unread = NotificationService(db).list_feed(group_id, "carol")

    types = sorted(e.type for e in events)
    assert types == sorted(
        [
            NotificationType.EXPENSE_ADDED,
            NotificationType.EXPENSE_DELETED,
            NotificationType.EXPENSE_ADDED,
            NotificationType.SETTLED,
        ]
    )
    assert unread == 4

    [settled] = [e for e in events if e.type == NotificationType.SETTLED]
    assert settled.body == "Bob settled up (2 payments)"
    assert settled.created_by == "bob"
    assert {t["from_id"] for t in settled.meta["transfers"]} == {"bob", "carol"}

    [deleted] = [e for e in events if e.type == NotificationType.EXPENSE_DELETED]
    assert deleted.body == 'Alice deleted "Milk" • $4.50'
    assert deleted.meta["expense_id"] == expense.expense_id


def test_mark_read_grows_read_by(service: LedgerService, group_id: str, db: Session):
    service.add_expense(group_id, "alice", "Milk", 450, ["alice", "bob"])
    feed = NotificationService(db)
    [event], _ = feed.list_feed(group_id, "bob")

    assert feed.mark_read(group_id, "bob", event.event_id) is True
    assert feed.mark_read(group_id, "bob", event.event_id) is False
    assert feed.mark_read(group_id, "carol", event.event_id) is True

    [event], unread = feed.list_feed(group_id, "bob")
    assert event.read_by == frozenset({"bob", "carol"})
    assert unread == 0


def test_mark_all_read(service: LedgerService, group_id: str, db: Session):
    service.add_expense(group_id, "alice", "Milk", 450, ["alice", "bob"])
    service.add_expense(group_id, "bob", "Eggs", 300, ["alice", "bob"])
    feed = NotificationService(db)

    assert feed.mark_all_read(group_id, "carol") == 2
    assert feed.mark_all_read(group_id, "carol") == 0
    assert feed.list_feed(group_id, "carol")[1] == 0
    assert feed.list_feed(group_id, "alice")[1] == 2


def test_feed_requires_membership(group_id: str, db: Session):
    with pytest.raises(ForbiddenError):
        NotificationService(db).list_feed(group_id, "mallory")


def test_mark_read_unknown_notification(group_id: str, db: Session):
    with pytest.raises(NotFoundError):
        NotificationService(db).mark_read(group_id, "alice", "missing")


def test_sink_forwards_stored_payload(group_id: str, db: Session):
    forwarded = []
    service = LedgerService(db, sink=DatabaseNotificationSink(db, forward=forwarded.append))

    service.add_expense(group_id, "alice", "Milk", 450, ["alice", "bob"])

    [payload] = forwarded
    assert payload["event"] == "expense_added"
    assert payload["event_id"] is not None
    assert payload["group_id"] == group_id
    assert payload["meta"]["amount_cents"] == 450


def test_sink_keeps_event_when_forward_fails(group_id: str, db: Session):
    def broken_forward(payload):
        raise RuntimeError("queue full")

    service = LedgerService(db, sink=DatabaseNotificationSink(db, forward=broken_forward))

    expense = service.add_expense(group_id, "alice", "Milk", 450, ["alice", "bob"])

    [event], unread = NotificationService(db).list_feed(group_id, "bob")
    assert event.meta["expense_id"] == expense.expense_id
    assert unread == 1
