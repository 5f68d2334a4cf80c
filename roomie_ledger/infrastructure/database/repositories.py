"""Data access layer for ledger entities"""

from datetime import datetime
from typing import Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from roomie_ledger.config import settings
from roomie_ledger.infrastructure.database.models import (
    LedgerGroup,
    GroupMember,
    ExpenseRecord,
    SettlementTransferRecord,
    NotificationRecord,
    NotificationRead,
)
from roomie_ledger.domain.models import (
    SCOPE_ALL_MEMBERS,
    AllCurrentMembers,
    Expense,
    ExplicitSplit,
    Member,
    NotificationEvent,
    NotificationType,
    SettlementTransfer,
    SplitScope,
    Transfer,
    resolve_participants,
)
from roomie_ledger.utils.date_utils import local_date, month_key


class GroupRepository:
    """Repository for groups and their ledger version"""

    def __init__(self, db: Session):
        self.db = db

    def create_group(self, name: str) -> LedgerGroup:
        db_group = LedgerGroup(name=name, version=0)
        self.db.add(db_group)
        self.db.flush()
        return db_group

    def get_version(self, group_id: str) -> Optional[int]:
        """Current ledger version, or None if the group does not exist"""
        row = (
            self.db.query(LedgerGroup.version)
            .filter(LedgerGroup.id == group_id)
            .first()
        )
        return row[0] if row else None

    def bump_version(self, group_id: str) -> bool:
        """Unconditionally advance the ledger version; False if group is missing"""
        updated = (
            self.db.query(LedgerGroup)
            .filter(LedgerGroup.id == group_id)
            .update({LedgerGroup.version: LedgerGroup.version + 1}, synchronize_session=False)
        )
        return updated == 1

    def bump_version_if(self, group_id: str, expected_version: int) -> bool:
        """Advance the version only if nobody else has since `expected_version`"""
        updated = (
            self.db.query(LedgerGroup)
            .filter(LedgerGroup.id == group_id, LedgerGroup.version == expected_version)
            .update({LedgerGroup.version: LedgerGroup.version + 1}, synchronize_session=False)
        )
        return updated == 1


class MemberRepository:
    """Read access to the member registry (writes belong to the registry itself)"""

    def __init__(self, db: Session):
        self.db = db

    def add_member(self, group_id: str, member_id: str, display_name: str) -> GroupMember:
        db_member = GroupMember(group_id=group_id, member_id=member_id, display_name=display_name)
        self.db.add(db_member)
        self.db.flush()
        return db_member

    def remove_member(self, group_id: str, member_id: str) -> None:
        (
            self.db.query(GroupMember)
            .filter(GroupMember.group_id == group_id, GroupMember.member_id == member_id)
            .delete(synchronize_session=False)
        )

    def list_members(self, group_id: str) -> List[Member]:
        """Current members sorted by display name"""
        rows = (
            self.db.query(GroupMember)
            .filter(GroupMember.group_id == group_id)
            .order_by(GroupMember.display_name, GroupMember.member_id)
            .all()
        )
        return [Member(member_id=r.member_id, display_name=r.display_name) for r in rows]


class ExpenseRepository:
    """Repository for expenses"""

    def __init__(self, db: Session):
        self.db = db

    def create_expense(
        self,
        group_id: str,
        title: str,
        amount_cents: int,
        payer_id: str,
        participant_ids: Iterable[str],
        split_scope: str,
        created_at: datetime,
    ) -> ExpenseRecord:
        """Persist a new unsettled expense with a frozen participant list"""
        db_expense = ExpenseRecord(
            group_id=group_id,
            title=title,
            amount_cents=amount_cents,
            payer_id=payer_id,
            split_scope=split_scope,
            participant_ids=sorted(participant_ids),
            month_key=month_key(local_date(created_at, settings.ledger_timezone)),
            created_at=created_at,
            settled_at=None,
        )
        self.db.add(db_expense)
        self.db.flush()  # Get ID without committing
        return db_expense

    def get_expense(self, group_id: str, expense_id: str) -> Optional[ExpenseRecord]:
        return (
            self.db.query(ExpenseRecord)
            .filter(ExpenseRecord.group_id == group_id, ExpenseRecord.id == expense_id)
            .first()
        )

    def list_expenses(self, group_id: str, include_settled: bool = False) -> List[ExpenseRecord]:
        """Expenses for a group, newest first"""
        query = self.db.query(ExpenseRecord).filter(ExpenseRecord.group_id == group_id)
        if not include_settled:
            query = query.filter(ExpenseRecord.settled_at.is_(None))
        return query.order_by(ExpenseRecord.created_at.desc(), ExpenseRecord.id).all()

    def delete_unsettled(self, group_id: str, expense_id: str, payer_id: str) -> int:
        """Delete only if still unsettled and owned by payer_id; returns rows removed"""
        return (
            self.db.query(ExpenseRecord)
            .filter(
                ExpenseRecord.group_id == group_id,
                ExpenseRecord.id == expense_id,
                ExpenseRecord.payer_id == payer_id,
                ExpenseRecord.settled_at.is_(None),
            )
            .delete(synchronize_session=False)
        )

    def mark_settled(self, group_id: str, expense_ids: List[str], settled_at: datetime) -> int:
        """Stamp settled_at on still-unsettled expenses; returns rows updated"""
        if not expense_ids:
            return 0
        return (
            self.db.query(ExpenseRecord)
            .filter(
                ExpenseRecord.group_id == group_id,
                ExpenseRecord.id.in_(expense_ids),
                ExpenseRecord.settled_at.is_(None),
            )
            .update({ExpenseRecord.settled_at: settled_at}, synchronize_session=False)
        )

    def delete_settled_in_month(self, month: str) -> int:
        """Remove settled expenses created in `month` across all groups"""
        return (
            self.db.query(ExpenseRecord)
            .filter(ExpenseRecord.month_key == month, ExpenseRecord.settled_at.isnot(None))
            .delete(synchronize_session=False)
        )

    def freeze_legacy_participants(self, group_id: str, member_ids: Iterable[str]) -> int:
        """
        Store the current members on unsettled rows saved without a participant list.

        Legacy rows have NULL or an empty list there. Once written, the set
        is never recomputed. Settled rows are left alone. Returns how many
        rows were frozen.
        """
        frozen = sorted(member_ids)
        if not frozen:
            return 0
        rows = (
            self.db.query(ExpenseRecord)
            .filter(ExpenseRecord.group_id == group_id, ExpenseRecord.settled_at.is_(None))
            .all()
        )
        count = 0
        for row in rows:
            if not row.participant_ids:
                row.participant_ids = list(frozen)
                count += 1
        if count:
            self.db.flush()
        return count

    @staticmethod
    def to_domain(record: ExpenseRecord, members: List[Member]) -> Expense:
        """
        Convert a row to a domain Expense.

        A legacy row that has not been frozen yet resolves against the
        given members, the same set freeze_legacy_participants would store.
        """
        participants = frozenset(record.participant_ids or ())
        if not participants:
            participants = resolve_participants(AllCurrentMembers(), members)

        scope: SplitScope
        if record.split_scope == SCOPE_ALL_MEMBERS:
            scope = AllCurrentMembers()
        else:
            scope = ExplicitSplit(participants)

        return Expense(
            expense_id=record.id,
            group_id=record.group_id,
            title=record.title,
            amount_cents=record.amount_cents,
            payer_id=record.payer_id,
            participant_ids=participants,
            created_at=record.created_at,
            settled_at=record.settled_at,
            scope=scope,
        )


class SettlementRepository:
    """Repository for the settlement transfer log"""

    def __init__(self, db: Session):
        self.db = db

    def record_transfers(
        self,
        group_id: str,
        transfers: List[Transfer],
        created_by: str,
        created_at: datetime,
    ) -> List[SettlementTransfer]:
        """Append one record per planned transfer"""
        db_transfers = [
            SettlementTransferRecord(
                group_id=group_id,
                from_id=t.from_id,
                to_id=t.to_id,
                amount_cents=t.amount_cents,
                created_at=created_at,
                created_by=created_by,
            )
            for t in transfers
        ]
        self.db.add_all(db_transfers)
        self.db.flush()
        return [self.to_domain(r) for r in db_transfers]

    def list_transfers(self, group_id: str, limit: int = 100) -> List[SettlementTransfer]:
        """Recorded transfers, newest first"""
        rows = (
            self.db.query(SettlementTransferRecord)
            .filter(SettlementTransferRecord.group_id == group_id)
            .order_by(SettlementTransferRecord.created_at.desc(), SettlementTransferRecord.id)
            .limit(limit)
            .all()
        )
        return [self.to_domain(r) for r in rows]

    @staticmethod
    def to_domain(record: SettlementTransferRecord) -> SettlementTransfer:
        return SettlementTransfer(
            transfer_id=record.id,
            group_id=record.group_id,
            from_id=record.from_id,
            to_id=record.to_id,
            amount_cents=record.amount_cents,
            created_at=record.created_at,
            created_by=record.created_by,
        )


class NotificationRepository:
    """Repository for the notification feed"""

    def __init__(self, db: Session):
        self.db = db

    def create_event(self, event: NotificationEvent, created_at: datetime) -> NotificationRecord:
        db_event = NotificationRecord(
            group_id=event.group_id,
            type=event.type.value,
            title=event.title,
            body=event.body,
            meta=event.meta,
            created_at=created_at,
            created_by=event.created_by,
        )
        self.db.add(db_event)
        self.db.flush()
        return db_event

    def get_event(self, group_id: str, notification_id: str) -> Optional[NotificationRecord]:
        return (
            self.db.query(NotificationRecord)
            .filter(NotificationRecord.group_id == group_id, NotificationRecord.id == notification_id)
            .first()
        )

    def list_recent(self, group_id: str, limit: int = 50) -> List[NotificationEvent]:
        """Latest events for a group, newest first"""
        rows = (
            self.db.query(NotificationRecord)
            .filter(NotificationRecord.group_id == group_id)
            .order_by(NotificationRecord.created_at.desc(), NotificationRecord.id)
            .limit(limit)
            .all()
        )
        return [self.to_domain(r) for r in rows]

    def has_read(self, notification_id: str, member_id: str) -> bool:
        return (
            self.db.query(NotificationRead)
            .filter(
                NotificationRead.notification_id == notification_id,
                NotificationRead.member_id == member_id,
            )
            .first()
            is not None
        )

    def add_read(self, notification_id: str, member_id: str) -> None:
        self.db.add(NotificationRead(notification_id=notification_id, member_id=member_id))
        self.db.flush()

    def unread_ids(self, group_id: str, member_id: str, limit: int = 50) -> List[str]:
        """Ids among the latest `limit` events that member_id has not read"""
        read_subquery = select(NotificationRead.notification_id).where(
            NotificationRead.member_id == member_id
        )
        rows = (
            self.db.query(NotificationRecord.id)
            .filter(
                NotificationRecord.group_id == group_id,
                NotificationRecord.id.notin_(read_subquery),
            )
            .order_by(NotificationRecord.created_at.desc(), NotificationRecord.id)
            .limit(limit)
            .all()
        )
        return [r[0] for r in rows]

    @staticmethod
    def to_domain(record: NotificationRecord) -> NotificationEvent:
        return NotificationEvent(
            event_id=record.id,
            group_id=record.group_id,
            type=NotificationType(record.type),
            title=record.title,
            body=record.body,
            meta=record.meta,
            created_at=record.created_at,
            created_by=record.created_by,
            read_by=frozenset(r.member_id for r in record.reads),
        )
