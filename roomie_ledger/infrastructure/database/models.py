"""SQLAlchemy ORM models for the shared-expense ledger"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    DateTime,
    Integer,
    ForeignKey,
    Text,
    JSON,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class LedgerGroup(Base):
    """A group sharing one ledger; `version` guards concurrent writers"""

    __tablename__ = "ledger_group"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")


class GroupMember(Base):
    """Current membership, maintained by the member registry"""

    __tablename__ = "group_member"

    group_id = Column(String(36), ForeignKey("ledger_group.id", ondelete="CASCADE"), primary_key=True)
    member_id = Column(Text, primary_key=True)
    display_name = Column(Text, nullable=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    group = relationship("LedgerGroup", back_populates="members")


class ExpenseRecord(Base):
    """Shared expense; only settled_at changes after insert"""

    __tablename__ = "expense"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_expense_amount_positive"),
        Index("ix_expense_group_settled", "group_id", "settled_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(String(36), ForeignKey("ledger_group.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    payer_id = Column(Text, nullable=False)
    split_scope = Column(Text, nullable=False, default="explicit")  # explicit | all_members
    participant_ids = Column(JSON, nullable=True)  # NULL only on legacy rows
    month_key = Column(String(7), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)


class SettlementTransferRecord(Base):
    """Append-only log of transfers recorded by a settlement"""

    __tablename__ = "settlement_transfer"

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(String(36), ForeignKey("ledger_group.id", ondelete="CASCADE"), nullable=False, index=True)
    from_id = Column(Text, nullable=False)
    to_id = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(Text, nullable=False)


class NotificationRecord(Base):
    """Notification feed entry"""

    __tablename__ = "notification_event"

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(String(36), ForeignKey("ledger_group.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    meta = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(Text, nullable=False)

    reads = relationship("NotificationRead", back_populates="notification", cascade="all, delete-orphan")


class NotificationRead(Base):
    """One row per member that has read a notification; rows are never removed"""

    __tablename__ = "notification_read"

    notification_id = Column(
        String(36), ForeignKey("notification_event.id", ondelete="CASCADE"), primary_key=True
    )
    member_id = Column(Text, primary_key=True)
    read_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    notification = relationship("NotificationRecord", back_populates="reads")
