"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union


@dataclass(frozen=True)
class Member:
    """Group member as supplied by the member registry"""

    member_id: str
    display_name: str


@dataclass(frozen=True)
class ExplicitSplit:
    """Expense split among a fixed set of members"""

    participant_ids: FrozenSet[str]


@dataclass(frozen=True)
class AllCurrentMembers:
    """Expense split among whoever is a member when the scope is resolved"""

    pass


SplitScope = Union[ExplicitSplit, AllCurrentMembers]

SCOPE_EXPLICIT = "explicit"
SCOPE_ALL_MEMBERS = "all_members"


def resolve_participants(scope: SplitScope, members: Iterable[Member]) -> FrozenSet[str]:
    """Turn a split scope into a concrete participant set"""
    if isinstance(scope, ExplicitSplit):
        return frozenset(scope.participant_ids)
    return frozenset(m.member_id for m in members)


def scope_key(scope: SplitScope) -> str:
    """Storage and API label for a split scope"""
    return SCOPE_EXPLICIT if isinstance(scope, ExplicitSplit) else SCOPE_ALL_MEMBERS


@dataclass
class Expense:
    """
    Shared expense; immutable apart from settled_at.

    participant_ids is always the resolved set. `scope` records how it was
    chosen: an explicit list, or everyone in the group at creation time.
    """

    expense_id: str
    group_id: str
    title: str
    amount_cents: int
    payer_id: str
    participant_ids: FrozenSet[str]
    created_at: datetime
    settled_at: Optional[datetime] = None
    scope: Optional[SplitScope] = None

    def __post_init__(self):
        if self.scope is None:
            self.scope = ExplicitSplit(frozenset(self.participant_ids))

    @property
    def is_settled(self) -> bool:
        return self.settled_at is not None


@dataclass(frozen=True)
class Transfer:
    """Planned point-to-point payment"""

    from_id: str
    to_id: str
    amount_cents: int


@dataclass
class SettlementTransfer:
    """Recorded transfer; append-only"""

    transfer_id: str
    group_id: str
    from_id: str
    to_id: str
    amount_cents: int
    created_at: datetime
    created_by: str


class NotificationType(str, Enum):
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    SETTLED = "settled"


@dataclass
class NotificationEvent:
    """Structured event for the notification feed"""

    type: NotificationType
    title: str
    body: str
    meta: Dict[str, Any]
    created_by: str
    group_id: str
    created_at: Optional[datetime] = None
    event_id: Optional[str] = None
    read_by: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class SettlementPlan:
    """
    Snapshot of a group's unsettled ledger and the transfers that clear it.

    `version` is the group's ledger version at read time; committing the plan
    fails with a conflict if any write happened since.
    """

    group_id: str
    version: int
    expense_ids: List[str]
    balances: Dict[str, int]
    transfers: List[Transfer]

    @property
    def is_empty(self) -> bool:
        return not self.expense_ids or not self.transfers
