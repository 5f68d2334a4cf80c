"""
Ledger service - expense lifecycle and the settlement executor.

Every write to a group's ledger advances `ledger_group.version` inside the
same transaction. A settlement is planned against a version snapshot and
committed with a conditional version bump, so any add, remove or competing
settlement that lands in between turns the commit into a ConflictError
instead of a partially settled ledger.

Layer rules:
  - No FastAPI imports. Plain Python over a SQLAlchemy session.
  - This service owns commits and rollbacks for ledger writes.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Protocol
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from roomie_ledger.domain.balances import compute_balances
from roomie_ledger.domain.exceptions import (
    ConflictError,
    DomainException,
    ForbiddenError,
    InvalidExpenseError,
    NotFoundError,
    UnavailableError,
)
from roomie_ledger.domain.models import (
    AllCurrentMembers,
    Expense,
    ExplicitSplit,
    Member,
    NotificationEvent,
    SettlementPlan,
    SettlementTransfer,
    SplitScope,
    resolve_participants,
    scope_key,
)
from roomie_ledger.domain.notifications import expense_added_event, expense_deleted_event, settled_event
from roomie_ledger.domain.settlement import plan_settlement
from roomie_ledger.infrastructure.database.repositories import (
    ExpenseRepository,
    GroupRepository,
    MemberRepository,
    SettlementRepository,
)
from roomie_ledger.infrastructure.observability.metrics import (
    notification_failure_counter,
    record_expense,
    record_settlement,
)
from roomie_ledger.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 2


class NotificationSink(Protocol):
    def emit(self, event: NotificationEvent) -> NotificationEvent: ...


class MembershipPolicy:
    """Authorization hook: the actor must currently belong to the group"""

    def check(self, group_id: str, actor_id: str, members: List[Member], action: str) -> None:
        if actor_id not in {m.member_id for m in members}:
            raise ForbiddenError(f"{actor_id} is not a member of group {group_id}")


@contextmanager
def storage_errors(db: Session) -> Iterator[None]:
    """Roll back on any failure and surface connection problems as UnavailableError"""
    try:
        yield
    except DomainException:
        db.rollback()
        raise
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        raise UnavailableError(f"Ledger storage unavailable: {e}") from e
    except Exception:
        db.rollback()
        raise


class LedgerService:
    """Expense add/remove, balance preview and atomic settle-up for one database session"""

    def __init__(
        self,
        db: Session,
        policy: Optional[MembershipPolicy] = None,
        sink: Optional[NotificationSink] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.policy = policy or MembershipPolicy()
        self.sink = sink
        self.clock = clock
        self.groups = GroupRepository(db)
        self.members = MemberRepository(db)
        self.expenses = ExpenseRepository(db)
        self.settlements = SettlementRepository(db)

    # ------------------------------------------------------------------ reads

    def current_members(self, group_id: str) -> List[Member]:
        with storage_errors(self.db):
            self._require_group(group_id)
            return self.members.list_members(group_id)

    def authorize(self, group_id: str, actor_id: str, action: str) -> List[Member]:
        """Run the policy for actor_id and return the current members"""
        members = self.current_members(group_id)
        self.policy.check(group_id, actor_id, members, action)
        return members

    def list_expenses(self, group_id: str, include_settled: bool = False) -> List[Expense]:
        """Expenses newest first; settled ones only when asked for"""
        with storage_errors(self.db):
            self._require_group(group_id)
            members = self.members.list_members(group_id)
            self._freeze_legacy(group_id, members)
            records = self.expenses.list_expenses(group_id, include_settled=include_settled)
            return [self.expenses.to_domain(r, members) for r in records]

    def list_unsettled_expenses(self, group_id: str) -> List[Expense]:
        return self.list_expenses(group_id, include_settled=False)

    def list_settlements(self, group_id: str, limit: int = 100) -> List[SettlementTransfer]:
        with storage_errors(self.db):
            self._require_group(group_id)
            return self.settlements.list_transfers(group_id, limit=limit)

    def prepare_settlement(self, group_id: str) -> SettlementPlan:
        """
        Snapshot the unsettled ledger and plan the transfers that clear it.

        The version is read before the expenses so that any write racing
        with this read makes the later commit fail rather than slip through.
        """
        with storage_errors(self.db):
            version = self._require_group(group_id)
            members = self.members.list_members(group_id)
            self._freeze_legacy(group_id, members)
            records = self.expenses.list_expenses(group_id, include_settled=False)

        unsettled = [self.expenses.to_domain(r, members) for r in records]
        balances = compute_balances(members, unsettled)

        return SettlementPlan(
            group_id=group_id,
            version=version,
            expense_ids=sorted(e.expense_id for e in unsettled),
            balances=balances,
            transfers=plan_settlement(balances),
        )

    preview = prepare_settlement

    # ----------------------------------------------------------------- writes

    def add_expense(
        self,
        group_id: str,
        actor_id: str,
        title: str,
        amount_cents: int,
        participant_ids: Optional[Iterable[str]] = None,
        payer_id: Optional[str] = None,
    ) -> Expense:
        """
        Record a new unsettled expense.

        `participant_ids=None` splits among everyone currently in the group;
        that set is frozen on the record and never re-resolved. The payer
        defaults to the actor but may be any current member.

        Raises:
            InvalidExpenseError: Bad title, amount, payer or participant set
            ForbiddenError: Actor is not a member
            NotFoundError: No such group
            UnavailableError: Storage failure
        """
        members = self.authorize(group_id, actor_id, "add_expense")
        member_ids = {m.member_id for m in members}

        title = (title or "").strip()
        if not title:
            raise InvalidExpenseError("Enter a title (ex: Chicken, Rent, Milk)")
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
            raise InvalidExpenseError("Amount must be a positive number of cents")

        payer_id = payer_id or actor_id
        if payer_id not in member_ids:
            raise InvalidExpenseError(f"Payer {payer_id} is not a member of this group")

        scope: SplitScope
        if participant_ids is None:
            scope = AllCurrentMembers()
        else:
            scope = ExplicitSplit(frozenset(participant_ids))
        participants = resolve_participants(scope, members)

        unknown = participants - member_ids
        if unknown:
            raise InvalidExpenseError(f"Not group members: {', '.join(sorted(unknown))}")
        if len(participants) < MIN_PARTICIPANTS:
            raise InvalidExpenseError("Select at least 2 people for split.")

        with storage_errors(self.db):
            if not self.groups.bump_version(group_id):
                raise NotFoundError(f"Group {group_id} not found")
            record = self.expenses.create_expense(
                group_id=group_id,
                title=title,
                amount_cents=amount_cents,
                payer_id=payer_id,
                participant_ids=participants,
                split_scope=scope_key(scope),
                created_at=self.clock(),
            )
            expense = self.expenses.to_domain(record, members)
            self.db.commit()

        record_expense("added", amount_cents)
        self._emit(expense_added_event(expense, actor_id, self._name_lookup(members)))
        return expense

    def remove_expense(self, group_id: str, actor_id: str, expense_id: str) -> Expense:
        """
        Delete an unsettled expense. Only its payer may do this.

        Raises:
            NotFoundError: No such expense in the group
            ForbiddenError: Actor is not the payer, or the expense is settled
            ConflictError: Expense was settled or removed concurrently
        """
        members = self.authorize(group_id, actor_id, "remove_expense")

        with storage_errors(self.db):
            record = self.expenses.get_expense(group_id, expense_id)
            if record is None:
                raise NotFoundError(f"Expense {expense_id} not found")
            expense = self.expenses.to_domain(record, members)

            if expense.is_settled:
                raise ForbiddenError("Settled expenses cannot be deleted.")
            if expense.payer_id != actor_id:
                raise ForbiddenError("Only the person who paid can delete this expense.")

            self.groups.bump_version(group_id)
            if self.expenses.delete_unsettled(group_id, expense_id, actor_id) != 1:
                raise ConflictError("Expense changed while deleting, please retry")
            self.db.commit()

        record_expense("removed", expense.amount_cents)
        self._emit(expense_deleted_event(expense, actor_id, self._name_lookup(members)))
        return expense

    def commit_settlement(self, plan: SettlementPlan, actor_id: str) -> List[SettlementTransfer]:
        """
        Atomically mark the plan's expenses settled and record its transfers.

        An empty plan is a no-op and returns []. If the ledger moved past
        plan.version, nothing is written and ConflictError is raised.
        """
        members = self.authorize(plan.group_id, actor_id, "settle")

        if plan.is_empty:
            record_settlement("noop")
            return []

        settled_at = self.clock()
        try:
            with storage_errors(self.db):
                if not self.groups.bump_version_if(plan.group_id, plan.version):
                    raise ConflictError("Someone else just settled up, please retry.")

                updated = self.expenses.mark_settled(plan.group_id, plan.expense_ids, settled_at)
                if updated != len(plan.expense_ids):
                    raise ConflictError("Someone else just settled up, please retry.")

                transfers = self.settlements.record_transfers(
                    plan.group_id, plan.transfers, created_by=actor_id, created_at=settled_at
                )
                self.db.commit()
        except ConflictError:
            record_settlement("conflict")
            raise
        except UnavailableError:
            record_settlement("unavailable")
            raise

        record_settlement("committed", [t.amount_cents for t in transfers])
        self._emit(
            settled_event(
                plan.group_id, actor_id, plan.transfers, plan.expense_ids, self._name_lookup(members)
            )
        )
        return transfers

    def settle_all(self, group_id: str, actor_id: str, conflict_retries: int = 0) -> List[SettlementTransfer]:
        """
        Plan from fresh balances and commit, recomputing after a conflict.

        Re-running after a successful settlement is a no-op because no
        unsettled expenses remain.

        Args:
            conflict_retries: How many times to re-plan after a ConflictError
        """
        self.authorize(group_id, actor_id, "settle")

        attempt = 0
        while True:
            plan = self.prepare_settlement(group_id)
            try:
                return self.commit_settlement(plan, actor_id)
            except ConflictError:
                attempt += 1
                if attempt > conflict_retries:
                    raise
                logger.warning(
                    "Settlement conflict, recomputing",
                    extra={"group_id": group_id, "actor_id": actor_id, "attempt": attempt},
                )

    # ---------------------------------------------------------------- helpers

    def _require_group(self, group_id: str) -> int:
        version = self.groups.get_version(group_id)
        if version is None:
            raise NotFoundError(f"Group {group_id} not found")
        return version

    def _freeze_legacy(self, group_id: str, members: List[Member]) -> None:
        """Pin legacy split-among-everyone rows to the members seen on first read"""
        frozen = self.expenses.freeze_legacy_participants(group_id, [m.member_id for m in members])
        if frozen:
            self.db.commit()
            logger.info("Froze legacy participant lists", extra={"group_id": group_id, "rows": frozen})

    def _emit(self, event: NotificationEvent) -> None:
        """Best effort: the ledger is already committed when this runs"""
        if self.sink is None:
            return
        try:
            self.sink.emit(event)
        except Exception as e:
            notification_failure_counter.inc()
            logger.warning(
                "Notification dropped: %s",
                e,
                exc_info=not isinstance(e, UnavailableError),
                extra={"group_id": event.group_id, "event_type": event.type.value},
            )

    @staticmethod
    def _name_lookup(members: List[Member]) -> Callable[[str], str]:
        names = {m.member_id: m.display_name for m in members}
        return lambda member_id: names.get(member_id, member_id[:6])
