"""Builders for notification feed events"""

from typing import Callable, Iterable, List
from roomie_ledger.domain.models import Expense, NotificationEvent, NotificationType, Transfer
from roomie_ledger.domain.splits import format_cents

NameLookup = Callable[[str], str]


def expense_added_event(expense: Expense, actor_id: str, name_of: NameLookup) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.EXPENSE_ADDED,
        title="Expense added",
        body=f'{name_of(expense.payer_id)} added "{expense.title}" • {format_cents(expense.amount_cents)}',
        meta={
            "expense_id": expense.expense_id,
            "title": expense.title,
            "amount_cents": expense.amount_cents,
            "payer_id": expense.payer_id,
            "participant_ids": sorted(expense.participant_ids),
        },
        created_by=actor_id,
        group_id=expense.group_id,
    )


def expense_deleted_event(expense: Expense, actor_id: str, name_of: NameLookup) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.EXPENSE_DELETED,
        title="Expense deleted",
        body=f'{name_of(expense.payer_id)} deleted "{expense.title}" • {format_cents(expense.amount_cents)}',
        meta={
            "expense_id": expense.expense_id,
            "title": expense.title,
            "amount_cents": expense.amount_cents,
            "payer_id": expense.payer_id,
        },
        created_by=actor_id,
        group_id=expense.group_id,
    )


def settled_event(
    group_id: str,
    actor_id: str,
    transfers: List[Transfer],
    expense_ids: Iterable[str],
    name_of: NameLookup,
) -> NotificationEvent:
    """Summary of a committed settlement; meta carries the full transfer list"""
    count = len(transfers)
    return NotificationEvent(
        type=NotificationType.SETTLED,
        title="Group settled up",
        body=f"{name_of(actor_id)} settled up ({count} payment{'' if count == 1 else 's'})",
        meta={
            "transfers": [
                {"from_id": t.from_id, "to_id": t.to_id, "amount_cents": t.amount_cents}
                for t in transfers
            ],
            "expense_count": len(list(expense_ids)),
        },
        created_by=actor_id,
        group_id=group_id,
    )
