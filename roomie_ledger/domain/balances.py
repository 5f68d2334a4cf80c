"""Balance calculator - net position of every member over unsettled expenses"""

from typing import Dict, Iterable
from roomie_ledger.domain.models import Expense, Member
from roomie_ledger.domain.splits import split_evenly


def compute_balances(members: Iterable[Member], expenses: Iterable[Expense]) -> Dict[str, int]:
    """
    Compute signed balances in cents from the unsettled expense set.

    Requirements:
    - Every current member starts at 0
    - Settled expenses, and ones with no participants, are ignored
    - Each participant is charged an exact equal share (see split_evenly)
    - The payer is credited the full amount, whether or not they participate
    - Ids no longer in the member set keep their balance

    Positive balance = should receive money, negative = owes money.
    The values always sum to exactly 0.
    """
    balances: Dict[str, int] = {m.member_id: 0 for m in members}

    for expense in expenses:
        if expense.is_settled or not expense.participant_ids:
            continue

        shares = split_evenly(expense.amount_cents, expense.participant_ids)
        for pid, share in shares.items():
            balances[pid] = balances.get(pid, 0) - share

        balances[expense.payer_id] = balances.get(expense.payer_id, 0) + expense.amount_cents

    return balances
