"""Settlement planner - turn balances into point-to-point transfers"""

from typing import Dict, List, Mapping
from roomie_ledger.domain.models import Transfer


def plan_settlement(balances: Mapping[str, int]) -> List[Transfer]:
    """
    Greedy two-pointer matching of debtors to creditors.

    Requirements:
    - Creditors (balance > 0) and debtors (balance < 0) both in ascending id order
    - Each step moves min(debt remaining, credit remaining) from the current
      debtor to the current creditor, then advances whichever side is cleared
    - At most len(debtors) + len(creditors) - 1 transfers
    - Sum of transfers equals the total outstanding debt

    Balances are whole cents, so anything below one cent is already zero and
    applying the plan leaves every balance at exactly 0.

    Transfer count is not globally minimal; a subset-matching planner could
    sometimes do better. Output is deterministic for a given balance map.

    Example:
        {a: +2000, b: -500, c: -1500} → [b→a 500, c→a 1500]
    """
    creditors = [[mid, amt] for mid, amt in sorted(balances.items()) if amt > 0]
    debtors = [[mid, -amt] for mid, amt in sorted(balances.items()) if amt < 0]

    transfers: List[Transfer] = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        pay = min(debtor[1], creditor[1])
        if pay > 0:
            transfers.append(Transfer(from_id=debtor[0], to_id=creditor[0], amount_cents=pay))

        debtor[1] -= pay
        creditor[1] -= pay

        if debtor[1] <= 0:
            i += 1
        if creditor[1] <= 0:
            j += 1

    return transfers


def apply_transfers(balances: Mapping[str, int], transfers: List[Transfer]) -> Dict[str, int]:
    """Balances after each debtor pays and each creditor receives"""
    result = dict(balances)
    for t in transfers:
        result[t.from_id] = result.get(t.from_id, 0) + t.amount_cents
        result[t.to_id] = result.get(t.to_id, 0) - t.amount_cents
    return result


def total_debt(balances: Mapping[str, int]) -> int:
    """Sum of all negative balances, as a positive amount"""
    return sum(-amt for amt in balances.values() if amt < 0)
