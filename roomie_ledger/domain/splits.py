"""Equal-share splitting of an amount in minor currency units"""

from typing import Dict, Iterable


def split_evenly(amount_cents: int, participant_ids: Iterable[str]) -> Dict[str, int]:
    """
    Split an amount into equal per-head shares with no rounding drift.

    Requirements:
    - Every participant pays amount // n
    - The first amount % n participants (ascending id) pay one extra cent
    - Shares always sum to exactly amount_cents

    Args:
        amount_cents: Total to split, in cents
        participant_ids: Members sharing the cost (duplicates collapse)

    Returns:
        Mapping of participant id to share in cents

    Example:
        $10.00 across {a, b, c} → a: 334, b: 333, c: 333
        1000 cents / 3 = 333 base, remainder 1
        First id in sorted order absorbs the extra cent
    """
    ordered = sorted(set(participant_ids))
    if not ordered:
        return {}

    if amount_cents <= 0:
        return {pid: 0 for pid in ordered}

    base_share, remainder = divmod(amount_cents, len(ordered))

    return {
        pid: base_share + (1 if i < remainder else 0)
        for i, pid in enumerate(ordered)
    }


def format_cents(amount_cents: int) -> str:
    """Render cents as a dollar string, e.g. 450 → "$4.50" """
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}${whole}.{cents:02d}"
