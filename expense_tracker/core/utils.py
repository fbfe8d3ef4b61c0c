"""
Split allocation and pairwise balance arithmetic.

Everything here is pure: callers fetch expenses and profiles, convert them to
`ExpenseOut` / `SplitOut` and pass the viewer id explicitly. Amounts are floats
and splits are not reconciled against the expense total, so an equal split of
100 between three people leaves the usual floating point residue.
"""
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from expense_tracker.schemas.expense import ExpenseOut, SplitOut

EQUAL = "equal"
CUSTOM = "custom"

class ExpenseValidationError(ValueError):
    pass

def calculate_split_amounts(total: float, participants: Sequence[int]) -> List[SplitOut]:
    if not participants:
        return []

    split_amount = total / len(participants)
    return [SplitOut(user_id=uid, amount=split_amount) for uid in participants]

def calculate_custom_split_amounts(total: float, shares: Mapping[int, int]) -> List[SplitOut]:
    if any(s < 0 for s in shares.values()):
        raise ExpenseValidationError("Shares cannot be negative")

    total_shares = sum(shares.values())
    if total_shares == 0:
        raise ExpenseValidationError("Total shares must be greater than 0")

    return [
        SplitOut(user_id=uid, amount=total * s / total_shares, shares=s)
        for uid, s in shares.items()
        if s > 0
    ]

def allocate_splits(
    total: float,
    split_type: str,
    participants: Sequence[int],
    shares: Optional[Mapping[int, int]] = None,
) -> List[SplitOut]:
    if split_type == CUSTOM:
        return calculate_custom_split_amounts(total, shares or {})
    if split_type == EQUAL:
        return calculate_split_amounts(total, participants)
    raise ExpenseValidationError(f"Unknown split type: {split_type}")

def validate_expense_input(
    description: Optional[str],
    amount: float,
    participants: Sequence[int],
    split_type: str = EQUAL,
    shares: Optional[Mapping[int, int]] = None,
) -> None:
    """Checks run in order and the first failure is raised."""
    if not (description or "").strip():
        raise ExpenseValidationError("Please enter a description")

    validate_split_input(amount, participants, split_type, shares)

def validate_split_input(
    amount: float,
    participants: Sequence[int],
    split_type: str = EQUAL,
    shares: Optional[Mapping[int, int]] = None,
) -> None:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise ExpenseValidationError("Please enter a valid amount")

    if not participants:
        raise ExpenseValidationError("Please select at least one participant")

    if split_type == CUSTOM and sum((shares or {}).values()) <= 0:
        raise ExpenseValidationError("Total shares must be greater than 0")

def filter_relevant_expenses(
    expenses: Iterable[ExpenseOut],
    group_id: Optional[int] = None,
) -> List[ExpenseOut]:
    # group and personal balances are never mixed
    if group_id is not None:
        return [e for e in expenses if e.group_id == group_id]
    return [e for e in expenses if e.group_id is None]

def counterparty_ids(expenses: Iterable[ExpenseOut], viewer_id: int) -> List[int]:
    seen: Dict[int, None] = {}
    for expense in expenses:
        seen.setdefault(expense.paid_by, None)
        for split in expense.splits:
            seen.setdefault(split.user_id, None)
    seen.pop(viewer_id, None)
    return list(seen)

def compute_balances(
    expenses: Iterable[ExpenseOut],
    viewer_id: int,
    group_id: Optional[int] = None,
) -> Dict[int, float]:
    """
    Net amount per counterparty from the viewer's point of view.

    Positive means the counterparty owes the viewer, negative means the viewer
    owes them. Every user seen in a relevant expense gets an entry, even when
    it nets to zero. Keys keep first-appearance order.
    """
    relevant = filter_relevant_expenses(expenses, group_id)
    balances: Dict[int, float] = {uid: 0.0 for uid in counterparty_ids(relevant, viewer_id)}

    for expense in relevant:
        if expense.paid_by == viewer_id:
            for split in expense.splits:
                if split.user_id != viewer_id:
                    balances[split.user_id] = balances.get(split.user_id, 0.0) + split.amount
            continue

        own = next((s for s in expense.splits if s.user_id == viewer_id), None)
        if own is not None:
            balances[expense.paid_by] = balances.get(expense.paid_by, 0.0) - own.amount

    return balances
