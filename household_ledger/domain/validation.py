"""Expense and settlement validation performed before persistence"""

from typing import Collection, List, Sequence

from household_ledger.domain.exceptions import InvalidExpenseError, InvalidSettlementError
from household_ledger.domain.models import ExpenseShare
from household_ledger.utils.money import BALANCE_TOLERANCE


def split_evenly(total_amount: float, participants: Sequence[str]) -> List[ExpenseShare]:
    """
    Split a total into per-participant shares that sum exactly to the total.

    Works in cents; leftover cents go one each to the first participants.

    Example:
        $100.00 / 3 → [$33.34, $33.33, $33.33]
    """
    if not participants:
        return []

    total_cents = int(round(total_amount * 100))
    base_cents, remainder = divmod(total_cents, len(participants))

    return [
        ExpenseShare(member_id=member_id, amount=(base_cents + (1 if i < remainder else 0)) / 100)
        for i, member_id in enumerate(participants)
    ]


def validate_expense(
    total_amount: float,
    paid_by: str,
    participants: Sequence[str],
    shares: Sequence[ExpenseShare],
    member_ids: Collection[str],
) -> None:
    """
    Enforce the invariants the balance engine assumes.

    Raises:
        InvalidExpenseError: On the first violated rule
    """
    for participant in participants:
        if participant not in member_ids:
            raise InvalidExpenseError(f"User {participant} is not a member of this household")

    if paid_by not in member_ids:
        raise InvalidExpenseError("Payer must be a member of the household")

    if len(set(participants)) != len(participants):
        raise InvalidExpenseError("Participants must be unique")

    if len(shares) != len(participants):
        raise InvalidExpenseError("Number of shares must match number of participants")

    share_members = [share.member_id for share in shares]
    if set(share_members) != set(participants):
        raise InvalidExpenseError("Each participant must have exactly one share")

    if any(share.amount < 0 for share in shares):
        raise InvalidExpenseError("Share amounts must be non-negative")

    share_total = sum(share.amount for share in shares)
    if abs(share_total - total_amount) > BALANCE_TOLERANCE:
        raise InvalidExpenseError("Share amounts must add up to total_amount")


def validate_settlement(from_user_id: str, to_user_id: str, member_ids: Collection[str]) -> None:
    """
    Raises:
        InvalidSettlementError: When a party is not a member or both parties are the same
    """
    if from_user_id not in member_ids:
        raise InvalidSettlementError("from_user_id must be a member of the household")
    if to_user_id not in member_ids:
        raise InvalidSettlementError("to_user_id must be a member of the household")
    if from_user_id == to_user_id:
        raise InvalidSettlementError("from_user_id and to_user_id must be different")
