"""Balance netting engine - reduces expense shares and settlements to pairwise debts"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from household_ledger.domain.exceptions import NoMutualDebtsError
from household_ledger.domain.models import (
    AnnotatedBalance,
    ExpenseRecord,
    MutualDebts,
    NettingPlan,
    PairwiseBalance,
    SettlementRecord,
)
from household_ledger.utils.date_utils import ensure_utc
from household_ledger.utils.money import BALANCE_TOLERANCE, is_negligible


def collect_members(
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord],
) -> List[str]:
    """
    All member ids referenced by the records, in first-seen order.

    Expenses contribute payer, then participants, then share members; settlements
    contribute sender then receiver. The order fixes pair enumeration so identical
    input always yields identically ordered output.
    """
    seen: Dict[str, None] = {}
    for expense in expenses:
        seen.setdefault(expense.paid_by)
        for participant in expense.participants:
            seen.setdefault(participant)
        for share in expense.shares:
            seen.setdefault(share.member_id)
    for settlement in settlements:
        seen.setdefault(settlement.from_user_id)
        seen.setdefault(settlement.to_user_id)
    return list(seen)


def accumulate_debts(
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord],
) -> Dict[Tuple[str, str], float]:
    """
    Directed debt keyed by (debtor, creditor).

    Shares add to debt toward the payer (a payer's own share is skipped);
    settlements subtract from the sender's forward debt and may drive it negative.
    """
    debts: Dict[Tuple[str, str], float] = defaultdict(float)

    for expense in expenses:
        for share in expense.shares:
            if share.member_id != expense.paid_by:
                debts[(share.member_id, expense.paid_by)] += share.amount

    for settlement in settlements:
        debts[(settlement.from_user_id, settlement.to_user_id)] -= settlement.amount

    return debts


def compute_balances(
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord],
) -> List[PairwiseBalance]:
    """
    Net every unordered member pair into at most one balance.

    Pairs whose net falls within one cent are dropped, so exact settlements and
    float residue never show up as phantom debts. Inputs are trusted: share sums
    and amounts are validated upstream.
    """
    members = collect_members(expenses, settlements)
    debts = accumulate_debts(expenses, settlements)

    balances: List[PairwiseBalance] = []
    for i, member_a in enumerate(members):
        for member_b in members[i + 1:]:
            net = debts.get((member_a, member_b), 0.0) - debts.get((member_b, member_a), 0.0)

            if is_negligible(net):
                continue

            if net > 0:
                balances.append(PairwiseBalance(from_user_id=member_a, to_user_id=member_b, amount=net))
            else:
                balances.append(PairwiseBalance(from_user_id=member_b, to_user_id=member_a, amount=-net))

    return balances


def annotate_since_dates(
    balances: Sequence[PairwiseBalance],
    expenses: Sequence[ExpenseRecord],
) -> List[AnnotatedBalance]:
    """
    Attach the earliest date of an expense that contributed to each balance.

    Matches expenses paid by the creditor that carry a positive share for the
    debtor and takes min(created_at, date). Settlements are ignored, so after
    interleaved partial settlements this is an approximation of the debt's origin.
    """
    annotated = []
    for balance in balances:
        since: Optional[datetime] = None
        for expense in expenses:
            if expense.paid_by != balance.to_user_id:
                continue
            if not any(
                share.member_id == balance.from_user_id and share.amount > 0
                for share in expense.shares
            ):
                continue
            candidate = min(ensure_utc(expense.created_at), ensure_utc(expense.date))
            if since is None or candidate < since:
                since = candidate
        annotated.append(AnnotatedBalance(balance=balance, since_date=since))
    return annotated


def compute_mutual_debts(
    expenses: Sequence[ExpenseRecord],
    settlements: Sequence[SettlementRecord],
    user_id: str,
    other_user_id: str,
) -> MutualDebts:
    """Directed debts between two members, each reduced by settlements in its own direction"""
    user_owes_other = 0.0
    other_owes_user = 0.0

    for expense in expenses:
        for share in expense.shares:
            if share.member_id == user_id and expense.paid_by == other_user_id:
                user_owes_other += share.amount
            elif share.member_id == other_user_id and expense.paid_by == user_id:
                other_owes_user += share.amount

    for settlement in settlements:
        if settlement.from_user_id == user_id and settlement.to_user_id == other_user_id:
            user_owes_other -= settlement.amount
        elif settlement.from_user_id == other_user_id and settlement.to_user_id == user_id:
            other_owes_user -= settlement.amount

    return MutualDebts(
        user_id=user_id,
        other_user_id=other_user_id,
        user_owes_other=user_owes_other,
        other_owes_user=other_owes_user,
    )


def plan_netting_settlement(mutual: MutualDebts) -> NettingPlan:
    """
    Offsetting settlements that cancel the smaller of two mutual debts.

    Example: A owes B $20, B owes A $15 → record A→B $15 and B→A $15. Raw debts
    become A→B $5 and B→A $0 while the pairwise net (A owes B $5) is unchanged.

    Raises:
        NoMutualDebtsError: When either direction is within tolerance
    """
    if mutual.user_owes_other <= BALANCE_TOLERANCE or mutual.other_owes_user <= BALANCE_TOLERANCE:
        raise NoMutualDebtsError("No mutual debts to net. One person already owes the other.")

    if mutual.user_owes_other >= mutual.other_owes_user:
        debtor_id, creditor_id = mutual.user_id, mutual.other_user_id
    else:
        debtor_id, creditor_id = mutual.other_user_id, mutual.user_id

    return NettingPlan(
        debtor_id=debtor_id,
        creditor_id=creditor_id,
        amount=min(mutual.user_owes_other, mutual.other_owes_user),
        remaining_balance=abs(mutual.user_owes_other - mutual.other_owes_user),
    )
