"""
Greedy debt simplification.

Given zero-sum balances, repeatedly match the member who owes the most with
the member who is owed the most until everyone is square. Each payment zeroes
at least one member, so N non-zero members need at most N - 1 payments.

This is a heuristic: finding the true minimum number of payments is NP-hard,
and greedy matching can use more payments than the optimum for some inputs.
"""

import heapq
import logging

from .balances import check_zero_sum
from .models import Balance, Payment

logger = logging.getLogger(__name__)


def simplify_debts(balances: Balance) -> list[Payment]:
    """
    Build a settlement plan for a set of balances.

    Positive balances are debtors, negative balances are creditors. Ties on
    amount go to the lower member identifier, so the plan is reproducible.

    Args:
        balances: Net balance per member, summing to zero

    Returns:
        Ordered list of payments that bring every balance to zero

    Raises:
        BalanceIntegrityError: If the balances don't sum to zero
    """
    check_zero_sum(balances)

    # Min-heaps: (-debt, member) pops the largest debtor first,
    # (balance, member) pops the most negative creditor first.
    debtors = [(-balance, member) for member, balance in balances.items() if balance > 0]
    creditors = [(balance, member) for member, balance in balances.items() if balance < 0]
    heapq.heapify(debtors)
    heapq.heapify(creditors)

    plan: list[Payment] = []

    while debtors and creditors:
        debt_neg, debtor = heapq.heappop(debtors)
        credit_neg, creditor = heapq.heappop(creditors)

        debt = -debt_neg
        credit = -credit_neg
        amount = min(debt, credit)

        plan.append(Payment(from_member=debtor, to_member=creditor, amount=amount))

        if debt > amount:
            heapq.heappush(debtors, (-(debt - amount), debtor))
        if credit > amount:
            heapq.heappush(creditors, (-(credit - amount), creditor))

    logger.debug(f"Simplified {len(balances)} balances into {len(plan)} payments")
    return plan


def apply_plan(balances: Balance, plan: list[Payment]) -> Balance:
    """Balances after carrying out every payment as a settlement."""
    settled = dict(balances)
    for payment in plan:
        settled[payment.from_member] = settled.get(payment.from_member, 0) - payment.amount
        settled[payment.to_member] = settled.get(payment.to_member, 0) + payment.amount
    return settled
