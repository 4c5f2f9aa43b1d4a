"""Conversion of ledger events into signed per-member balance deltas.

Sign convention: a positive delta means the member owes more to the group,
a negative delta means the group owes the member more.
"""

import logging
from collections.abc import Collection

from .exceptions import (
    EmptySplitError,
    InvalidSplitError,
    NonPositiveAmountError,
    SelfSettlementError,
    UnknownMemberError,
)
from .models import ExpenseEvent, LedgerEntry, LedgerEvent, Member, SettlementEvent
from .money import Money, allocate

logger = logging.getLogger(__name__)

Delta = tuple[Member, Money]


def _require_member(member: Member, members: Collection[Member], group_id: str | None):
    if member not in members:
        raise UnknownMemberError(member, group_id)


def validate_expense(
    event: ExpenseEvent, members: Collection[Member], group_id: str | None = None
) -> None:
    """
    Check an expense against the membership snapshot.

    Raises:
        NonPositiveAmountError: If the total is zero or negative
        EmptySplitError: If there are no participants
        InvalidSplitError: If participants repeat or weights don't line up
        UnknownMemberError: If the payer or a participant is not a member
    """
    if event.total_amount <= 0:
        raise NonPositiveAmountError(event.total_amount)
    if not event.participants:
        raise EmptySplitError("Expense must be split among at least one participant")
    if len(set(event.participants)) != len(event.participants):
        raise InvalidSplitError(
            f"Participants must be unique, got {list(event.participants)}"
        )
    if event.weights is not None:
        if len(event.weights) != len(event.participants):
            raise InvalidSplitError(
                f"Expected {len(event.participants)} weights, got {len(event.weights)}"
            )
        if any(weight < 0 for weight in event.weights):
            raise InvalidSplitError(f"Weights must be non-negative, got {list(event.weights)}")
        if sum(event.weights) == 0:
            raise EmptySplitError("Expense weights must not all be zero")

    _require_member(event.payer, members, group_id)
    for participant in event.participants:
        _require_member(participant, members, group_id)


def validate_settlement(
    event: SettlementEvent, members: Collection[Member], group_id: str | None = None
) -> None:
    """
    Check a settlement against the membership snapshot.

    Raises:
        NonPositiveAmountError: If the amount is zero or negative
        SelfSettlementError: If payer and payee are the same member
        UnknownMemberError: If either side is not a member
    """
    if event.amount <= 0:
        raise NonPositiveAmountError(event.amount)
    if event.from_member == event.to_member:
        raise SelfSettlementError(event.from_member)

    _require_member(event.from_member, members, group_id)
    _require_member(event.to_member, members, group_id)


def expense_shares(event: ExpenseEvent) -> list[Money]:
    """Each participant's share of an expense, in participant order."""
    weights = event.weights if event.weights is not None else [1] * len(event.participants)
    return allocate(event.total_amount, weights)


def expense_deltas(
    event: ExpenseEvent, members: Collection[Member], group_id: str | None = None
) -> list[Delta]:
    """
    Turn an expense into balance deltas.

    Every participant owes their share; the payer is credited with the full
    amount. A payer who also participates simply gets both deltas.
    """
    validate_expense(event, members, group_id)

    deltas: list[Delta] = list(zip(event.participants, expense_shares(event)))
    deltas.append((event.payer, -event.total_amount))
    return deltas


def settlement_deltas(
    event: SettlementEvent, members: Collection[Member], group_id: str | None = None
) -> list[Delta]:
    """Turn a settlement into balance deltas (payer down, payee up)."""
    validate_settlement(event, members, group_id)

    return [
        (event.from_member, -event.amount),
        (event.to_member, event.amount),
    ]


def validate_event(
    event: LedgerEvent,
    members: Collection[Member],
    group_id: str | None = None,
) -> None:
    """Validate either kind of event."""
    if isinstance(event, ExpenseEvent):
        validate_expense(event, members, group_id)
    else:
        validate_settlement(event, members, group_id)


def entry_deltas(entry: LedgerEntry, members: Collection[Member]) -> list[Delta]:
    """
    Turn a ledger entry into balance deltas that sum to exactly zero.

    Args:
        entry: The entry to convert
        members: Membership snapshot of the entry's group

    Returns:
        List of (member, signed delta) pairs
    """
    if isinstance(entry.event, ExpenseEvent):
        deltas = expense_deltas(entry.event, members, entry.group_id)
    else:
        deltas = settlement_deltas(entry.event, members, entry.group_id)

    logger.debug(f"Entry #{entry.sequence} in {entry.group_id}: {deltas}")
    return deltas
