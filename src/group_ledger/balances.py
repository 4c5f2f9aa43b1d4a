"""Folding ledger entries into per-member net balances.

This is a pure fold: the same entries and membership always produce the same
balances, so a group can be recomputed from its entry log at any time.
"""

import logging
from collections.abc import Collection, Iterable

from .entries import entry_deltas, expense_shares
from .exceptions import BalanceIntegrityError, SequenceError
from .models import (
    Balance,
    ExpenseEvent,
    LedgerEntry,
    Member,
    MemberSummary,
    SettlementEvent,
)
from .money import Money

logger = logging.getLogger(__name__)


def check_zero_sum(balances: Balance) -> None:
    """Raise BalanceIntegrityError unless the balances sum to exactly zero."""
    total = sum(balances.values())
    if total != 0:
        raise BalanceIntegrityError(
            f"Balances sum to {total} instead of 0: {balances}"
        )


def sorted_entries(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """
    Return entries in replay order.

    Raises:
        SequenceError: If two entries share a sequence number
    """
    ordered = sorted(entries, key=lambda entry: entry.sequence)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.sequence == current.sequence:
            raise SequenceError(
                f"Duplicate sequence number {current.sequence} "
                f"in group {current.group_id!r}"
            )
    return ordered


def apply_entry(
    balances: Balance, entry: LedgerEntry, members: Collection[Member]
) -> Balance:
    """
    Fold one entry into a balance mapping.

    The input mapping is left untouched; the entry is validated completely
    before any delta is applied.
    """
    deltas = entry_deltas(entry, members)

    updated = dict(balances)
    for member, delta in deltas:
        updated[member] = updated.get(member, 0) + delta

    check_zero_sum(updated)
    return updated


def fold_balances(
    entries: Iterable[LedgerEntry], members: Collection[Member]
) -> Balance:
    """
    Compute final balances for a group.

    Every member starts at zero and stays in the result even if no entry
    mentions them. Entries are applied strictly in sequence order.

    Args:
        entries: The group's ledger entries (any order, unique sequences)
        members: The group's membership snapshot

    Returns:
        Mapping of member to signed balance in minor units
    """
    balances: Balance = {member: 0 for member in members}
    ordered = sorted_entries(entries)

    for entry in ordered:
        balances = apply_entry(balances, entry, members)

    logger.debug(f"Folded {len(ordered)} entries into balances: {balances}")
    return balances


# ============================================================================
# Ledger queries
# ============================================================================


def total_spent(entries: Iterable[LedgerEntry]) -> Money:
    """Sum of all expense amounts (settlements excluded)."""
    return sum(
        entry.event.total_amount
        for entry in entries
        if isinstance(entry.event, ExpenseEvent)
    )


def total_settled(
    entries: Iterable[LedgerEntry], from_member: Member, to_member: Member
) -> Money:
    """Total paid directly from one member to another."""
    return sum(
        entry.event.amount
        for entry in entries
        if isinstance(entry.event, SettlementEvent)
        and entry.event.from_member == from_member
        and entry.event.to_member == to_member
    )


def entries_involving(
    entries: Iterable[LedgerEntry], member: Member
) -> list[LedgerEntry]:
    """Entries that touch ``member``, in sequence order."""
    return [entry for entry in sorted_entries(entries) if member in entry.members()]


def summarize_member(entries: Iterable[LedgerEntry], member: Member) -> MemberSummary:
    """Break a member's balance down into what they paid, owed, sent and received."""
    summary = MemberSummary(member=member)

    for entry in sorted_entries(entries):
        event = entry.event
        if isinstance(event, ExpenseEvent):
            if event.payer == member:
                summary.paid += event.total_amount
            if member in event.participants:
                index = event.participants.index(member)
                summary.share += expense_shares(event)[index]
        else:
            if event.from_member == member:
                summary.sent += event.amount
            if event.to_member == member:
                summary.received += event.amount

    summary.balance = summary.share - summary.paid - summary.sent + summary.received
    return summary
