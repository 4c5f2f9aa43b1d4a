"""Service layer that composes the ledger, balance and simplifier logic.

``LedgerService`` keeps each group's entry log and running balances in memory.
It does no I/O: callers hand it membership snapshots and (optionally) a
persisted entry log, and store the entries it returns.

Writes to one group must be serialized by the caller. Sequence numbers are
assigned here without any locking.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .balances import (
    apply_entry,
    entries_involving,
    fold_balances,
    sorted_entries,
    summarize_member,
    total_settled,
    total_spent,
)
from .entries import validate_event
from .exceptions import GroupNotFoundError, LedgerError, UnknownMemberError
from .models import (
    Balance,
    ExpenseEvent,
    LedgerEntry,
    LedgerEvent,
    Member,
    MemberSummary,
    Payment,
    RecordResult,
    SettlementEvent,
)
from .money import Money
from .simplifier import simplify_debts

logger = logging.getLogger(__name__)


@dataclass
class GroupLedger:
    """In-memory state of one group."""

    group_id: str
    members: tuple[Member, ...]
    entries: list[LedgerEntry] = field(default_factory=list)
    balances: Balance = field(default_factory=dict)

    @property
    def next_sequence(self) -> int:
        return self.entries[-1].sequence + 1 if self.entries else 1

    def members_with_history(self) -> set[Member]:
        touched: set[Member] = set()
        for entry in self.entries:
            touched |= entry.members()
        return touched


class LedgerService:
    """Records expenses and settlements and answers balance queries per group."""

    def __init__(self):
        """Initialize an empty service."""
        self._groups: dict[str, GroupLedger] = {}

    def _get(self, group_id: str) -> GroupLedger:
        try:
            return self._groups[group_id]
        except KeyError:
            raise GroupNotFoundError(group_id) from None

    # ========================================================================
    # Group setup
    # ========================================================================

    def open_group(self, group_id: str, members: Iterable[Member]) -> Balance:
        """
        Register or replace a group's membership snapshot.

        Members may be added at any time. A member who appears in any entry
        cannot be dropped, since their balance would vanish from the group.

        Args:
            group_id: Group identifier
            members: Ordered member identifiers (duplicates are ignored)

        Returns:
            The group's balances under the new membership

        Raises:
            UnknownMemberError: If a member with ledger history is missing
        """
        snapshot = tuple(dict.fromkeys(members))

        ledger = self._groups.get(group_id)
        if ledger is None:
            ledger = GroupLedger(group_id=group_id, members=snapshot)
            ledger.balances = {member: 0 for member in snapshot}
            self._groups[group_id] = ledger
            logger.info(f"Opened group {group_id} with {len(snapshot)} members")
            return dict(ledger.balances)

        for member in sorted(ledger.members_with_history()):
            if member not in snapshot:
                raise UnknownMemberError(member, group_id)

        ledger.members = snapshot
        ledger.balances = {member: ledger.balances.get(member, 0) for member in snapshot}
        logger.info(f"Updated group {group_id} membership: {list(snapshot)}")
        return dict(ledger.balances)

    def load_group(
        self,
        group_id: str,
        members: Iterable[Member],
        entries: Iterable[LedgerEntry],
    ) -> Balance:
        """
        Rebuild a group from a persisted entry log.

        Any in-memory state for the group is replaced.

        Raises:
            SequenceError: If entries share a sequence number
            LedgerError: If an entry is invalid for the membership
        """
        snapshot = tuple(dict.fromkeys(members))
        ordered = sorted_entries(entries)
        for entry in ordered:
            if entry.group_id != group_id:
                raise LedgerError(
                    f"Entry #{entry.sequence} belongs to group {entry.group_id!r}, "
                    f"not {group_id!r}"
                )

        balances = fold_balances(ordered, snapshot)
        self._groups[group_id] = GroupLedger(
            group_id=group_id, members=snapshot, entries=ordered, balances=balances
        )

        logger.info(f"Loaded group {group_id}: {len(ordered)} entries")
        return dict(balances)

    def has_group(self, group_id: str) -> bool:
        """Check whether a group has been opened or loaded."""
        return group_id in self._groups

    def members(self, group_id: str) -> tuple[Member, ...]:
        """The group's current membership snapshot."""
        return self._get(group_id).members

    # ========================================================================
    # Mutations
    # ========================================================================

    def record_expense(self, group_id: str, event: ExpenseEvent) -> RecordResult:
        """
        Record a shared expense.

        Raises:
            GroupNotFoundError: If the group is unknown
            NonPositiveAmountError, EmptySplitError, InvalidSplitError,
            UnknownMemberError: If the expense is invalid (nothing is recorded)
        """
        return self._record(group_id, event)

    def record_settlement(self, group_id: str, event: SettlementEvent) -> RecordResult:
        """
        Record a direct payment between two members.

        Raises:
            GroupNotFoundError: If the group is unknown
            NonPositiveAmountError, SelfSettlementError,
            UnknownMemberError: If the settlement is invalid (nothing is recorded)
        """
        return self._record(group_id, event)

    def _record(self, group_id: str, event: LedgerEvent) -> RecordResult:
        ledger = self._get(group_id)

        try:
            validate_event(event, ledger.members, group_id)
        except LedgerError as e:
            logger.warning(f"Rejected {event.kind} for group {group_id}: {e}")
            raise

        entry = LedgerEntry(group_id=group_id, sequence=ledger.next_sequence, event=event)
        balances = apply_entry(ledger.balances, entry, ledger.members)

        ledger.entries.append(entry)
        ledger.balances = balances

        logger.info(f"Recorded {event.kind} #{entry.sequence} in group {group_id}")
        return RecordResult(entry=entry, balances=dict(balances))

    # ========================================================================
    # Reads
    # ========================================================================

    def balances(self, group_id: str) -> Balance:
        """Current net balance per member (positive = owes, negative = is owed)."""
        return dict(self._get(group_id).balances)

    def settlement_plan(self, group_id: str) -> list[Payment]:
        """Payments that would settle the group completely."""
        return simplify_debts(self._get(group_id).balances)

    def recompute(self, group_id: str) -> Balance:
        """
        Recompute balances from the full entry log.

        The result always equals the incrementally maintained balances.
        """
        ledger = self._get(group_id)
        ledger.balances = fold_balances(ledger.entries, ledger.members)
        return dict(ledger.balances)

    def entries(self, group_id: str) -> list[LedgerEntry]:
        """All entries of a group in sequence order."""
        return list(self._get(group_id).entries)

    def history(self, group_id: str, member: Member | None = None) -> list[LedgerEntry]:
        """Entries of a group, optionally only those touching ``member``."""
        ledger = self._get(group_id)
        if member is None:
            return list(ledger.entries)
        if member not in ledger.members:
            raise UnknownMemberError(member, group_id)
        return entries_involving(ledger.entries, member)

    def member_summary(self, group_id: str, member: Member) -> MemberSummary:
        """What a member paid, owed, sent and received in a group."""
        ledger = self._get(group_id)
        if member not in ledger.members:
            raise UnknownMemberError(member, group_id)
        return summarize_member(ledger.entries, member)

    def total_spent(self, group_id: str) -> Money:
        """Sum of all expenses recorded in a group."""
        return total_spent(self._get(group_id).entries)

    def total_settled(self, group_id: str, from_member: Member, to_member: Member) -> Money:
        """Total paid directly from one member to another in a group."""
        return total_settled(self._get(group_id).entries, from_member, to_member)
