"""Tests for the LedgerService facade."""

import random

import pytest
from pydantic import ValidationError

from group_ledger.exceptions import (
    EmptySplitError,
    GroupNotFoundError,
    LedgerError,
    NonPositiveAmountError,
    SelfSettlementError,
    SequenceError,
    UnknownMemberError,
)
from group_ledger.models import ExpenseEvent, LedgerEntry, Payment, SettlementEvent
from group_ledger.service import LedgerService


@pytest.fixture
def service():
    """Create a LedgerService with one three-member group."""
    service = LedgerService()
    service.open_group("trip", ["A", "B", "C"])
    return service


class TestScenario:
    """The reference scenario from start to finish."""

    def test_expense_settlement_plan(self, service):
        result = service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=90, participants=("A", "B", "C"))
        )
        assert result.balances == {"A": -60, "B": 30, "C": 30}
        assert result.entry.sequence == 1

        result = service.record_settlement(
            "trip", SettlementEvent(from_member="B", to_member="A", amount=30)
        )
        assert result.balances == {"A": -30, "B": 0, "C": 30}
        assert result.entry.sequence == 2

        assert service.settlement_plan("trip") == [
            Payment(from_member="C", to_member="A", amount=30)
        ]


class TestRecording:
    """Test mutating calls."""

    def test_sequence_numbers_increase(self, service):
        for _ in range(3):
            service.record_settlement(
                "trip", SettlementEvent(from_member="A", to_member="B", amount=1)
            )

        assert [entry.sequence for entry in service.entries("trip")] == [1, 2, 3]

    def test_entry_carries_group_and_event(self, service):
        event = ExpenseEvent(
            payer="B", total_amount=500, participants=("A", "B"), description="Taxi"
        )

        result = service.record_expense("trip", event)

        assert result.entry.group_id == "trip"
        assert result.entry.event == event

    def test_zero_expense_rejected(self, service):
        with pytest.raises(NonPositiveAmountError):
            service.record_expense(
                "trip", ExpenseEvent(payer="A", total_amount=0, participants=("A", "B"))
            )

    def test_self_settlement_rejected(self, service):
        with pytest.raises(SelfSettlementError):
            service.record_settlement(
                "trip", SettlementEvent(from_member="A", to_member="A", amount=10)
            )

    def test_empty_split_rejected(self, service):
        with pytest.raises(EmptySplitError):
            service.record_expense(
                "trip", ExpenseEvent(payer="A", total_amount=10, participants=())
            )

    def test_rejection_has_no_effect(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=90, participants=("A", "B", "C"))
        )
        before = service.balances("trip")

        with pytest.raises(UnknownMemberError):
            service.record_expense(
                "trip", ExpenseEvent(payer="A", total_amount=90, participants=("A", "Z"))
            )

        assert service.balances("trip") == before
        assert len(service.entries("trip")) == 1

        # The next accepted entry still gets the next sequence number
        result = service.record_settlement(
            "trip", SettlementEvent(from_member="B", to_member="A", amount=30)
        )
        assert result.entry.sequence == 2

    def test_float_amounts_refused(self, service):
        """Face amounts must be ints; 10.0 is not silently accepted."""
        with pytest.raises(ValidationError):
            ExpenseEvent(payer="A", total_amount=10.0, participants=("A", "B"))
        with pytest.raises(ValidationError):
            ExpenseEvent(
                payer="A", total_amount=10, participants=("A", "B"), weights=(1.0, 1.0)
            )
        with pytest.raises(ValidationError):
            SettlementEvent(from_member="B", to_member="A", amount=5.0)

        assert service.entries("trip") == []

    def test_unknown_group(self):
        with pytest.raises(GroupNotFoundError, match="nowhere"):
            LedgerService().record_settlement(
                "nowhere", SettlementEvent(from_member="A", to_member="B", amount=1)
            )


class TestReads:
    """Test read-only calls."""

    def test_balances_are_copies(self, service):
        balances = service.balances("trip")
        balances["A"] = 999

        assert service.balances("trip")["A"] == 0

    def test_plan_does_not_change_state(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=100, participants=("A", "B", "C"))
        )
        before = service.balances("trip")

        service.settlement_plan("trip")

        assert service.balances("trip") == before

    def test_recompute_matches_incremental(self, service):
        rng = random.Random(11)
        members = ("A", "B", "C")
        for _ in range(100):
            if rng.random() < 0.6:
                service.record_expense(
                    "trip",
                    ExpenseEvent(
                        payer=rng.choice(members),
                        total_amount=rng.randint(1, 10_000),
                        participants=tuple(rng.sample(members, rng.randint(1, 3))),
                    ),
                )
            else:
                from_member, to_member = rng.sample(members, 2)
                service.record_settlement(
                    "trip",
                    SettlementEvent(
                        from_member=from_member,
                        to_member=to_member,
                        amount=rng.randint(1, 5_000),
                    ),
                )
            assert sum(service.balances("trip").values()) == 0

        incremental = service.balances("trip")

        assert service.recompute("trip") == incremental

    def test_history_filtered_by_member(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=10, participants=("A", "B"))
        )
        service.record_settlement(
            "trip", SettlementEvent(from_member="B", to_member="A", amount=5)
        )
        service.record_settlement(
            "trip", SettlementEvent(from_member="C", to_member="A", amount=5)
        )

        assert len(service.history("trip")) == 3
        assert [entry.sequence for entry in service.history("trip", "B")] == [1, 2]

        with pytest.raises(UnknownMemberError):
            service.history("trip", "Z")

    def test_member_summary_and_totals(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=90, participants=("A", "B", "C"))
        )
        service.record_settlement(
            "trip", SettlementEvent(from_member="B", to_member="A", amount=30)
        )

        summary = service.member_summary("trip", "A")

        assert summary.paid == 90
        assert summary.share == 30
        assert summary.received == 30
        assert summary.balance == -30
        assert service.total_spent("trip") == 90
        assert service.total_settled("trip", "B", "A") == 30


class TestMembership:
    """Test membership snapshots."""

    def test_add_member(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=90, participants=("A", "B", "C"))
        )

        balances = service.open_group("trip", ["A", "B", "C", "D"])

        assert balances == {"A": -60, "B": 30, "C": 30, "D": 0}
        assert service.members("trip") == ("A", "B", "C", "D")

    def test_drop_member_without_history(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=10, participants=("A", "B"))
        )

        assert service.open_group("trip", ["A", "B"]) == {"A": -5, "B": 5}

    def test_cannot_drop_member_with_history(self, service):
        service.record_settlement(
            "trip", SettlementEvent(from_member="C", to_member="A", amount=5)
        )

        with pytest.raises(UnknownMemberError, match="'C'"):
            service.open_group("trip", ["A", "B"])

        assert service.members("trip") == ("A", "B", "C")

    def test_duplicate_members_ignored(self):
        service = LedgerService()

        service.open_group("g", ["A", "B", "A"])

        assert service.members("g") == ("A", "B")


class TestLoadGroup:
    """Test rebuilding from a persisted log."""

    def test_load_and_continue(self, service):
        service.record_expense(
            "trip", ExpenseEvent(payer="A", total_amount=90, participants=("A", "B", "C"))
        )
        service.record_settlement(
            "trip", SettlementEvent(from_member="B", to_member="A", amount=30)
        )
        log = service.entries("trip")

        restored = LedgerService()
        balances = restored.load_group("trip", ("A", "B", "C"), reversed(log))

        assert balances == service.balances("trip")
        result = restored.record_settlement(
            "trip", SettlementEvent(from_member="C", to_member="A", amount=30)
        )
        assert result.entry.sequence == 3
        assert restored.settlement_plan("trip") == []

    def test_load_rejects_duplicate_sequences(self):
        entry = LedgerEntry(
            group_id="g",
            sequence=1,
            event=SettlementEvent(from_member="A", to_member="B", amount=1),
        )

        with pytest.raises(SequenceError):
            LedgerService().load_group("g", ("A", "B"), [entry, entry])

    def test_load_rejects_foreign_entries(self):
        entry = LedgerEntry(
            group_id="other",
            sequence=1,
            event=SettlementEvent(from_member="A", to_member="B", amount=1),
        )

        with pytest.raises(LedgerError, match="belongs to group 'other'"):
            LedgerService().load_group("g", ("A", "B"), [entry])

    def test_has_group(self, service):
        assert service.has_group("trip")
        assert not service.has_group("other")
