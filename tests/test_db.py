"""Tests for SQLite persistence of groups and entry logs."""

import pytest

from group_ledger.db import Database
from group_ledger.exceptions import SequenceError
from group_ledger.models import ExpenseEvent, LedgerEntry, SettlementEvent
from group_ledger.service import LedgerService


@pytest.fixture
def db(tmp_path):
    """Create a temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


class TestGroups:
    """Test membership storage."""

    def test_save_and_get_members(self, db):
        db.save_group("trip", ("A", "B", "C"))

        assert db.get_group_members("trip") == ("A", "B", "C")

    def test_missing_group(self, db):
        assert db.get_group_members("nope") is None

    def test_update_members(self, db):
        db.save_group("trip", ["A", "B"])
        db.save_group("trip", ["A", "B", "C"])

        assert db.get_group_members("trip") == ("A", "B", "C")
        assert db.list_groups() == ["trip"]


class TestEntries:
    """Test the append-only entry log."""

    def test_round_trip_preserves_entries(self, db):
        expense = LedgerEntry(
            group_id="trip",
            sequence=1,
            event=ExpenseEvent(
                payer="A",
                total_amount=1000,
                participants=("A", "B"),
                weights=(3, 1),
                description="Groceries",
            ),
        )
        settlement = LedgerEntry(
            group_id="trip",
            sequence=2,
            event=SettlementEvent(
                from_member="B", to_member="A", amount=250, payment_method="cash"
            ),
        )

        db.append_entry(settlement)
        db.append_entry(expense)

        assert db.get_entries("trip") == [expense, settlement]

    def test_duplicate_sequence_rejected(self, db):
        entry = LedgerEntry(
            group_id="trip",
            sequence=1,
            event=SettlementEvent(from_member="A", to_member="B", amount=1),
        )
        db.append_entry(entry)

        with pytest.raises(SequenceError, match="already has entry #1"):
            db.append_entry(entry)

        assert len(db.get_entries("trip")) == 1

    def test_entries_scoped_to_group(self, db):
        db.append_entry(
            LedgerEntry(
                group_id="g1",
                sequence=1,
                event=SettlementEvent(from_member="A", to_member="B", amount=1),
            )
        )

        assert db.get_entries("g2") == []

    def test_reload_into_service(self, db):
        """Balances rebuilt from the stored log match the live service."""
        live = LedgerService()
        live.open_group("trip", ["A", "B", "C"])
        db.save_group("trip", live.members("trip"))

        for result in (
            live.record_expense(
                "trip", ExpenseEvent(payer="A", total_amount=100, participants=("A", "B", "C"))
            ),
            live.record_settlement(
                "trip", SettlementEvent(from_member="C", to_member="A", amount=33)
            ),
        ):
            db.append_entry(result.entry)

        restored = LedgerService()
        restored.load_group("trip", db.get_group_members("trip"), db.get_entries("trip"))

        assert restored.balances("trip") == live.balances("trip")
        assert restored.settlement_plan("trip") == live.settlement_plan("trip")
