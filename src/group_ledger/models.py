"""Pydantic domain models for the group ledger."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .money import Money

Member = str
Balance = dict[Member, Money]

# ============================================================================
# Ledger Events
# ============================================================================


class ExpenseEvent(BaseModel):
    """One shared cost: ``payer`` fronted ``total_amount`` for ``participants``.

    Amounts are minor units and must be real ints (floats are refused). ``weights`` holds one integer share per
    participant for unequal splits; ``None`` means an equal split.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["expense"] = "expense"
    payer: Member
    total_amount: StrictInt
    participants: tuple[Member, ...]
    weights: tuple[StrictInt, ...] | None = None
    description: str | None = None


class SettlementEvent(BaseModel):
    """A direct payment that reduces what ``from_member`` owes ``to_member``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["settlement"] = "settlement"
    from_member: Member
    to_member: Member
    amount: StrictInt
    payment_method: str | None = None
    notes: str | None = None


LedgerEvent = ExpenseEvent | SettlementEvent


class LedgerEntry(BaseModel):
    """An ingested event with its position in the group's replay order.

    ``recorded_at`` is informational only and never affects balances.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str
    sequence: int = Field(ge=1)
    event: ExpenseEvent | SettlementEvent = Field(discriminator="kind")
    recorded_at: datetime = Field(default_factory=datetime.now)

    def members(self) -> set[Member]:
        """All members this entry touches."""
        if isinstance(self.event, ExpenseEvent):
            return {self.event.payer, *self.event.participants}
        return {self.event.from_member, self.event.to_member}


# ============================================================================
# Derived Values
# ============================================================================


class Payment(BaseModel):
    """One instruction of a settlement plan."""

    model_config = ConfigDict(frozen=True)

    from_member: Member
    to_member: Member
    amount: StrictInt

    def as_settlement(self) -> SettlementEvent:
        """The settlement event that carries out this payment."""
        return SettlementEvent(
            from_member=self.from_member, to_member=self.to_member, amount=self.amount
        )


class RecordResult(BaseModel):
    """Outcome of a mutating ledger call: the new entry and updated balances."""

    model_config = ConfigDict(frozen=True)

    entry: LedgerEntry
    balances: Balance


class MemberSummary(BaseModel):
    """Totals for one member across a group's ledger.

    ``balance == share - paid - sent + received`` always holds.
    """

    member: Member
    paid: Money = 0  # fronted for expenses
    share: Money = 0  # owed as a participant
    sent: Money = 0  # settlements paid out
    received: Money = 0  # settlements received
    balance: Money = 0
