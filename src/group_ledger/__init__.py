"""Group ledger - Shared expense balances and debt settlement plans."""

__version__ = "0.1.0"

from .balances import fold_balances
from .config import Settings, load_settings
from .db import Database
from .exceptions import (
    EmptySplitError,
    LedgerError,
    NonPositiveAmountError,
    SelfSettlementError,
    UnknownMemberError,
)
from .models import (
    ExpenseEvent,
    LedgerEntry,
    Payment,
    RecordResult,
    SettlementEvent,
)
from .money import allocate, to_minor_units
from .service import LedgerService
from .simplifier import simplify_debts

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "EmptySplitError",
    "LedgerError",
    "NonPositiveAmountError",
    "SelfSettlementError",
    "UnknownMemberError",
    "ExpenseEvent",
    "LedgerEntry",
    "Payment",
    "RecordResult",
    "SettlementEvent",
    "allocate",
    "to_minor_units",
    "fold_balances",
    "LedgerService",
    "simplify_debts",
]
