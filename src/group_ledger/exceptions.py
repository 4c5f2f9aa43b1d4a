"""Custom exceptions for the group ledger."""


class LedgerError(Exception):
    """Base exception for all group ledger errors."""

    pass


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidAmountError(LedgerError):
    """Raised when a money amount cannot be represented in minor units."""

    pass


class NonPositiveAmountError(LedgerError):
    """Raised when an expense or settlement amount is zero or negative."""

    def __init__(self, amount: int, message: str | None = None):
        self.amount = amount
        super().__init__(message or f"Amount must be positive, got {amount}")


class EmptySplitError(LedgerError):
    """Raised when an amount is split across zero participants."""

    pass


class InvalidSplitError(LedgerError):
    """Raised when participants or weights of an expense are malformed."""

    pass


class UnknownMemberError(LedgerError):
    """Raised when a member is not part of the group's membership snapshot."""

    def __init__(self, member: str, group_id: str | None = None):
        self.member = member
        self.group_id = group_id
        where = f" of group {group_id!r}" if group_id else ""
        super().__init__(f"Member {member!r} is not a member{where}")


class SelfSettlementError(LedgerError):
    """Raised when a member tries to settle up with themselves."""

    def __init__(self, member: str):
        self.member = member
        super().__init__(f"Member {member!r} cannot settle with themselves")


class SequenceError(LedgerError):
    """Raised when ledger entries do not have unique sequence numbers."""

    pass


class GroupNotFoundError(LedgerError):
    """Raised when a group has not been opened or loaded."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Group {group_id!r} not found")


class BalanceIntegrityError(LedgerError):
    """Raised when balances stop summing to zero."""

    pass
