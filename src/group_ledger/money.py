"""Fixed-point money helpers.

All amounts inside the ledger are plain ``int`` counts of minor currency
units (cents for a 2-digit currency). Decimal input is converted exactly,
never rounded, and splitting uses integer division plus a deterministic
remainder rule so that the parts always add back up to the total.
"""

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation, localcontext

from .exceptions import EmptySplitError, InvalidAmountError, NonPositiveAmountError

Money = int

DEFAULT_MINOR_DIGITS = 2


def to_minor_units(amount: Decimal | str | int, digits: int = DEFAULT_MINOR_DIGITS) -> Money:
    """
    Convert a decimal amount to an integer count of minor units.

    The conversion is exact: an amount with more fractional digits than the
    currency allows is rejected instead of being rounded.

    Args:
        amount: Amount in major units, e.g. ``"12.34"`` or ``Decimal("12.34")``
        digits: Number of minor-unit digits of the currency

    Returns:
        Amount in minor units (signed integer)

    Raises:
        InvalidAmountError: If the amount is a float, not a number, infinite,
            or more precise than the currency
    """
    if isinstance(amount, (float, bool)):
        raise InvalidAmountError(
            f"Amount {amount!r} must be given as a decimal string, not {type(amount).__name__}"
        )
    if digits < 0:
        raise InvalidAmountError(f"Minor-unit digits must be >= 0, got {digits}")

    try:
        value = Decimal(amount) if isinstance(amount, (Decimal, int)) else Decimal(amount.strip())
    except (InvalidOperation, AttributeError) as e:
        raise InvalidAmountError(f"Not a decimal amount: {amount!r}") from e

    if not value.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {amount!r}")

    # Enough precision that scaling never rounds the coefficient
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + digits)
        scaled = value.scaleb(digits)

    if scaled != scaled.to_integral_value():
        raise InvalidAmountError(
            f"Amount {amount} has more than {digits} decimal places"
        )
    return int(scaled)


def to_positive_minor_units(
    amount: Decimal | str | int, digits: int = DEFAULT_MINOR_DIGITS
) -> Money:
    """Convert an amount that must be strictly positive (an expense or payment)."""
    minor = to_minor_units(amount, digits)
    if minor <= 0:
        raise NonPositiveAmountError(minor, f"Amount must be positive, got {amount}")
    return minor


def from_minor_units(amount: Money, digits: int = DEFAULT_MINOR_DIGITS) -> Decimal:
    """Convert minor units back to an exact Decimal in major units."""
    value = Decimal(amount)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + digits)
        return value.scaleb(-digits)


def allocate(total: Money, weights: Sequence[int]) -> list[Money]:
    """
    Split ``total`` into ``len(weights)`` parts proportional to ``weights``.

    Each part is truncated toward zero, then the leftover minor units are
    handed out one at a time to the first parts in input order. Parts with a
    zero weight always receive zero.

    Example:
        >>> allocate(100, [1, 1, 1])
        [34, 33, 33]

    Args:
        total: Non-negative amount in minor units
        weights: Non-negative integer weights, one per part

    Returns:
        Parts in input order, summing exactly to ``total``

    Raises:
        EmptySplitError: If there are no weights or they sum to zero
        InvalidAmountError: If the total or any weight is negative
    """
    if not weights:
        raise EmptySplitError("Cannot split an amount across zero participants")
    if total < 0:
        raise InvalidAmountError(f"Cannot allocate a negative total: {total}")
    if any(weight < 0 for weight in weights):
        raise InvalidAmountError(f"Weights must be non-negative, got {list(weights)}")

    weight_sum = sum(weights)
    if weight_sum == 0:
        raise EmptySplitError("Cannot split an amount when every weight is zero")

    parts = [total * weight // weight_sum for weight in weights]

    # Always smaller than the number of non-zero weights
    leftover = total - sum(parts)
    for index, weight in enumerate(weights):
        if leftover == 0:
            break
        if weight > 0:
            parts[index] += 1
            leftover -= 1

    return parts


def format_minor_units(
    amount: Money, digits: int = DEFAULT_MINOR_DIGITS, symbol: str = "$"
) -> str:
    """
    Format minor units for display.

    Negative amounts get a leading minus sign: ``-$30.00``.
    """
    value = from_minor_units(abs(amount), digits)
    sign = "-" if amount < 0 else ""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + digits)
        return f"{sign}{symbol}{value:,.{digits}f}"
