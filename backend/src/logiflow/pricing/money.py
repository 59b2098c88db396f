"""Exact decimal arithmetic for currency amounts.

Money never passes through binary floating point: floats are converted via
their shortest string representation before they become Decimals, and all
products and sums are computed on Decimal values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")

MoneyInput = Union[Decimal, int, str, float]


class InvalidMoneyError(ValueError):
    """Raised when a value cannot be interpreted as a monetary amount."""


def to_decimal(value: MoneyInput) -> Decimal:
    """Convert a value to Decimal without binary floating point error.

    Args:
        value: Decimal, int, numeric string, or float

    Returns:
        Decimal representation of the value

    Raises:
        InvalidMoneyError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidMoneyError(f"Invalid monetary value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidMoneyError(f"Invalid monetary value: {value!r}")

    if not result.is_finite():
        raise InvalidMoneyError(f"Invalid monetary value: {value!r}")
    return result


def quantize_money(amount: MoneyInput) -> Decimal:
    """Round an amount to cents (ROUND_HALF_UP)."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: MoneyInput, quantity: int) -> Decimal:
    """Compute unit_price x quantity in exact decimal arithmetic.

    >>> line_total(Decimal("8.00"), 3)
    Decimal('24.00')
    >>> line_total("0.10", 3)
    Decimal('0.30')
    """
    return quantize_money(to_decimal(unit_price) * quantity)


def sum_money(amounts: Iterable[MoneyInput]) -> Decimal:
    """Sum amounts exactly, returning a cent-quantized total."""
    total = Decimal("0.00")
    for amount in amounts:
        total += to_decimal(amount)
    return quantize_money(total)
