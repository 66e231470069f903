"""Money helpers. All amounts are Decimal with two places, rounded half up."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")

MoneyLike = Union[Decimal, int, float, str]


def to_money(value: MoneyLike) -> Decimal:
    """Convert and round a value to two decimal places."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: MoneyLike | None, field_name: str = "amount") -> Decimal:
    """
    Parse a non-negative monetary amount with at most two decimal places.

    Raises:
        ValueError: If the value is missing, not a finite number, negative,
            more precise than a cent or larger than MAX_AMOUNT
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number")

    try:
        amount = Decimal(repr(value) if isinstance(value, float) else str(value).strip())
    except InvalidOperation:
        raise ValueError(f"{field_name} must be a number, got {value!r}")

    if not amount.is_finite():
        raise ValueError(f"{field_name} must be a finite number")
    if amount < 0:
        raise ValueError(f"{field_name} must not be negative")
    if amount > MAX_AMOUNT:
        raise ValueError(f"{field_name} must not exceed {MAX_AMOUNT}")
    if amount != amount.quantize(CENT):
        raise ValueError(f"{field_name} must have at most two decimal places")

    return amount.quantize(CENT)
