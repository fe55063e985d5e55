"""
Money helpers.

All currency arithmetic uses ``Decimal`` rounded half-up to 2 places.
``round_money`` is the only rounding function used for monetary values.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from property_kernel.exceptions import InvalidFieldError

MONEY_DECIMAL_PLACES = 2
ZERO = Decimal("0.00")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = ROUND_HALF_UP,
) -> Decimal:
    """Round a monetary value to ``decimal_places`` (half-up by default)."""
    quantize_str = "0." + "0" * decimal_places
    return Decimal(value).quantize(Decimal(quantize_str), rounding=rounding)


def to_money(value: Decimal | int | str | None) -> Decimal:
    """Coerce to a rounded Decimal.  ``None`` counts as zero.

    Floats are rejected: binary floating point never enters money math.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        raise TypeError("Monetary values must not be floats")
    return round_money(Decimal(value))


def parse_money(field_name: str, value) -> Decimal:
    """``to_money`` for caller input: anything that is not a finite amount
    raises ``InvalidFieldError`` naming ``field_name``."""
    if isinstance(value, float):
        raise InvalidFieldError(field_name, "must be a Decimal, not a float")
    try:
        amount = to_money(value)
    except (TypeError, ValueError, InvalidOperation):
        raise InvalidFieldError(field_name, f"{value!r} is not a monetary amount") from None
    if not amount.is_finite():
        raise InvalidFieldError(field_name, f"{value!r} is not a monetary amount")
    return amount


def money_sum(values) -> Decimal:
    """Sum monetary values, rounding after every addition."""
    total = ZERO
    for value in values:
        total = round_money(total + to_money(value))
    return total
