"""Helpers for Decimal normalization and money arithmetic."""

from decimal import ROUND_HALF_UP, Decimal

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")


def coerce_decimal(value) -> Decimal:
    """Normalize numeric values to Decimal.

    Args:
        value: Raw numeric value from SQL or adapters.

    Returns:
        Decimal: Normalized numeric value.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def coerce_optional_decimal(value) -> Decimal | None:
    """Normalize optional numeric values, keeping ``None`` as missing."""
    if value is None:
        return None
    return coerce_decimal(value)


def round_money(value: Decimal) -> Decimal:
    """Round a money amount to pence.

    Args:
        value: Raw amount.

    Returns:
        Decimal: Amount quantized to two decimal places.
    """
    return coerce_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def value_at_weight(
    value: Decimal,
    numerator: Decimal,
    denominator: Decimal,
) -> Decimal:
    """Return ``value * numerator / denominator`` rounded to pence.

    Args:
        value: Amount to apportion.
        numerator: Weight of the portion.
        denominator: Total weight.

    Returns:
        Decimal: Apportioned amount, zero when the total weight is zero.
    """
    if not denominator:
        return round_money(ZERO)
    return round_money(value * numerator / denominator)


def value_at_rate(value: Decimal, rate: Decimal) -> Decimal:
    """Return ``value * rate`` rounded to pence."""
    return round_money(value * rate)


def value_at_price(units: Decimal, price: Decimal | None) -> Decimal:
    """Return the money value of a holding at a price.

    Args:
        units: Number of units held.
        price: Unit price, ``None`` when no price is known.

    Returns:
        Decimal: Valuation rounded to pence (zero without a price).
    """
    if price is None:
        return round_money(ZERO)
    return round_money(units * price)


__all__ = [
    "MONEY_QUANTUM",
    "ZERO",
    "coerce_decimal",
    "coerce_optional_decimal",
    "round_money",
    "value_at_weight",
    "value_at_rate",
    "value_at_price",
]
