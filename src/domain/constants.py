"""Domain constants for ledger analysis."""

from decimal import Decimal

# A cash element counts as "large" only above both limits.
LARGE_TRANSACTION_VALUE = Decimal("3000")
LARGE_TRANSACTION_RATE = Decimal("0.05")

AGE_ALLOWANCE_LOWER_LIMIT = 65
AGE_ALLOWANCE_UPPER_LIMIT = 75

# Allowance taper: lose MULTIPLIER for every QUOTIENT of income over the limit.
ALLOWANCE_QUOTIENT = Decimal("2")
ALLOWANCE_MULTIPLIER = Decimal("1")

DEFAULT_CHARGEABLE_YEARS = 1


__all__ = [
    "LARGE_TRANSACTION_VALUE",
    "LARGE_TRANSACTION_RATE",
    "AGE_ALLOWANCE_LOWER_LIMIT",
    "AGE_ALLOWANCE_UPPER_LIMIT",
    "ALLOWANCE_QUOTIENT",
    "ALLOWANCE_MULTIPLIER",
    "DEFAULT_CHARGEABLE_YEARS",
]
