"""Attribute-keyed value maps underpinning every analysis bucket."""

from datetime import date
from decimal import Decimal
from enum import Enum


class ValueKind(Enum):
    """Type of value stored against an attribute."""

    MONEY = "money"
    UNITS = "units"
    PRICE = "price"
    RATE = "rate"
    DATE = "date"
    INTEGER = "integer"

    @property
    def is_numeric_delta(self) -> bool:
        return self in (ValueKind.MONEY, ValueKind.UNITS)


class BucketAttribute(Enum):
    """Base for per-kind attribute enumerations.

    Members are declared as ``(label, kind, is_counter)`` tuples. Counters
    accumulate over a period and are re-based when a ranged view is built;
    the remaining attributes are absolute "as of" values.
    """

    def __init__(self, label: str, kind: ValueKind, is_counter: bool) -> None:
        self.label = label
        self.kind = kind
        self.is_counter = is_counter


class AccountAttribute(BucketAttribute):
    VALUATION = ("valuation", ValueKind.MONEY, False)
    VALUEDELTA = ("valuedelta", ValueKind.MONEY, False)
    SPEND = ("spend", ValueKind.MONEY, True)
    RATE = ("rate", ValueKind.RATE, False)
    MATURITY = ("maturity", ValueKind.DATE, False)


class SecurityAttribute(BucketAttribute):
    UNITS = ("units", ValueKind.UNITS, False)
    COST = ("cost", ValueKind.MONEY, False)
    INVESTED = ("invested", ValueKind.MONEY, True)
    GAINS = ("gains", ValueKind.MONEY, True)
    DIVIDEND = ("dividend", ValueKind.MONEY, True)
    PRICE = ("price", ValueKind.PRICE, False)
    VALUATION = ("valuation", ValueKind.MONEY, False)
    VALUEDELTA = ("valuedelta", ValueKind.MONEY, False)
    MARKET = ("market", ValueKind.MONEY, False)
    PROFIT = ("profit", ValueKind.MONEY, False)


class PayeeAttribute(BucketAttribute):
    INCOME = ("income", ValueKind.MONEY, True)
    EXPENSE = ("expense", ValueKind.MONEY, True)
    DELTA = ("delta", ValueKind.MONEY, False)


class CategoryAttribute(BucketAttribute):
    INCOME = ("income", ValueKind.MONEY, True)
    EXPENSE = ("expense", ValueKind.MONEY, True)
    DELTA = ("delta", ValueKind.MONEY, False)


class TaxBasisAttribute(BucketAttribute):
    GROSS = ("gross", ValueKind.MONEY, True)
    NET = ("net", ValueKind.MONEY, True)
    TAXCREDIT = ("taxcredit", ValueKind.MONEY, True)


class BucketValues:
    """Ordered mapping from attribute to typed value.

    Money and unit attributes are always present (zero-initialised) so that
    arithmetic never meets a missing value; prices, rates and dates are only
    present once recorded.
    """

    def __init__(
        self,
        attribute_type: type[BucketAttribute],
        values: dict | None = None,
    ) -> None:
        self._attribute_type = attribute_type
        if values is None:
            values = {
                attr: Decimal("0")
                for attr in attribute_type
                if attr.kind.is_numeric_delta
            }
        self._values = dict(values)

    @property
    def attribute_type(self) -> type[BucketAttribute]:
        return self._attribute_type

    def __contains__(self, attr: BucketAttribute) -> bool:
        return attr in self._values

    def __iter__(self):
        return iter(self._values.items())

    def __eq__(self, other) -> bool:
        if not isinstance(other, BucketValues):
            return NotImplemented
        return (
            self._attribute_type is other._attribute_type
            and self._values == other._values
        )

    def __repr__(self) -> str:
        body = ", ".join(f"{attr.label}={value}" for attr, value in self)
        return f"{self._attribute_type.__name__}Values({body})"

    def set_value(self, attr: BucketAttribute, value) -> None:
        self._check(attr)
        self._values[attr] = value

    def get_value(self, attr: BucketAttribute):
        self._check(attr)
        return self._values.get(attr)

    def get_money(self, attr: BucketAttribute) -> Decimal:
        value = self.get_value(attr)
        return value if value is not None else Decimal("0")

    def get_units(self, attr: BucketAttribute) -> Decimal:
        return self.get_money(attr)

    def get_price(self, attr: BucketAttribute) -> Decimal | None:
        return self.get_value(attr)

    def get_rate(self, attr: BucketAttribute) -> Decimal | None:
        return self.get_value(attr)

    def get_date(self, attr: BucketAttribute) -> date | None:
        return self.get_value(attr)

    def adjust_counter(self, attr: BucketAttribute, delta: Decimal) -> None:
        """Add ``delta`` to a money or units attribute."""
        self.set_value(attr, self.get_money(attr) + delta)

    def snapshot(self) -> "BucketValues":
        """Return an independent copy of the values."""
        return BucketValues(self._attribute_type, self._values)

    def delta_against(
        self,
        prior: "BucketValues | None",
        attr: BucketAttribute,
    ) -> Decimal | None:
        """Return the change in a money/units attribute since ``prior``.

        Args:
            prior: Earlier values, ``None`` meaning all zero.
            attr: Attribute to compare.

        Returns:
            Decimal | None: The delta, or ``None`` for non-numeric attributes.
        """
        if not attr.kind.is_numeric_delta:
            return None
        current = self.get_money(attr)
        if prior is None:
            return current
        return current - prior.get_money(attr)

    def adjust_to_base(self, base: "BucketValues") -> None:
        """Subtract the base value of every counter attribute."""
        for attr in self._attribute_type:
            if attr.is_counter:
                self._values[attr] = self.get_money(attr) - base.get_money(attr)

    def reset_base(self) -> None:
        """Zero every counter attribute."""
        for attr in self._attribute_type:
            if attr.is_counter:
                self._values[attr] = Decimal("0")

    def _check(self, attr: BucketAttribute) -> None:
        if not isinstance(attr, self._attribute_type):
            raise TypeError(
                f"{attr!r} is not a {self._attribute_type.__name__}"
            )


__all__ = [
    "ValueKind",
    "BucketAttribute",
    "AccountAttribute",
    "SecurityAttribute",
    "PayeeAttribute",
    "CategoryAttribute",
    "TaxBasisAttribute",
    "BucketValues",
]
