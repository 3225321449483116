"""Analysis buckets and the behaviour shared by every bucket kind.

A bucket is one accumulator (account, security, payee, category or tax
basis) over an analysis period. All kinds share the same shape; behaviour
that differs by kind is selected on ``Bucket.kind`` in the free functions
below rather than through subclasses.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Hashable

from src.domain.models.history import BucketHistory
from src.domain.models.ledger import DateRange, Transaction
from src.domain.models.values import (
    AccountAttribute,
    BucketAttribute,
    BucketValues,
    CategoryAttribute,
    PayeeAttribute,
    SecurityAttribute,
    TaxBasisAttribute,
    ValueKind,
)

TOTALS_NAME = "Totals"


class BucketKind(Enum):
    """Bucket families and the attribute set each one carries."""

    ACCOUNT = ("account", AccountAttribute)
    SECURITY = ("security", SecurityAttribute)
    PAYEE = ("payee", PayeeAttribute)
    CATEGORY = ("category", CategoryAttribute)
    TAX_BASIS = ("taxbasis", TaxBasisAttribute)

    def __init__(self, label: str, attribute_type: type[BucketAttribute]):
        self.label = label
        self.attribute_type = attribute_type

    @property
    def has_income_expense(self) -> bool:
        return self in (BucketKind.PAYEE, BucketKind.CATEGORY)


@dataclass(eq=False)
class Bucket:
    """Accumulator for one entity over an analysis period.

    Attributes:
        kind: Bucket family.
        key: Owning entity id (tax-basis class for tax buckets); ``None``
            marks the totals bucket of a list.
        entity: The owning party, category or tax-basis class.
        history: Values plus the snapshots recorded against transactions.
    """

    kind: BucketKind
    key: Hashable | None
    entity: object | None
    history: BucketHistory

    @property
    def values(self) -> BucketValues:
        return self.history.values

    @property
    def base_values(self) -> BucketValues:
        return self.history.base_values

    @property
    def is_totals(self) -> bool:
        return self.key is None

    @property
    def name(self) -> str:
        if self.entity is None:
            return TOTALS_NAME
        return getattr(self.entity, "name", str(self.entity))

    def is_idle(self) -> bool:
        return self.history.is_idle()

    def __repr__(self) -> str:
        return f"Bucket({self.kind.label}:{self.name})"


def entity_key(entity) -> Hashable:
    """Return the list key for an entity (its id, or the entity itself)."""
    return getattr(entity, "id", entity)


def new_bucket(kind: BucketKind, entity=None) -> Bucket:
    """Create an empty bucket (a totals bucket when ``entity`` is None)."""
    key = None if entity is None else entity_key(entity)
    values = BucketValues(kind.attribute_type)
    return Bucket(kind, key, entity, BucketHistory(values))


def dated_bucket(source: Bucket, cutoff: date) -> Bucket:
    """Derive the bucket as it stood at the end of ``cutoff``."""
    return Bucket(
        source.kind,
        source.key,
        source.entity,
        source.history.dated(cutoff),
    )


def ranged_bucket(source: Bucket, date_range: DateRange) -> Bucket:
    """Derive the bucket restricted to ``date_range``."""
    return Bucket(
        source.kind,
        source.key,
        source.entity,
        source.history.ranged(date_range),
    )


def register_transaction(
    bucket: Bucket,
    transaction: Transaction,
) -> BucketValues:
    """Snapshot the bucket's current values against ``transaction``."""
    return bucket.history.register_transaction(transaction, bucket.values)


def is_active(bucket: Bucket) -> bool:
    """Return True when the bucket's defining attribute is non-zero."""
    values = bucket.values
    if bucket.kind is BucketKind.ACCOUNT:
        return values.get_money(AccountAttribute.VALUATION) != 0
    if bucket.kind is BucketKind.SECURITY:
        return values.get_units(SecurityAttribute.UNITS) != 0
    if bucket.kind.has_income_expense:
        attrs = bucket.kind.attribute_type
        return (
            values.get_money(attrs.INCOME) != 0
            or values.get_money(attrs.EXPENSE) != 0
        )
    return any(
        values.get_money(attr) != 0 for attr in TaxBasisAttribute
    )


def refresh_delta(bucket: Bucket) -> None:
    """Recompute ``DELTA = INCOME - EXPENSE`` for payees and categories."""
    if not bucket.kind.has_income_expense:
        return
    attrs = bucket.kind.attribute_type
    values = bucket.values
    values.set_value(
        attrs.DELTA,
        values.get_money(attrs.INCOME) - values.get_money(attrs.EXPENSE),
    )


def adjust_to_base(bucket: Bucket) -> None:
    """Re-base counters on the opening values and zero the base counters."""
    bucket.values.adjust_to_base(bucket.base_values)
    refresh_delta(bucket)
    bucket.base_values.reset_base()
    if bucket.kind.has_income_expense:
        bucket.base_values.set_value(
            bucket.kind.attribute_type.DELTA,
            Decimal("0"),
        )


def calculate_delta(bucket: Bucket) -> None:
    """Compute the period delta for the bucket.

    Accounts and securities store ``VALUEDELTA = valuation - base valuation``;
    accounts then fold their counters into the base. Payees and categories
    store ``DELTA = income - expense``. Tax-basis buckets carry no delta.
    """
    if bucket.kind is BucketKind.ACCOUNT:
        values = bucket.values
        values.set_value(
            AccountAttribute.VALUEDELTA,
            values.get_money(AccountAttribute.VALUATION)
            - bucket.base_values.get_money(AccountAttribute.VALUATION),
        )
        adjust_to_base(bucket)
    elif bucket.kind is BucketKind.SECURITY:
        values = bucket.values
        values.set_value(
            SecurityAttribute.VALUEDELTA,
            values.get_money(SecurityAttribute.VALUATION)
            - bucket.base_values.get_money(SecurityAttribute.VALUATION),
        )
    else:
        refresh_delta(bucket)


def add_values(target: Bucket, source: Bucket) -> None:
    """Accumulate every money attribute of ``source`` into ``target``."""
    _combine(target, source, Decimal("1"))


def subtract_values(target: Bucket, source: Bucket) -> None:
    """Remove every money attribute of ``source`` from ``target``."""
    _combine(target, source, Decimal("-1"))


def _combine(target: Bucket, source: Bucket, sign: Decimal) -> None:
    for mine, theirs in (
        (target.values, source.values),
        (target.base_values, source.base_values),
    ):
        for attr, value in theirs:
            if attr.kind is ValueKind.MONEY and value is not None:
                mine.adjust_counter(attr, sign * value)


def values_for_transaction(
    bucket: Bucket,
    transaction: Transaction,
) -> BucketValues | None:
    """Return the snapshot recorded for ``transaction``, if any."""
    return bucket.history.values_for_transaction(transaction)


def delta_for_transaction(
    bucket: Bucket,
    transaction: Transaction,
    attr: BucketAttribute,
) -> Decimal | None:
    """Return the change in ``attr`` caused by ``transaction``."""
    return bucket.history.delta_for_transaction(transaction, attr)


__all__ = [
    "TOTALS_NAME",
    "BucketKind",
    "Bucket",
    "entity_key",
    "new_bucket",
    "dated_bucket",
    "ranged_bucket",
    "register_transaction",
    "is_active",
    "refresh_delta",
    "adjust_to_base",
    "calculate_delta",
    "add_values",
    "subtract_values",
    "values_for_transaction",
    "delta_for_transaction",
]
