"""Domain models package.

``Analysis`` is imported from ``src.domain.models.analysis`` directly; it
depends on the bucket services and is kept out of the package namespace.
"""

from .buckets import Bucket, BucketKind
from .events import (
    ChargeableEvent,
    ChargeableEventList,
    DilutionEvent,
    DilutionEventList,
)
from .history import BucketHistory, HistoryEntry
from .ledger import (
    CategoryClass,
    DateRange,
    Direction,
    Party,
    PartyClass,
    Transaction,
    TransactionCategory,
    TransactionHelper,
    TransactionType,
)
from .tax import TaxBasisClass, TaxCalculation, TaxRegime, TaxYear
from .values import BucketValues, ValueKind

__all__ = [
    "Bucket",
    "BucketKind",
    "BucketHistory",
    "BucketValues",
    "CategoryClass",
    "ChargeableEvent",
    "ChargeableEventList",
    "DateRange",
    "DilutionEvent",
    "DilutionEventList",
    "Direction",
    "HistoryEntry",
    "Party",
    "PartyClass",
    "TaxBasisClass",
    "TaxCalculation",
    "TaxRegime",
    "TaxYear",
    "Transaction",
    "TransactionCategory",
    "TransactionHelper",
    "TransactionType",
    "ValueKind",
]
