"""Chargeable (taxable-gain) events and stock dilution events."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from src.domain.constants import DEFAULT_CHARGEABLE_YEARS
from src.domain.models.ledger import DateRange, Party, Transaction
from src.utils.decimal_utils import ZERO, round_money, value_at_weight


@dataclass
class ChargeableEvent:
    """Taxable gain crystallised by a life-bond transaction.

    Attributes:
        transaction: Transaction that produced the gain.
        gains: Gain liable to tax.
        years: Years over which the gain accrued, used for top-slicing.
        taxation: Tax attributed to the event once banded.
    """

    transaction: Transaction
    gains: Decimal
    years: int = DEFAULT_CHARGEABLE_YEARS
    taxation: Decimal = field(default=ZERO)

    @property
    def date(self) -> date:
        return self.transaction.date

    @property
    def slice(self) -> Decimal:
        """Return the gain spread over its accrual years."""
        return round_money(self.gains / self.years)

    def apply_tax(self, tax: Decimal, slice_total: Decimal) -> Decimal:
        """Attribute this event's share of the slice tax.

        Args:
            tax: Tax computed on the combined slices.
            slice_total: Sum of the slices of every event in the year.

        Returns:
            Decimal: Tax charged to this event, scaled back up by its years.
        """
        portion = value_at_weight(tax, self.slice, slice_total)
        self.taxation = round_money(portion * self.years)
        return self.taxation


class ChargeableEventList:
    """Date-ordered chargeable events with aggregate helpers."""

    def __init__(self, events: list[ChargeableEvent] | None = None) -> None:
        self._events: list[ChargeableEvent] = list(events or [])

    def __iter__(self):
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def add_event(self, transaction: Transaction, gains: Decimal) -> ChargeableEvent:
        """Record the taxable gain produced by ``transaction``."""
        years = transaction.years or DEFAULT_CHARGEABLE_YEARS
        event = ChargeableEvent(transaction, gains, years)
        self._events.append(event)
        return event

    def in_range(self, date_range: DateRange) -> "ChargeableEventList":
        """Return fresh copies of the events falling inside ``date_range``."""
        return ChargeableEventList(
            [
                ChargeableEvent(event.transaction, event.gains, event.years)
                for event in self._events
                if event.date in date_range
            ]
        )

    def gains_total(self) -> Decimal:
        return sum((event.gains for event in self._events), ZERO)

    def slice_total(self) -> Decimal:
        return sum((event.slice for event in self._events), ZERO)

    def tax_total(self) -> Decimal:
        return sum((event.taxation for event in self._events), ZERO)

    def apply_tax(self, tax: Decimal, slice_total: Decimal) -> Decimal:
        """Distribute slice tax over the events and return the total charged."""
        for event in self._events:
            event.apply_tax(tax, slice_total)
        return self.tax_total()


@dataclass(frozen=True)
class DilutionEvent:
    """Dilution of a security's units on a given date.

    ``factor`` is the multiplier applied to historical prices (and cost)
    dated before the event.
    """

    security: Party
    date: date
    factor: Decimal


class DilutionEventList:
    """Chronological dilution events across all securities."""

    def __init__(self) -> None:
        self._events: list[DilutionEvent] = []

    def __iter__(self):
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def add_dilution(self, transaction: Transaction) -> DilutionEvent | None:
        """Record the dilution carried by ``transaction``, if any.

        The diluted security is the debit holding, or the credit holding
        when only the credit side carries units (rights taken up).
        """
        if transaction.dilution is None:
            return None
        security = transaction.debit
        if not security.has_units:
            security = transaction.credit
        event = DilutionEvent(security, transaction.date, transaction.dilution)
        self._events.append(event)
        return event

    def has_dilution(self, security: Party) -> bool:
        return any(event.security.id == security.id for event in self._events)

    def get_dilution_factor(
        self,
        security: Party,
        day: date,
        until: date | None = None,
    ) -> Decimal:
        """Return the combined factor of the security's dilutions after ``day``.

        Args:
            security: Holding whose dilutions apply.
            day: Only dilutions dated after this day count.
            until: When given, only dilutions dated before this day count.

        Returns:
            Decimal: Product of the matching factors, 1 when none match.
        """
        factor = Decimal("1")
        for event in self._events:
            if event.security.id != security.id or event.date <= day:
                continue
            if until is not None and event.date >= until:
                continue
            factor *= event.factor
        return factor


__all__ = [
    "ChargeableEvent",
    "ChargeableEventList",
    "DilutionEvent",
    "DilutionEventList",
]
