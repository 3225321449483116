"""Security price and deposit rate lookups used while valuing buckets."""

from bisect import bisect_left, bisect_right
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from src.domain.models.events import DilutionEventList
from src.domain.models.ledger import DateRange, Party


@dataclass(frozen=True)
class SecurityPrice:
    """Quoted price of a security on a date."""

    security_id: int
    date: date
    price: Decimal


@dataclass(frozen=True)
class DepositRate:
    """Interest rate paid by a deposit.

    Attributes:
        deposit_id: Deposit the rate applies to.
        rate: Annual rate as a fraction.
        bonus: Optional bonus rate as a fraction.
        end_date: Last date the rate applies; ``None`` for the current rate.
    """

    deposit_id: int
    rate: Decimal
    bonus: Decimal | None = None
    end_date: date | None = None


class SecurityPriceMap:
    """Date-ordered prices per security.

    Args:
        prices: Price records in any order.
        dilutions: Dilution events used for diluted price lookups.
    """

    def __init__(
        self,
        prices=(),
        dilutions: DilutionEventList | None = None,
    ) -> None:
        grouped: dict[int, list[SecurityPrice]] = defaultdict(list)
        for price in prices:
            grouped[price.security_id].append(price)
        self._prices = {
            security_id: sorted(items, key=lambda item: item.date)
            for security_id, items in grouped.items()
        }
        self._dates = {
            security_id: [item.date for item in items]
            for security_id, items in self._prices.items()
        }
        self._dilutions = dilutions if dilutions is not None else DilutionEventList()

    @property
    def dilutions(self) -> DilutionEventList:
        return self._dilutions

    def _quote(
        self,
        security: Party,
        day: date,
        inclusive: bool = True,
    ) -> SecurityPrice | None:
        dates = self._dates.get(security.id)
        if not dates:
            return None
        if inclusive:
            position = bisect_right(dates, day)
        else:
            position = bisect_left(dates, day)
        if position == 0:
            return None
        return self._prices[security.id][position - 1]

    def _restated(
        self,
        security: Party,
        quote: SecurityPrice | None,
        until: date | None,
    ) -> Decimal | None:
        """Apply dilutions dated after ``quote`` and before ``until``."""
        if quote is None:
            return None
        if not self._dilutions.has_dilution(security):
            return quote.price
        return quote.price * self._dilutions.get_dilution_factor(
            security, quote.date, until
        )

    def price_for_date(self, security: Party, day: date) -> Decimal | None:
        """Return the latest price quoted on or before ``day``."""
        quote = self._quote(security, day)
        return None if quote is None else quote.price

    def price_before(self, security: Party, day: date) -> Decimal | None:
        """Return the latest price quoted strictly before ``day``."""
        quote = self._quote(security, day, inclusive=False)
        return None if quote is None else quote.price

    def valuation_price(self, security: Party, day: date) -> Decimal | None:
        """Return the price to value a holding at on ``day``.

        A quote older than a dilution dated before ``day`` is restated by
        that dilution's factor. Dilutions on ``day`` itself are left to the
        transaction that carries them.
        """
        return self._restated(security, self._quote(security, day), day)

    def prices_for_range(
        self,
        security: Party,
        date_range: DateRange,
    ) -> tuple[Decimal | None, Decimal | None]:
        """Return the opening and closing valuation prices for ``date_range``.

        The opening price is the last quote before the range starts and the
        closing price the last quote inside it, so adjacent ranges share a
        boundary price. Both are restated for dilutions dated after the
        quote and before the boundary.
        """
        if date_range.start is None:
            opening = None
        else:
            quote = self._quote(security, date_range.start, inclusive=False)
            opening = self._restated(security, quote, date_range.start)
        if date_range.end is None:
            prices = self._prices.get(security.id)
            quote = prices[-1] if prices else None
        else:
            quote = self._quote(security, date_range.end, inclusive=False)
        closing = self._restated(security, quote, date_range.end)
        return opening, closing

    def diluted_price_for_date(
        self,
        security: Party,
        day: date,
    ) -> Decimal | None:
        """Return the price on ``day`` restated for later dilutions."""
        price = self.price_for_date(security, day)
        if price is None or not self._dilutions.has_dilution(security):
            return price
        return price * self._dilutions.get_dilution_factor(security, day)


class DepositRateMap:
    """Rates per deposit ordered by the date they stop applying."""

    def __init__(self, rates=()) -> None:
        grouped: dict[int, list[DepositRate]] = defaultdict(list)
        for rate in rates:
            grouped[rate.deposit_id].append(rate)
        self._rates = {
            deposit_id: sorted(
                items,
                key=lambda item: (item.end_date is None, item.end_date or date.min),
            )
            for deposit_id, items in grouped.items()
        }

    def rate_for_date(self, deposit: Party, day: date) -> DepositRate | None:
        """Return the first rate still applying on ``day``.

        Rates are scanned by end date; the open-ended current rate applies
        once every dated rate has expired.
        """
        for rate in self._rates.get(deposit.id, ()):
            if rate.end_date is None or rate.end_date >= day:
                return rate
        return None


__all__ = [
    "SecurityPrice",
    "DepositRate",
    "SecurityPriceMap",
    "DepositRateMap",
]
