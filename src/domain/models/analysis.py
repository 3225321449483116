"""The Analysis arena: every bucket list for one period plus its lookups."""

from datetime import date, timedelta
from decimal import Decimal
from logging import Logger
from typing import Hashable

from src.domain.models.buckets import Bucket, BucketKind
from src.domain.models.events import ChargeableEventList, DilutionEventList
from src.domain.models.ledger import DateRange
from src.domain.models.tax import TaxBasisClass, TaxCalculation
from src.domain.models.values import SecurityAttribute
from src.domain.services.account_buckets import record_deposit_rate, value_security
from src.domain.services.bucket_lists import BucketList
from src.domain.services.category_buckets import basis_set_market
from src.domain.services.pricing import DepositRateMap, SecurityPriceMap
from src.utils.decimal_utils import ZERO


class Analysis:
    """Bucket lists for one date range, addressed by ``(kind, key)``.

    A full analysis is filled by the transaction analyser; dated and ranged
    analyses are derived from it without touching the source. Once
    ``produce_totals`` has run the analysis is treated as read-only.

    Args:
        date_range: Period covered.
        prices: Security price lookup.
        rates: Deposit rate lookup.
        charges: Chargeable events within the period.
    """

    def __init__(
        self,
        date_range: DateRange,
        prices: SecurityPriceMap,
        rates: DepositRateMap,
        charges: ChargeableEventList | None = None,
    ) -> None:
        self.date_range = date_range
        self.prices = prices
        self.rates = rates
        self.charges = charges if charges is not None else ChargeableEventList()
        self.tax_calculation: TaxCalculation | None = None
        self._lists = {kind: BucketList(kind) for kind in BucketKind}

    @property
    def dilutions(self) -> DilutionEventList:
        return self.prices.dilutions

    @property
    def accounts(self) -> BucketList:
        return self._lists[BucketKind.ACCOUNT]

    @property
    def securities(self) -> BucketList:
        return self._lists[BucketKind.SECURITY]

    @property
    def payees(self) -> BucketList:
        return self._lists[BucketKind.PAYEE]

    @property
    def categories(self) -> BucketList:
        return self._lists[BucketKind.CATEGORY]

    @property
    def tax_basis(self) -> BucketList:
        return self._lists[BucketKind.TAX_BASIS]

    def bucket_list(self, kind: BucketKind) -> BucketList:
        return self._lists[kind]

    def find_bucket(self, kind: BucketKind, key: Hashable) -> Bucket | None:
        return self._lists[kind].find_bucket(key)

    @classmethod
    def dated(cls, source: "Analysis", cutoff: date) -> "Analysis":
        """Derive the analysis as it stood at the end of ``cutoff``."""
        analysis = cls(
            DateRange(None, cutoff + timedelta(days=1)),
            source.prices,
            source.rates,
            source.charges.in_range(DateRange(None, cutoff + timedelta(days=1))),
        )
        for kind, bucket_list in source._lists.items():
            analysis._lists[kind] = BucketList.dated(bucket_list, cutoff)
        for bucket in analysis.accounts:
            if bucket.entity.party_class.is_deposit:
                record_deposit_rate(
                    bucket,
                    analysis.rates.rate_for_date(bucket.entity, cutoff),
                )
        return analysis

    @classmethod
    def ranged(cls, source: "Analysis", date_range: DateRange) -> "Analysis":
        """Derive the analysis re-based over ``date_range``."""
        analysis = cls(
            date_range,
            source.prices,
            source.rates,
            source.charges.in_range(date_range),
        )
        for kind, bucket_list in source._lists.items():
            analysis._lists[kind] = BucketList.ranged(bucket_list, date_range)
        return analysis

    def produce_totals(self, logger: Logger) -> None:
        """Value holdings and rebuild every list's totals."""
        for bucket in self.securities:
            value_security(bucket, self.prices, self.date_range, logger)
        self.securities.produce_totals()
        if not self.securities.is_empty():
            self._record_market_growth()
        self.tax_basis.prune()
        for bucket_list in self._lists.values():
            if bucket_list is not self.securities:
                bucket_list.produce_totals()

    def _record_market_growth(self) -> None:
        growth = ZERO
        shrinkage = ZERO
        for bucket in self.securities:
            market = bucket.values.get_money(SecurityAttribute.MARKET)
            if market > 0:
                growth += market
            else:
                shrinkage -= market
        basis_set_market(
            self.tax_basis.get_bucket(TaxBasisClass.MARKET),
            growth,
            shrinkage,
        )

    def market_growth(self) -> Decimal:
        bucket = self.tax_basis.find_bucket(TaxBasisClass.MARKET)
        if bucket is None:
            return ZERO
        return bucket.values.get_money(bucket.kind.attribute_type.GROSS)


__all__ = ["Analysis"]
