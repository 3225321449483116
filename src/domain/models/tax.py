"""Tax-year rule sets, tax-basis classes and tax calculation results."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from src.domain.models.ledger import DateRange
from src.utils.decimal_utils import ZERO, value_at_rate


class TaxBasisClass(Enum):
    """Tax treatment buckets that income and expenses are analysed into.

    Members are ``(label, is_expense)``; expense classes are subtracted
    when the tax-basis totals are produced.
    """

    GROSSSALARY = ("Gross Salary", False)
    GROSSINTEREST = ("Gross Interest", False)
    GROSSDIVIDEND = ("Gross Dividend", False)
    GROSSUTDIVIDEND = ("Gross Unit Trust Dividend", False)
    GROSSRENTAL = ("Gross Rental", False)
    GROSSTAXABLEGAINS = ("Gross Taxable Gains", False)
    GROSSCAPITALGAINS = ("Gross Capital Gains", False)
    MARKET = ("Market Growth", False)
    TAXFREE = ("Tax Free", False)
    TAXPAID = ("Tax Paid", True)
    EXPENSE = ("Expense", True)
    VIRTUAL = ("Virtual", True)

    def __init__(self, label: str, is_expense: bool) -> None:
        self.label = label
        self.is_expense = is_expense

    def __str__(self) -> str:
        return self.label


class TaxRegime(Enum):
    """Historical UK regimes that change how the bands are applied."""

    ARCHIVE = "archive"
    STANDARD = "standard"
    LOINTEREST = "lointerest"
    ADDITIONAL = "additional"

    @property
    def has_lo_salary_band(self) -> bool:
        return self in (TaxRegime.ARCHIVE, TaxRegime.STANDARD)

    @property
    def has_capital_gains_as_income(self) -> bool:
        return self is TaxRegime.STANDARD

    @property
    def has_additional_tax_band(self) -> bool:
        return self is TaxRegime.ADDITIONAL


@dataclass(frozen=True)
class TaxYear:
    """Allowances, bands and rates for one UK tax year.

    Rates are fractions (``Decimal("0.20")`` for 20%). Bands and allowances
    a regime does not use may be left at zero; rates it does not use may be
    ``None``.

    Attributes:
        year_end: Last day of the tax year (5 April).
        regime: Tax regime in force.
        allowance: Standard personal allowance.
        rental_allowance: Rent-a-room allowance.
        lo_band: Starting-rate band width.
        basic_band: Basic-rate band width.
        capital_allowance: Annual capital gains exemption.
        lo_age_allowance: Allowance from age 65.
        hi_age_allowance: Allowance from age 75.
        age_allowance_limit: Income above which age allowances taper.
        add_allowance_limit: Income above which the allowance tapers away.
        add_income_boundary: Income at which the additional rate starts.
    """

    year_end: date
    regime: TaxRegime
    allowance: Decimal = ZERO
    rental_allowance: Decimal = ZERO
    lo_band: Decimal = ZERO
    basic_band: Decimal = ZERO
    capital_allowance: Decimal = ZERO
    lo_age_allowance: Decimal = ZERO
    hi_age_allowance: Decimal = ZERO
    age_allowance_limit: Decimal = ZERO
    add_allowance_limit: Decimal = ZERO
    add_income_boundary: Decimal = ZERO
    lo_tax_rate: Decimal | None = None
    basic_tax_rate: Decimal | None = None
    hi_tax_rate: Decimal | None = None
    int_tax_rate: Decimal | None = None
    div_tax_rate: Decimal | None = None
    hi_div_tax_rate: Decimal | None = None
    add_tax_rate: Decimal | None = None
    add_div_tax_rate: Decimal | None = None
    cap_tax_rate: Decimal | None = None
    hi_cap_tax_rate: Decimal | None = None

    @property
    def date_range(self) -> DateRange:
        """Return ``[6 April previous year, 6 April)`` for this year."""
        start = self.year_end.replace(year=self.year_end.year - 1)
        return DateRange(start + timedelta(days=1), self.year_end + timedelta(days=1))

    @property
    def has_lo_salary_band(self) -> bool:
        return self.regime.has_lo_salary_band

    @property
    def has_capital_gains_as_income(self) -> bool:
        return self.regime.has_capital_gains_as_income

    @property
    def has_additional_tax_band(self) -> bool:
        return self.regime.has_additional_tax_band


def find_tax_year_for_date(tax_years, day: date) -> TaxYear | None:
    """Return the tax year containing ``day``, if one is defined."""
    for tax_year in tax_years:
        if day in tax_year.date_range:
            return tax_year
    return None


def age_on(birth_date: date, day: date) -> int:
    """Return the age in whole years reached by ``day``."""
    age = day.year - birth_date.year
    if (day.month, day.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


class TaxCalcClass(Enum):
    """Lines of a tax calculation."""

    GROSS_SALARY = "Gross Salary"
    GROSS_RENTAL = "Gross Rental"
    GROSS_INTEREST = "Gross Interest"
    GROSS_DIVIDEND = "Gross Dividend"
    GROSS_UT_DIVIDEND = "Gross Unit Trust Dividend"
    GROSS_TAXABLE_GAINS = "Gross Taxable Gains"
    GROSS_CAPITAL_GAINS = "Gross Capital Gains"
    GROSS_INCOME = "Gross Income"
    ORIGINAL_ALLOWANCE = "Original Allowance"
    ADJUSTED_ALLOWANCE = "Adjusted Allowance"
    HI_TAX_BAND = "High Tax Band"
    TAX_DUE_SALARY = "Tax Due on Salary"
    SALARY_NIL_RATE = "Salary at Nil Rate"
    SALARY_LO_RATE = "Salary at Low Rate"
    SALARY_BASIC_RATE = "Salary at Basic Rate"
    SALARY_HI_RATE = "Salary at High Rate"
    SALARY_ADDITIONAL_RATE = "Salary at Additional Rate"
    TAX_DUE_RENTAL = "Tax Due on Rental"
    RENTAL_NIL_RATE = "Rental at Nil Rate"
    RENTAL_LO_RATE = "Rental at Low Rate"
    RENTAL_BASIC_RATE = "Rental at Basic Rate"
    RENTAL_HI_RATE = "Rental at High Rate"
    RENTAL_ADDITIONAL_RATE = "Rental at Additional Rate"
    TAX_DUE_INTEREST = "Tax Due on Interest"
    INTEREST_NIL_RATE = "Interest at Nil Rate"
    INTEREST_LO_RATE = "Interest at Low Rate"
    INTEREST_BASIC_RATE = "Interest at Basic Rate"
    INTEREST_HI_RATE = "Interest at High Rate"
    INTEREST_ADDITIONAL_RATE = "Interest at Additional Rate"
    TAX_DUE_DIVIDEND = "Tax Due on Dividends"
    DIVIDEND_BASIC_RATE = "Dividends at Basic Rate"
    DIVIDEND_HI_RATE = "Dividends at High Rate"
    DIVIDEND_ADDITIONAL_RATE = "Dividends at Additional Rate"
    TAX_DUE_TAXABLE_GAINS = "Tax Due on Taxable Gains"
    GAINS_BASIC_RATE = "Taxable Gains at Basic Rate"
    GAINS_HI_RATE = "Taxable Gains at High Rate"
    GAINS_ADDITIONAL_RATE = "Taxable Gains at Additional Rate"
    TAX_DUE_SLICE = "Tax Due on Gains Slice"
    SLICE_BASIC_RATE = "Slice at Basic Rate"
    SLICE_HI_RATE = "Slice at High Rate"
    SLICE_ADDITIONAL_RATE = "Slice at Additional Rate"
    TAX_DUE_CAPITAL_GAINS = "Tax Due on Capital Gains"
    CAPITAL_NIL_RATE = "Capital Gains at Nil Rate"
    CAPITAL_BASIC_RATE = "Capital Gains at Basic Rate"
    CAPITAL_HI_RATE = "Capital Gains at High Rate"
    TOTAL_TAXATION_DUE = "Total Taxation Due"
    TAX_PROFIT_LOSS = "Tax Profit/Loss"


@dataclass
class TaxCalcBucket:
    """One line of a tax calculation: an amount taxed at a rate."""

    tax_class: TaxCalcClass
    amount: Decimal = ZERO
    rate: Decimal | None = None
    taxation: Decimal = ZERO
    parent: "TaxCalcBucket | None" = None

    def set_amount(self, amount: Decimal) -> Decimal:
        """Set the amount, derive the tax at the bucket rate and return it."""
        self.amount = amount
        self.taxation = (
            value_at_rate(amount, self.rate) if self.rate is not None else ZERO
        )
        return self.taxation

    def set_taxation(self, taxation: Decimal) -> None:
        self.taxation = taxation

    @property
    def is_empty(self) -> bool:
        return self.amount == 0 and self.taxation == 0


@dataclass
class TaxCalculation:
    """Result of running the tax calculator for one tax year.

    Attributes:
        tax_year: Rule set used.
        age: Taxpayer age at the end of the tax year.
        has_reduced_allowance: Allowance was tapered for high income.
        has_gains_slices: Top-slicing relief was applied to taxable gains.
        buckets: Calculation lines keyed by class, in creation order.
    """

    tax_year: TaxYear
    age: int = 0
    has_reduced_allowance: bool = False
    has_gains_slices: bool = False
    buckets: dict[TaxCalcClass, TaxCalcBucket] = field(default_factory=dict)

    def get_bucket(self, tax_class: TaxCalcClass) -> TaxCalcBucket:
        """Return the line for ``tax_class``, creating it on first use."""
        bucket = self.buckets.get(tax_class)
        if bucket is None:
            bucket = TaxCalcBucket(tax_class)
            self.buckets[tax_class] = bucket
        return bucket

    def find_bucket(self, tax_class: TaxCalcClass) -> TaxCalcBucket | None:
        return self.buckets.get(tax_class)

    @property
    def total_tax_due(self) -> Decimal:
        bucket = self.buckets.get(TaxCalcClass.TOTAL_TAXATION_DUE)
        return bucket.taxation if bucket else ZERO

    @property
    def tax_profit_loss(self) -> Decimal:
        bucket = self.buckets.get(TaxCalcClass.TAX_PROFIT_LOSS)
        return bucket.taxation if bucket else ZERO

    def prune(self) -> None:
        """Drop every line with neither an amount nor any tax."""
        self.buckets = {
            tax_class: bucket
            for tax_class, bucket in self.buckets.items()
            if not bucket.is_empty
        }

    def __iter__(self):
        return iter(self.buckets.values())


__all__ = [
    "TaxBasisClass",
    "TaxRegime",
    "TaxYear",
    "TaxCalcClass",
    "TaxCalcBucket",
    "TaxCalculation",
    "find_tax_year_for_date",
    "age_on",
]
