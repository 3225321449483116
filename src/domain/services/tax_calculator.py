"""UK income and capital gains tax calculation over a tax year's basis.

Each income type claims from the same remaining allowance and bands, in a
fixed order: salary, rental, interest, dividends, taxable gains and finally
capital gains.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from logging import Logger

from src.domain.constants import (
    AGE_ALLOWANCE_LOWER_LIMIT,
    AGE_ALLOWANCE_UPPER_LIMIT,
    ALLOWANCE_MULTIPLIER,
    ALLOWANCE_QUOTIENT,
)
from src.domain.models.analysis import Analysis
from src.domain.models.events import ChargeableEventList
from src.domain.models.tax import (
    TaxBasisClass,
    TaxCalcBucket,
    TaxCalcClass,
    TaxCalculation,
    TaxYear,
    age_on,
)
from src.domain.models.values import TaxBasisAttribute
from src.utils.decimal_utils import ZERO, round_money


@dataclass
class TaxBands:
    """Remaining allowance and band widths during one calculation.

    ``hi_band`` is ``None`` when the year has no additional rate, in which
    case the higher band is unlimited.
    """

    allowance: Decimal
    lo_band: Decimal
    basic_band: Decimal
    hi_band: Decimal | None = None
    has_age_allowance: bool = False

    def hi_available(self, amount: Decimal) -> Decimal:
        if self.hi_band is None:
            return amount
        return min(amount, self.hi_band)

    def use_hi(self, amount: Decimal) -> None:
        if self.hi_band is not None:
            self.hi_band -= amount


@dataclass(frozen=True)
class _BandLines:
    """Calculation lines and rates for the lo/basic/hi/additional walk."""

    lo: TaxCalcClass | None
    basic: TaxCalcClass
    hi: TaxCalcClass
    additional: TaxCalcClass
    lo_rate: Decimal | None
    basic_rate: Decimal | None
    hi_rate: Decimal | None
    add_rate: Decimal | None
    lo_taxed: bool = True


def taper(allowance: Decimal, income: Decimal, limit: Decimal) -> Decimal:
    """Reduce ``allowance`` by £1 for every £2 of income above ``limit``."""
    excess = income - limit
    return allowance - round_money(excess / ALLOWANCE_QUOTIENT * ALLOWANCE_MULTIPLIER)


class TaxCalculator:
    """Computes the tax due for one tax year from a ranged analysis.

    Args:
        tax_year: Rule set for the year.
        birth_date: Taxpayer's date of birth, used for age allowances.
        logger: Logger for the result summary.
    """

    def __init__(self, tax_year: TaxYear, birth_date: date, logger: Logger) -> None:
        self._year = tax_year
        self._birth_date = birth_date
        self._logger = logger
        self._basis: dict[TaxBasisClass, tuple[Decimal, Decimal]] = {}
        self._result = TaxCalculation(tax_year)
        self._charges = ChargeableEventList()

    def calculate(self, analysis: Analysis) -> TaxCalculation:
        """Run the calculation against an analysis covering the tax year.

        The analysis must already have produced its totals. Chargeable
        events in the analysis receive their share of taxable-gains tax.

        Returns:
            TaxCalculation: Every non-empty calculation line plus totals.
        """
        self._result = TaxCalculation(self._year)
        self._charges = analysis.charges
        self._basis = {}
        for bucket in analysis.tax_basis:
            values = bucket.values
            self._basis[bucket.entity] = (
                values.get_money(TaxBasisAttribute.GROSS),
                values.get_money(TaxBasisAttribute.NET),
            )

        self._gross_income()
        bands = self._allowances()

        income = ZERO
        tax = ZERO
        for step in (
            self._salary_tax,
            self._rental_tax,
            self._interest_tax,
            self._dividend_tax,
            self._taxable_gains_tax,
            self._capital_gains_tax,
        ):
            top = step(bands)
            income += top.amount
            tax += top.taxation

        total = self._line(TaxCalcClass.TOTAL_TAXATION_DUE)
        total.amount = income
        total.set_taxation(tax)
        profit = self._line(TaxCalcClass.TAX_PROFIT_LOSS)
        profit.amount = ZERO
        profit.set_taxation(tax - self._gross(TaxBasisClass.TAXPAID))

        self._result.prune()
        self._logger.info(
            f"Tax year ending {self._year.year_end}: due {tax}, "
            f"profit/loss {profit.taxation}"
        )
        return self._result

    # Lines and basis access

    def _gross(self, basis: TaxBasisClass) -> Decimal:
        return self._basis.get(basis, (ZERO, ZERO))[0]

    def _line(
        self,
        tax_class: TaxCalcClass,
        parent: TaxCalcBucket | None = None,
        rate: Decimal | None = None,
    ) -> TaxCalcBucket:
        line = self._result.get_bucket(tax_class)
        line.parent = parent
        line.rate = rate
        return line

    def _charge(
        self,
        tax_class: TaxCalcClass,
        parent: TaxCalcBucket,
        rate: Decimal | None,
        amount: Decimal,
    ) -> Decimal:
        return self._line(tax_class, parent, rate).set_amount(amount)

    def _top(self, tax_class: TaxCalcClass, amount: Decimal) -> TaxCalcBucket:
        top = self._line(tax_class)
        top.amount = amount
        return top

    # Income and allowances

    def _gross_income(self) -> Decimal:
        year = self._year
        gross = self._line(TaxCalcClass.GROSS_INCOME)
        income = ZERO
        for tax_class, basis in (
            (TaxCalcClass.GROSS_SALARY, TaxBasisClass.GROSSSALARY),
            (TaxCalcClass.GROSS_RENTAL, TaxBasisClass.GROSSRENTAL),
            (TaxCalcClass.GROSS_INTEREST, TaxBasisClass.GROSSINTEREST),
            (TaxCalcClass.GROSS_DIVIDEND, TaxBasisClass.GROSSDIVIDEND),
            (TaxCalcClass.GROSS_UT_DIVIDEND, TaxBasisClass.GROSSUTDIVIDEND),
            (TaxCalcClass.GROSS_TAXABLE_GAINS, TaxBasisClass.GROSSTAXABLEGAINS),
            (TaxCalcClass.GROSS_CAPITAL_GAINS, TaxBasisClass.GROSSCAPITALGAINS),
        ):
            amount = self._gross(basis)
            self._line(tax_class, gross).amount = amount
            if basis is TaxBasisClass.GROSSRENTAL:
                amount = max(amount - year.rental_allowance, ZERO)
            elif basis is TaxBasisClass.GROSSCAPITALGAINS:
                amount = max(amount - year.capital_allowance, ZERO)
            income += amount
        gross.amount = income
        return income

    def _allowances(self) -> TaxBands:
        """Determine the personal allowance and the starting band widths.

        Age allowances taper back to (but never below) the standard
        allowance; above the additional-rate limit the allowance tapers
        again, down to nothing.
        """
        year = self._year
        result = self._result
        result.age = age_on(self._birth_date, year.year_end)

        has_age_allowance = False
        allowance = year.allowance
        if result.age >= AGE_ALLOWANCE_UPPER_LIMIT:
            allowance = year.hi_age_allowance
            has_age_allowance = True
        elif result.age >= AGE_ALLOWANCE_LOWER_LIMIT:
            allowance = year.lo_age_allowance
            has_age_allowance = True

        original = self._line(TaxCalcClass.ORIGINAL_ALLOWANCE)
        original.amount = allowance
        income = self._result.get_bucket(TaxCalcClass.GROSS_INCOME).amount

        if has_age_allowance and income > year.age_allowance_limit:
            allowance = taper(allowance, income, year.age_allowance_limit)
            if allowance < year.allowance:
                allowance = year.allowance
                has_age_allowance = False
            self._line(TaxCalcClass.ADJUSTED_ALLOWANCE, original).amount = allowance
            result.has_reduced_allowance = True

        bands = TaxBands(
            allowance=allowance,
            lo_band=year.lo_band,
            basic_band=year.basic_band,
            has_age_allowance=has_age_allowance,
        )
        if year.has_additional_tax_band:
            bands.hi_band = year.add_income_boundary - year.basic_band
            self._line(TaxCalcClass.HI_TAX_BAND, original).amount = bands.hi_band
            if income > year.add_allowance_limit:
                bands.allowance = max(
                    taper(allowance, income, year.add_allowance_limit), ZERO
                )
                self._line(
                    TaxCalcClass.ADJUSTED_ALLOWANCE, original
                ).amount = bands.allowance
                result.has_reduced_allowance = True
        return bands

    # Band walks

    def _walk(
        self,
        bands: TaxBands,
        top: TaxCalcBucket,
        remaining: Decimal,
        lines: _BandLines,
    ) -> Decimal:
        """Charge ``remaining`` across the lo, basic, hi and additional bands."""
        tax = ZERO
        if remaining <= 0:
            return tax
        if lines.lo is not None:
            taken = min(remaining, bands.lo_band)
            if lines.lo_taxed:
                tax += self._charge(lines.lo, top, lines.lo_rate, taken)
                remaining -= taken
            bands.lo_band -= taken
            if remaining <= 0:
                return tax

        taken = min(remaining, bands.basic_band)
        tax += self._charge(lines.basic, top, lines.basic_rate, taken)
        bands.basic_band -= taken
        remaining -= taken
        if remaining <= 0:
            return tax

        taken = bands.hi_available(remaining)
        tax += self._charge(lines.hi, top, lines.hi_rate, taken)
        bands.use_hi(taken)
        remaining -= taken
        if remaining > 0:
            tax += self._charge(lines.additional, top, lines.add_rate, remaining)
        return tax

    def _use_allowance(
        self,
        bands: TaxBands,
        top: TaxCalcBucket,
        nil_class: TaxCalcClass,
        remaining: Decimal,
        already_free: Decimal = ZERO,
    ) -> tuple[Decimal, Decimal]:
        taken = min(remaining, bands.allowance)
        tax = self._charge(nil_class, top, None, already_free + taken)
        bands.allowance -= taken
        return remaining - taken, tax

    def _salary_tax(self, bands: TaxBands) -> TaxCalcBucket:
        year = self._year
        salary = self._gross(TaxBasisClass.GROSSSALARY)
        top = self._top(TaxCalcClass.TAX_DUE_SALARY, salary)
        remaining, tax = self._use_allowance(
            bands, top, TaxCalcClass.SALARY_NIL_RATE, salary
        )
        tax += self._walk(
            bands,
            top,
            remaining,
            _BandLines(
                lo=TaxCalcClass.SALARY_LO_RATE,
                basic=TaxCalcClass.SALARY_BASIC_RATE,
                hi=TaxCalcClass.SALARY_HI_RATE,
                additional=TaxCalcClass.SALARY_ADDITIONAL_RATE,
                lo_rate=year.lo_tax_rate,
                basic_rate=year.basic_tax_rate,
                hi_rate=year.hi_tax_rate,
                add_rate=year.add_tax_rate,
                lo_taxed=year.has_lo_salary_band,
            ),
        )
        top.set_taxation(tax)
        return top

    def _rental_tax(self, bands: TaxBands) -> TaxCalcBucket:
        """Rent-a-room income: the rental allowance is free before the
        personal allowance is touched."""
        year = self._year
        rental = self._gross(TaxBasisClass.GROSSRENTAL)
        top = self._top(TaxCalcClass.TAX_DUE_RENTAL, rental)
        if rental < year.rental_allowance:
            tax = self._charge(TaxCalcClass.RENTAL_NIL_RATE, top, None, rental)
            top.set_taxation(tax)
            return top

        remaining, tax = self._use_allowance(
            bands,
            top,
            TaxCalcClass.RENTAL_NIL_RATE,
            rental - year.rental_allowance,
            already_free=year.rental_allowance,
        )
        tax += self._walk(
            bands,
            top,
            remaining,
            _BandLines(
                lo=TaxCalcClass.RENTAL_LO_RATE,
                basic=TaxCalcClass.RENTAL_BASIC_RATE,
                hi=TaxCalcClass.RENTAL_HI_RATE,
                additional=TaxCalcClass.RENTAL_ADDITIONAL_RATE,
                lo_rate=year.lo_tax_rate,
                basic_rate=year.basic_tax_rate,
                hi_rate=year.hi_tax_rate,
                add_rate=year.add_tax_rate,
                lo_taxed=year.has_lo_salary_band,
            ),
        )
        top.set_taxation(tax)
        return top

    def _interest_tax(self, bands: TaxBands) -> TaxCalcBucket:
        """Interest may use the starting-rate band even when salary may not.

        Any allowance or starting band left afterwards cannot reclaim tax
        credits, so it is folded into the basic band.
        """
        year = self._year
        if not year.has_lo_salary_band:
            bands.basic_band -= bands.lo_band

        interest = self._gross(TaxBasisClass.GROSSINTEREST)
        top = self._top(TaxCalcClass.TAX_DUE_INTEREST, interest)
        remaining, tax = self._use_allowance(
            bands, top, TaxCalcClass.INTEREST_NIL_RATE, interest
        )
        tax += self._walk(
            bands,
            top,
            remaining,
            _BandLines(
                lo=TaxCalcClass.INTEREST_LO_RATE,
                basic=TaxCalcClass.INTEREST_BASIC_RATE,
                hi=TaxCalcClass.INTEREST_HI_RATE,
                additional=TaxCalcClass.INTEREST_ADDITIONAL_RATE,
                lo_rate=year.lo_tax_rate,
                basic_rate=year.int_tax_rate,
                hi_rate=year.hi_tax_rate,
                add_rate=year.add_tax_rate,
            ),
        )

        bands.basic_band += bands.allowance + bands.lo_band
        bands.allowance = ZERO
        bands.lo_band = ZERO
        top.set_taxation(tax)
        return top

    def _dividend_tax(self, bands: TaxBands) -> TaxCalcBucket:
        year = self._year
        dividends = self._gross(TaxBasisClass.GROSSDIVIDEND) + self._gross(
            TaxBasisClass.GROSSUTDIVIDEND
        )
        top = self._top(TaxCalcClass.TAX_DUE_DIVIDEND, dividends)
        tax = self._walk(
            bands,
            top,
            dividends,
            _BandLines(
                lo=None,
                basic=TaxCalcClass.DIVIDEND_BASIC_RATE,
                hi=TaxCalcClass.DIVIDEND_HI_RATE,
                additional=TaxCalcClass.DIVIDEND_ADDITIONAL_RATE,
                lo_rate=None,
                basic_rate=year.div_tax_rate,
                hi_rate=year.hi_div_tax_rate,
                add_rate=year.add_div_tax_rate,
            ),
        )
        top.set_taxation(tax)
        return top

    def _taxable_gains_tax(self, bands: TaxBands) -> TaxCalcBucket:
        """Life-bond gains, with top-slicing relief where it can help.

        Gains that fit in the basic band are taxed at the basic rate. When
        no basic band is left, or an age allowance is in use, they are
        banded like any other income. Otherwise the per-year slices are
        banded and the resulting tax is spread back over the chargeable
        events.
        """
        year = self._year
        charges = self._charges
        gains = charges.gains_total()
        top = self._top(TaxCalcClass.TAX_DUE_TAXABLE_GAINS, gains)

        if gains <= bands.basic_band:
            tax = self._charge(
                TaxCalcClass.GAINS_BASIC_RATE, top, year.basic_tax_rate, gains
            )
            bands.basic_band -= gains
        elif bands.basic_band == 0 or bands.has_age_allowance:
            tax = self._walk(
                bands,
                top,
                gains,
                _BandLines(
                    lo=None,
                    basic=TaxCalcClass.GAINS_BASIC_RATE,
                    hi=TaxCalcClass.GAINS_HI_RATE,
                    additional=TaxCalcClass.GAINS_ADDITIONAL_RATE,
                    lo_rate=None,
                    basic_rate=year.basic_tax_rate,
                    hi_rate=year.hi_tax_rate,
                    add_rate=year.add_tax_rate,
                ),
            )
        else:
            tax = self._sliced_gains_tax(bands, top, gains)

        top.set_taxation(tax)
        return top

    def _sliced_gains_tax(
        self,
        bands: TaxBands,
        top: TaxCalcBucket,
        gains: Decimal,
    ) -> Decimal:
        year = self._year
        charges = self._charges
        self._result.has_gains_slices = True
        slice_total = charges.slice_total()
        slice_top = self._top(TaxCalcClass.TAX_DUE_SLICE, slice_total)
        slice_top.parent = top
        basic = bands.basic_band

        if slice_total < basic:
            slice_tax = self._charge(
                TaxCalcClass.SLICE_BASIC_RATE,
                slice_top,
                year.basic_tax_rate,
                slice_total,
            )
            slice_top.set_taxation(slice_tax)
            charges.apply_tax(slice_tax, slice_total)
            self._charge(TaxCalcClass.GAINS_BASIC_RATE, top, year.basic_tax_rate, gains)
            tax = charges.tax_total()
        else:
            slice_tax = self._charge(
                TaxCalcClass.SLICE_BASIC_RATE, slice_top, year.basic_tax_rate, basic
            )
            remaining = slice_total - basic
            basic_tax = self._charge(
                TaxCalcClass.GAINS_BASIC_RATE, top, year.basic_tax_rate, basic
            )
            taken = bands.hi_available(remaining)
            slice_tax += self._charge(
                TaxCalcClass.SLICE_HI_RATE, slice_top, year.hi_tax_rate, taken
            )
            remaining -= taken
            if remaining > 0:
                slice_tax += self._charge(
                    TaxCalcClass.SLICE_ADDITIONAL_RATE,
                    slice_top,
                    year.add_tax_rate,
                    remaining,
                )
            slice_top.set_taxation(slice_tax)
            charges.apply_tax(slice_tax, slice_total)
            tax = charges.tax_total()

            hi_line = self._line(TaxCalcClass.GAINS_HI_RATE, top)
            hi_line.amount = gains - basic
            hi_line.set_taxation(tax - basic_tax)

        bands.use_hi(gains - basic)
        bands.basic_band = ZERO
        return tax

    def _capital_gains_tax(self, bands: TaxBands) -> TaxCalcBucket:
        """Capital gains above the annual exemption.

        Where gains count as income, or the year has a higher capital rate,
        they claim whatever basic band is left; otherwise a single flat
        capital rate applies.
        """
        year = self._year
        capital = self._gross(TaxBasisClass.GROSSCAPITALGAINS)
        top = self._top(TaxCalcClass.TAX_DUE_CAPITAL_GAINS, capital)
        taken = min(capital, year.capital_allowance)
        tax = self._charge(TaxCalcClass.CAPITAL_NIL_RATE, top, None, taken)
        remaining = capital - taken

        if remaining > 0:
            as_income = year.has_capital_gains_as_income
            if not as_income and year.hi_cap_tax_rate is None:
                tax += self._charge(
                    TaxCalcClass.CAPITAL_BASIC_RATE, top, year.cap_tax_rate, remaining
                )
            else:
                basic_rate = year.basic_tax_rate if as_income else year.cap_tax_rate
                hi_rate = year.hi_tax_rate if as_income else year.hi_cap_tax_rate
                taken = min(remaining, bands.basic_band)
                tax += self._charge(
                    TaxCalcClass.CAPITAL_BASIC_RATE, top, basic_rate, taken
                )
                bands.basic_band -= taken
                remaining -= taken
                if remaining > 0:
                    tax += self._charge(
                        TaxCalcClass.CAPITAL_HI_RATE, top, hi_rate, remaining
                    )

        top.set_taxation(tax)
        return top


__all__ = ["TaxCalculator", "TaxBands", "taper"]
