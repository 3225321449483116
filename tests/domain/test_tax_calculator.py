"""Tests for the tax-year rules and the tax calculator."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from src.domain.models.analysis import Analysis
from src.domain.models.ledger import CategoryClass, DateRange, PartyClass
from src.domain.models.tax import (
    TaxBasisClass,
    TaxCalcClass,
    TaxRegime,
    TaxYear,
    age_on,
    find_tax_year_for_date,
)
from src.domain.models.values import TaxBasisAttribute
from src.domain.services.pricing import DepositRateMap, SecurityPriceMap
from src.domain.services.tax_calculator import TaxCalculator, taper

YOUNG = date(1970, 1, 1)
RETIRED = date(1940, 1, 1)


def _lo_interest_year() -> TaxYear:
    return TaxYear(
        year_end=date(2010, 4, 5),
        regime=TaxRegime.LOINTEREST,
        allowance=Decimal("6475"),
        rental_allowance=Decimal("4250"),
        lo_band=Decimal("2440"),
        basic_band=Decimal("37400"),
        capital_allowance=Decimal("10100"),
        lo_age_allowance=Decimal("9490"),
        hi_age_allowance=Decimal("9640"),
        age_allowance_limit=Decimal("22900"),
        lo_tax_rate=Decimal("0.10"),
        basic_tax_rate=Decimal("0.20"),
        hi_tax_rate=Decimal("0.40"),
        int_tax_rate=Decimal("0.20"),
        div_tax_rate=Decimal("0.10"),
        hi_div_tax_rate=Decimal("0.325"),
        cap_tax_rate=Decimal("0.18"),
    )


def _additional_year() -> TaxYear:
    return TaxYear(
        year_end=date(2013, 4, 5),
        regime=TaxRegime.ADDITIONAL,
        allowance=Decimal("8105"),
        basic_band=Decimal("34370"),
        capital_allowance=Decimal("10600"),
        add_allowance_limit=Decimal("100000"),
        add_income_boundary=Decimal("150000"),
        basic_tax_rate=Decimal("0.20"),
        hi_tax_rate=Decimal("0.40"),
        add_tax_rate=Decimal("0.45"),
        int_tax_rate=Decimal("0.20"),
        div_tax_rate=Decimal("0.10"),
        hi_div_tax_rate=Decimal("0.325"),
        add_div_tax_rate=Decimal("0.375"),
        cap_tax_rate=Decimal("0.18"),
        hi_cap_tax_rate=Decimal("0.28"),
    )


def _analysis(**basis) -> Analysis:
    """Build an analysis whose tax basis carries the given gross amounts.

    Values may be a single amount (gross and net alike) or a
    ``(gross, net)`` pair.
    """
    analysis = Analysis(DateRange(), SecurityPriceMap(), DepositRateMap())
    for name, amount in basis.items():
        gross, net = amount if isinstance(amount, tuple) else (amount, amount)
        values = analysis.tax_basis.get_bucket(TaxBasisClass[name]).values
        values.set_value(TaxBasisAttribute.GROSS, Decimal(str(gross)))
        values.set_value(TaxBasisAttribute.NET, Decimal(str(net)))
    return analysis


def _amount(result, tax_class) -> Decimal:
    return result.find_bucket(tax_class).amount


def _taxation(result, tax_class) -> Decimal:
    return result.find_bucket(tax_class).taxation


def test_tax_year_covers_sixth_april_to_fifth_april() -> None:
    year = _lo_interest_year()

    assert date(2009, 4, 6) in year.date_range
    assert date(2010, 4, 5) in year.date_range
    assert date(2010, 4, 6) not in year.date_range
    assert find_tax_year_for_date([year], date(2009, 12, 25)) is year
    assert find_tax_year_for_date([year], date(2009, 4, 5)) is None


def test_age_counts_whole_years() -> None:
    assert age_on(date(1940, 4, 6), date(2010, 4, 5)) == 69
    assert age_on(date(1940, 4, 5), date(2010, 4, 5)) == 70


def test_taper_takes_one_pound_per_two_over_limit() -> None:
    assert taper(Decimal("9490"), Decimal("24900"), Decimal("22900")) == Decimal(
        "8490"
    )


def test_age_allowance_tapers_and_salary_pays_basic_rate() -> None:
    calculator = TaxCalculator(_lo_interest_year(), RETIRED, MagicMock())

    result = calculator.calculate(_analysis(GROSSSALARY=24900))

    assert result.age == 70
    assert result.has_reduced_allowance
    assert _amount(result, TaxCalcClass.ORIGINAL_ALLOWANCE) == Decimal("9490")
    assert _amount(result, TaxCalcClass.ADJUSTED_ALLOWANCE) == Decimal("8490")
    assert _amount(result, TaxCalcClass.SALARY_NIL_RATE) == Decimal("8490")
    assert _amount(result, TaxCalcClass.SALARY_BASIC_RATE) == Decimal("16410")
    assert _taxation(result, TaxCalcClass.SALARY_BASIC_RATE) == Decimal("3282.00")
    assert result.find_bucket(TaxCalcClass.SALARY_LO_RATE) is None
    assert result.total_tax_due == Decimal("3282.00")


def test_age_allowance_never_tapers_below_standard_allowance() -> None:
    calculator = TaxCalculator(_lo_interest_year(), RETIRED, MagicMock())

    result = calculator.calculate(_analysis(GROSSSALARY=30000))

    assert _amount(result, TaxCalcClass.ADJUSTED_ALLOWANCE) == Decimal("6475")
    assert _amount(result, TaxCalcClass.SALARY_NIL_RATE) == Decimal("6475")


def test_gains_tax_credit_counts_towards_age_allowance_taper() -> None:
    """Gross taxable gains, credit included, feed the age-allowance limit."""
    calculator = TaxCalculator(_lo_interest_year(), RETIRED, MagicMock())

    result = calculator.calculate(
        _analysis(GROSSSALARY=20000, GROSSTAXABLEGAINS=(3000, 2400))
    )

    assert _amount(result, TaxCalcClass.GROSS_INCOME) == Decimal("23000")
    assert result.has_reduced_allowance
    assert _amount(result, TaxCalcClass.ORIGINAL_ALLOWANCE) == Decimal("9640")
    assert _amount(result, TaxCalcClass.ADJUSTED_ALLOWANCE) == Decimal("9590")


def test_tax_profit_loss_compares_due_with_tax_paid() -> None:
    calculator = TaxCalculator(_lo_interest_year(), RETIRED, MagicMock())

    result = calculator.calculate(_analysis(GROSSSALARY=24900, TAXPAID=3000))

    assert result.tax_profit_loss == Decimal("282.00")


def test_additional_rate_year_tapers_allowance_for_high_income() -> None:
    logger = MagicMock()
    calculator = TaxCalculator(_additional_year(), YOUNG, logger)

    result = calculator.calculate(_analysis(GROSSSALARY=110000))

    assert _amount(result, TaxCalcClass.HI_TAX_BAND) == Decimal("115630")
    assert _amount(result, TaxCalcClass.ADJUSTED_ALLOWANCE) == Decimal("3105")
    assert _taxation(result, TaxCalcClass.SALARY_BASIC_RATE) == Decimal("6874.00")
    assert _amount(result, TaxCalcClass.SALARY_HI_RATE) == Decimal("72525")
    assert _taxation(result, TaxCalcClass.SALARY_HI_RATE) == Decimal("29010.00")
    assert result.find_bucket(TaxCalcClass.SALARY_ADDITIONAL_RATE) is None
    assert result.total_tax_due == Decimal("35884.00")
    logger.info.assert_called_once()


def test_income_above_additional_boundary_pays_additional_rate() -> None:
    calculator = TaxCalculator(_additional_year(), YOUNG, MagicMock())

    result = calculator.calculate(_analysis(GROSSSALARY=200000))

    assert result.has_reduced_allowance
    assert result.find_bucket(TaxCalcClass.SALARY_NIL_RATE) is None
    assert _amount(result, TaxCalcClass.SALARY_HI_RATE) == Decimal("115630")
    assert _amount(result, TaxCalcClass.SALARY_ADDITIONAL_RATE) == Decimal("50000")
    assert _taxation(result, TaxCalcClass.SALARY_ADDITIONAL_RATE) == Decimal(
        "22500.00"
    )


def test_taxable_gains_use_top_slicing_relief(book) -> None:
    bond = book.holding("Bond", PartyClass.LIFEBOND, parent=book.insurer)
    analysis = _analysis(GROSSSALARY=30000, GROSSTAXABLEGAINS=20000)
    event = analysis.charges.add_event(
        book.tx(
            date(2009, 9, 1),
            0,
            bond,
            book.current,
            CategoryClass.TRANSFER,
            years=4,
        ),
        Decimal("20000"),
    )
    calculator = TaxCalculator(_lo_interest_year(), YOUNG, MagicMock())

    result = calculator.calculate(analysis)

    assert result.has_gains_slices
    assert _taxation(result, TaxCalcClass.TAX_DUE_SALARY) == Decimal("4705.00")
    assert _amount(result, TaxCalcClass.TAX_DUE_SLICE) == Decimal("5000")
    assert _taxation(result, TaxCalcClass.TAX_DUE_SLICE) == Decimal("1000.00")
    assert event.taxation == Decimal("4000")
    assert _taxation(result, TaxCalcClass.TAX_DUE_TAXABLE_GAINS) == Decimal("4000")
    assert result.total_tax_due == Decimal("8705.00")


def test_flat_rate_capital_gains_leave_basic_band_alone() -> None:
    calculator = TaxCalculator(_lo_interest_year(), YOUNG, MagicMock())

    result = calculator.calculate(_analysis(GROSSCAPITALGAINS=20100))

    assert _amount(result, TaxCalcClass.CAPITAL_NIL_RATE) == Decimal("10100")
    assert _amount(result, TaxCalcClass.CAPITAL_BASIC_RATE) == Decimal("10000")
    assert _taxation(result, TaxCalcClass.TAX_DUE_CAPITAL_GAINS) == Decimal(
        "1800.00"
    )
    assert _amount(result, TaxCalcClass.GROSS_INCOME) == Decimal("10000")


def test_higher_capital_rate_claims_remaining_basic_band() -> None:
    calculator = TaxCalculator(_additional_year(), YOUNG, MagicMock())

    result = calculator.calculate(
        _analysis(GROSSSALARY=40000, GROSSCAPITALGAINS=20600)
    )

    # 40000 - 8105 allowance leaves 2475 of basic band
    assert _amount(result, TaxCalcClass.CAPITAL_BASIC_RATE) == Decimal("2475")
    assert _amount(result, TaxCalcClass.CAPITAL_HI_RATE) == Decimal("7525")
    assert _taxation(result, TaxCalcClass.CAPITAL_HI_RATE) == Decimal("2107.00")


def test_rental_within_allowance_is_untaxed() -> None:
    calculator = TaxCalculator(_lo_interest_year(), YOUNG, MagicMock())

    result = calculator.calculate(_analysis(GROSSRENTAL=3000))

    assert _amount(result, TaxCalcClass.RENTAL_NIL_RATE) == Decimal("3000")
    assert result.total_tax_due == Decimal("0")
    assert _amount(result, TaxCalcClass.GROSS_RENTAL) == Decimal("3000")
    assert result.find_bucket(TaxCalcClass.GROSS_INCOME) is None


def test_interest_uses_starting_band_after_salary() -> None:
    calculator = TaxCalculator(_lo_interest_year(), YOUNG, MagicMock())

    result = calculator.calculate(
        _analysis(GROSSSALARY=6475, GROSSINTEREST=(3000, 2400))
    )

    assert _amount(result, TaxCalcClass.INTEREST_LO_RATE) == Decimal("2440")
    assert _taxation(result, TaxCalcClass.INTEREST_LO_RATE) == Decimal("244.00")
    assert _amount(result, TaxCalcClass.INTEREST_BASIC_RATE) == Decimal("560")
    assert _taxation(result, TaxCalcClass.TAX_DUE_INTEREST) == Decimal("356.00")


def test_empty_basis_prunes_to_totals_only() -> None:
    calculator = TaxCalculator(_lo_interest_year(), YOUNG, MagicMock())

    result = calculator.calculate(_analysis())

    assert result.find_bucket(TaxCalcClass.SALARY_NIL_RATE) is None
    assert result.find_bucket(TaxCalcClass.GROSS_SALARY) is None
    assert result.find_bucket(TaxCalcClass.ORIGINAL_ALLOWANCE) is not None
    assert result.total_tax_due == Decimal("0")
