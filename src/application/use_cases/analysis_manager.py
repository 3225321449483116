"""Memoising entry point for dated and ranged analyses."""

from datetime import date

from src.application.use_cases.analysis_invariants import check_reconciliation
from src.domain.models.analysis import Analysis
from src.domain.models.ledger import DateRange
from src.domain.models.tax import TaxYear
from src.domain.services.tax_calculator import TaxCalculator
from src.infrastructure.logging.logger import get_app_logger

DEFAULT_BIRTH_DATE = date(1970, 1, 1)


class AnalysisManager:
    """Serve analyses derived from one fully analysed ledger.

    Views are built on first request and kept for the manager's lifetime;
    the base analysis is never changed, so nothing is invalidated. Each new
    view is reconciled once; mismatches are logged, not raised. A ranged
    view whose range is exactly a tax year also carries its tax calculation.
    """

    def __init__(
        self,
        base: Analysis,
        tax_years: tuple[TaxYear, ...] = (),
        birth_date: date = DEFAULT_BIRTH_DATE,
        logger=None,
    ) -> None:
        """Initialize the manager.

        Args:
            base: Totalled analysis over the whole ledger.
            tax_years: Tax-year rule sets available for tax calculations.
            birth_date: Taxpayer's date of birth.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._base = base
        self._tax_years = tuple(tax_years)
        self._birth_date = birth_date
        self._logger = logger or get_app_logger()
        self._dated: dict[date, Analysis] = {}
        self._ranged: dict[DateRange, Analysis] = {}

    @property
    def base_analysis(self) -> Analysis:
        return self._base

    @property
    def tax_years(self) -> tuple[TaxYear, ...]:
        return self._tax_years

    def get_analysis(self, key: date | DateRange) -> Analysis:
        """Return the analysis for a cut-off date or a date range."""
        if isinstance(key, DateRange):
            return self.get_ranged_analysis(key)
        return self.get_dated_analysis(key)

    def get_dated_analysis(self, cutoff: date) -> Analysis:
        analysis = self._dated.get(cutoff)
        if analysis is None:
            self._logger.debug(f"Building dated analysis at {cutoff}")
            analysis = Analysis.dated(self._base, cutoff)
            analysis.produce_totals(self._logger)
            check_reconciliation(analysis, self._logger)
            self._dated[cutoff] = analysis
        return analysis

    def get_ranged_analysis(self, date_range: DateRange) -> Analysis:
        analysis = self._ranged.get(date_range)
        if analysis is None:
            self._logger.debug(f"Building ranged analysis over {date_range}")
            analysis = Analysis.ranged(self._base, date_range)
            analysis.produce_totals(self._logger)
            check_reconciliation(analysis, self._logger)
            tax_year = self._tax_year_for(date_range)
            if tax_year is not None:
                calculator = TaxCalculator(tax_year, self._birth_date, self._logger)
                analysis.tax_calculation = calculator.calculate(analysis)
            self._ranged[date_range] = analysis
        return analysis

    def get_tax_year_analysis(self, tax_year: TaxYear) -> Analysis:
        """Return the ranged analysis for a tax year, with its taxation."""
        return self.get_ranged_analysis(tax_year.date_range)

    def _tax_year_for(self, date_range: DateRange) -> TaxYear | None:
        for tax_year in self._tax_years:
            if tax_year.date_range == date_range:
                return tax_year
        return None


__all__ = ["AnalysisManager", "DEFAULT_BIRTH_DATE"]
