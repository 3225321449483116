"""CLI adapter printing ledger totals and the tax due for one tax year."""

from datetime import date
import os

from src.domain.models.analysis import Analysis
from src.domain.models.tax import TaxYear, find_tax_year_for_date
from src.domain.models.values import (
    AccountAttribute,
    CategoryAttribute,
    SecurityAttribute,
)
from src.infrastructure.container import build_analysis_use_case, build_settings
from src.infrastructure.logging.logger import get_app_logger, get_usage_logger


def _parse_date(value: str | None, logger) -> date | None:
    """Parse an ISO date string into a date.

    Args:
        value: Date string in YYYY-MM-DD format.
        logger: Logger used for warnings.

    Returns:
        date | None: Parsed date or None when invalid.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        )
        return None


def _select_tax_year(
    tax_years: tuple[TaxYear, ...],
    day: date | None,
) -> TaxYear | None:
    """Return the tax year containing ``day``, or the latest one."""
    if day is not None:
        return find_tax_year_for_date(tax_years, day)
    if not tax_years:
        return None
    return max(tax_years, key=lambda tax_year: tax_year.year_end)


def _print_totals(analysis: Analysis, currency: str) -> None:
    accounts = analysis.accounts.totals.values
    securities = analysis.securities.totals.values
    categories = analysis.categories.totals.values
    print(
        f"Accounts ({currency}): "
        f"valuation={accounts.get_money(AccountAttribute.VALUATION)}, "
        f"change={accounts.get_money(AccountAttribute.VALUEDELTA)}"
    )
    print(
        f"Securities ({currency}): "
        f"valuation={securities.get_money(SecurityAttribute.VALUATION)}, "
        f"invested={securities.get_money(SecurityAttribute.INVESTED)}, "
        f"gains={securities.get_money(SecurityAttribute.GAINS)}, "
        f"profit={securities.get_money(SecurityAttribute.PROFIT)}"
    )
    print(
        f"Categories ({currency}): "
        f"income={categories.get_money(CategoryAttribute.INCOME)}, "
        f"expense={categories.get_money(CategoryAttribute.EXPENSE)}, "
        f"delta={categories.get_money(CategoryAttribute.DELTA)}"
    )


def main() -> None:
    """Analyse the ledger and print a tax-year summary."""
    logger = get_app_logger()
    settings = build_settings()
    day = _parse_date(os.getenv("LEDGER_TAX_DATE"), logger)
    get_usage_logger().info(f"Analysis report requested for {day or 'latest tax year'}")

    manager = build_analysis_use_case(settings=settings).execute()
    tax_year = _select_tax_year(manager.tax_years, day)
    if tax_year is None:
        logger.warning("No tax year is defined for the requested date.")
        _print_totals(manager.base_analysis, settings.currency)
        return

    analysis = manager.get_tax_year_analysis(tax_year)
    date_range = tax_year.date_range
    print(f"Tax year {date_range.start} to {tax_year.year_end}")
    _print_totals(analysis, settings.currency)

    calculation = analysis.tax_calculation
    if calculation is None:
        return
    for line in calculation:
        rate = "" if line.rate is None else f" @ {line.rate}"
        print(f"  {line.tax_class.value}: {line.amount}{rate} -> {line.taxation}")
    print(
        f"Total taxation due: {calculation.total_tax_due}, "
        f"tax profit/loss: {calculation.tax_profit_loss}"
    )


if __name__ == "__main__":  # pragma: no cover
    main()
