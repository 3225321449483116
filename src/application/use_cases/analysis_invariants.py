"""Reconciliation checks across the bucket lists of a totalled analysis."""

from dataclasses import dataclass
from decimal import Decimal
from logging import Logger

from src.domain.models.analysis import Analysis
from src.domain.models.values import (
    AccountAttribute,
    CategoryAttribute,
    PayeeAttribute,
    SecurityAttribute,
    TaxBasisAttribute,
)


@dataclass(frozen=True)
class ReconciliationIssue:
    """A total that fails to agree with the account profit.

    Attributes:
        source: Which list disagreed (payees, categories or tax basis).
        expected: Profit derived from accounts and holdings.
        actual: Profit derived from ``source``.
    """

    source: str
    expected: Decimal
    actual: Decimal

    @property
    def difference(self) -> Decimal:
        return self.actual - self.expected


def account_profit(analysis: Analysis) -> Decimal:
    """Return the change in net worth funded by the period's cash flows.

    Money moved into holdings counts as kept, so profit is the change in
    account valuations plus the net cash invested, less any opening values
    of accounts dropped from the view.
    """
    accounts = analysis.accounts
    valuation = accounts.totals.values.get_money(AccountAttribute.VALUEDELTA)
    invested = analysis.securities.totals.values.get_money(SecurityAttribute.INVESTED)
    hidden = accounts.hidden_base.values.get_money(AccountAttribute.VALUATION)
    return valuation + invested - hidden


def check_reconciliation(
    analysis: Analysis,
    logger: Logger,
) -> tuple[ReconciliationIssue, ...]:
    """Compare account profit with payee, category and tax-basis totals.

    Mismatches are logged as warnings and returned; they never abort the
    analysis.

    Args:
        analysis: Analysis whose totals have been produced.
        logger: Logger used for warnings.

    Returns:
        tuple[ReconciliationIssue, ...]: One entry per disagreeing list.
    """
    expected = account_profit(analysis)
    gains = analysis.securities.totals.values.get_money(SecurityAttribute.GAINS)

    payees = analysis.payees.totals.values.get_money(PayeeAttribute.DELTA)
    categories = (
        analysis.categories.totals.values.get_money(CategoryAttribute.DELTA) - gains
    )
    tax_basis = (
        analysis.tax_basis.totals.values.get_money(TaxBasisAttribute.GROSS)
        - gains
        - analysis.market_growth()
    )

    issues = []
    for source, actual in (
        ("payees", payees),
        ("categories", categories),
        ("tax basis", tax_basis),
    ):
        if actual != expected:
            issue = ReconciliationIssue(source, expected, actual)
            logger.warning(
                f"Analysis {analysis.date_range} does not reconcile: "
                f"{source} total {actual} vs account profit {expected}"
            )
            issues.append(issue)
    return tuple(issues)


__all__ = ["ReconciliationIssue", "account_profit", "check_reconciliation"]
