"""Tests for the reconciliation checks."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from src.application.use_cases.analysis_invariants import (
    ReconciliationIssue,
    account_profit,
    check_reconciliation,
)
from src.domain.models.analysis import Analysis
from src.domain.models.ledger import CategoryClass, DateRange
from src.domain.models.values import AccountAttribute, PayeeAttribute


def _salary_and_shopping(book):
    book.tx(
        date(2024, 5, 1),
        1500,
        book.employer,
        book.current,
        CategoryClass.TAXEDINCOME,
        tax_credit=300,
    )
    book.tx(date(2024, 5, 3), 120, book.current, book.shop, CategoryClass.EXPENSE)
    return book.analyse()


def test_account_profit_is_change_in_accounts(book) -> None:
    analysis = _salary_and_shopping(book)

    assert account_profit(analysis) == Decimal("1380")


def test_balanced_analysis_has_no_issues(book) -> None:
    analysis = _salary_and_shopping(book)
    logger = MagicMock()

    assert check_reconciliation(analysis, logger) == ()
    logger.warning.assert_not_called()


def test_mismatch_is_reported_and_logged(book) -> None:
    """A payee total that disagrees is returned as an issue, not raised."""
    analysis = _salary_and_shopping(book)
    analysis.payees.totals.values.set_value(PayeeAttribute.DELTA, Decimal("1385"))
    logger = MagicMock()

    issues = check_reconciliation(analysis, logger)

    assert issues == (
        ReconciliationIssue("payees", Decimal("1380"), Decimal("1385")),
    )
    assert issues[0].difference == Decimal("5")
    logger.warning.assert_called_once()


def test_account_profit_discounts_hidden_opening_values(book) -> None:
    analysis = _salary_and_shopping(book)
    hidden = analysis.accounts.hidden_base.values
    hidden.set_value(AccountAttribute.VALUATION, Decimal("100"))

    assert account_profit(analysis) == Decimal("1280")


def test_dated_view_without_idle_accounts_reconciles(book) -> None:
    """An account first used after the cut-off is dropped from the view."""
    book.tx(
        date(2024, 5, 1),
        1500,
        book.employer,
        book.current,
        CategoryClass.TAXEDINCOME,
    )
    book.tx(date(2024, 6, 1), 500, book.current, book.savings, CategoryClass.TRANSFER)
    full = book.analyse()
    logger = MagicMock()

    dated = Analysis.dated(full, date(2024, 5, 15))
    dated.produce_totals(logger)

    assert book.savings.id not in dated.accounts
    assert account_profit(dated) == Decimal("1500")
    assert check_reconciliation(dated, logger) == ()
    logger.warning.assert_not_called()


def test_ranged_view_after_account_emptied_reconciles(book) -> None:
    book.tx(date(2024, 5, 1), 500, book.current, book.savings, CategoryClass.TRANSFER)
    book.tx(date(2024, 6, 1), 500, book.savings, book.current, CategoryClass.TRANSFER)
    book.tx(date(2024, 7, 3), 120, book.current, book.shop, CategoryClass.EXPENSE)
    full = book.analyse()
    logger = MagicMock()

    july = Analysis.ranged(full, DateRange(date(2024, 7, 1), date(2024, 8, 1)))
    july.produce_totals(logger)

    assert book.savings.id not in july.accounts
    assert july.accounts.hidden_base.values.get_money(
        AccountAttribute.VALUATION
    ) == Decimal("0")
    assert account_profit(july) == Decimal("-120")
    assert check_reconciliation(july, logger) == ()
