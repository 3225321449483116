"""Tests for the standard transaction path of the analyser."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from src.application.use_cases.analysis_invariants import check_reconciliation
from src.domain.models.ledger import CategoryClass, PartyClass
from src.domain.models.tax import TaxBasisClass
from src.domain.models.values import (
    AccountAttribute,
    CategoryAttribute,
    PayeeAttribute,
    TaxBasisAttribute,
)


def _money(analysis_list, key, attr) -> Decimal:
    bucket = analysis_list.find_bucket(key)
    return bucket.values.get_money(attr) if bucket is not None else Decimal("0")


def _salary(book, day=date(2024, 5, 1)):
    return book.tx(
        day,
        2000,
        book.employer,
        book.current,
        CategoryClass.TAXEDINCOME,
        tax_credit=400,
        nat_insurance=150,
    )


def test_salary_books_gross_income_and_deductions(book) -> None:
    _salary(book)

    analysis = book.analyse()
    salary = book.category(CategoryClass.TAXEDINCOME)

    assert _money(
        analysis.accounts, book.current.id, AccountAttribute.VALUATION
    ) == Decimal("3000")
    assert _money(
        analysis.payees, book.employer.id, PayeeAttribute.INCOME
    ) == Decimal("2550")
    assert _money(
        analysis.payees, book.tax_man.id, PayeeAttribute.EXPENSE
    ) == Decimal("550")
    assert _money(
        analysis.categories, salary.id, CategoryAttribute.INCOME
    ) == Decimal("2550")
    assert _money(
        analysis.categories,
        book.category(CategoryClass.TAXCREDIT).id,
        CategoryAttribute.EXPENSE,
    ) == Decimal("400")
    assert _money(
        analysis.categories,
        book.category(CategoryClass.NATINSURANCE).id,
        CategoryAttribute.EXPENSE,
    ) == Decimal("150")

    gross_salary = analysis.tax_basis.find_bucket(TaxBasisClass.GROSSSALARY).values
    assert gross_salary.get_money(TaxBasisAttribute.GROSS) == Decimal("2550")
    assert gross_salary.get_money(TaxBasisAttribute.NET) == Decimal("2000")
    assert gross_salary.get_money(TaxBasisAttribute.TAXCREDIT) == Decimal("400")
    assert _money(
        analysis.tax_basis, TaxBasisClass.TAXPAID, TaxBasisAttribute.GROSS
    ) == Decimal("400")


def test_salary_and_spending_reconcile(book) -> None:
    _salary(book)
    book.tx(date(2024, 5, 10), 300, book.current, book.shop, CategoryClass.EXPENSE)
    logger = MagicMock()

    analysis = book.analyse()

    totals = analysis.accounts.totals.values
    assert totals.get_money(AccountAttribute.VALUEDELTA) == Decimal("1700")
    assert totals.get_money(AccountAttribute.SPEND) == Decimal("300")
    assert analysis.payees.totals.values.get_money(PayeeAttribute.DELTA) == Decimal(
        "1700"
    )
    assert analysis.categories.totals.values.get_money(
        CategoryAttribute.DELTA
    ) == Decimal("1700")
    assert analysis.tax_basis.totals.values.get_money(
        TaxBasisAttribute.GROSS
    ) == Decimal("1700")
    assert check_reconciliation(analysis, logger) == ()
    logger.warning.assert_not_called()


def test_refund_from_shop_reduces_expense(book) -> None:
    book.tx(date(2024, 5, 10), 300, book.current, book.shop, CategoryClass.EXPENSE)
    book.tx(date(2024, 5, 12), 50, book.shop, book.current, CategoryClass.EXPENSE)

    analysis = book.analyse()
    expense = book.category(CategoryClass.EXPENSE)

    assert _money(
        analysis.payees, book.shop.id, PayeeAttribute.EXPENSE
    ) == Decimal("250")
    assert _money(
        analysis.categories, expense.id, CategoryAttribute.DELTA
    ) == Decimal("-250")
    assert _money(
        analysis.tax_basis, TaxBasisClass.EXPENSE, TaxBasisAttribute.GROSS
    ) == Decimal("250")


def test_interest_is_redirected_to_bank_and_recategorised(book) -> None:
    book.tx(
        date(2024, 6, 30),
        80,
        book.savings,
        book.savings,
        CategoryClass.INTEREST,
        tax_credit=20,
    )

    analysis = book.analyse()
    taxed = book.category(CategoryClass.TAXEDINTEREST)

    assert _money(
        analysis.payees, book.bank.id, PayeeAttribute.INCOME
    ) == Decimal("100")
    assert _money(
        analysis.accounts, book.savings.id, AccountAttribute.VALUATION
    ) == Decimal("80")
    assert _money(
        analysis.categories, taxed.id, CategoryAttribute.INCOME
    ) == Decimal("100")
    assert analysis.categories.find_bucket(
        book.category(CategoryClass.INTEREST).id
    ) is None
    assert _money(
        analysis.tax_basis, TaxBasisClass.GROSSINTEREST, TaxBasisAttribute.NET
    ) == Decimal("80")
    assert check_reconciliation(analysis, MagicMock()) == ()


def test_interest_on_tax_free_deposit_is_tax_free(book) -> None:
    isa = book.party("Cash ISA", PartyClass.SAVINGS, parent=book.bank, tax_free=True)
    book.tx(date(2024, 6, 30), 40, isa, isa, CategoryClass.INTEREST)

    analysis = book.analyse()

    assert _money(
        analysis.categories,
        book.category(CategoryClass.TAXFREEINTEREST).id,
        CategoryAttribute.INCOME,
    ) == Decimal("40")
    assert _money(
        analysis.tax_basis, TaxBasisClass.TAXFREE, TaxBasisAttribute.GROSS
    ) == Decimal("40")


def test_interest_paid_to_other_account_registers_child(book) -> None:
    transaction = book.tx(
        date(2024, 6, 30), 30, book.savings, book.current, CategoryClass.INTEREST
    )

    analysis = book.analyse()

    savings = analysis.accounts.find_bucket(book.savings.id)
    assert savings.history.values_for_transaction(transaction) is not None
    assert savings.values.get_money(AccountAttribute.VALUATION) == Decimal("0")
    assert _money(
        analysis.accounts, book.current.id, AccountAttribute.VALUATION
    ) == Decimal("1030")


def test_auto_expense_account_books_straight_to_payee_and_category(book) -> None:
    expense = book.category(CategoryClass.EXPENSE)
    petty = book.party(
        "Petty cash", PartyClass.CASH, parent=book.shop, auto_expense=expense
    )
    book.tx(date(2024, 7, 1), 40, book.current, petty, CategoryClass.TRANSFER)

    analysis = book.analyse()

    assert petty.id not in analysis.accounts
    assert _money(
        analysis.payees, book.shop.id, PayeeAttribute.EXPENSE
    ) == Decimal("40")
    assert _money(
        analysis.categories, expense.id, CategoryAttribute.EXPENSE
    ) == Decimal("40")
    assert check_reconciliation(analysis, MagicMock()) == ()


def test_charity_donation_counts_as_income_and_expense(book) -> None:
    book.tx(
        date(2024, 5, 1),
        1000,
        book.employer,
        book.current,
        CategoryClass.TAXEDINCOME,
        charity_donation=50,
    )

    analysis = book.analyse()

    employer = analysis.payees.find_bucket(book.employer.id).values
    assert employer.get_money(PayeeAttribute.INCOME) == Decimal("1050")
    assert employer.get_money(PayeeAttribute.EXPENSE) == Decimal("50")
    assert _money(
        analysis.categories,
        book.category(CategoryClass.CHARITYDONATION).id,
        CategoryAttribute.EXPENSE,
    ) == Decimal("50")
    assert check_reconciliation(analysis, MagicMock()) == ()


def test_transfers_between_accounts_touch_no_categories(book) -> None:
    book.tx(date(2024, 5, 1), 200, book.current, book.savings, CategoryClass.TRANSFER)

    analysis = book.analyse()

    assert analysis.categories.is_empty()
    assert _money(
        analysis.accounts, book.savings.id, AccountAttribute.VALUATION
    ) == Decimal("200")
    assert _money(
        analysis.accounts, book.current.id, AccountAttribute.SPEND
    ) == Decimal("200")


def test_deleted_transactions_are_skipped(book) -> None:
    book.tx(
        date(2024, 5, 1),
        200,
        book.current,
        book.shop,
        CategoryClass.EXPENSE,
        deleted=True,
    )

    analysis = book.analyse()

    assert book.shop.id not in analysis.payees


def test_opening_balances_seed_accounts_only(book) -> None:
    analysis = book.analyse()

    current = analysis.accounts.find_bucket(book.current.id)
    assert current.base_values.get_money(AccountAttribute.VALUATION) == Decimal("1000")
    assert current.values.get_money(AccountAttribute.VALUEDELTA) == Decimal("0")
    assert len(analysis.accounts) == 1
