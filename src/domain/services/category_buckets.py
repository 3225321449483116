"""Mutators for transaction-category and tax-basis buckets."""

from decimal import Decimal

from src.domain.models.buckets import (
    Bucket,
    BucketKind,
    refresh_delta,
    register_transaction,
)
from src.domain.models.ledger import CategoryClass, TransactionHelper
from src.domain.models.tax import TaxBasisClass
from src.domain.models.values import (
    BucketValues,
    CategoryAttribute,
    TaxBasisAttribute,
)
from src.utils.decimal_utils import ZERO

# Category class -> (tax basis, booked as an expense event)
TAX_BASIS_FOR_CLASS: dict[CategoryClass, tuple[TaxBasisClass, bool]] = {
    CategoryClass.TAXEDINCOME: (TaxBasisClass.GROSSSALARY, False),
    CategoryClass.BENEFITINCOME: (TaxBasisClass.GROSSSALARY, False),
    CategoryClass.RENTALINCOME: (TaxBasisClass.GROSSSALARY, False),
    CategoryClass.INTEREST: (TaxBasisClass.GROSSINTEREST, False),
    CategoryClass.TAXEDINTEREST: (TaxBasisClass.GROSSINTEREST, False),
    CategoryClass.GROSSINTEREST: (TaxBasisClass.GROSSINTEREST, False),
    CategoryClass.DIVIDEND: (TaxBasisClass.GROSSDIVIDEND, False),
    CategoryClass.SHAREDIVIDEND: (TaxBasisClass.GROSSDIVIDEND, False),
    CategoryClass.UNITTRUSTDIVIDEND: (TaxBasisClass.GROSSUTDIVIDEND, False),
    CategoryClass.ROOMRENTALINCOME: (TaxBasisClass.GROSSRENTAL, False),
    CategoryClass.TAXSETTLEMENT: (TaxBasisClass.TAXPAID, True),
    CategoryClass.TAXFREEINTEREST: (TaxBasisClass.TAXFREE, False),
    CategoryClass.TAXFREEDIVIDEND: (TaxBasisClass.TAXFREE, False),
    CategoryClass.LOANINTERESTEARNED: (TaxBasisClass.TAXFREE, False),
    CategoryClass.GRANTINCOME: (TaxBasisClass.TAXFREE, False),
    CategoryClass.INHERITED: (TaxBasisClass.TAXFREE, False),
    CategoryClass.GIFTEDINCOME: (TaxBasisClass.TAXFREE, False),
    CategoryClass.EXPENSE: (TaxBasisClass.EXPENSE, True),
    CategoryClass.LOCALTAXES: (TaxBasisClass.EXPENSE, True),
    CategoryClass.WRITEOFF: (TaxBasisClass.EXPENSE, True),
    CategoryClass.LOANINTERESTCHARGED: (TaxBasisClass.EXPENSE, True),
    CategoryClass.CHARITYDONATION: (TaxBasisClass.EXPENSE, True),
    CategoryClass.TAXRELIEF: (TaxBasisClass.EXPENSE, True),
    CategoryClass.OTHERINCOME: (TaxBasisClass.EXPENSE, True),
}


def _record(bucket: Bucket, helper: TransactionHelper) -> BucketValues:
    refresh_delta(bucket)
    return register_transaction(bucket, helper.transaction)


# Categories


def category_adjust_values(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """Book a transaction against its own category.

    Expense categories take ``amount + tax credit``; income categories take
    the gross value including national insurance, deemed benefit and any
    charity donation. Money flowing the "wrong" way (a refund from a shop,
    income repaid to an employer) is booked on the opposite side.
    """
    if bucket.kind is not BucketKind.CATEGORY:
        raise TypeError(f"{bucket!r} is not a category bucket")
    values = bucket.values
    value = helper.amount + (helper.tax_credit or ZERO)
    if helper.category_class.is_expense:
        attr = (
            CategoryAttribute.INCOME
            if helper.direction.is_from
            else CategoryAttribute.EXPENSE
        )
    else:
        value += (
            (helper.nat_insurance or ZERO)
            + (helper.deemed_benefit or ZERO)
            + (helper.charity_donation or ZERO)
        )
        attr = (
            CategoryAttribute.EXPENSE
            if helper.direction.is_to
            else CategoryAttribute.INCOME
        )
    values.adjust_counter(attr, value)
    return _record(bucket, helper)


def category_add_income(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    bucket.values.adjust_counter(CategoryAttribute.INCOME, amount)
    return _record(bucket, helper)


def category_subtract_income(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    bucket.values.adjust_counter(CategoryAttribute.INCOME, -amount)
    return _record(bucket, helper)


def category_add_expense(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    bucket.values.adjust_counter(CategoryAttribute.EXPENSE, amount)
    return _record(bucket, helper)


def category_subtract_expense(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    bucket.values.adjust_counter(CategoryAttribute.EXPENSE, -amount)
    return _record(bucket, helper)


# Tax basis


def _adjust_basis(
    bucket: Bucket,
    gross: Decimal,
    net: Decimal,
    tax_credit: Decimal = ZERO,
) -> None:
    if bucket.kind is not BucketKind.TAX_BASIS:
        raise TypeError(f"{bucket!r} is not a tax-basis bucket")
    values = bucket.values
    values.adjust_counter(TaxBasisAttribute.GROSS, gross)
    values.adjust_counter(TaxBasisAttribute.NET, net)
    if tax_credit:
        values.adjust_counter(TaxBasisAttribute.TAXCREDIT, tax_credit)


def basis_add_income_event(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """Book an income transaction: gross includes all deductions at source."""
    amount = helper.amount
    if helper.transaction_type.is_expense:
        _adjust_basis(bucket, -amount, -amount)
    else:
        tax_credit = helper.tax_credit or ZERO
        gross = (
            amount
            + tax_credit
            + (helper.nat_insurance or ZERO)
            + (helper.deemed_benefit or ZERO)
            + (helper.charity_donation or ZERO)
        )
        _adjust_basis(bucket, gross, amount, tax_credit)
    return register_transaction(bucket, helper.transaction)


def basis_add_expense_event(
    bucket: Bucket,
    helper: TransactionHelper,
) -> BucketValues:
    """Book an expense transaction; a refund reduces the expense.

    Gross includes any tax relief given at source, matching the value the
    expense category records.
    """
    amount = helper.amount
    gross = amount + (helper.tax_credit or ZERO)
    if helper.transaction_type.is_income:
        amount = -amount
        gross = -gross
    _adjust_basis(bucket, gross, amount)
    return register_transaction(bucket, helper.transaction)


def basis_adjust_value(
    bucket: Bucket,
    helper: TransactionHelper,
    amount: Decimal,
) -> BucketValues:
    _adjust_basis(bucket, amount, amount)
    return register_transaction(bucket, helper.transaction)


def basis_add_taxable_gain(
    bucket: Bucket,
    helper: TransactionHelper,
    gains: Decimal,
    tax_credit: Decimal,
) -> BucketValues:
    """Book a chargeable gain; gross adds back the tax deducted at source."""
    _adjust_basis(bucket, gains + tax_credit, gains, tax_credit)
    return register_transaction(bucket, helper.transaction)


def basis_set_market(bucket: Bucket, income: Decimal, expense: Decimal) -> None:
    """Replace the market-growth value with ``income - expense``."""
    if bucket.kind is not BucketKind.TAX_BASIS:
        raise TypeError(f"{bucket!r} is not a tax-basis bucket")
    delta = income - expense
    bucket.values.set_value(TaxBasisAttribute.GROSS, delta)
    bucket.values.set_value(TaxBasisAttribute.NET, delta)


__all__ = [
    "TAX_BASIS_FOR_CLASS",
    "category_adjust_values",
    "category_add_income",
    "category_subtract_income",
    "category_add_expense",
    "category_subtract_expense",
    "basis_add_income_event",
    "basis_add_expense_event",
    "basis_adjust_value",
    "basis_add_taxable_gain",
    "basis_set_market",
]
