"""Booking rules shared by the standard and security transaction paths.

``Bookings`` owns the decisions about which payee, account, category and
tax-basis buckets a transaction side effect lands in; the analysers decide
which effects a transaction has.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.domain.models.analysis import Analysis
from src.domain.models.buckets import Bucket, register_transaction
from src.domain.models.ledger import (
    CategoryClass,
    Party,
    PartyClass,
    TransactionCategory,
    TransactionHelper,
)
from src.domain.models.tax import TaxBasisClass
from src.domain.services.account_buckets import (
    account_adjust_for_credit,
    account_adjust_for_debit,
    payee_add_expense,
    payee_adjust_for_credit,
    payee_adjust_for_debit,
    payee_adjust_for_tax_credit,
    payee_adjust_for_tax_payments,
    payee_subtract_expense,
)
from src.domain.services.category_buckets import (
    TAX_BASIS_FOR_CLASS,
    basis_add_expense_event,
    basis_add_income_event,
    basis_add_taxable_gain,
    basis_adjust_value,
    category_add_expense,
    category_add_income,
    category_adjust_values,
    category_subtract_expense,
    category_subtract_income,
)
from src.utils.decimal_utils import ZERO


@dataclass(frozen=True)
class ImpliedCategories:
    """Categories that transaction side amounts are booked to.

    The first eight are required. The detailed interest and dividend
    categories are optional; when absent the transaction keeps its own
    category.
    """

    tax_credit: TransactionCategory
    nat_insurance: TransactionCategory
    deemed_benefit: TransactionCategory
    charity_donation: TransactionCategory
    tax_relief: TransactionCategory
    capital_gains: TransactionCategory
    tax_free_gains: TransactionCategory
    taxable_gains: TransactionCategory
    taxed_interest: TransactionCategory | None = None
    gross_interest: TransactionCategory | None = None
    tax_free_interest: TransactionCategory | None = None
    share_dividend: TransactionCategory | None = None
    unit_trust_dividend: TransactionCategory | None = None
    tax_free_dividend: TransactionCategory | None = None

    def interest_category(
        self,
        category: TransactionCategory,
        deposit: Party,
    ) -> TransactionCategory:
        """Re-categorise generic interest by the paying deposit's tax status."""
        if category.category_class is not CategoryClass.INTEREST:
            return category
        if deposit.tax_free:
            detailed = self.tax_free_interest
        elif deposit.gross_interest:
            detailed = self.gross_interest
        else:
            detailed = self.taxed_interest
        return detailed or category

    def dividend_category(
        self,
        category: TransactionCategory,
        security: Party,
    ) -> TransactionCategory:
        """Re-categorise a generic dividend by holding and wrapper."""
        if category.category_class is not CategoryClass.DIVIDEND:
            return category
        portfolio = security.parent
        if portfolio is not None and portfolio.tax_free:
            detailed = self.tax_free_dividend
        elif security.party_class is PartyClass.UNITTRUST:
            detailed = self.unit_trust_dividend
        else:
            detailed = self.share_dividend
        return detailed or category


class Bookings:
    """Routes transaction side effects into an analysis' buckets.

    Args:
        analysis: Analysis being filled.
        implied: Categories for side amounts and gains.
        tax_man: Payee that receives tax and national insurance.
    """

    def __init__(
        self,
        analysis: Analysis,
        implied: ImpliedCategories,
        tax_man: Party,
    ) -> None:
        self.analysis = analysis
        self.implied = implied
        self.tax_man = tax_man

    def payee_bucket(self, party: Party) -> Bucket:
        return self.analysis.payees.get_bucket(party)

    def account_bucket(self, party: Party) -> Bucket:
        return self.analysis.accounts.get_bucket(party)

    def security_bucket(self, party: Party) -> Bucket:
        return self.analysis.securities.get_bucket(party)

    def category_bucket(self, category: TransactionCategory) -> Bucket:
        return self.analysis.categories.get_bucket(category)

    def basis_bucket(self, basis: TaxBasisClass) -> Bucket:
        return self.analysis.tax_basis.get_bucket(basis)

    # Parties

    def debit_party(self, helper: TransactionHelper) -> None:
        """Book the debit side against a payee or an account."""
        if helper.debit.is_payee:
            payee_adjust_for_debit(self.payee_bucket(helper.debit), helper)
        else:
            account_adjust_for_debit(self.account_bucket(helper.debit), helper)

    def credit_party(
        self,
        helper: TransactionHelper,
        party: Party | None = None,
    ) -> None:
        """Book the credit side (or ``party``) against a payee or an account."""
        party = party or helper.credit
        if party.is_payee:
            payee_adjust_for_credit(self.payee_bucket(party), helper)
        else:
            account_adjust_for_credit(self.account_bucket(party), helper)

    def register_child(self, helper: TransactionHelper, child: Party) -> None:
        """Record the transaction against a sub-account without changing it."""
        register_transaction(self.account_bucket(child), helper.transaction)

    def tax_payments(self, helper: TransactionHelper) -> None:
        payee_adjust_for_tax_payments(self.payee_bucket(self.tax_man), helper)

    def payee_tax_credit(self, helper: TransactionHelper, payee: Party) -> None:
        payee_adjust_for_tax_credit(self.payee_bucket(payee), helper)

    def auto_expense(
        self,
        helper: TransactionHelper,
        party: Party,
        is_expense: bool,
    ) -> None:
        """Book money moving in or out of an auto-expensed account.

        The account itself carries no bucket: its parent payee and its
        auto-expense category take the amount directly.
        """
        amount = helper.amount
        payee = self.payee_bucket(party.parent or party)
        category = self.category_bucket(party.auto_expense)
        basis = self.basis_bucket(TaxBasisClass.EXPENSE)
        if is_expense:
            payee_add_expense(payee, helper, amount)
            category_add_expense(category, helper, amount)
            basis_adjust_value(basis, helper, amount)
        else:
            payee_subtract_expense(payee, helper, amount)
            category_subtract_expense(category, helper, amount)
            basis_adjust_value(basis, helper, -amount)

    # Categories

    def adjust_categories(
        self,
        helper: TransactionHelper,
        category: TransactionCategory,
    ) -> None:
        """Book a transaction and its side amounts to categories and tax basis."""
        category_adjust_values(self.category_bucket(category), helper)
        self.adjust_basis(helper, category.category_class)

        tax_credit = helper.tax_credit
        if tax_credit:
            if helper.category_class.is_expense:
                category_add_income(
                    self.category_bucket(self.implied.tax_relief),
                    helper,
                    tax_credit,
                )
                basis_adjust_value(
                    self.basis_bucket(TaxBasisClass.VIRTUAL), helper, -tax_credit
                )
            else:
                category_add_expense(
                    self.category_bucket(self.implied.tax_credit),
                    helper,
                    tax_credit,
                )
                basis_adjust_value(
                    self.basis_bucket(TaxBasisClass.TAXPAID), helper, tax_credit
                )

        for value, implied, basis in (
            (
                helper.nat_insurance,
                self.implied.nat_insurance,
                TaxBasisClass.VIRTUAL,
            ),
            (
                helper.deemed_benefit,
                self.implied.deemed_benefit,
                TaxBasisClass.VIRTUAL,
            ),
            (
                helper.charity_donation,
                self.implied.charity_donation,
                TaxBasisClass.EXPENSE,
            ),
        ):
            if value:
                category_add_expense(self.category_bucket(implied), helper, value)
                basis_adjust_value(self.basis_bucket(basis), helper, value)

    def adjust_basis(
        self,
        helper: TransactionHelper,
        category_class: CategoryClass,
    ) -> None:
        mapping = TAX_BASIS_FOR_CLASS.get(category_class)
        if mapping is None:
            return
        basis, is_expense = mapping
        bucket = self.basis_bucket(basis)
        if is_expense:
            basis_add_expense_event(bucket, helper)
        else:
            basis_add_income_event(bucket, helper)

    def standard_gain(
        self,
        helper: TransactionHelper,
        security: Party,
        gains: Decimal,
    ) -> None:
        """Book a realised capital gain (or loss) on a holding."""
        if not security.is_capital_gains:
            return
        portfolio = security.parent
        if portfolio is not None and portfolio.tax_free:
            category = self.implied.tax_free_gains
            basis = TaxBasisClass.TAXFREE
        else:
            category = self.implied.capital_gains
            basis = TaxBasisClass.GROSSCAPITALGAINS
        bucket = self.category_bucket(category)
        if gains > 0:
            category_add_income(bucket, helper, gains)
        else:
            category_add_expense(bucket, helper, -gains)
        basis_adjust_value(self.basis_bucket(basis), helper, gains)

    def taxable_gain(
        self,
        helper: TransactionHelper,
        reduction: Decimal,
        gains: Decimal,
    ) -> None:
        """Book a life-bond chargeable gain net of the cost released."""
        bucket = self.category_bucket(self.implied.taxable_gains)
        category_subtract_income(bucket, helper, reduction)
        category_adjust_values(bucket, helper)

        tax_credit = helper.tax_credit or ZERO
        if tax_credit:
            category_add_expense(
                self.category_bucket(self.implied.tax_credit),
                helper,
                tax_credit,
            )
            basis_adjust_value(
                self.basis_bucket(TaxBasisClass.TAXPAID), helper, tax_credit
            )
        basis_add_taxable_gain(
            self.basis_bucket(TaxBasisClass.GROSSTAXABLEGAINS),
            helper,
            gains,
            tax_credit,
        )


__all__ = ["ImpliedCategories", "Bookings"]
