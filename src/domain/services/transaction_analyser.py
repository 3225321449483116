"""Transaction analyser: fills a full Analysis from the ledger stream."""

from logging import Logger
from typing import Iterable

from src.domain.models.analysis import Analysis
from src.domain.models.ledger import (
    CategoryClass,
    Party,
    Transaction,
    TransactionHelper,
)
from src.domain.services.account_buckets import set_opening_balance
from src.domain.services.bookings import Bookings, ImpliedCategories
from src.domain.services.security_events import SecurityEventAnalyser

_RENTAL_CLASSES = frozenset(
    {CategoryClass.RENTALINCOME, CategoryClass.ROOMRENTALINCOME}
)
_PARENT_CREDIT_CLASSES = frozenset(
    {CategoryClass.WRITEOFF, CategoryClass.LOANINTERESTCHARGED}
)


class TransactionAnalyser:
    """Routes each ledger transaction into the buckets it affects.

    Transactions touching a holding go through the security workings; all
    others go through the standard path, which redirects interest, rental
    and write-off transactions to the owning party and books side amounts
    to the implied categories.

    Args:
        analysis: Empty analysis to fill.
        implied: Categories for tax credit, NI, benefit, donations and gains.
        tax_man: Payee receiving tax and national insurance.
        logger: Logger for progress messages.
    """

    def __init__(
        self,
        analysis: Analysis,
        implied: ImpliedCategories,
        tax_man: Party,
        logger: Logger,
    ) -> None:
        self._analysis = analysis
        self._logger = logger
        self._bookings = Bookings(analysis, implied, tax_man)
        self._securities = SecurityEventAnalyser(self._bookings)

    @property
    def analysis(self) -> Analysis:
        return self._analysis

    def seed_opening_balances(self, parties: Iterable[Party]) -> int:
        """Create account buckets carrying an opening balance.

        Returns:
            int: Number of accounts seeded.
        """
        seeded = 0
        for party in parties:
            if party.opening_balance is None:
                continue
            if party.is_payee or party.has_units:
                continue
            set_opening_balance(
                self._bookings.account_bucket(party),
                party.opening_balance,
            )
            seeded += 1
        return seeded

    def analyse(self, transactions: Iterable[Transaction]) -> Analysis:
        """Analyse a date-ordered transaction stream.

        Dilution events are collected first so that price lookups made by
        earlier transactions already see later dilutions. Deleted
        transactions are skipped.

        Returns:
            Analysis: The filled analysis.
        """
        live = [tx for tx in transactions if not tx.deleted]
        for transaction in live:
            if transaction.dilution is not None:
                self._analysis.dilutions.add_dilution(transaction)
        self._logger.info(
            f"Analysing {len(live)} transactions "
            f"({len(self._analysis.dilutions)} dilution events)"
        )
        for transaction in live:
            self.process_transaction(transaction)
        return self._analysis

    def process_transaction(self, transaction: Transaction) -> None:
        helper = TransactionHelper.of(transaction)
        if transaction.touches_security:
            self._securities.process(helper)
        else:
            self._process_standard(helper)

    def _process_standard(self, helper: TransactionHelper) -> None:
        bookings = self._bookings
        transaction = helper.transaction
        category = transaction.category
        category_class = category.category_class
        debit, credit = helper.debit, helper.credit
        child = None

        if category_class is CategoryClass.INTEREST:
            category = bookings.implied.interest_category(category, debit)
            if debit.id != credit.id:
                child = debit
            helper = helper.resolve(debit=debit.parent)
        elif category_class is CategoryClass.LOANINTERESTEARNED:
            helper = helper.resolve(debit=debit.parent)
        elif category_class in _RENTAL_CLASSES:
            if debit.id != credit.id:
                child = debit
            helper = helper.resolve(debit=credit.parent)
        elif category_class in _PARENT_CREDIT_CLASSES:
            helper = helper.resolve(credit=credit.parent)

        if helper.debit.auto_expense is not None:
            bookings.auto_expense(helper, helper.debit, is_expense=False)
        else:
            bookings.debit_party(helper)
        if helper.credit.auto_expense is not None:
            bookings.auto_expense(helper, helper.credit, is_expense=True)
        else:
            bookings.credit_party(helper)

        if child is not None:
            bookings.register_child(helper, child)
        bookings.tax_payments(helper)
        if not category.is_transfer:
            bookings.adjust_categories(helper, category)


__all__ = ["TransactionAnalyser", "ImpliedCategories"]
