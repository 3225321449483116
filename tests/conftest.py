"""Shared in-memory ledger used across the test suite."""

from datetime import date
from decimal import Decimal
from itertools import count
from unittest.mock import MagicMock

import pytest

from src.application.ports.ledger_repository import LedgerSnapshot
from src.domain.models.analysis import Analysis
from src.domain.models.ledger import (
    CategoryClass,
    DateRange,
    Party,
    PartyClass,
    Transaction,
    TransactionCategory,
)
from src.domain.services.bookings import ImpliedCategories
from src.domain.services.pricing import (
    DepositRateMap,
    SecurityPrice,
    SecurityPriceMap,
)
from src.domain.services.transaction_analyser import TransactionAnalyser

_MONEY_FIELDS = frozenset(
    {
        "tax_credit",
        "nat_insurance",
        "deemed_benefit",
        "charity_donation",
        "debit_units",
        "credit_units",
        "dilution",
    }
)


class LedgerBook:
    """One category per class plus a handful of everyday parties."""

    def __init__(self) -> None:
        self._party_ids = count(100)
        self._transaction_ids = count(1)
        self.income_parent = TransactionCategory(1, "Income", CategoryClass.TAXEDINCOME)
        self.categories: dict[CategoryClass, TransactionCategory] = {}
        for category_id, category_class in enumerate(CategoryClass, start=2):
            parent = None
            if category_class is CategoryClass.TAXEDINCOME:
                parent = self.income_parent
            self.categories[category_class] = TransactionCategory(
                category_id,
                category_class.value.title(),
                category_class,
                parent,
            )
        self.parties: list[Party] = []
        self.transactions: list[Transaction] = []
        self.prices: list[SecurityPrice] = []

        self.tax_man = self.party("HMRC", PartyClass.TAXMAN)
        self.employer = self.party("Employer", PartyClass.EMPLOYER)
        self.shop = self.party("Shop", PartyClass.PAYEE)
        self.bank = self.party("Bank", PartyClass.PAYEE)
        self.current = self.party(
            "Current",
            PartyClass.CURRENT,
            parent=self.bank,
            opening_balance=Decimal("1000"),
        )
        self.savings = self.party("Savings", PartyClass.SAVINGS, parent=self.bank)
        self.portfolio = self.party("Broker", PartyClass.PORTFOLIO)
        self.insurer = self.party("Insurer", PartyClass.PAYEE)

    def category(self, category_class: CategoryClass) -> TransactionCategory:
        return self.categories[category_class]

    def party(self, name: str, party_class: PartyClass, **kwargs) -> Party:
        party = Party(next(self._party_ids), name, party_class, **kwargs)
        self.parties.append(party)
        return party

    def holding(self, name: str, party_class=PartyClass.SHARES, **kwargs) -> Party:
        kwargs.setdefault("parent", self.portfolio)
        return self.party(name, party_class, **kwargs)

    def tx(
        self,
        day: date,
        amount,
        debit: Party,
        credit: Party,
        category_class: CategoryClass,
        **kwargs,
    ) -> Transaction:
        for name in _MONEY_FIELDS.intersection(kwargs):
            kwargs[name] = Decimal(str(kwargs[name]))
        transaction = Transaction(
            next(self._transaction_ids),
            day,
            Decimal(str(amount)),
            debit,
            credit,
            self.category(category_class),
            **kwargs,
        )
        self.transactions.append(transaction)
        return transaction

    def price(self, security: Party, day: date, price) -> None:
        self.prices.append(SecurityPrice(security.id, day, Decimal(str(price))))

    def implied(self) -> ImpliedCategories:
        category = self.category
        return ImpliedCategories(
            tax_credit=category(CategoryClass.TAXCREDIT),
            nat_insurance=category(CategoryClass.NATINSURANCE),
            deemed_benefit=category(CategoryClass.DEEMEDBENEFIT),
            charity_donation=category(CategoryClass.CHARITYDONATION),
            tax_relief=category(CategoryClass.TAXRELIEF),
            capital_gains=category(CategoryClass.CAPITALGAIN),
            tax_free_gains=category(CategoryClass.TAXFREEGAIN),
            taxable_gains=category(CategoryClass.TAXABLEGAIN),
            taxed_interest=category(CategoryClass.TAXEDINTEREST),
            gross_interest=category(CategoryClass.GROSSINTEREST),
            tax_free_interest=category(CategoryClass.TAXFREEINTEREST),
            share_dividend=category(CategoryClass.SHAREDIVIDEND),
            unit_trust_dividend=category(CategoryClass.UNITTRUSTDIVIDEND),
            tax_free_dividend=category(CategoryClass.TAXFREEDIVIDEND),
        )

    def all_categories(self) -> tuple[TransactionCategory, ...]:
        return (self.income_parent, *self.categories.values())

    def snapshot(self, tax_years=()) -> LedgerSnapshot:
        return LedgerSnapshot(
            parties=tuple(self.parties),
            categories=self.all_categories(),
            transactions=tuple(self.transactions),
            prices=tuple(self.prices),
            tax_years=tuple(tax_years),
        )

    def analyse(self, logger=None) -> Analysis:
        """Run the analyser over the book and produce totals."""
        logger = logger or MagicMock()
        analysis = Analysis(
            DateRange(),
            SecurityPriceMap(self.prices),
            DepositRateMap(),
        )
        analyser = TransactionAnalyser(analysis, self.implied(), self.tax_man, logger)
        analyser.seed_opening_balances(self.parties)
        analyser.analyse(self.transactions)
        analysis.produce_totals(logger)
        return analysis


@pytest.fixture
def book() -> LedgerBook:
    return LedgerBook()


@pytest.fixture
def logger() -> MagicMock:
    return MagicMock()
