"""Input records consumed by the analysis core.

These are the already-validated ledger items handed over by the persistence
layer: parties (accounts, holdings and payees), transaction categories and
the date-ordered transactions themselves.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum


class PartyClass(Enum):
    """Classification of a ledger party."""

    CURRENT = "current"
    SAVINGS = "savings"
    CASH = "cash"
    CREDITCARD = "creditcard"
    LOAN = "loan"
    SHARES = "shares"
    UNITTRUST = "unittrust"
    LIFEBOND = "lifebond"
    PORTFOLIO = "portfolio"
    PAYEE = "payee"
    EMPLOYER = "employer"
    TAXMAN = "taxman"

    @property
    def has_units(self) -> bool:
        return self in _UNIT_CLASSES

    @property
    def is_payee(self) -> bool:
        return self in _PAYEE_CLASSES

    @property
    def is_deposit(self) -> bool:
        return self in (PartyClass.CURRENT, PartyClass.SAVINGS)

    @property
    def is_capital_gains(self) -> bool:
        return self in (PartyClass.SHARES, PartyClass.UNITTRUST)


_UNIT_CLASSES = frozenset(
    {PartyClass.SHARES, PartyClass.UNITTRUST, PartyClass.LIFEBOND}
)
_PAYEE_CLASSES = frozenset(
    {
        PartyClass.PORTFOLIO,
        PartyClass.PAYEE,
        PartyClass.EMPLOYER,
        PartyClass.TAXMAN,
    }
)


class CategoryClass(Enum):
    """Behavioural class of a transaction category."""

    # Income
    TAXEDINCOME = "taxedincome"
    BENEFITINCOME = "benefitincome"
    GRANTINCOME = "grantincome"
    GIFTEDINCOME = "giftedincome"
    INHERITED = "inherited"
    OTHERINCOME = "otherincome"
    INTEREST = "interest"
    TAXEDINTEREST = "taxedinterest"
    GROSSINTEREST = "grossinterest"
    TAXFREEINTEREST = "taxfreeinterest"
    DIVIDEND = "dividend"
    SHAREDIVIDEND = "sharedividend"
    UNITTRUSTDIVIDEND = "unittrustdividend"
    TAXFREEDIVIDEND = "taxfreedividend"
    RENTALINCOME = "rentalincome"
    ROOMRENTALINCOME = "roomrentalincome"
    LOANINTERESTEARNED = "loaninterestearned"
    TAXRELIEF = "taxrelief"
    CAPITALGAIN = "capitalgain"
    TAXFREEGAIN = "taxfreegain"
    TAXABLEGAIN = "taxablegain"
    # Expense
    EXPENSE = "expense"
    LOCALTAXES = "localtaxes"
    WRITEOFF = "writeoff"
    LOANINTERESTCHARGED = "loaninterestcharged"
    CHARITYDONATION = "charitydonation"
    TAXSETTLEMENT = "taxsettlement"
    TAXCREDIT = "taxcredit"
    NATINSURANCE = "natinsurance"
    DEEMEDBENEFIT = "deemedbenefit"
    # Transfer
    TRANSFER = "transfer"
    STOCKSPLIT = "stocksplit"
    STOCKADJUST = "stockadjust"
    STOCKRIGHTSTAKEN = "stockrightstaken"
    STOCKRIGHTSWAIVED = "stockrightswaived"
    STOCKDEMERGER = "stockdemerger"
    STOCKTAKEOVER = "stocktakeover"

    @property
    def is_expense(self) -> bool:
        return self in _EXPENSE_CLASSES

    @property
    def is_transfer(self) -> bool:
        return self in _TRANSFER_CLASSES

    @property
    def is_income(self) -> bool:
        return not self.is_expense and not self.is_transfer


_EXPENSE_CLASSES = frozenset(
    {
        CategoryClass.EXPENSE,
        CategoryClass.LOCALTAXES,
        CategoryClass.WRITEOFF,
        CategoryClass.LOANINTERESTCHARGED,
        CategoryClass.CHARITYDONATION,
        CategoryClass.TAXSETTLEMENT,
        CategoryClass.TAXCREDIT,
        CategoryClass.NATINSURANCE,
        CategoryClass.DEEMEDBENEFIT,
    }
)
_TRANSFER_CLASSES = frozenset(
    {
        CategoryClass.TRANSFER,
        CategoryClass.STOCKSPLIT,
        CategoryClass.STOCKADJUST,
        CategoryClass.STOCKRIGHTSTAKEN,
        CategoryClass.STOCKRIGHTSWAIVED,
        CategoryClass.STOCKDEMERGER,
        CategoryClass.STOCKTAKEOVER,
    }
)


class TransactionType(Enum):
    """Economic nature of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

    @property
    def is_income(self) -> bool:
        return self is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self is TransactionType.EXPENSE


class Direction(Enum):
    """Whether money moves towards a payee or away from one."""

    TO = "to"
    FROM = "from"

    @property
    def is_to(self) -> bool:
        return self is Direction.TO

    @property
    def is_from(self) -> bool:
        return self is Direction.FROM


@dataclass(frozen=True)
class TransactionCategory:
    """Category assigned to a transaction.

    Attributes:
        id: Unique category identifier.
        name: Display name, ``Parent:Child`` style for sub-categories.
        category_class: Behavioural class.
        parent: Parent category, ``None`` for top-level categories.
    """

    id: int
    name: str
    category_class: CategoryClass
    parent: "TransactionCategory | None" = None

    @property
    def is_transfer(self) -> bool:
        return self.category_class.is_transfer


@dataclass(frozen=True)
class Party:
    """Account, holding or payee referenced by transactions.

    Attributes:
        id: Unique identifier across all parties.
        name: Display name.
        party_class: Classification driving bucket routing.
        parent: Owning party (bank of a deposit, portfolio of a holding).
        closed: Whether the party has been closed.
        auto_expense: Category booked directly when paying this payee.
        tax_free: Tax-free wrapper (ISA deposit or portfolio).
        gross_interest: Deposit paying interest without deduction.
        opening_balance: Balance carried in before the first transaction.
    """

    id: int
    name: str
    party_class: PartyClass
    parent: "Party | None" = None
    closed: bool = False
    auto_expense: TransactionCategory | None = None
    tax_free: bool = False
    gross_interest: bool = False
    opening_balance: Decimal | None = None

    @property
    def has_units(self) -> bool:
        return self.party_class.has_units

    @property
    def is_payee(self) -> bool:
        return self.party_class.is_payee

    @property
    def is_life_bond(self) -> bool:
        return self.party_class is PartyClass.LIFEBOND

    @property
    def is_capital_gains(self) -> bool:
        return self.party_class.is_capital_gains


@dataclass(frozen=True)
class Transaction:
    """A single validated ledger transaction.

    Optional money fields are ``None`` when absent; a zero amount and a
    missing amount are not interchangeable for the stock-event workings.
    """

    id: int
    date: date
    amount: Decimal
    debit: Party
    credit: Party
    category: TransactionCategory
    third_party: Party | None = None
    tax_credit: Decimal | None = None
    nat_insurance: Decimal | None = None
    deemed_benefit: Decimal | None = None
    charity_donation: Decimal | None = None
    debit_units: Decimal | None = None
    credit_units: Decimal | None = None
    dilution: Decimal | None = None
    years: int | None = None
    deleted: bool = False

    @property
    def category_class(self) -> CategoryClass:
        return self.category.category_class

    @property
    def touches_security(self) -> bool:
        return self.debit.has_units or self.credit.has_units


def derive_transaction_type(debit: Party, credit: Party) -> TransactionType:
    """Classify a movement between two parties.

    Args:
        debit: Party the money leaves.
        credit: Party the money reaches.

    Returns:
        TransactionType: Income from a payee, expense to a payee, else transfer.
    """
    if debit.is_payee and not credit.is_payee:
        return TransactionType.INCOME
    if credit.is_payee and not debit.is_payee:
        return TransactionType.EXPENSE
    return TransactionType.TRANSFER


@dataclass(frozen=True)
class TransactionHelper:
    """A transaction together with its resolved debit and credit parties.

    The analyser redirects some transactions (interest, rentals, write-offs)
    to the parent of the party that appears on the ledger; all bucket
    mutators work against the resolved parties.
    """

    transaction: Transaction
    debit: Party
    credit: Party

    @classmethod
    def of(cls, transaction: Transaction) -> "TransactionHelper":
        return cls(transaction, transaction.debit, transaction.credit)

    def resolve(
        self,
        debit: Party | None = None,
        credit: Party | None = None,
    ) -> "TransactionHelper":
        return replace(
            self,
            debit=debit or self.debit,
            credit=credit or self.credit,
        )

    @property
    def date(self) -> date:
        return self.transaction.date

    @property
    def amount(self) -> Decimal:
        return self.transaction.amount

    @property
    def tax_credit(self) -> Decimal | None:
        return self.transaction.tax_credit

    @property
    def nat_insurance(self) -> Decimal | None:
        return self.transaction.nat_insurance

    @property
    def deemed_benefit(self) -> Decimal | None:
        return self.transaction.deemed_benefit

    @property
    def charity_donation(self) -> Decimal | None:
        return self.transaction.charity_donation

    @property
    def category_class(self) -> CategoryClass:
        return self.transaction.category_class

    @property
    def transaction_type(self) -> TransactionType:
        return derive_transaction_type(self.debit, self.credit)

    @property
    def category_type(self) -> TransactionType:
        category_class = self.category_class
        if category_class.is_expense:
            return TransactionType.EXPENSE
        if category_class.is_transfer:
            return TransactionType.TRANSFER
        return TransactionType.INCOME

    @property
    def direction(self) -> Direction:
        if self.credit.is_payee and not self.debit.is_payee:
            return Direction.TO
        return Direction.FROM


@dataclass(frozen=True)
class DateRange:
    """Half-open date range ``[start, end)``.

    Either bound may be ``None`` for an open-ended range.
    """

    start: date | None = None
    end: date | None = None

    def __contains__(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day >= self.end:
            return False
        return True

    @property
    def last_day(self) -> date | None:
        """Return the last date included in the range."""
        if self.end is None:
            return None
        return self.end - timedelta(days=1)

    def __str__(self) -> str:
        start = self.start.isoformat() if self.start else "..."
        end = self.end.isoformat() if self.end else "..."
        return f"[{start}, {end})"


__all__ = [
    "PartyClass",
    "CategoryClass",
    "TransactionType",
    "Direction",
    "TransactionCategory",
    "Party",
    "Transaction",
    "TransactionHelper",
    "DateRange",
    "derive_transaction_type",
]
