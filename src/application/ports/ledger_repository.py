"""Application port for loading the ledger handed to the analysis core."""

from dataclasses import dataclass
from typing import Protocol

from src.domain.models.ledger import Party, Transaction, TransactionCategory
from src.domain.models.tax import TaxYear
from src.domain.services.pricing import DepositRate, SecurityPrice


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything the analysis needs, already validated.

    Attributes:
        parties: Accounts, holdings and payees.
        categories: Transaction categories, parents before children.
        transactions: Transactions in date order.
        prices: Security price quotes.
        rates: Deposit interest rates.
        tax_years: Tax-year rule sets.
    """

    parties: tuple[Party, ...] = ()
    categories: tuple[TransactionCategory, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    prices: tuple[SecurityPrice, ...] = ()
    rates: tuple[DepositRate, ...] = ()
    tax_years: tuple[TaxYear, ...] = ()


class LedgerRepositoryPort(Protocol):
    """Port exposing read access to the ledger."""

    def load_snapshot(self) -> LedgerSnapshot:
        """Return the full ledger with its reference data."""


__all__ = ["LedgerSnapshot", "LedgerRepositoryPort"]
