"""SQLAlchemy-backed repository loading the ledger for analysis."""

from datetime import date, datetime

from sqlalchemy import text

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.ledger_repository import (
    LedgerRepositoryPort,
    LedgerSnapshot,
)
from src.domain.models.ledger import (
    CategoryClass,
    Party,
    PartyClass,
    Transaction,
    TransactionCategory,
)
from src.domain.models.tax import TaxRegime, TaxYear
from src.domain.services.pricing import DepositRate, SecurityPrice
from src.utils.decimal_utils import coerce_decimal, coerce_optional_decimal

_TAX_YEAR_AMOUNTS = (
    "allowance",
    "rental_allowance",
    "lo_band",
    "basic_band",
    "capital_allowance",
    "lo_age_allowance",
    "hi_age_allowance",
    "age_allowance_limit",
    "add_allowance_limit",
    "add_income_boundary",
)
_TAX_YEAR_RATES = (
    "lo_tax_rate",
    "basic_tax_rate",
    "hi_tax_rate",
    "int_tax_rate",
    "div_tax_rate",
    "hi_div_tax_rate",
    "add_tax_rate",
    "add_div_tax_rate",
    "cap_tax_rate",
    "hi_cap_tax_rate",
)


def _coerce_date(value) -> date | None:
    """Normalize SQL date values, which some drivers return as text."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class SqlAlchemyLedgerRepository(LedgerRepositoryPort):
    """Repository reading the ledger tables through SQLAlchemy."""

    def __init__(self, db_port: DatabaseEnginePort) -> None:
        """Initialize the repository.

        Args:
            db_port: Port providing access to the ledger engine.
        """
        self._db_port = db_port

    def load_snapshot(self) -> LedgerSnapshot:
        """Return the full ledger with its reference data.

        Raises:
            RuntimeError: A row references a party or category that does
                not exist.
        """
        engine = self._db_port.get_ledger_engine()
        with engine.connect() as conn:
            category_rows = conn.execute(
                text(
                    """
                    SELECT id, name, category_class, parent_id
                    FROM categories
                    ORDER BY id
                    """
                )
            ).all()
            party_rows = conn.execute(
                text(
                    """
                    SELECT id, name, party_class, parent_id, closed,
                           auto_expense_id, tax_free, gross_interest,
                           opening_balance
                    FROM parties
                    ORDER BY id
                    """
                )
            ).all()
            transaction_rows = conn.execute(
                text(
                    """
                    SELECT id, date, amount, debit_id, credit_id, category_id,
                           third_party_id, tax_credit, nat_insurance,
                           deemed_benefit, charity_donation, debit_units,
                           credit_units, dilution, years, deleted
                    FROM transactions
                    ORDER BY date, id
                    """
                )
            ).all()
            price_rows = conn.execute(
                text(
                    """
                    SELECT security_id, date, price
                    FROM security_prices
                    ORDER BY security_id, date
                    """
                )
            ).all()
            rate_rows = conn.execute(
                text(
                    """
                    SELECT deposit_id, rate, bonus, end_date
                    FROM deposit_rates
                    ORDER BY deposit_id, end_date
                    """
                )
            ).all()
            tax_year_rows = conn.execute(
                text("SELECT * FROM tax_years ORDER BY year_end")
            ).all()

        categories = self._build_categories(category_rows)
        parties = self._build_parties(party_rows, categories)
        return LedgerSnapshot(
            parties=tuple(parties.values()),
            categories=tuple(categories.values()),
            transactions=tuple(
                self._build_transaction(row, parties, categories)
                for row in transaction_rows
            ),
            prices=tuple(
                SecurityPrice(
                    security_id=row.security_id,
                    date=_coerce_date(row.date),
                    price=coerce_decimal(row.price),
                )
                for row in price_rows
            ),
            rates=tuple(
                DepositRate(
                    deposit_id=row.deposit_id,
                    rate=coerce_decimal(row.rate),
                    bonus=coerce_optional_decimal(row.bonus),
                    end_date=_coerce_date(row.end_date),
                )
                for row in rate_rows
            ),
            tax_years=tuple(self._build_tax_year(row) for row in tax_year_rows),
        )

    @staticmethod
    def _build_categories(rows) -> dict[int, TransactionCategory]:
        """Build categories so that every parent exists before its children."""
        by_id = {row.id: row for row in rows}
        built: dict[int, TransactionCategory] = {}

        def build(category_id: int) -> TransactionCategory:
            category = built.get(category_id)
            if category is not None:
                return category
            row = by_id.get(category_id)
            if row is None:
                raise RuntimeError(f"Unknown category id {category_id}")
            parent = None
            if row.parent_id is not None:
                parent = build(row.parent_id)
            category = TransactionCategory(
                id=row.id,
                name=row.name,
                category_class=CategoryClass(row.category_class),
                parent=parent,
            )
            built[category_id] = category
            return category

        for row in rows:
            build(row.id)
        return {row.id: built[row.id] for row in rows}

    @staticmethod
    def _build_parties(
        rows,
        categories: dict[int, TransactionCategory],
    ) -> dict[int, Party]:
        by_id = {row.id: row for row in rows}
        built: dict[int, Party] = {}

        def build(party_id: int) -> Party:
            party = built.get(party_id)
            if party is not None:
                return party
            row = by_id.get(party_id)
            if row is None:
                raise RuntimeError(f"Unknown party id {party_id}")
            parent = None
            if row.parent_id is not None:
                parent = build(row.parent_id)
            auto_expense = None
            if row.auto_expense_id is not None:
                auto_expense = categories.get(row.auto_expense_id)
                if auto_expense is None:
                    raise RuntimeError(
                        f"Unknown category id {row.auto_expense_id}"
                    )
            party = Party(
                id=row.id,
                name=row.name,
                party_class=PartyClass(row.party_class),
                parent=parent,
                closed=bool(row.closed),
                auto_expense=auto_expense,
                tax_free=bool(row.tax_free),
                gross_interest=bool(row.gross_interest),
                opening_balance=coerce_optional_decimal(row.opening_balance),
            )
            built[party_id] = party
            return party

        for row in rows:
            build(row.id)
        return {row.id: built[row.id] for row in rows}

    @staticmethod
    def _build_transaction(
        row,
        parties: dict[int, Party],
        categories: dict[int, TransactionCategory],
    ) -> Transaction:
        def party(party_id: int | None) -> Party | None:
            if party_id is None:
                return None
            found = parties.get(party_id)
            if found is None:
                raise RuntimeError(
                    f"Transaction {row.id} references unknown party {party_id}"
                )
            return found

        category = categories.get(row.category_id)
        if category is None:
            raise RuntimeError(
                f"Transaction {row.id} references unknown category "
                f"{row.category_id}"
            )
        return Transaction(
            id=row.id,
            date=_coerce_date(row.date),
            amount=coerce_decimal(row.amount),
            debit=party(row.debit_id),
            credit=party(row.credit_id),
            category=category,
            third_party=party(row.third_party_id),
            tax_credit=coerce_optional_decimal(row.tax_credit),
            nat_insurance=coerce_optional_decimal(row.nat_insurance),
            deemed_benefit=coerce_optional_decimal(row.deemed_benefit),
            charity_donation=coerce_optional_decimal(row.charity_donation),
            debit_units=coerce_optional_decimal(row.debit_units),
            credit_units=coerce_optional_decimal(row.credit_units),
            dilution=coerce_optional_decimal(row.dilution),
            years=row.years,
            deleted=bool(row.deleted),
        )

    @staticmethod
    def _build_tax_year(row) -> TaxYear:
        values = row._mapping
        amounts = {
            name: coerce_decimal(values.get(name)) for name in _TAX_YEAR_AMOUNTS
        }
        rates = {
            name: coerce_optional_decimal(values.get(name))
            for name in _TAX_YEAR_RATES
        }
        return TaxYear(
            year_end=_coerce_date(values["year_end"]),
            regime=TaxRegime(values["regime"]),
            **amounts,
            **rates,
        )


__all__ = ["SqlAlchemyLedgerRepository"]
