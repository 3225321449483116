"""Use case to analyse the whole ledger and serve views over it."""

from datetime import date

from src.application.ports.ledger_repository import (
    LedgerRepositoryPort,
    LedgerSnapshot,
)
from src.application.use_cases.analysis_invariants import check_reconciliation
from src.application.use_cases.analysis_manager import (
    DEFAULT_BIRTH_DATE,
    AnalysisManager,
)
from src.domain.errors import AnalysisError
from src.domain.models.analysis import Analysis
from src.domain.models.events import DilutionEventList
from src.domain.models.ledger import (
    CategoryClass,
    DateRange,
    Party,
    PartyClass,
    TransactionCategory,
)
from src.domain.services.pricing import DepositRateMap, SecurityPriceMap
from src.domain.services.transaction_analyser import (
    ImpliedCategories,
    TransactionAnalyser,
)
from src.infrastructure.logging.logger import get_app_logger

_REQUIRED_CATEGORIES = {
    "tax_credit": CategoryClass.TAXCREDIT,
    "nat_insurance": CategoryClass.NATINSURANCE,
    "deemed_benefit": CategoryClass.DEEMEDBENEFIT,
    "charity_donation": CategoryClass.CHARITYDONATION,
    "tax_relief": CategoryClass.TAXRELIEF,
    "capital_gains": CategoryClass.CAPITALGAIN,
    "tax_free_gains": CategoryClass.TAXFREEGAIN,
    "taxable_gains": CategoryClass.TAXABLEGAIN,
}
_DETAILED_CATEGORIES = {
    "taxed_interest": CategoryClass.TAXEDINTEREST,
    "gross_interest": CategoryClass.GROSSINTEREST,
    "tax_free_interest": CategoryClass.TAXFREEINTEREST,
    "share_dividend": CategoryClass.SHAREDIVIDEND,
    "unit_trust_dividend": CategoryClass.UNITTRUSTDIVIDEND,
    "tax_free_dividend": CategoryClass.TAXFREEDIVIDEND,
}


def resolve_implied_categories(
    categories: tuple[TransactionCategory, ...],
) -> ImpliedCategories:
    """Pick the first category of each implied class.

    Raises:
        AnalysisError: A required implied category is missing.
    """
    by_class: dict[CategoryClass, TransactionCategory] = {}
    for category in categories:
        by_class.setdefault(category.category_class, category)

    required = {}
    for name, category_class in _REQUIRED_CATEGORIES.items():
        category = by_class.get(category_class)
        if category is None:
            raise AnalysisError(
                f"No category of class {category_class.value} is defined"
            )
        required[name] = category
    detailed = {
        name: by_class.get(category_class)
        for name, category_class in _DETAILED_CATEGORIES.items()
    }
    return ImpliedCategories(**required, **detailed)


def resolve_tax_man(parties: tuple[Party, ...]) -> Party:
    """Return the payee that tax and national insurance are paid to.

    Raises:
        AnalysisError: No tax-man payee is defined.
    """
    for party in parties:
        if party.party_class is PartyClass.TAXMAN:
            return party
    raise AnalysisError("No tax-man payee is defined")


class BuildAnalysisUseCase:
    """Load the ledger, analyse it and return a manager over the result."""

    def __init__(
        self,
        repository: LedgerRepositoryPort,
        check_closed_accounts: bool = True,
        birth_date: date = DEFAULT_BIRTH_DATE,
        logger=None,
    ) -> None:
        """Initialize the use case.

        Args:
            repository: Port providing the validated ledger.
            check_closed_accounts: Fail when a closed account still holds value.
            birth_date: Taxpayer's date of birth for age allowances.
            logger: Optional logger compatible with logging.Logger-like API.
        """
        self._repository = repository
        self._check_closed = check_closed_accounts
        self._birth_date = birth_date
        self._logger = logger or get_app_logger()

    def execute(self) -> AnalysisManager:
        """Build the full analysis.

        Returns:
            AnalysisManager: Entry point for dated and ranged views.

        Raises:
            DataIntegrityError: A closed account or holding still holds value.
            LogicError: A holding transaction has an unsupported category.
        """
        snapshot = self._repository.load_snapshot()
        self._logger.info(
            f"Loaded ledger: {len(snapshot.parties)} parties, "
            f"{len(snapshot.transactions)} transactions"
        )
        analysis = self.analyse(snapshot)
        check_reconciliation(analysis, self._logger)
        self._logger.info("Ledger analysis complete")
        return AnalysisManager(
            analysis,
            tax_years=snapshot.tax_years,
            birth_date=self._birth_date,
            logger=self._logger,
        )

    def analyse(self, snapshot: LedgerSnapshot) -> Analysis:
        """Run the transaction analyser over a snapshot and total the result."""
        prices = SecurityPriceMap(snapshot.prices, DilutionEventList())
        analysis = Analysis(DateRange(), prices, DepositRateMap(snapshot.rates))
        analyser = TransactionAnalyser(
            analysis,
            resolve_implied_categories(snapshot.categories),
            resolve_tax_man(snapshot.parties),
            self._logger,
        )
        analyser.seed_opening_balances(snapshot.parties)
        analyser.analyse(snapshot.transactions)

        analysis.accounts.mark_active(self._check_closed, self._logger)
        analysis.securities.mark_active(self._check_closed, self._logger)
        analysis.produce_totals(self._logger)
        return analysis


__all__ = [
    "BuildAnalysisUseCase",
    "resolve_implied_categories",
    "resolve_tax_man",
]
