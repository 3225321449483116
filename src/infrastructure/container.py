"""Composition root for wiring infrastructure adapters."""

from src.application.ports.database import DatabaseEnginePort
from src.application.ports.ledger_repository import LedgerRepositoryPort
from src.application.use_cases.build_analysis import BuildAnalysisUseCase
from src.infrastructure.db import SqlAlchemyDatabaseEngineAdapter
from src.infrastructure.ledger_repository import SqlAlchemyLedgerRepository
from src.infrastructure.logging.logger import get_app_logger
from src.infrastructure.settings import AnalysisSettings


def build_database_adapter() -> DatabaseEnginePort:
    """Return the database adapter instance."""
    return SqlAlchemyDatabaseEngineAdapter()


def build_ledger_repository(
    db_port: DatabaseEnginePort | None = None,
) -> LedgerRepositoryPort:
    """Return the ledger repository."""
    resolved_db = db_port or build_database_adapter()
    return SqlAlchemyLedgerRepository(resolved_db)


def build_settings() -> AnalysisSettings:
    """Return analysis settings sourced from the environment."""
    return AnalysisSettings.from_env()


def build_analysis_use_case(
    repository: LedgerRepositoryPort | None = None,
    settings: AnalysisSettings | None = None,
) -> BuildAnalysisUseCase:
    """Return the use case that analyses the whole ledger."""
    resolved_settings = settings or build_settings()
    return BuildAnalysisUseCase(
        repository or build_ledger_repository(),
        check_closed_accounts=resolved_settings.check_closed_accounts,
        birth_date=resolved_settings.birth_date,
        logger=get_app_logger(),
    )


__all__ = [
    "build_database_adapter",
    "build_ledger_repository",
    "build_settings",
    "build_analysis_use_case",
]
