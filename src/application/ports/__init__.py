"""Application ports package."""

from .database import DatabaseEnginePort
from .ledger_repository import LedgerRepositoryPort, LedgerSnapshot

__all__ = [
    "DatabaseEnginePort",
    "LedgerRepositoryPort",
    "LedgerSnapshot",
]
