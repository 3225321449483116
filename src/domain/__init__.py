"""Domain package for the ledger analysis core."""

from .errors import AnalysisError, DataIntegrityError, LogicError

__all__ = ["AnalysisError", "DataIntegrityError", "LogicError"]
