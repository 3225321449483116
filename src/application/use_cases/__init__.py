"""Application use cases package."""

from .analysis_invariants import ReconciliationIssue, check_reconciliation
from .analysis_manager import AnalysisManager
from .build_analysis import BuildAnalysisUseCase

__all__ = [
    "AnalysisManager",
    "BuildAnalysisUseCase",
    "ReconciliationIssue",
    "check_reconciliation",
]
