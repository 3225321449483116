"""Settings helpers for infrastructure adapters."""

from dataclasses import dataclass
from datetime import date
import os

from src.application.use_cases.analysis_manager import DEFAULT_BIRTH_DATE
from src.infrastructure.logging.logger import get_app_logger

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AnalysisSettings:
    """Settings for running the ledger analysis.

    Attributes:
        check_closed_accounts: Fail when a closed account still holds value.
        birth_date: Taxpayer's date of birth, used for age allowances.
        currency: Label of the reporting currency.
    """

    check_closed_accounts: bool = True
    birth_date: date = DEFAULT_BIRTH_DATE
    currency: str = "GBP"

    @classmethod
    def from_env(cls) -> "AnalysisSettings":
        """Build settings from environment variables.

        Returns:
            AnalysisSettings: Settings sourced from environment variables.
        """
        logger = get_app_logger()
        check_closed = cls._parse_bool(
            os.getenv("LEDGER_CHECK_CLOSED_ACCOUNTS"),
            default=True,
            logger=logger,
        )
        birth_date = cls._parse_date(
            os.getenv("LEDGER_BIRTH_DATE"),
            default=DEFAULT_BIRTH_DATE,
            logger=logger,
        )
        currency = os.getenv("LEDGER_CURRENCY", "GBP").strip().upper() or "GBP"
        return cls(
            check_closed_accounts=check_closed,
            birth_date=birth_date,
            currency=currency,
        )

    @staticmethod
    def _parse_bool(raw: str | None, default: bool, logger) -> bool:
        """Interpret a boolean flag, falling back to ``default``.

        Args:
            raw: Raw environment value.
            default: Value used when unset or unrecognised.
            logger: Logger used for warnings.

        Returns:
            bool: Parsed flag.
        """
        if raw is None or not raw.strip():
            return default
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        logger.warning(
            f"Invalid boolean '{raw}' for LEDGER_CHECK_CLOSED_ACCOUNTS; "
            f"using {default}."
        )
        return default

    @staticmethod
    def _parse_date(raw: str | None, default: date, logger) -> date:
        if not raw:
            return default
        try:
            return date.fromisoformat(raw.strip())
        except ValueError:
            logger.warning(
                f"Invalid date '{raw}' for LEDGER_BIRTH_DATE. "
                "Expected format YYYY-MM-DD."
            )
            return default


__all__ = ["AnalysisSettings"]
