"""Configuration management for the finance tracker.

This module centralizes all configuration values including paths,
policy defaults, and environment variable overrides.  The engine itself
never reads these values implicitly; callers pass the resulting policy
objects into the pure functions explicitly.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imports for annotations only
    from .suggestions import RulePolicy
    from .trends import TrendThreshold

# Base project root - assumes this file is in finance_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Database
DB_PATH = Path(
    os.getenv("FINTRACK_DB_PATH", DATA_DIR / "finance.db")
).resolve()

# Display
CURRENCY_SYMBOL = os.getenv("FINTRACK_CURRENCY_SYMBOL", "$")

# Policy defaults
TREND_LOW = Decimal(os.getenv("FINTRACK_TREND_LOW", "100"))
TREND_HIGH = Decimal(os.getenv("FINTRACK_TREND_HIGH", "500"))
HIGH_SPEND_THRESHOLD = Decimal(os.getenv("FINTRACK_HIGH_SPEND", "1000"))
MIN_RECORD_COUNT = int(os.getenv("FINTRACK_MIN_RECORDS", "5"))
INSIGHT_WINDOW_DAYS = int(os.getenv("FINTRACK_INSIGHT_DAYS", "30"))

LOG_LEVEL = os.getenv("FINTRACK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts and local runs."""
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)


def default_trend_threshold() -> "TrendThreshold":
    """Trend thresholds built from the environment-aware defaults."""
    from .trends import TrendThreshold

    return TrendThreshold(low=TREND_LOW, high=TREND_HIGH)


def default_rule_policy() -> "RulePolicy":
    """Suggestion rule policy built from the environment-aware defaults."""
    from .suggestions import RulePolicy

    return RulePolicy(
        high_spend_threshold=HIGH_SPEND_THRESHOLD,
        min_record_count=MIN_RECORD_COUNT,
    )
