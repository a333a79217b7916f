"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from core.finance import FinancingAssumptions


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults. Malformed
    numeric values raise ValueError from ``load()``.
    """

    # Storage
    data_dir: str = field(
        default_factory=lambda: os.getenv("PARCEL_SCOUT_DATA_DIR", "./data")
    )
    reports_dir: str = field(default_factory=lambda: os.getenv("REPORTS_DIR", "./reports"))

    # Region benchmark feed (URL or local path; empty disables)
    region_stats_source: Optional[str] = field(
        default_factory=lambda: os.getenv("REGION_STATS_SOURCE") or None
    )
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "30")))

    # Financing defaults for multi-unit records
    default_down_percent: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_DOWN_PERCENT", "25"))
    )
    default_rate_percent: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_RATE_PERCENT", "6.5"))
    )
    default_term_years: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_TERM_YEARS", "30"))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "WARNING").upper())

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def financing(self) -> FinancingAssumptions:
        return FinancingAssumptions(
            down_percent=self.default_down_percent,
            rate_percent=self.default_rate_percent,
            term_years=self.default_term_years,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "data_dir": self.data_dir,
            "reports_dir": self.reports_dir,
            "region_stats_source": self.region_stats_source,
            "request_timeout": self.request_timeout,
            "default_down_percent": self.default_down_percent,
            "default_rate_percent": self.default_rate_percent,
            "default_term_years": self.default_term_years,
            "log_level": self.log_level,
        }
