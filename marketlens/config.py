"""Configuration management using pydantic-settings."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    Only window sizes and tolerances live here. Classification thresholds
    are fixed constants in the engines.
    """

    # Logging
    log_level: str = "INFO"

    # Level engine
    swing_lookback: int = 20
    fibonacci_lookback: int = 50
    cluster_tolerance: float = 0.005

    # Volume profile engine
    volume_profile_bins: int = 20
    value_area_pct: float = 0.70

    # Reports below this many bars are skipped
    min_report_bars: int = 50

    class Config:
        env_prefix = "MARKETLENS_"
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for applications embedding the library."""
    settings = get_settings()
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
