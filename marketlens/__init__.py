"""MarketLens - deterministic technical analysis of OHLCV bar series."""

from marketlens.exceptions import InsufficientDataError
from marketlens.models import (
    Bias,
    PriceBar,
    TechnicalAnalysis,
    LevelAnalysis,
    VolumeAnalysis,
    AnalysisReport,
)
from marketlens.tools import (
    compute_indicators,
    compute_levels,
    compute_volume_profile,
    build_report,
    format_report,
)

__version__ = "0.1.0"

__all__ = [
    "InsufficientDataError",
    "Bias",
    "PriceBar",
    "TechnicalAnalysis",
    "LevelAnalysis",
    "VolumeAnalysis",
    "AnalysisReport",
    "compute_indicators",
    "compute_levels",
    "compute_volume_profile",
    "build_report",
    "format_report",
]
