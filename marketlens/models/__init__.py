"""Pydantic models for data validation and serialization."""

from .data import (
    Bias,
    Timeframe,
    PriceBar,
    IndicatorResult,
    MACDResult,
    StochasticResult,
    BollingerBandsResult,
    KeltnerChannelsResult,
    PriceLevel,
    FibonacciLevels,
    PivotPoints,
    VolumeProfileEntry,
)
from .analysis import (
    TrendIndicators,
    MomentumIndicators,
    VolatilityIndicators,
    VolumeIndicators,
    TechnicalAnalysis,
    LevelAnalysis,
    VolumeAnalysis,
    AnalysisReport,
)

__all__ = [
    "Bias",
    "Timeframe",
    "PriceBar",
    "IndicatorResult",
    "MACDResult",
    "StochasticResult",
    "BollingerBandsResult",
    "KeltnerChannelsResult",
    "PriceLevel",
    "FibonacciLevels",
    "PivotPoints",
    "VolumeProfileEntry",
    "TrendIndicators",
    "MomentumIndicators",
    "VolatilityIndicators",
    "VolumeIndicators",
    "TechnicalAnalysis",
    "LevelAnalysis",
    "VolumeAnalysis",
    "AnalysisReport",
]
