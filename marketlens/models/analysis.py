"""Aggregate models returned across the library boundary."""

from typing import List
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from marketlens.models.data import (
    Bias,
    BollingerBandsResult,
    FibonacciLevels,
    IndicatorResult,
    KeltnerChannelsResult,
    MACDResult,
    PivotPoints,
    PriceLevel,
    StochasticResult,
    Timeframe,
    VolumeProfileEntry,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrendIndicators(BaseModel):
    """Trend group: moving averages, MACD and ADX."""

    model_config = ConfigDict(frozen=True)

    ema9: IndicatorResult
    ema21: IndicatorResult
    ema50: IndicatorResult
    ema200: IndicatorResult
    macd: MACDResult
    adx: IndicatorResult


class MomentumIndicators(BaseModel):
    """Momentum group: RSI, Stochastic, CCI and Williams %R."""

    model_config = ConfigDict(frozen=True)

    rsi: IndicatorResult
    stochastic: StochasticResult
    cci: IndicatorResult
    williams_r: IndicatorResult


class VolatilityIndicators(BaseModel):
    """Volatility group: Bollinger Bands, ATR and Keltner Channels."""

    model_config = ConfigDict(frozen=True)

    bollinger_bands: BollingerBandsResult
    atr: IndicatorResult
    keltner_channels: KeltnerChannelsResult


class VolumeIndicators(BaseModel):
    """Volume group: OBV, VWAP, volume moving average and CMF."""

    model_config = ConfigDict(frozen=True)

    obv: IndicatorResult
    vwap: IndicatorResult
    volume_ma: IndicatorResult
    cmf: IndicatorResult


class TechnicalAnalysis(BaseModel):
    """Complete indicator picture for one symbol and timeframe.

    Attributes:
        ticker: Symbol the bars belong to
        timeframe: Bar timeframe
        trend: Trend indicators
        momentum: Momentum indicators
        volatility: Volatility indicators
        volume: Volume indicators
        overall_bias: Majority verdict across the tallied indicators
        confluence_score: 0-10, how many tallied indicators agree
        timestamp: Computation time
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    timeframe: Timeframe = "1d"
    trend: TrendIndicators
    momentum: MomentumIndicators
    volatility: VolatilityIndicators
    volume: VolumeIndicators
    overall_bias: Bias
    confluence_score: int = Field(ge=0, le=10)
    timestamp: datetime = Field(default_factory=_utcnow)


class LevelAnalysis(BaseModel):
    """Ranked support and resistance levels.

    Attributes:
        ticker: Symbol the bars belong to
        supports: Support levels below price, nearest first
        resistances: Resistance levels above price, nearest first
        fibonacci: Retracement levels of the trailing swing window
        pivots: Classic pivots of the previous bar
        camarilla: Camarilla pivots of the previous bar
        nearest_support: Closest support, or price * 0.98 if none
        nearest_resistance: Closest resistance, or price * 1.02 if none
        timestamp: Computation time
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    supports: List[PriceLevel] = Field(default_factory=list)
    resistances: List[PriceLevel] = Field(default_factory=list)
    fibonacci: FibonacciLevels
    pivots: PivotPoints
    camarilla: PivotPoints
    nearest_support: float
    nearest_resistance: float
    timestamp: datetime = Field(default_factory=_utcnow)


class VolumeAnalysis(BaseModel):
    """Volume-by-price distribution and volume trend.

    Attributes:
        profile: Equal-width price bins from lowest low to highest high
        point_of_control: Midpoint of the highest-volume bin
        value_area_high: Midpoint of the top bin of the 70% value area
        value_area_low: Midpoint of the bottom bin of the 70% value area
        current_vs_avg: Current volume / 20-bar average volume
        volume_trend: Last 5 bars' volume vs the 5 before
        timestamp: Computation time
    """

    model_config = ConfigDict(frozen=True)

    profile: List[VolumeProfileEntry]
    point_of_control: float
    value_area_high: float
    value_area_low: float
    current_vs_avg: float
    volume_trend: Bias
    timestamp: datetime = Field(default_factory=_utcnow)


class AnalysisReport(BaseModel):
    """Everything computed for one symbol, ready for the recommendation step."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    timeframe: Timeframe = "1d"
    current_price: float
    change_percent: float
    technicals: TechnicalAnalysis
    levels: LevelAnalysis
    volume: VolumeAnalysis
    timestamp: datetime = Field(default_factory=_utcnow)
