"""Data models shared by the analysis engines."""

from enum import Enum
from typing import Literal
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Bias(str, Enum):
    """Directional reading of an indicator or of the whole picture."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


Timeframe = Literal["1m", "5m", "15m", "1h", "4h", "1d"]
LevelType = Literal["support", "resistance"]
LevelStrength = Literal["weak", "moderate", "strong"]
PivotType = Literal["classic", "camarilla"]


class PriceBar(BaseModel):
    """OHLCV price bar data.

    Attributes:
        timestamp: Bar timestamp
        open: Opening price
        high: High price
        low: Low price
        close: Closing price
        volume: Traded volume (fractional for crypto)
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: float = Field(gt=0)
    high: float = Field(gt=0)
    low: float = Field(gt=0)
    close: float = Field(gt=0)
    volume: float = Field(ge=0)


class IndicatorResult(BaseModel):
    """Single-valued indicator reading.

    Attributes:
        value: Current indicator value
        label: Display label, e.g. "RSI (14)"
        bias: Directional interpretation of the value
    """

    model_config = ConfigDict(frozen=True)

    value: float
    label: str
    bias: Bias


class MACDResult(BaseModel):
    """MACD line, signal line and histogram with their bias."""

    model_config = ConfigDict(frozen=True)

    macd_line: float
    signal_line: float
    histogram: float
    bias: Bias


class StochasticResult(BaseModel):
    """Stochastic %K / %D with their bias."""

    model_config = ConfigDict(frozen=True)

    k: float
    d: float
    bias: Bias


class BollingerBandsResult(BaseModel):
    """Bollinger Bands.

    Attributes:
        upper: Upper band
        middle: Middle band (SMA)
        lower: Lower band
        bandwidth: upper - lower, in price units
        percent_b: Position of price within the bands (0 = lower, 1 = upper)
        bias: Directional interpretation of percent_b
    """

    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float
    bias: Bias


class KeltnerChannelsResult(BaseModel):
    """Keltner Channels (EMA middle line with ATR envelope)."""

    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float
    bias: Bias


class PriceLevel(BaseModel):
    """Support or resistance price level.

    Attributes:
        price: Level price
        type: support or resistance
        strength: weak, moderate or strong, derived from touches
        source: Origin tag, e.g. "swing_high", "fibonacci_0.618", "pivot_classic_S1"
        touches: Number of raw levels merged into this one
    """

    model_config = ConfigDict(frozen=True)

    price: float
    type: LevelType
    strength: LevelStrength
    source: str
    touches: int = Field(default=1, ge=1)


class FibonacciLevels(BaseModel):
    """Fibonacci retracement levels from swing high (level0) to swing low (level1000)."""

    model_config = ConfigDict(frozen=True)

    swing_high: float
    swing_low: float
    level0: float
    level236: float
    level382: float
    level500: float
    level618: float
    level786: float
    level1000: float


class PivotPoints(BaseModel):
    """Pivot point with three resistance and three support prices."""

    model_config = ConfigDict(frozen=True)

    pivot: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float
    type: PivotType


class VolumeProfileEntry(BaseModel):
    """One price bin of a volume profile.

    Attributes:
        price_level: Bin midpoint
        volume: Volume accumulated in the bin
        pct_of_total: Share of total profile volume (0 to 1)
    """

    model_config = ConfigDict(frozen=True)

    price_level: float
    volume: float = Field(ge=0)
    pct_of_total: float = Field(ge=0, le=1)
