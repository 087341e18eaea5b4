"""Technical indicator calculation tools.

Every calculator takes the full bar history and returns the reading for the
latest bar together with its bias. None of them raise on short input: when
the history is shorter than an indicator's lookback the documented fallback
value is returned with a neutral bias.
"""

from typing import List, Sequence
import logging
import numpy as np
import pandas as pd

from marketlens.models.data import (
    Bias,
    PriceBar,
    IndicatorResult,
    MACDResult,
    StochasticResult,
    BollingerBandsResult,
    KeltnerChannelsResult,
)
from marketlens.models.analysis import (
    TrendIndicators,
    MomentumIndicators,
    VolatilityIndicators,
    VolumeIndicators,
)

logger = logging.getLogger(__name__)

# Classification thresholds
EMA_BAND_PCT = 0.5
ADX_TRENDING = 25.0
RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
RSI_BULLISH = 55.0
RSI_BEARISH = 45.0
STOCH_OVERBOUGHT = 80.0
STOCH_OVERSOLD = 20.0
CCI_BAND = 100.0
WILLIAMS_OVERBOUGHT = -20.0
WILLIAMS_OVERSOLD = -80.0
PERCENT_B_HIGH = 0.8
PERCENT_B_LOW = 0.2
ATR_HIGH_PCT = 3.0
ATR_LOW_PCT = 1.0
VWAP_BAND = 0.005
VOLUME_RATIO_HIGH = 1.5
VOLUME_RATIO_LOW = 0.5
CMF_BAND = 0.1


# ---------------------------------------------------------------------------
# Series helpers
# ---------------------------------------------------------------------------


def _to_frame(price_bars: Sequence[PriceBar]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "high": bar.high,
                "low": bar.low,
                "close": bar.close,
                "volume": bar.volume,
            }
            for bar in price_bars
        ],
        columns=["high", "low", "close", "volume"],
        dtype=float,
    )


def _current_price(price_bars: Sequence[PriceBar]) -> float:
    return float(price_bars[-1].close) if price_bars else 0.0


def _last(series: pd.Series, default: float) -> float:
    """Last value of a series, or default when empty or undefined."""
    if len(series) == 0:
        return default
    value = series.iloc[-1]
    return default if pd.isna(value) else float(value)


def _ema_series(values: pd.Series, period: int) -> pd.Series:
    """EMA seeded with the SMA of the first `period` defined values.

    Positions before the seed are NaN, so an EMA over a series shorter than
    its period is entirely undefined.
    """
    result = pd.Series(np.nan, index=values.index, dtype=float)
    valid = values.dropna()
    if len(valid) < period:
        return result

    seeded = valid.astype(float).copy()
    seeded.iloc[: period - 1] = np.nan
    seeded.iloc[period - 1] = valid.iloc[:period].mean()
    result.loc[valid.index] = seeded.ewm(span=period, adjust=False).mean()
    return result


def _wilder_smooth(values: np.ndarray, period: int) -> np.ndarray:
    """Wilder's smoothing: mean of the first `period` values, then a 1/period decay."""
    smoothed = np.full(len(values), np.nan)
    if len(values) < period:
        return smoothed

    smoothed[period - 1] = np.mean(values[:period])
    for i in range(period, len(values)):
        smoothed[i] = (smoothed[i - 1] * (period - 1) + values[i]) / period
    return smoothed


def _true_ranges(df: pd.DataFrame) -> np.ndarray:
    """True range for every bar after the first."""
    highs = df["high"].to_numpy()
    lows = df["low"].to_numpy()
    closes = df["close"].to_numpy()

    true_ranges = []
    for i in range(1, len(df)):
        # True Range = max of:
        # 1. High - Low
        # 2. abs(High - Previous Close)
        # 3. abs(Low - Previous Close)
        true_ranges.append(max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        ))
    return np.array(true_ranges, dtype=float)


def _atr_value(df: pd.DataFrame, period: int) -> float:
    atr = _wilder_smooth(_true_ranges(df), period)
    if len(atr) == 0 or np.isnan(atr[-1]):
        return 0.0
    return float(atr[-1])


def _check_period(period: int, name: str = "period") -> None:
    if period < 1:
        raise ValueError(f"{name} must be >= 1")


# ---------------------------------------------------------------------------
# Bias rules
# ---------------------------------------------------------------------------


def ema_bias(price: float, ema_value: float) -> Bias:
    """Bias of price relative to a moving average (0.5% band either side)."""
    if ema_value == 0:
        return Bias.NEUTRAL
    pct_diff = (price - ema_value) / ema_value * 100
    if pct_diff > EMA_BAND_PCT:
        return Bias.BULLISH
    if pct_diff < -EMA_BAND_PCT:
        return Bias.BEARISH
    return Bias.NEUTRAL


def rsi_bias(value: float) -> Bias:
    """RSI bias: extremes read as reversal, the 45-55 band as no momentum."""
    if value > RSI_OVERBOUGHT:
        return Bias.BEARISH
    if value < RSI_OVERSOLD:
        return Bias.BULLISH
    if value > RSI_BULLISH:
        return Bias.BULLISH
    if value < RSI_BEARISH:
        return Bias.BEARISH
    return Bias.NEUTRAL


def macd_bias(macd_line: float, signal_line: float, histogram: float) -> Bias:
    if histogram > 0 and macd_line > signal_line:
        return Bias.BULLISH
    if histogram < 0 and macd_line < signal_line:
        return Bias.BEARISH
    return Bias.NEUTRAL


def adx_bias(adx: float, plus_di: float, minus_di: float) -> Bias:
    if adx > ADX_TRENDING:
        return Bias.BULLISH if plus_di > minus_di else Bias.BEARISH
    return Bias.NEUTRAL


def stochastic_bias(k: float, d: float) -> Bias:
    if k > STOCH_OVERBOUGHT:
        return Bias.BEARISH
    if k < STOCH_OVERSOLD:
        return Bias.BULLISH
    if k > d:
        return Bias.BULLISH
    if k < d:
        return Bias.BEARISH
    return Bias.NEUTRAL


def percent_b_bias(percent_b: float) -> Bias:
    if percent_b > PERCENT_B_HIGH:
        return Bias.BEARISH  # Near upper band
    if percent_b < PERCENT_B_LOW:
        return Bias.BULLISH  # Near lower band
    return Bias.NEUTRAL


def atr_bias(atr_pct: float) -> Bias:
    if atr_pct > ATR_HIGH_PCT:
        return Bias.BEARISH  # High volatility
    if atr_pct < ATR_LOW_PCT:
        return Bias.BULLISH  # Quiet market, potential breakout
    return Bias.NEUTRAL


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


def calculate_ema(
    price_bars: List[PriceBar],
    period: int = 20,
) -> IndicatorResult:
    """Calculate Exponential Moving Average (EMA).

    EMA gives more weight to recent prices, making it more responsive to
    price changes than Simple Moving Average (SMA). The series is seeded
    with the SMA of the first `period` closes.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        period: EMA period (default: 20)

    Returns:
        IndicatorResult with the latest EMA. With fewer than `period` bars
        the value falls back to the current price and the bias is neutral.

    Raises:
        ValueError: If period is invalid

    Example:
        >>> ema_21 = calculate_ema(bars, period=21)
        >>> print(f"EMA(21): {ema_21.value:.2f}, Bias: {ema_21.bias.value}")
    """
    _check_period(period)

    closes = _to_frame(price_bars)["close"]
    current_price = _current_price(price_bars)
    current_ema = _last(_ema_series(closes, period), current_price)
    bias = ema_bias(current_price, current_ema)

    logger.debug(f"EMA({period}): {current_ema:.4f}, Bias: {bias.value}")

    return IndicatorResult(value=current_ema, label=f"EMA {period}", bias=bias)


def calculate_macd(
    price_bars: List[PriceBar],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """Calculate MACD (Moving Average Convergence Divergence).

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        fast_period: Fast EMA period (default: 12)
        slow_period: Slow EMA period (default: 26)
        signal_period: Signal line period (default: 9)

    Returns:
        MACDResult. Undefined components (too little history) are 0, which
        makes the histogram 0 and the bias neutral.

    Raises:
        ValueError: If periods are invalid
    """
    _check_period(fast_period, "fast_period")
    _check_period(slow_period, "slow_period")
    _check_period(signal_period, "signal_period")

    closes = _to_frame(price_bars)["close"]

    # MACD line = fast EMA - slow EMA, signal line = EMA of the MACD line
    macd_line = _ema_series(closes, fast_period) - _ema_series(closes, slow_period)
    signal_line = _ema_series(macd_line, signal_period)
    histogram = macd_line - signal_line

    current_macd = _last(macd_line, 0.0)
    current_signal = _last(signal_line, 0.0)
    current_histogram = _last(histogram, 0.0)
    bias = macd_bias(current_macd, current_signal, current_histogram)

    logger.debug(
        f"MACD: {current_macd:.4f}, Signal Line: {current_signal:.4f}, "
        f"Histogram: {current_histogram:.4f}, Bias: {bias.value}"
    )

    return MACDResult(
        macd_line=current_macd,
        signal_line=current_signal,
        histogram=current_histogram,
        bias=bias,
    )


def calculate_adx(
    price_bars: List[PriceBar],
    period: int = 14,
) -> IndicatorResult:
    """Calculate Average Directional Index (ADX).

    ADX measures trend strength regardless of direction; +DI and -DI give
    the direction. Above 25 the trend is considered established and the
    bias follows the dominant DI.

    Needs `2 * period` bars: `period` true ranges to seed the DI smoothing
    and `period` DX values to seed the ADX. With fewer bars ADX is 0.
    """
    _check_period(period)

    df = _to_frame(price_bars)
    highs = df["high"].to_numpy()
    lows = df["low"].to_numpy()

    if len(df) < period * 2:
        logger.debug(f"ADX({period}): {len(df)} bars, need {period * 2}")
        return IndicatorResult(value=0.0, label=f"ADX ({period})", bias=Bias.NEUTRAL)

    # Directional movement for every bar after the first
    plus_dm = np.zeros(len(df) - 1)
    minus_dm = np.zeros(len(df) - 1)
    for i in range(1, len(df)):
        up_move = highs[i] - highs[i - 1]
        down_move = lows[i - 1] - lows[i]

        if up_move > down_move and up_move > 0:
            plus_dm[i - 1] = up_move
        if down_move > up_move and down_move > 0:
            minus_dm[i - 1] = down_move

    tr = _true_ranges(df)

    # Wilder running sums: seed with the first `period` sum, then decay
    def running_sum(data: np.ndarray) -> np.ndarray:
        sums = np.full(len(data), np.nan)
        sums[period - 1] = np.sum(data[:period])
        for i in range(period, len(data)):
            sums[i] = sums[i - 1] - (sums[i - 1] / period) + data[i]
        return sums

    smoothed_tr = running_sum(tr)[period - 1:]
    smoothed_plus_dm = running_sum(plus_dm)[period - 1:]
    smoothed_minus_dm = running_sum(minus_dm)[period - 1:]

    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(smoothed_tr > 0, 100 * smoothed_plus_dm / smoothed_tr, 0.0)
        minus_di = np.where(smoothed_tr > 0, 100 * smoothed_minus_dm / smoothed_tr, 0.0)
        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, 100 * np.abs(plus_di - minus_di) / di_sum, 0.0)

    adx = _wilder_smooth(dx, period)

    current_adx = float(adx[-1])
    current_plus_di = float(plus_di[-1])
    current_minus_di = float(minus_di[-1])
    bias = adx_bias(current_adx, current_plus_di, current_minus_di)

    logger.debug(
        f"ADX({period}): {current_adx:.1f}, +DI: {current_plus_di:.1f}, "
        f"-DI: {current_minus_di:.1f}, Bias: {bias.value}"
    )

    return IndicatorResult(value=current_adx, label=f"ADX ({period})", bias=bias)


# ---------------------------------------------------------------------------
# Momentum
# ---------------------------------------------------------------------------


def calculate_rsi(
    price_bars: List[PriceBar],
    period: int = 14,
) -> IndicatorResult:
    """Calculate Relative Strength Index (RSI).

    RSI measures momentum on a scale of 0-100:
    - RSI > 70: Overbought (bearish)
    - RSI < 30: Oversold (bullish)
    - RSI > 55: Bullish momentum
    - RSI < 45: Bearish momentum

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        period: RSI period (default: 14)

    Returns:
        IndicatorResult with the Wilder-smoothed RSI. Falls back to 50
        with fewer than `period + 1` bars, and when price never moved.
    """
    _check_period(period)

    if len(price_bars) < period + 1:
        return IndicatorResult(value=50.0, label=f"RSI ({period})", bias=Bias.NEUTRAL)

    closes = np.array([bar.close for bar in price_bars], dtype=float)

    # Calculate price changes
    deltas = np.diff(closes)

    # Separate gains and losses
    gains = np.where(deltas > 0, deltas, 0)
    losses = np.where(deltas < 0, -deltas, 0)

    # Calculate average gains and losses
    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])

    # Calculate subsequent values using smoothed method
    for i in range(period, len(gains)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        rsi_value = 100.0 if avg_gain > 0 else 50.0
    else:
        rs = avg_gain / avg_loss
        rsi_value = 100 - (100 / (1 + rs))

    bias = rsi_bias(rsi_value)
    logger.debug(f"RSI({period}): {rsi_value:.1f}, Bias: {bias.value}")

    return IndicatorResult(value=float(rsi_value), label=f"RSI ({period})", bias=bias)


def calculate_stochastic(
    price_bars: List[PriceBar],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    """Calculate Stochastic Oscillator (%K and %D).

    %K is where the close sits within the `k_period` high-low range; %D is
    the `d_period` SMA of %K. A bar with no range reads 50.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        k_period: Lookback period for %K (default: 14)
        d_period: Smoothing period for %D (default: 3)

    Returns:
        StochasticResult; K and D each fall back to 50 when undefined.
    """
    _check_period(k_period, "k_period")
    _check_period(d_period, "d_period")

    df = _to_frame(price_bars)
    highs = df["high"].to_numpy()
    lows = df["low"].to_numpy()
    closes = df["close"].to_numpy()

    raw_k = np.full(len(closes), np.nan)
    for i in range(k_period - 1, len(closes)):
        period_high = np.max(highs[i - k_period + 1 : i + 1])
        period_low = np.min(lows[i - k_period + 1 : i + 1])

        if period_high != period_low:
            raw_k[i] = 100 * (closes[i] - period_low) / (period_high - period_low)
        else:
            raw_k[i] = 50  # Neutral if no range

    k_series = pd.Series(raw_k, dtype=float)
    d_series = k_series.rolling(window=d_period).mean()

    current_k = _last(k_series, 50.0)
    current_d = _last(d_series, 50.0)
    bias = stochastic_bias(current_k, current_d)

    logger.debug(f"Stochastic: %K={current_k:.1f}, %D={current_d:.1f}, Bias: {bias.value}")

    return StochasticResult(k=current_k, d=current_d, bias=bias)


def calculate_cci(
    price_bars: List[PriceBar],
    period: int = 20,
) -> IndicatorResult:
    """Calculate Commodity Channel Index (CCI).

    CCI = (typical price - SMA) / (0.015 * mean deviation), computed over
    the last `period` typical prices. Falls back to 0.
    """
    _check_period(period)

    if len(price_bars) < period:
        return IndicatorResult(value=0.0, label=f"CCI ({period})", bias=Bias.NEUTRAL)

    df = _to_frame(price_bars[-period:])
    typical_price = ((df["high"] + df["low"] + df["close"]) / 3).to_numpy()

    sma = np.mean(typical_price)
    mean_deviation = np.mean(np.abs(typical_price - sma))
    if mean_deviation > 0:
        cci_value = float((typical_price[-1] - sma) / (0.015 * mean_deviation))
    else:
        cci_value = 0.0

    if cci_value > CCI_BAND:
        bias = Bias.BULLISH
    elif cci_value < -CCI_BAND:
        bias = Bias.BEARISH
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"CCI({period}): {cci_value:.1f}, Bias: {bias.value}")

    return IndicatorResult(value=cci_value, label=f"CCI ({period})", bias=bias)


def calculate_williams_r(
    price_bars: List[PriceBar],
    period: int = 14,
) -> IndicatorResult:
    """Calculate Williams %R (-100 to 0). Falls back to -50."""
    _check_period(period)

    if len(price_bars) < period:
        return IndicatorResult(value=-50.0, label=f"Williams %R ({period})", bias=Bias.NEUTRAL)

    window = price_bars[-period:]
    highest_high = max(bar.high for bar in window)
    lowest_low = min(bar.low for bar in window)
    close = window[-1].close

    if highest_high != lowest_low:
        wr_value = -100 * (highest_high - close) / (highest_high - lowest_low)
    else:
        wr_value = -50.0

    if wr_value > WILLIAMS_OVERBOUGHT:
        bias = Bias.BEARISH  # Overbought
    elif wr_value < WILLIAMS_OVERSOLD:
        bias = Bias.BULLISH  # Oversold
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"Williams %R({period}): {wr_value:.1f}, Bias: {bias.value}")

    return IndicatorResult(value=float(wr_value), label=f"Williams %R ({period})", bias=bias)


# ---------------------------------------------------------------------------
# Volatility
# ---------------------------------------------------------------------------


def calculate_bollinger_bands(
    price_bars: List[PriceBar],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBandsResult:
    """Calculate Bollinger Bands.

    Middle band is the `period` SMA of closes, the bands sit `std_dev`
    population standard deviations either side. %B locates price within
    the bands: near the upper band reads bearish, near the lower bullish.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        period: Moving average period (default: 20)
        std_dev: Number of standard deviations (default: 2.0)

    Returns:
        BollingerBandsResult. With fewer than `period` bars all bands equal
        the current price, so bandwidth is 0 and %B is 0.5.
    """
    _check_period(period)

    current_price = _current_price(price_bars)

    if len(price_bars) >= period:
        window = np.array([bar.close for bar in price_bars[-period:]], dtype=float)
        middle_band = float(np.mean(window))
        current_std = float(np.std(window))
    else:
        middle_band = current_price
        current_std = 0.0

    upper_band = middle_band + (std_dev * current_std)
    lower_band = middle_band - (std_dev * current_std)
    bandwidth = upper_band - lower_band

    # %B = 0 means at lower band, 1 means at upper band
    if bandwidth > 0:
        percent_b = (current_price - lower_band) / bandwidth
    else:
        percent_b = 0.5

    bias = percent_b_bias(percent_b)

    logger.debug(
        f"Bollinger Bands: Upper={upper_band:.2f}, Middle={middle_band:.2f}, "
        f"Lower={lower_band:.2f}, %B={percent_b:.2f}, Bias: {bias.value}"
    )

    return BollingerBandsResult(
        upper=upper_band,
        middle=middle_band,
        lower=lower_band,
        bandwidth=bandwidth,
        percent_b=percent_b,
        bias=bias,
    )


def calculate_atr(
    price_bars: List[PriceBar],
    period: int = 14,
) -> IndicatorResult:
    """Calculate Average True Range (ATR).

    Uses Wilder's smoothing of true ranges, so it needs `period + 1` bars;
    otherwise ATR is 0. The bias reads ATR as a percentage of price: above
    3% is bearish (high volatility), below 1% bullish (low volatility).
    """
    _check_period(period)

    if len(price_bars) < period + 1:
        return IndicatorResult(value=0.0, label=f"ATR ({period})", bias=Bias.NEUTRAL)

    df = _to_frame(price_bars)
    current_atr = _atr_value(df, period)
    current_price = _current_price(price_bars)

    # ATR as percentage of price (for comparison across instruments)
    atr_percentage = (current_atr / current_price) * 100 if current_price > 0 else 0.0
    bias = atr_bias(atr_percentage)

    logger.debug(f"ATR({period}): {current_atr:.4f} ({atr_percentage:.2f}%), Bias: {bias.value}")

    return IndicatorResult(value=current_atr, label=f"ATR ({period})", bias=bias)


def calculate_keltner_channels(
    price_bars: List[PriceBar],
    ema_period: int = 20,
    atr_period: int = 10,
    multiplier: float = 2.0,
) -> KeltnerChannelsResult:
    """Calculate Keltner Channels: EMA(20) +/- 2 * ATR(10).

    A close outside the channel is read as a breakout (above) or
    breakdown (below).
    """
    _check_period(ema_period, "ema_period")
    _check_period(atr_period, "atr_period")

    df = _to_frame(price_bars)
    current_price = _current_price(price_bars)

    middle = _last(_ema_series(df["close"], ema_period), current_price)
    channel_atr = _atr_value(df, atr_period)
    upper = middle + multiplier * channel_atr
    lower = middle - multiplier * channel_atr

    if current_price > upper:
        bias = Bias.BULLISH
    elif current_price < lower:
        bias = Bias.BEARISH
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"Keltner: Upper={upper:.2f}, Middle={middle:.2f}, Lower={lower:.2f}, Bias: {bias.value}")

    return KeltnerChannelsResult(upper=upper, middle=middle, lower=lower, bias=bias)


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------


def calculate_obv(price_bars: List[PriceBar]) -> IndicatorResult:
    """Calculate On-Balance Volume (OBV).

    Cumulative volume, added on up-closes and subtracted on down-closes,
    starting from 0 at the first bar. The bias compares OBV with its value
    one bar earlier.
    """
    volumes = [bar.volume for bar in price_bars]
    closes = [bar.close for bar in price_bars]

    obv = np.zeros(len(closes))
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            obv[i] = obv[i - 1] + volumes[i]
        elif closes[i] < closes[i - 1]:
            obv[i] = obv[i - 1] - volumes[i]
        else:
            obv[i] = obv[i - 1]

    current_obv = float(obv[-1]) if len(obv) else 0.0
    previous_obv = float(obv[-2]) if len(obv) > 1 else current_obv

    if current_obv > previous_obv:
        bias = Bias.BULLISH
    elif current_obv < previous_obv:
        bias = Bias.BEARISH
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"OBV: {current_obv:.0f} (prev {previous_obv:.0f}), Bias: {bias.value}")

    return IndicatorResult(value=current_obv, label="OBV", bias=bias)


def calculate_vwap(price_bars: List[PriceBar]) -> IndicatorResult:
    """Calculate Volume Weighted Average Price (VWAP).

    VWAP is the typical price weighted by volume, cumulative over the whole
    sequence. Price more than 0.5% above VWAP is bullish, more than 0.5%
    below bearish. With no traded volume VWAP falls back to the current
    price.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)

    Returns:
        IndicatorResult with the latest VWAP

    Example:
        >>> vwap = calculate_vwap(bars)
        >>> print(f"VWAP: {vwap.value:.2f}, Bias: {vwap.bias.value}")
    """
    df = _to_frame(price_bars)
    current_price = _current_price(price_bars)

    # Calculate typical price
    df["typical_price"] = (df["high"] + df["low"] + df["close"]) / 3

    total_volume = float(df["volume"].sum())
    if total_volume > 0:
        current_vwap = float((df["typical_price"] * df["volume"]).sum() / total_volume)
    else:
        current_vwap = current_price

    if current_price > current_vwap * (1 + VWAP_BAND):
        bias = Bias.BULLISH
    elif current_price < current_vwap * (1 - VWAP_BAND):
        bias = Bias.BEARISH
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"VWAP: {current_vwap:.2f}, Bias: {bias.value}")

    return IndicatorResult(value=current_vwap, label="VWAP", bias=bias)


def calculate_volume_ma(
    price_bars: List[PriceBar],
    period: int = 20,
) -> IndicatorResult:
    """Volume moving average; the bias compares current volume with it.

    The average falls back to the current volume (ratio 1) with fewer
    than `period` bars.
    """
    _check_period(period)

    volumes = _to_frame(price_bars)["volume"]
    current_volume = _last(volumes, 0.0)
    volume_ma = _last(volumes.rolling(window=period).mean(), current_volume)

    ratio = current_volume / volume_ma if volume_ma > 0 else 1.0
    if ratio > VOLUME_RATIO_HIGH:
        bias = Bias.BULLISH  # Above-average participation
    elif ratio < VOLUME_RATIO_LOW:
        bias = Bias.BEARISH
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"Volume MA({period}): {volume_ma:.0f}, ratio {ratio:.2f}, Bias: {bias.value}")

    return IndicatorResult(value=volume_ma, label=f"Vol MA ({period})", bias=bias)


def calculate_cmf(
    price_bars: List[PriceBar],
    period: int = 20,
) -> IndicatorResult:
    """Calculate Chaikin Money Flow (CMF) over the last `period` bars.

    Each bar's money-flow multiplier is ((close - low) - (high - close)) /
    (high - low), 0 for a bar with no range; CMF is the volume-weighted
    average of the multipliers.
    """
    _check_period(period)

    if len(price_bars) < period:
        return IndicatorResult(value=0.0, label=f"CMF ({period})", bias=Bias.NEUTRAL)

    mf_volume_sum = 0.0
    volume_sum = 0.0
    for bar in price_bars[-period:]:
        bar_range = bar.high - bar.low
        if bar_range > 0:
            multiplier = ((bar.close - bar.low) - (bar.high - bar.close)) / bar_range
        else:
            multiplier = 0.0
        mf_volume_sum += multiplier * bar.volume
        volume_sum += bar.volume

    cmf_value = mf_volume_sum / volume_sum if volume_sum > 0 else 0.0

    if cmf_value > CMF_BAND:
        bias = Bias.BULLISH
    elif cmf_value < -CMF_BAND:
        bias = Bias.BEARISH
    else:
        bias = Bias.NEUTRAL

    logger.debug(f"CMF({period}): {cmf_value:.4f}, Bias: {bias.value}")

    return IndicatorResult(value=cmf_value, label=f"CMF ({period})", bias=bias)


# ---------------------------------------------------------------------------
# Indicator groups
# ---------------------------------------------------------------------------


def compute_trend(price_bars: List[PriceBar]) -> TrendIndicators:
    """EMA 9/21/50/200, MACD(12, 26, 9) and ADX(14)."""
    return TrendIndicators(
        ema9=calculate_ema(price_bars, 9),
        ema21=calculate_ema(price_bars, 21),
        ema50=calculate_ema(price_bars, 50),
        ema200=calculate_ema(price_bars, 200),
        macd=calculate_macd(price_bars),
        adx=calculate_adx(price_bars),
    )


def compute_momentum(price_bars: List[PriceBar]) -> MomentumIndicators:
    """RSI(14), Stochastic(14, 3), CCI(20) and Williams %R(14)."""
    return MomentumIndicators(
        rsi=calculate_rsi(price_bars),
        stochastic=calculate_stochastic(price_bars),
        cci=calculate_cci(price_bars),
        williams_r=calculate_williams_r(price_bars),
    )


def compute_volatility(price_bars: List[PriceBar]) -> VolatilityIndicators:
    """Bollinger Bands(20, 2), ATR(14) and Keltner Channels(20, 10)."""
    return VolatilityIndicators(
        bollinger_bands=calculate_bollinger_bands(price_bars),
        atr=calculate_atr(price_bars),
        keltner_channels=calculate_keltner_channels(price_bars),
    )


def compute_volume(price_bars: List[PriceBar]) -> VolumeIndicators:
    """OBV, VWAP, volume MA(20) and CMF(20)."""
    return VolumeIndicators(
        obv=calculate_obv(price_bars),
        vwap=calculate_vwap(price_bars),
        volume_ma=calculate_volume_ma(price_bars),
        cmf=calculate_cmf(price_bars),
    )
