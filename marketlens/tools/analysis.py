"""Analysis entry points.

Each entry point is a pure function of the bar sequence it receives. The
three analyses are independent; only the confluence score depends on the
indicator results.
"""

from typing import List, Optional
import logging

from marketlens.config import get_settings
from marketlens.models.data import PriceBar, Timeframe
from marketlens.models.analysis import (
    AnalysisReport,
    LevelAnalysis,
    TechnicalAnalysis,
    VolumeAnalysis,
)
from marketlens.tools.indicators import (
    compute_trend,
    compute_momentum,
    compute_volatility,
    compute_volume,
)
from marketlens.tools.confluence import collect_biases, score_confluence
from marketlens.tools.levels import compute_level_analysis
from marketlens.tools.volume_profile import compute_volume_analysis

logger = logging.getLogger(__name__)

# Below this many bars the slower indicators fall back to neutral defaults
RECOMMENDED_MIN_BARS = 50


def compute_indicators(
    price_bars: List[PriceBar],
    ticker: str = "",
    timeframe: Timeframe = "1d",
) -> TechnicalAnalysis:
    """Run every indicator and score their confluence.

    Never raises on short input. Below 50 bars the indicators whose
    lookback is not covered return neutral fallbacks, which in turn pull
    the confluence score down.

    Args:
        price_bars: List of PriceBar objects (OHLCV data), oldest first
        ticker: Symbol the bars belong to
        timeframe: Bar timeframe

    Returns:
        TechnicalAnalysis with all four indicator groups, the overall bias
        and the 0-10 confluence score

    Example:
        >>> ta = compute_indicators(bars, "AAPL", "1d")
        >>> print(f"{ta.overall_bias.value} ({ta.confluence_score}/10)")
    """
    logger.info(f"Computing indicators for {ticker or 'series'} ({len(price_bars)} bars, {timeframe})")

    if len(price_bars) < RECOMMENDED_MIN_BARS:
        logger.warning(
            f"Only {len(price_bars)} bars for {ticker or 'series'}; "
            f"indicators beyond that lookback fall back to neutral"
        )

    trend = compute_trend(price_bars)
    momentum = compute_momentum(price_bars)
    volatility = compute_volatility(price_bars)
    volume = compute_volume(price_bars)

    overall_bias, confluence_score = score_confluence(
        collect_biases(trend, momentum, volatility, volume)
    )

    logger.info(f"Overall bias: {overall_bias.value}, Confluence: {confluence_score}/10")

    return TechnicalAnalysis(
        ticker=ticker,
        timeframe=timeframe,
        trend=trend,
        momentum=momentum,
        volatility=volatility,
        volume=volume,
        overall_bias=overall_bias,
        confluence_score=confluence_score,
    )


def compute_levels(
    price_bars: List[PriceBar],
    ticker: str = "",
) -> LevelAnalysis:
    """Support/resistance analysis using the configured windows and tolerance.

    Raises:
        InsufficientDataError: If price_bars is empty
    """
    settings = get_settings()
    return compute_level_analysis(
        price_bars,
        ticker=ticker,
        lookback=settings.swing_lookback,
        fib_lookback=settings.fibonacci_lookback,
        tolerance=settings.cluster_tolerance,
    )


def compute_volume_profile(
    price_bars: List[PriceBar],
    bins: Optional[int] = None,
) -> VolumeAnalysis:
    """Volume profile analysis; `bins` defaults to the configured bin count.

    Raises:
        InsufficientDataError: If price_bars is empty
    """
    settings = get_settings()
    return compute_volume_analysis(
        price_bars,
        bins=settings.volume_profile_bins if bins is None else bins,
        value_area_pct=settings.value_area_pct,
    )


def build_report(
    price_bars: List[PriceBar],
    ticker: str,
    timeframe: Timeframe = "1d",
    min_bars: Optional[int] = None,
) -> Optional[AnalysisReport]:
    """Bundle indicators, levels and volume profile for one symbol.

    Args:
        price_bars: List of PriceBar objects (OHLCV data), oldest first
        ticker: Symbol the bars belong to
        timeframe: Bar timeframe
        min_bars: Minimum history for a report (default: configured, 50)

    Returns:
        AnalysisReport, or None when there is not enough history for a
        reliable report
    """
    if min_bars is None:
        min_bars = get_settings().min_report_bars

    if len(price_bars) < max(min_bars, 1):
        logger.warning(f"Skipping report for {ticker}: {len(price_bars)} bars, need {min_bars}")
        return None

    current_price = price_bars[-1].close
    if len(price_bars) >= 2:
        previous_close = price_bars[-2].close
        change_percent = (current_price - previous_close) / previous_close * 100
    else:
        change_percent = 0.0

    return AnalysisReport(
        ticker=ticker,
        timeframe=timeframe,
        current_price=current_price,
        change_percent=change_percent,
        technicals=compute_indicators(price_bars, ticker, timeframe),
        levels=compute_levels(price_bars, ticker),
        volume=compute_volume_profile(price_bars),
    )


def format_number(value: float) -> str:
    """Abbreviate large numbers: 1.50K, 2.25M, 3.00B."""
    if abs(value) >= 1_000_000_000:
        return f"{value / 1_000_000_000:.2f}B"
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if abs(value) >= 1_000:
        return f"{value / 1_000:.2f}K"
    return f"{value:.0f}"


def format_report(report: AnalysisReport) -> str:
    """Render a report as plain text for the recommendation step."""
    trend = report.technicals.trend
    momentum = report.technicals.momentum
    volatility = report.technicals.volatility
    volume = report.technicals.volume
    levels = report.levels
    profile = report.volume

    lines = [
        f"=== {report.ticker} ({report.timeframe}) ===",
        f"Price: ${report.current_price:.2f} | Change: {report.change_percent:.2f}%",
        "",
        "--- Trend ---",
        f"EMA 9: {trend.ema9.value:.2f} ({trend.ema9.bias.value})",
        f"EMA 21: {trend.ema21.value:.2f} ({trend.ema21.bias.value})",
        f"EMA 50: {trend.ema50.value:.2f} ({trend.ema50.bias.value})",
        f"EMA 200: {trend.ema200.value:.2f} ({trend.ema200.bias.value})",
        f"MACD: {trend.macd.macd_line:.4f} / Signal: {trend.macd.signal_line:.4f} ({trend.macd.bias.value})",
        f"ADX: {trend.adx.value:.2f} ({trend.adx.bias.value})",
        "",
        "--- Momentum ---",
        f"RSI (14): {momentum.rsi.value:.2f} ({momentum.rsi.bias.value})",
        f"Stochastic: K={momentum.stochastic.k:.2f}, D={momentum.stochastic.d:.2f} ({momentum.stochastic.bias.value})",
        f"CCI: {momentum.cci.value:.2f} ({momentum.cci.bias.value})",
        f"Williams %R: {momentum.williams_r.value:.2f} ({momentum.williams_r.bias.value})",
        "",
        "--- Volatility ---",
        (
            f"BB: Upper={volatility.bollinger_bands.upper:.2f}, "
            f"Mid={volatility.bollinger_bands.middle:.2f}, "
            f"Lower={volatility.bollinger_bands.lower:.2f} "
            f"(%B={volatility.bollinger_bands.percent_b:.2f})"
        ),
        f"ATR: {volatility.atr.value:.2f} ({volatility.atr.bias.value})",
        (
            f"Keltner: Upper={volatility.keltner_channels.upper:.2f}, "
            f"Lower={volatility.keltner_channels.lower:.2f} ({volatility.keltner_channels.bias.value})"
        ),
        "",
        "--- Volume ---",
        f"OBV: {format_number(volume.obv.value)} ({volume.obv.bias.value})",
        f"VWAP: {volume.vwap.value:.2f} ({volume.vwap.bias.value})",
        f"Vol MA (20): {format_number(volume.volume_ma.value)} ({volume.volume_ma.bias.value})",
        f"CMF: {volume.cmf.value:.4f} ({volume.cmf.bias.value})",
        "",
        "--- Key Levels ---",
        f"Nearest Support: ${levels.nearest_support:.2f}",
        f"Nearest Resistance: ${levels.nearest_resistance:.2f}",
        (
            f"Fibonacci: 38.2%=${levels.fibonacci.level382:.2f}, "
            f"50%=${levels.fibonacci.level500:.2f}, 61.8%=${levels.fibonacci.level618:.2f}"
        ),
        f"Pivot: PP=${levels.pivots.pivot:.2f}, R1=${levels.pivots.r1:.2f}, S1=${levels.pivots.s1:.2f}",
        "",
        "--- Volume Profile ---",
        f"POC: ${profile.point_of_control:.2f}",
        f"Value Area: ${profile.value_area_low:.2f} - ${profile.value_area_high:.2f}",
        f"Current vs Avg Volume: {profile.current_vs_avg:.2f}x ({profile.volume_trend.value})",
        "",
        (
            f"Overall Bias: {report.technicals.overall_bias.value.upper()} "
            f"(Confluence: {report.technicals.confluence_score}/10)"
        ),
    ]

    return "\n".join(lines)
