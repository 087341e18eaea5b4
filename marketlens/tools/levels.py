"""Support and resistance level tools.

Levels come from three independent sources: swing structure, Fibonacci
retracement of the trailing window, and pivot points of the previous bar.
Swing levels are merged with a greedy clustering sweep, then all levels are
ranked against the current price.
"""

from typing import List
import logging

from marketlens.exceptions import InsufficientDataError
from marketlens.models.data import (
    PriceBar,
    PriceLevel,
    FibonacciLevels,
    PivotPoints,
)
from marketlens.models.analysis import LevelAnalysis

logger = logging.getLogger(__name__)

FIBONACCI_RATIOS = {
    "level0": 0.0,
    "level236": 0.236,
    "level382": 0.382,
    "level500": 0.5,
    "level618": 0.618,
    "level786": 0.786,
    "level1000": 1.0,
}

# Camarilla multipliers are range * 1.1 / divisor
CAMARILLA_DIVISORS = {1: 12, 2: 6, 3: 4}

FALLBACK_SUPPORT_FACTOR = 0.98
FALLBACK_RESISTANCE_FACTOR = 1.02


def strength_for_touches(touches: int) -> str:
    """Map the number of merged raw levels to a strength label."""
    if touches >= 3:
        return "strong"
    if touches == 2:
        return "moderate"
    return "weak"


def _require_bars(price_bars: List[PriceBar]) -> None:
    if not price_bars:
        raise InsufficientDataError("price_bars cannot be empty")


def find_swing_levels(
    price_bars: List[PriceBar],
    lookback: int = 20,
) -> List[PriceLevel]:
    """Find raw swing highs and lows in the trailing `3 * lookback` bars.

    A bar is a swing high when its high is strictly above the highs of the
    two bars on each side, and a swing low when its low is strictly below
    their lows. The first and last two bars of the window cannot qualify.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        lookback: Base lookback; the scanned window is three times this

    Returns:
        Unclustered resistance (swing high) and support (swing low)
        candidates in chronological order
    """
    if lookback < 1:
        raise ValueError("lookback must be >= 1")

    window = price_bars[-lookback * 3:]
    levels = []

    for i in range(2, len(window) - 2):
        bar = window[i]
        neighbors = [window[i - 2], window[i - 1], window[i + 1], window[i + 2]]

        if all(bar.high > other.high for other in neighbors):
            levels.append(PriceLevel(
                price=bar.high,
                type="resistance",
                strength="moderate",
                source="swing_high",
            ))

        if all(bar.low < other.low for other in neighbors):
            levels.append(PriceLevel(
                price=bar.low,
                type="support",
                strength="moderate",
                source="swing_low",
            ))

    logger.debug(f"Found {len(levels)} swing levels in {len(window)} bars")
    return levels


def cluster_levels(
    levels: List[PriceLevel],
    tolerance: float = 0.005,
) -> List[PriceLevel]:
    """Merge nearby levels in a single left-to-right sweep.

    Levels are sorted by price. Each level is compared with the cluster
    being built; if it lies within `tolerance` (relative to the cluster
    price) it is merged: the cluster price becomes the average of the two,
    touches add up. Otherwise the cluster is closed and the level starts a
    new one. A merged cluster keeps the type and source of its first
    member, and every output level's strength is re-derived from touches.

    The sweep is greedy, so three levels spaced just under `tolerance`
    apart can end up in two clusters. Running it again on its own output
    changes nothing.

    Args:
        levels: Levels to merge (any order)
        tolerance: Relative price distance below which levels merge

    Returns:
        Clustered levels sorted by price ascending
    """
    if tolerance <= 0:
        raise ValueError("tolerance must be > 0")

    if not levels:
        return []

    ordered = sorted(levels, key=lambda level: level.price)
    clusters = []
    current = ordered[0]

    for level in ordered[1:]:
        diff = abs(level.price - current.price) / current.price
        if diff < tolerance:
            touches = current.touches + level.touches
            current = current.model_copy(update={
                "price": (current.price + level.price) / 2,
                "touches": touches,
            })
        else:
            clusters.append(current)
            current = level
    clusters.append(current)

    return [
        cluster.model_copy(update={"strength": strength_for_touches(cluster.touches)})
        for cluster in clusters
    ]


def find_support_resistance(
    price_bars: List[PriceBar],
    lookback: int = 20,
    tolerance: float = 0.005,
) -> List[PriceLevel]:
    """Swing-structure support and resistance, clustered."""
    return cluster_levels(find_swing_levels(price_bars, lookback), tolerance)


def compute_fibonacci(
    price_bars: List[PriceBar],
    lookback: int = 50,
) -> FibonacciLevels:
    """Calculate Fibonacci retracement levels of the trailing window.

    The swing high is the highest high and the swing low the lowest low of
    the last `lookback` bars; each level is high - range * ratio.

    Raises:
        InsufficientDataError: If price_bars is empty

    Example:
        >>> fib = compute_fibonacci(bars)
        >>> print(f"61.8%: {fib.level618:.2f}")
    """
    _require_bars(price_bars)
    if lookback < 1:
        raise ValueError("lookback must be >= 1")

    window = price_bars[-lookback:]
    swing_high = max(bar.high for bar in window)
    swing_low = min(bar.low for bar in window)
    price_range = swing_high - swing_low

    levels = {
        name: swing_high - price_range * ratio
        for name, ratio in FIBONACCI_RATIOS.items()
    }
    # Exact endpoints, no floating drift at 100%
    levels["level1000"] = swing_low

    return FibonacciLevels(swing_high=swing_high, swing_low=swing_low, **levels)


def fibonacci_to_levels(fib: FibonacciLevels) -> List[PriceLevel]:
    """Expose the 23.6% to 78.6% retracements as support candidates."""
    return [
        PriceLevel(price=fib.level236, type="support", strength="weak", source="fibonacci_0.236"),
        PriceLevel(price=fib.level382, type="support", strength="weak", source="fibonacci_0.382"),
        PriceLevel(price=fib.level500, type="support", strength="weak", source="fibonacci_0.500"),
        PriceLevel(price=fib.level618, type="support", strength="weak", source="fibonacci_0.618"),
        PriceLevel(price=fib.level786, type="support", strength="weak", source="fibonacci_0.786"),
    ]


def _previous_bar(price_bars: List[PriceBar]) -> PriceBar:
    # Second-to-last bar is the completed previous period
    _require_bars(price_bars)
    return price_bars[-2] if len(price_bars) >= 2 else price_bars[-1]


def compute_classic_pivots(price_bars: List[PriceBar]) -> PivotPoints:
    """Classic floor-trader pivots from the previous bar's high, low and close."""
    prev = _previous_bar(price_bars)
    high, low, close = prev.high, prev.low, prev.close

    pivot = (high + low + close) / 3

    return PivotPoints(
        pivot=pivot,
        r1=2 * pivot - low,
        r2=pivot + (high - low),
        r3=high + 2 * (pivot - low),
        s1=2 * pivot - high,
        s2=pivot - (high - low),
        s3=low - 2 * (high - pivot),
        type="classic",
    )


def compute_camarilla_pivots(price_bars: List[PriceBar]) -> PivotPoints:
    """Camarilla pivots: levels step out from the previous close by range * 1.1 / d."""
    prev = _previous_bar(price_bars)
    high, low, close = prev.high, prev.low, prev.close
    price_range = high - low

    offsets = {n: price_range * (1.1 / d) for n, d in CAMARILLA_DIVISORS.items()}

    return PivotPoints(
        pivot=(high + low + close) / 3,
        r1=close + offsets[1],
        r2=close + offsets[2],
        r3=close + offsets[3],
        s1=close - offsets[1],
        s2=close - offsets[2],
        s3=close - offsets[3],
        type="camarilla",
    )


def pivots_to_levels(pivots: PivotPoints) -> List[PriceLevel]:
    """R1-R3 as resistance, the pivot and S1-S3 as support."""
    prefix = f"pivot_{pivots.type}"
    return [
        PriceLevel(price=pivots.r3, type="resistance", strength="weak", source=f"{prefix}_R3"),
        PriceLevel(price=pivots.r2, type="resistance", strength="weak", source=f"{prefix}_R2"),
        PriceLevel(price=pivots.r1, type="resistance", strength="weak", source=f"{prefix}_R1"),
        PriceLevel(price=pivots.pivot, type="support", strength="weak", source=f"{prefix}_PP"),
        PriceLevel(price=pivots.s1, type="support", strength="weak", source=f"{prefix}_S1"),
        PriceLevel(price=pivots.s2, type="support", strength="weak", source=f"{prefix}_S2"),
        PriceLevel(price=pivots.s3, type="support", strength="weak", source=f"{prefix}_S3"),
    ]


def compute_level_analysis(
    price_bars: List[PriceBar],
    ticker: str = "",
    lookback: int = 20,
    fib_lookback: int = 50,
    tolerance: float = 0.005,
) -> LevelAnalysis:
    """Merge swing, Fibonacci and pivot levels and rank them against price.

    Swing highs and lows are clustered; the Fibonacci supports and classic
    pivot levels are added unclustered, so a pivot resistance is never
    absorbed into a nearby support. Supports are support levels
    strictly below the current close, nearest first; resistances are
    resistance levels strictly above it, nearest first. When either side is
    empty its nearest level falls back to close * 0.98 / close * 1.02.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        ticker: Symbol the bars belong to
        lookback: Swing lookback (scans 3x this many bars)
        fib_lookback: Window for the Fibonacci swing high/low
        tolerance: Clustering tolerance

    Returns:
        LevelAnalysis

    Raises:
        InsufficientDataError: If price_bars is empty
    """
    logger.info(f"Computing levels for {ticker or 'series'} ({len(price_bars)} bars)")

    _require_bars(price_bars)
    current_price = price_bars[-1].close

    fibonacci = compute_fibonacci(price_bars, fib_lookback)
    pivots = compute_classic_pivots(price_bars)
    camarilla = compute_camarilla_pivots(price_bars)

    # Only swing structure is clustered; formula levels keep their own type
    candidates = (
        find_support_resistance(price_bars, lookback, tolerance)
        + fibonacci_to_levels(fibonacci)
        + pivots_to_levels(pivots)
    )

    supports = sorted(
        (level for level in candidates if level.type == "support" and level.price < current_price),
        key=lambda level: level.price,
        reverse=True,
    )
    resistances = sorted(
        (level for level in candidates if level.type == "resistance" and level.price > current_price),
        key=lambda level: level.price,
    )

    nearest_support = supports[0].price if supports else current_price * FALLBACK_SUPPORT_FACTOR
    nearest_resistance = (
        resistances[0].price if resistances else current_price * FALLBACK_RESISTANCE_FACTOR
    )

    logger.info(
        f"Levels: {len(supports)} supports, {len(resistances)} resistances, "
        f"nearest S={nearest_support:.2f} R={nearest_resistance:.2f}"
    )

    return LevelAnalysis(
        ticker=ticker,
        supports=supports,
        resistances=resistances,
        fibonacci=fibonacci,
        pivots=pivots,
        camarilla=camarilla,
        nearest_support=nearest_support,
        nearest_resistance=nearest_resistance,
    )
