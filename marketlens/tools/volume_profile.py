"""Volume profile tools: volume-by-price, point of control, value area."""

from typing import List, Sequence, Tuple
import logging
import numpy as np
import pandas as pd

from marketlens.exceptions import InsufficientDataError
from marketlens.models.data import Bias, PriceBar, VolumeProfileEntry
from marketlens.models.analysis import VolumeAnalysis

logger = logging.getLogger(__name__)

VOLUME_TREND_WINDOW = 5
VOLUME_TREND_RISING = 1.2
VOLUME_TREND_FALLING = 0.8
VOLUME_MA_PERIOD = 20


def build_volume_profile(
    price_bars: List[PriceBar],
    bins: int = 20,
) -> List[VolumeProfileEntry]:
    """Distribute traded volume across equal-width price bins.

    The price axis from the lowest low to the highest high is split into
    `bins` equal bins. Each bar's volume is split evenly across every bin
    its [low, high] range touches. This is the usual approximation when
    only OHLCV bars are available: no price inside the bar is favoured.

    When the window has no price range at all, every bar lands in the
    first bin and every bin midpoint equals that single price.

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        bins: Number of price bins (default: 20)

    Returns:
        One VolumeProfileEntry per bin, lowest price first

    Raises:
        InsufficientDataError: If price_bars is empty
        ValueError: If bins < 1
    """
    if not price_bars:
        raise InsufficientDataError("price_bars cannot be empty")

    if bins < 1:
        raise ValueError("bins must be >= 1")

    highs = np.array([bar.high for bar in price_bars], dtype=float)
    lows = np.array([bar.low for bar in price_bars], dtype=float)
    volumes = np.array([bar.volume for bar in price_bars], dtype=float)

    price_min = float(np.min(lows))
    price_max = float(np.max(highs))
    bin_size = (price_max - price_min) / bins

    volume_by_bin = np.zeros(bins)

    for bar_low, bar_high, bar_volume in zip(lows, highs, volumes):
        if bin_size > 0:
            low_bin = min(int(np.floor((bar_low - price_min) / bin_size)), bins - 1)
            high_bin = min(int(np.floor((bar_high - price_min) / bin_size)), bins - 1)
        else:
            low_bin = high_bin = 0

        bins_spanned = max(high_bin - low_bin + 1, 1)
        volume_per_bin = bar_volume / bins_spanned

        for bin_idx in range(low_bin, high_bin + 1):
            volume_by_bin[bin_idx] += volume_per_bin

    total_volume = float(np.sum(volume_by_bin))

    return [
        VolumeProfileEntry(
            price_level=price_min + (i + 0.5) * bin_size,
            volume=float(volume),
            pct_of_total=min(float(volume) / total_volume, 1.0) if total_volume > 0 else 0.0,
        )
        for i, volume in enumerate(volume_by_bin)
    ]


def find_value_area(
    volumes: Sequence[float],
    value_area_pct: float = 0.70,
) -> Tuple[int, int, int]:
    """Find the value area around the point of control.

    Starting from the highest-volume bin (the first one on ties), the area
    grows one bin at a time toward whichever neighbour holds more volume,
    preferring the lower side on ties, until it holds `value_area_pct` of
    total volume or cannot grow any further.

    Args:
        volumes: Volume per bin, lowest price first
        value_area_pct: Fraction of total volume to capture (default: 0.70)

    Returns:
        (low_index, high_index, poc_index), bounds inclusive
    """
    if not 0 < value_area_pct <= 1:
        raise ValueError("value_area_pct must be in (0, 1]")

    if len(volumes) == 0:
        raise InsufficientDataError("volume profile cannot be empty")

    last_idx = len(volumes) - 1
    poc_idx = int(np.argmax(volumes))
    target_volume = float(np.sum(volumes)) * value_area_pct

    captured = volumes[poc_idx]
    low_idx = poc_idx
    high_idx = poc_idx

    while captured < target_volume and (low_idx > 0 or high_idx < last_idx):
        lower_volume = volumes[low_idx - 1] if low_idx > 0 else 0
        upper_volume = volumes[high_idx + 1] if high_idx < last_idx else 0

        if lower_volume >= upper_volume and low_idx > 0:
            low_idx -= 1
            captured += volumes[low_idx]
        elif high_idx < last_idx:
            high_idx += 1
            captured += volumes[high_idx]
        else:
            break

    return low_idx, high_idx, poc_idx


def compute_volume_trend(volumes: Sequence[float]) -> Bias:
    """Compare the mean volume of the last 5 bars with the 5 before them.

    Rising participation (recent > 1.2x prior) is bullish, fading
    participation (recent < 0.8x prior) bearish. With no prior bars the
    comparison is against the recent mean itself, i.e. neutral.
    """
    recent = list(volumes[-VOLUME_TREND_WINDOW:])
    prior = list(volumes[-2 * VOLUME_TREND_WINDOW:-VOLUME_TREND_WINDOW])

    recent_avg = float(np.mean(recent)) if recent else 0.0
    prior_avg = float(np.mean(prior)) if prior else recent_avg

    if recent_avg > prior_avg * VOLUME_TREND_RISING:
        return Bias.BULLISH
    if recent_avg < prior_avg * VOLUME_TREND_FALLING:
        return Bias.BEARISH
    return Bias.NEUTRAL


def compute_volume_analysis(
    price_bars: List[PriceBar],
    bins: int = 20,
    value_area_pct: float = 0.70,
) -> VolumeAnalysis:
    """Calculate the volume profile, point of control, value area and volume trend.

    Key concepts:
    - Point of control (POC): price bin with the highest traded volume
    - Value area: contiguous bins around the POC holding 70% of volume
    - Volume trend: whether participation is rising or fading

    Args:
        price_bars: List of PriceBar objects (OHLCV data)
        bins: Number of price bins (default: 20)
        value_area_pct: Value area fraction (default: 0.70)

    Returns:
        VolumeAnalysis

    Raises:
        InsufficientDataError: If price_bars is empty

    Example:
        >>> va = compute_volume_analysis(bars)
        >>> print(f"POC: {va.point_of_control:.2f}")
        >>> print(f"Value Area: {va.value_area_low:.2f} - {va.value_area_high:.2f}")
    """
    logger.info(f"Calculating volume profile for {len(price_bars)} bars (bins: {bins})")

    profile = build_volume_profile(price_bars, bins)
    low_idx, high_idx, poc_idx = find_value_area(
        [entry.volume for entry in profile], value_area_pct
    )

    volumes = pd.Series([bar.volume for bar in price_bars], dtype=float)
    current_volume = float(volumes.iloc[-1])
    average_volume = volumes.rolling(window=VOLUME_MA_PERIOD).mean().iloc[-1]
    if pd.isna(average_volume):
        average_volume = current_volume
    current_vs_avg = current_volume / average_volume if average_volume > 0 else 1.0

    volume_trend = compute_volume_trend(volumes.tolist())

    logger.info(
        f"Volume Profile: POC={profile[poc_idx].price_level:.2f}, "
        f"Value Area: {profile[low_idx].price_level:.2f}-{profile[high_idx].price_level:.2f}, "
        f"Current/Avg: {current_vs_avg:.2f}, Trend: {volume_trend.value}"
    )

    return VolumeAnalysis(
        profile=profile,
        point_of_control=profile[poc_idx].price_level,
        value_area_high=profile[high_idx].price_level,
        value_area_low=profile[low_idx].price_level,
        current_vs_avg=float(current_vs_avg),
        volume_trend=volume_trend,
    )
