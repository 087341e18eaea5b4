"""Confluence scoring across indicator biases."""

from typing import List, Sequence, Tuple
import logging
import math

from marketlens.models.data import Bias
from marketlens.models.analysis import (
    TrendIndicators,
    MomentumIndicators,
    VolatilityIndicators,
    VolumeIndicators,
)

logger = logging.getLogger(__name__)

# A side must hold more than this share of the votes to set the overall bias
MAJORITY_SHARE = 0.6


def collect_biases(
    trend: TrendIndicators,
    momentum: MomentumIndicators,
    volatility: VolatilityIndicators,
    volume: VolumeIndicators,
) -> List[Bias]:
    """Collect the 12 biases that take part in the confluence vote.

    EMA 200, Williams %R, ATR, Keltner Channels and the volume moving
    average are reported but do not vote.
    """
    return [
        trend.ema9.bias,
        trend.ema21.bias,
        trend.ema50.bias,
        trend.macd.bias,
        trend.adx.bias,
        momentum.rsi.bias,
        momentum.stochastic.bias,
        momentum.cci.bias,
        volatility.bollinger_bands.bias,
        volume.obv.bias,
        volume.vwap.bias,
        volume.cmf.bias,
    ]


def score_confluence(biases: Sequence[Bias]) -> Tuple[Bias, int]:
    """Tally biases into an overall verdict and a 0-10 agreement score.

    Args:
        biases: Individual indicator biases

    Returns:
        (overall_bias, confluence_score). The overall bias is bullish or
        bearish only when that side holds more than 60% of all votes; the
        score is 10 * dominant-side count / total, rounded half up.

    Example:
        >>> score_confluence([Bias.BULLISH] * 9 + [Bias.NEUTRAL] * 3)
        (<Bias.BULLISH: 'bullish'>, 8)
    """
    total = len(biases)
    if total == 0:
        return Bias.NEUTRAL, 0

    bullish_count = sum(1 for bias in biases if bias == Bias.BULLISH)
    bearish_count = sum(1 for bias in biases if bias == Bias.BEARISH)

    if bullish_count > total * MAJORITY_SHARE:
        overall_bias = Bias.BULLISH
    elif bearish_count > total * MAJORITY_SHARE:
        overall_bias = Bias.BEARISH
    else:
        overall_bias = Bias.NEUTRAL

    dominant_count = max(bullish_count, bearish_count)
    confluence_score = int(math.floor(dominant_count / total * 10 + 0.5))

    logger.debug(
        f"Confluence: {bullish_count} bullish / {bearish_count} bearish of {total}, "
        f"Overall: {overall_bias.value}, Score: {confluence_score}/10"
    )

    return overall_bias, confluence_score
