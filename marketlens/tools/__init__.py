"""Analysis tools - pure functions over a bar sequence."""

from .indicators import (
    calculate_ema,
    calculate_macd,
    calculate_adx,
    calculate_rsi,
    calculate_stochastic,
    calculate_cci,
    calculate_williams_r,
    calculate_bollinger_bands,
    calculate_atr,
    calculate_keltner_channels,
    calculate_obv,
    calculate_vwap,
    calculate_volume_ma,
    calculate_cmf,
    compute_trend,
    compute_momentum,
    compute_volatility,
    compute_volume,
)
from .confluence import collect_biases, score_confluence
from .levels import (
    find_swing_levels,
    cluster_levels,
    find_support_resistance,
    compute_fibonacci,
    compute_classic_pivots,
    compute_camarilla_pivots,
    compute_level_analysis,
)
from .volume_profile import (
    build_volume_profile,
    find_value_area,
    compute_volume_trend,
    compute_volume_analysis,
)
from .analysis import (
    compute_indicators,
    compute_levels,
    compute_volume_profile,
    build_report,
    format_report,
)

__all__ = [
    # Indicator tools (18)
    "calculate_ema",
    "calculate_macd",
    "calculate_adx",
    "calculate_rsi",
    "calculate_stochastic",
    "calculate_cci",
    "calculate_williams_r",
    "calculate_bollinger_bands",
    "calculate_atr",
    "calculate_keltner_channels",
    "calculate_obv",
    "calculate_vwap",
    "calculate_volume_ma",
    "calculate_cmf",
    "compute_trend",
    "compute_momentum",
    "compute_volatility",
    "compute_volume",
    # Confluence tools (2)
    "collect_biases",
    "score_confluence",
    # Level tools (7)
    "find_swing_levels",
    "cluster_levels",
    "find_support_resistance",
    "compute_fibonacci",
    "compute_classic_pivots",
    "compute_camarilla_pivots",
    "compute_level_analysis",
    # Volume profile tools (4)
    "build_volume_profile",
    "find_value_area",
    "compute_volume_trend",
    "compute_volume_analysis",
    # Entry points (5)
    "compute_indicators",
    "compute_levels",
    "compute_volume_profile",
    "build_report",
    "format_report",
]
