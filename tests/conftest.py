"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from marketlens.config import get_settings
from marketlens.models.data import PriceBar


def make_bars(
    closes: Sequence[float],
    highs: Optional[Sequence[float]] = None,
    lows: Optional[Sequence[float]] = None,
    volumes: Optional[Sequence[float]] = None,
) -> List[PriceBar]:
    """Build daily bars from close (and optionally high/low/volume) series."""
    base_date = datetime(2025, 1, 1)
    bars = []
    for i, close in enumerate(closes):
        high = highs[i] if highs is not None else close
        low = lows[i] if lows is not None else close
        bars.append(PriceBar(
            timestamp=base_date + timedelta(days=i),
            open=close,
            high=high,
            low=low,
            close=close,
            volume=volumes[i] if volumes is not None else 1000000,
        ))
    return bars


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_price_bars() -> List[PriceBar]:
    """Generate sample price bars for testing."""
    bars = []
    base_date = datetime(2025, 1, 1)
    base_price = 100.0

    for i in range(100):
        # Create slightly trending upward prices with some volatility
        trend = i * 0.1
        volatility = (i % 5) - 2  # -2 to +2
        close = base_price + trend + volatility

        bar = PriceBar(
            timestamp=base_date + timedelta(days=i),
            open=close - 0.5,
            high=close + 1.0,
            low=close - 1.5,
            close=close,
            volume=1000000 + (i * 10000),
        )
        bars.append(bar)

    return bars


@pytest.fixture
def uptrend_price_bars() -> List[PriceBar]:
    """Generate price bars showing clear uptrend."""
    bars = []
    base_date = datetime(2025, 1, 1)
    base_price = 100.0

    for i in range(50):
        close = base_price + (i * 0.5)  # Clear uptrend

        bar = PriceBar(
            timestamp=base_date + timedelta(days=i),
            open=close - 0.2,
            high=close + 0.3,
            low=close - 0.4,
            close=close,
            volume=1000000,
        )
        bars.append(bar)

    return bars


@pytest.fixture
def downtrend_price_bars() -> List[PriceBar]:
    """Generate price bars showing clear downtrend."""
    bars = []
    base_date = datetime(2025, 1, 1)
    base_price = 100.0

    for i in range(50):
        close = base_price - (i * 0.3)  # Clear downtrend

        bar = PriceBar(
            timestamp=base_date + timedelta(days=i),
            open=close + 0.2,
            high=close + 0.4,
            low=close - 0.3,
            close=close,
            volume=1000000,
        )
        bars.append(bar)

    return bars


@pytest.fixture
def flat_price_bars() -> List[PriceBar]:
    """60 bars that never move from 100."""
    return make_bars([100.0] * 60)


@pytest.fixture
def rising_price_bars() -> List[PriceBar]:
    """60 bars closing at their high, +0.2 per bar, constant volume."""
    closes = [100.0 + 0.2 * i for i in range(60)]
    return make_bars(
        closes,
        highs=closes,
        lows=[close * 0.999 for close in closes],
        volumes=[1e6] * 60,
    )


@pytest.fixture
def bar_factory():
    """Expose make_bars to tests that build their own series."""
    return make_bars
