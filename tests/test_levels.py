"""Tests for support/resistance level tools."""

import pytest

from marketlens.exceptions import InsufficientDataError
from marketlens.models.data import PriceLevel
from marketlens.tools.levels import (
    find_swing_levels,
    cluster_levels,
    find_support_resistance,
    compute_fibonacci,
    fibonacci_to_levels,
    compute_classic_pivots,
    compute_camarilla_pivots,
    pivots_to_levels,
    compute_level_analysis,
    strength_for_touches,
)


SWING_HIGHS = [10, 11, 12, 15, 12, 11, 10, 11, 12]
SWING_LOWS = [9, 10, 11, 14, 11, 10, 5, 10, 11]


@pytest.fixture
def swing_bars(bar_factory):
    """One clear swing high (15) and one clear swing low (5)."""
    closes = [(high + low) / 2 for high, low in zip(SWING_HIGHS, SWING_LOWS)]
    return bar_factory(closes, highs=SWING_HIGHS, lows=SWING_LOWS)


def _level(price: float, level_type: str = "support", source: str = "swing_low") -> PriceLevel:
    return PriceLevel(price=price, type=level_type, strength="weak", source=source)


class TestSwingLevels:
    """Tests for swing high/low detection."""

    def test_find_swing_levels(self, swing_bars):
        """Test a bar beating two neighbours on each side is a swing."""
        levels = find_swing_levels(swing_bars)

        assert len(levels) == 2
        resistance, support = levels
        assert resistance.price == 15
        assert resistance.type == "resistance"
        assert resistance.source == "swing_high"
        assert support.price == 5
        assert support.type == "support"
        assert support.source == "swing_low"

    def test_window_is_three_lookbacks(self, swing_bars):
        """Test swings older than 3 * lookback bars are ignored."""
        levels = find_swing_levels(swing_bars, lookback=2)

        assert [level.price for level in levels] == [5]

    def test_ties_are_not_swings(self, flat_price_bars):
        """Test equal neighbours never form a swing."""
        assert find_swing_levels(flat_price_bars) == []

    def test_too_few_bars(self, swing_bars):
        """Test fewer than five bars cannot hold a swing."""
        assert find_swing_levels(swing_bars[:4]) == []

    def test_invalid_lookback(self, swing_bars):
        """Test lookback must be positive."""
        with pytest.raises(ValueError):
            find_swing_levels(swing_bars, lookback=0)


class TestClusterLevels:
    """Tests for level clustering."""

    def test_greedy_sweep(self):
        """Test a chain of close levels splits where the gap exceeds tolerance."""
        levels = [_level(p) for p in [100.0, 100.4, 100.8, 101.2]]

        clustered = cluster_levels(levels, tolerance=0.005)

        assert [level.price for level in clustered] == pytest.approx([100.2, 101.0])
        assert [level.touches for level in clustered] == [2, 2]
        assert [level.strength for level in clustered] == ["moderate", "moderate"]

    def test_touches_drive_strength(self):
        """Test three merged levels make a strong level."""
        levels = [_level(p) for p in [100.2, 100.0, 100.1]]

        clustered = cluster_levels(levels)

        assert len(clustered) == 1
        assert clustered[0].touches == 3
        assert clustered[0].strength == "strong"

    def test_singleton_is_weak(self):
        """Test an unmerged level is re-rated from its touches."""
        level = PriceLevel(price=100.0, type="resistance", strength="moderate", source="swing_high")

        clustered = cluster_levels([level])

        assert clustered[0].strength == "weak"
        assert clustered[0].source == "swing_high"

    def test_first_member_keeps_type_and_source(self):
        """Test a merged cluster keeps its lowest member's type and source."""
        levels = [
            _level(100.3, "resistance", "swing_high"),
            _level(100.0, "support", "fibonacci_0.500"),
        ]

        clustered = cluster_levels(levels)

        assert len(clustered) == 1
        assert clustered[0].type == "support"
        assert clustered[0].source == "fibonacci_0.500"

    def test_sorted_output(self):
        """Test clusters come out in ascending price order."""
        levels = [_level(p) for p in [120.0, 100.0, 110.0]]

        clustered = cluster_levels(levels)

        assert [level.price for level in clustered] == [100.0, 110.0, 120.0]

    def test_idempotent(self, sample_price_bars):
        """Test clustering an already clustered list changes nothing."""
        once = cluster_levels(find_swing_levels(sample_price_bars))
        twice = cluster_levels(once)

        assert twice == once

    def test_empty(self):
        """Test no levels in, no levels out."""
        assert cluster_levels([]) == []

    def test_invalid_tolerance(self):
        """Test tolerance must be positive."""
        with pytest.raises(ValueError):
            cluster_levels([_level(100.0)], tolerance=0)

    def test_find_support_resistance(self, swing_bars):
        """Test swing levels come back clustered."""
        levels = find_support_resistance(swing_bars)

        assert [level.price for level in levels] == [5, 15]
        assert all(level.strength == "weak" for level in levels)

    @pytest.mark.parametrize("touches,expected", [(1, "weak"), (2, "moderate"), (3, "strong"), (7, "strong")])
    def test_strength_for_touches(self, touches, expected):
        """Test touch count to strength mapping."""
        assert strength_for_touches(touches) == expected


class TestFibonacci:
    """Tests for Fibonacci retracements."""

    def test_compute_fibonacci(self, bar_factory):
        """Test retracements between swing high and swing low."""
        bars = bar_factory([105.0, 104.0], highs=[110.0, 106.0], lows=[102.0, 100.0])

        fib = compute_fibonacci(bars)

        assert fib.swing_high == 110.0
        assert fib.swing_low == 100.0
        assert fib.level0 == 110.0
        assert fib.level236 == pytest.approx(107.64)
        assert fib.level382 == pytest.approx(106.18)
        assert fib.level500 == pytest.approx(105.0)
        assert fib.level618 == pytest.approx(103.82)
        assert fib.level786 == pytest.approx(102.14)
        assert fib.level1000 == 100.0

    def test_levels_descend(self, sample_price_bars):
        """Test retracements are ordered from high to low."""
        fib = compute_fibonacci(sample_price_bars)

        assert (
            fib.level0 >= fib.level236 >= fib.level382 >= fib.level500
            >= fib.level618 >= fib.level786 >= fib.level1000
        )

    def test_lookback_window(self, sample_price_bars):
        """Test only the trailing lookback bars set the swing."""
        fib = compute_fibonacci(sample_price_bars, lookback=10)

        window = sample_price_bars[-10:]
        assert fib.swing_high == max(bar.high for bar in window)
        assert fib.swing_low == min(bar.low for bar in window)

    def test_flat_collapse(self, flat_price_bars):
        """Test every level equals price when there is no range."""
        fib = compute_fibonacci(flat_price_bars)

        assert fib.level0 == fib.level500 == fib.level1000 == 100.0

    def test_fibonacci_to_levels(self, sample_price_bars):
        """Test inner retracements become support candidates."""
        levels = fibonacci_to_levels(compute_fibonacci(sample_price_bars))

        assert [level.source for level in levels] == [
            "fibonacci_0.236",
            "fibonacci_0.382",
            "fibonacci_0.500",
            "fibonacci_0.618",
            "fibonacci_0.786",
        ]
        assert all(level.type == "support" for level in levels)

    def test_empty_input(self):
        """Test Fibonacci needs at least one bar."""
        with pytest.raises(InsufficientDataError):
            compute_fibonacci([])


class TestPivots:
    """Tests for pivot points."""

    @pytest.fixture
    def pivot_bars(self, bar_factory):
        """Previous bar H110 / L100 / C105, then a current bar."""
        return bar_factory([105.0, 200.0], highs=[110.0, 210.0], lows=[100.0, 190.0])

    def test_classic_pivots(self, pivot_bars):
        """Test classic pivots use the previous bar."""
        pivots = compute_classic_pivots(pivot_bars)

        assert pivots.type == "classic"
        assert pivots.pivot == pytest.approx(105.0)
        assert pivots.r1 == pytest.approx(110.0)
        assert pivots.r2 == pytest.approx(115.0)
        assert pivots.r3 == pytest.approx(120.0)
        assert pivots.s1 == pytest.approx(100.0)
        assert pivots.s2 == pytest.approx(95.0)
        assert pivots.s3 == pytest.approx(90.0)

    def test_camarilla_pivots(self, pivot_bars):
        """Test camarilla levels step out from the previous close."""
        pivots = compute_camarilla_pivots(pivot_bars)

        assert pivots.type == "camarilla"
        assert pivots.r1 == pytest.approx(105.0 + 11.0 / 12)
        assert pivots.r2 == pytest.approx(105.0 + 11.0 / 6)
        assert pivots.r3 == pytest.approx(105.0 + 11.0 / 4)
        assert pivots.s1 == pytest.approx(105.0 - 11.0 / 12)
        assert pivots.s2 == pytest.approx(105.0 - 11.0 / 6)
        assert pivots.s3 == pytest.approx(105.0 - 11.0 / 4)

    def test_pivot_ordering(self, sample_price_bars):
        """Test S3 <= S2 <= S1 <= P <= R1 <= R2 <= R3."""
        for pivots in (compute_classic_pivots(sample_price_bars), compute_camarilla_pivots(sample_price_bars)):
            assert pivots.s3 <= pivots.s2 <= pivots.s1 <= pivots.r1 <= pivots.r2 <= pivots.r3

        classic = compute_classic_pivots(sample_price_bars)
        assert classic.s1 <= classic.pivot <= classic.r1

    def test_single_bar_uses_itself(self, bar_factory):
        """Test a lone bar serves as its own previous bar."""
        bars = bar_factory([105.0], highs=[110.0], lows=[100.0])

        pivots = compute_classic_pivots(bars)

        assert pivots.pivot == pytest.approx(105.0)

    def test_pivots_to_levels(self, pivot_bars):
        """Test R levels resist and PP/S levels support."""
        levels = pivots_to_levels(compute_classic_pivots(pivot_bars))

        by_source = {level.source: level for level in levels}
        assert len(levels) == 7
        assert by_source["pivot_classic_R1"].type == "resistance"
        assert by_source["pivot_classic_PP"].type == "support"
        assert by_source["pivot_classic_S3"].price == pytest.approx(90.0)

    def test_empty_input(self):
        """Test pivots need at least one bar."""
        with pytest.raises(InsufficientDataError):
            compute_classic_pivots([])


class TestLevelAnalysis:
    """Tests for the merged level analysis."""

    def test_ranking(self, sample_price_bars):
        """Test supports below and resistances above price, nearest first."""
        analysis = compute_level_analysis(sample_price_bars, ticker="TEST")
        price = sample_price_bars[-1].close

        assert analysis.ticker == "TEST"
        assert all(level.price < price for level in analysis.supports)
        assert all(level.price > price for level in analysis.resistances)
        assert [level.price for level in analysis.supports] == sorted(
            (level.price for level in analysis.supports), reverse=True
        )
        assert [level.price for level in analysis.resistances] == sorted(
            level.price for level in analysis.resistances
        )
        assert analysis.nearest_support < price < analysis.nearest_resistance

    def test_nearest_levels(self, sample_price_bars):
        """Test nearest levels are the first of each ranked list."""
        analysis = compute_level_analysis(sample_price_bars)

        if analysis.supports:
            assert analysis.nearest_support == analysis.supports[0].price
        if analysis.resistances:
            assert analysis.nearest_resistance == analysis.resistances[0].price

    def test_includes_pivots(self, sample_price_bars):
        """Test both pivot flavours are reported."""
        analysis = compute_level_analysis(sample_price_bars)

        assert analysis.pivots == compute_classic_pivots(sample_price_bars)
        assert analysis.camarilla == compute_camarilla_pivots(sample_price_bars)
        assert analysis.fibonacci == compute_fibonacci(sample_price_bars)

    def test_flat_falls_back(self, flat_price_bars):
        """Test a series without range falls back to +/- 2%."""
        analysis = compute_level_analysis(flat_price_bars)

        assert analysis.supports == []
        assert analysis.resistances == []
        assert analysis.nearest_support == pytest.approx(98.0)
        assert analysis.nearest_resistance == pytest.approx(102.0)

    def test_swing_levels_are_ranked(self, swing_bars):
        """Test swing structure shows up around the current price."""
        analysis = compute_level_analysis(swing_bars)

        assert any(level.price == pytest.approx(5) for level in analysis.supports)
        assert any(level.price == pytest.approx(15) for level in analysis.resistances)

    def test_empty_input(self):
        """Test level analysis needs at least one bar."""
        with pytest.raises(InsufficientDataError, match="price_bars cannot be empty"):
            compute_level_analysis([])

    def test_empty_input_is_value_error(self):
        """Test the insufficient data error is a ValueError."""
        with pytest.raises(ValueError):
            compute_level_analysis([])

    @staticmethod
    def _pivot_near_fibonacci_bars(bar_factory):
        # Range 90-110 over 50 bars, previous bar H105 / L101 / C104
        closes = [100.0] * 48 + [104.0, 104.0]
        highs = [100.5] * 48 + [105.0, 104.5]
        lows = [99.5] * 48 + [101.0, 103.5]
        highs[10] = 110.0
        lows[20] = 90.0
        return bar_factory(closes, highs=highs, lows=lows)

    def test_pivot_resistance_survives_nearby_fibonacci(self, bar_factory):
        """Test a pivot R1 just above a Fibonacci support stays a resistance."""
        analysis = compute_level_analysis(self._pivot_near_fibonacci_bars(bar_factory))

        # R1 sits 0.4% above the 23.6% level
        assert analysis.fibonacci.level236 == pytest.approx(105.28)
        assert analysis.pivots.r1 == pytest.approx(105.0 + 2.0 / 3)
        assert analysis.nearest_resistance == pytest.approx(analysis.pivots.r1)
        assert analysis.resistances[0].source == "pivot_classic_R1"
        assert analysis.resistances[0].type == "resistance"

    def test_formula_levels_are_not_clustered(self, bar_factory):
        """Test Fibonacci and pivot levels keep their own source tags."""
        analysis = compute_level_analysis(self._pivot_near_fibonacci_bars(bar_factory))

        sources = {level.source for level in analysis.supports + analysis.resistances}
        assert {"fibonacci_0.500", "pivot_classic_PP", "pivot_classic_R2", "swing_high", "swing_low"} <= sources


class TestFlatSeries:
    """Tests for levels of a series that never moves."""

    def test_pivots_collapse(self, flat_price_bars):
        """Test every pivot level equals the only price."""
        for pivots in (compute_classic_pivots(flat_price_bars), compute_camarilla_pivots(flat_price_bars)):
            assert pivots.pivot == pytest.approx(100.0)
            assert pivots.r3 == pytest.approx(100.0)
            assert pivots.s3 == pytest.approx(100.0)

    def test_classic_strict_ordering(self, sample_price_bars):
        """Test classic pivots are strictly ordered when the bar has range."""
        pivots = compute_classic_pivots(sample_price_bars)

        assert pivots.r3 > pivots.r2 > pivots.r1 > pivots.pivot > pivots.s1 > pivots.s2 > pivots.s3
