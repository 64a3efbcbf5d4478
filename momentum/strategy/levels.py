"""Support/Resistance level detection — pure functions."""

from typing import Optional

from momentum.strategy.models import Candle, LevelType, SupportResistanceLevel


MIN_CANDLES = 5
MAX_LEVELS = 10
SWING_WINDOW = 2


def _is_swing_high(candles: list[Candle], i: int) -> bool:
    """A swing high is at least as high as the two candles on each side."""
    high = candles[i].high
    return all(
        high >= candles[i - j].high and high >= candles[i + j].high
        for j in range(1, SWING_WINDOW + 1)
    )


def _is_swing_low(candles: list[Candle], i: int) -> bool:
    low = candles[i].low
    return all(
        low <= candles[i - j].low and low <= candles[i + j].low
        for j in range(1, SWING_WINDOW + 1)
    )


def _find_swings(
    candles: list[Candle],
) -> list[tuple[LevelType, float]]:
    """Return ``(level_type, price)`` pairs in scan order.

    A single candle may yield both a resistance (its high) and a support
    (its low), e.g. an outside bar in a flat market.
    """
    swings: list[tuple[LevelType, float]] = []
    for i in range(SWING_WINDOW, len(candles) - SWING_WINDOW):
        if _is_swing_high(candles, i):
            swings.append(("resistance", candles[i].high))
        if _is_swing_low(candles, i):
            swings.append(("support", candles[i].low))
    return swings


def _merge_levels(
    swings: list[tuple[LevelType, float]], tolerance: float
) -> list[tuple[LevelType, float, int]]:
    """Merge swings of the same type lying within *tolerance* of each other.

    Each swing joins the first earlier level of its type whose distance,
    as a fraction of the swing price, is within *tolerance*.  The merged
    price is the running pairwise average and strength counts the touches.
    """
    merged: list[list] = []  # [level_type, price, strength]
    for level_type, price in swings:
        for existing in merged:
            if existing[0] != level_type:
                continue
            if price != 0 and abs(existing[1] - price) / price <= tolerance:
                existing[1] = (existing[1] + price) / 2
                existing[2] += 1
                break
        else:
            merged.append([level_type, price, 1])
    return [(m[0], m[1], m[2]) for m in merged]


def detect_levels(
    candles: list[Candle],
    timeframe: str,
    lookback: int = 50,
    tolerance: float = 0.003,
) -> list[SupportResistanceLevel]:
    """Detect support and resistance levels from swing highs and lows.

    Args:
        candles: Candles ordered ascending by time.
        timeframe: Timeframe label stamped on every level.
        lookback: Number of most-recent candles to analyse.
        tolerance: Merge tolerance as a fraction of price (0.003 = 0.3%).

    Returns:
        Up to ten levels sorted by descending strength.  Fewer than five
        candles yields an empty list.
    """
    if len(candles) < MIN_CANDLES:
        return []

    recent = candles[-lookback:] if len(candles) > lookback else candles
    merged = _merge_levels(_find_swings(recent), tolerance)

    levels = [
        SupportResistanceLevel(
            price=price, level_type=level_type, strength=strength, timeframe=timeframe,
        )
        for level_type, price, strength in merged
    ]
    levels.sort(key=lambda lv: lv.strength, reverse=True)
    return levels[:MAX_LEVELS]


def calc_pivot_points(prev_day: Candle) -> list[SupportResistanceLevel]:
    """Classic floor-trader pivots from the previous completed daily candle."""
    pivot = (prev_day.high + prev_day.low + prev_day.close) / 3
    day_range = prev_day.high - prev_day.low
    r1 = 2 * pivot - prev_day.low
    s1 = 2 * pivot - prev_day.high
    r2 = pivot + day_range
    s2 = pivot - day_range

    return [
        SupportResistanceLevel(price=pivot, level_type="pivot", strength=5, timeframe="1D"),
        SupportResistanceLevel(price=r1, level_type="resistance", strength=3, timeframe="1D"),
        SupportResistanceLevel(price=r2, level_type="resistance", strength=2, timeframe="1D"),
        SupportResistanceLevel(price=s1, level_type="support", strength=3, timeframe="1D"),
        SupportResistanceLevel(price=s2, level_type="support", strength=2, timeframe="1D"),
    ]


def get_nearest_levels(
    price: float, levels: list[SupportResistanceLevel]
) -> tuple[Optional[SupportResistanceLevel], Optional[SupportResistanceLevel]]:
    """Return ``(support, resistance)`` closest to *price*.

    Support is the highest support strictly below *price*; resistance is
    the lowest resistance or pivot strictly above it.  Either may be
    ``None``.
    """
    supports = [lv for lv in levels if lv.level_type == "support" and lv.price < price]
    resistances = [
        lv for lv in levels
        if lv.level_type in ("resistance", "pivot") and lv.price > price
    ]
    support = max(supports, key=lambda lv: lv.price) if supports else None
    resistance = min(resistances, key=lambda lv: lv.price) if resistances else None
    return support, resistance
