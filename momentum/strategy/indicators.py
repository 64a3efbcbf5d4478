"""Price/volume indicators used by the evaluators. Pure functions, no I/O."""

from momentum.strategy.models import Candle


def calculate_vwap(candles: list[Candle]) -> float:
    """Volume-weighted average price over *candles*.

    Uses the typical price ``(high + low + close) / 3`` of each bar weighted
    by its volume.  Returns ``0.0`` when the window carries no volume.
    """
    cum_volume = 0.0
    cum_volume_price = 0.0
    for c in candles:
        typical = (c.high + c.low + c.close) / 3
        cum_volume_price += typical * c.volume
        cum_volume += c.volume
    if cum_volume <= 0:
        return 0.0
    return cum_volume_price / cum_volume


def average_volume(candles: list[Candle]) -> float:
    """Arithmetic mean volume, ``0.0`` for an empty window."""
    if not candles:
        return 0.0
    return sum(c.volume for c in candles) / len(candles)


def percent_change(current: float, reference: float) -> float:
    """Percentage move from *reference* to *current*; ``0.0`` if reference ≤ 0."""
    if reference <= 0:
        return 0.0
    return (current - reference) / reference * 100
