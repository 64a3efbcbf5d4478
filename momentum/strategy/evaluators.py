"""Strategy evaluators — pure functions, no I/O.

Each evaluator inspects a ``StrategyInput`` snapshot (plus an optional
news-impact score) and returns at most one ``TradeSetup``.  ``None`` means
the strategy's conditions are not met; insufficient data is never an
error.

All five share the signature ``(inputs, news_score=0.0, now=None)`` so the
engine can dispatch over them uniformly.  *now* is the unix-millisecond
instant used for ``generated_at`` / ``valid_until``; it only falls back to
the wall clock when omitted.
"""

import time
from typing import Optional

from momentum.strategy.indicators import average_volume, calculate_vwap, percent_change
from momentum.strategy.levels import get_nearest_levels
from momentum.strategy.models import (
    Conviction,
    Direction,
    RiskLevel,
    StrategyId,
    StrategyInput,
    TradeSetup,
)
from momentum.strategy.setups import (
    TICK,
    conviction_from_score,
    risk_reward,
    target_ladder,
    validate_setup,
)


STRATEGY_LABELS: dict[str, str] = {
    "gap_and_go": "Gap & Go",
    "momentum_breakout": "Momentum Breakout",
    "vwap_reclaim": "VWAP Reclaim",
    "first_candle_hold": "First Candle Hold",
    "news_catalyst": "News Catalyst",
}

# ── Thresholds ───────────────────────────────────────────────────────────

MIN_GAP_PCT = 3.0
LARGE_GAP_PCT = 7.0
MIN_BREAKOUT_CHANGE_PCT = 5.0
STRONG_CHANGE_PCT = 10.0
VOLUME_SURGE_RATIO = 1.5
BREAKOUT_WINDOW = 5
VWAP_STOP_FACTOR = 0.998
MIN_NEWS_SCORE = 3.0
HIGH_NEWS_SCORE = 6.0


def now_ms() -> int:
    """Current wall-clock time in unix milliseconds."""
    return int(time.time() * 1000)


def _build_setup(
    strategy_id: StrategyId,
    symbol: str,
    direction: Direction,
    entry: float,
    stop: float,
    multiples: tuple[float, float, float],
    risk_percent: float,
    conviction: Conviction,
    risk_level: RiskLevel,
    reasoning: list[str],
    timeframe: str,
    valid_minutes: int,
    now: Optional[int],
) -> TradeSetup:
    """Assemble, stamp and validate a setup."""
    stamp = now_ms() if now is None else now
    target1, target2, target3 = target_ladder(entry, stop, direction, multiples)
    setup = TradeSetup(
        strategy_id=strategy_id,
        strategy_label=STRATEGY_LABELS[strategy_id],
        symbol=symbol,
        direction=direction,
        entry=entry,
        stop_loss=stop,
        target1=target1,
        target2=target2,
        target3=target3,
        risk_reward=risk_reward(entry, stop, target2),
        risk_percent=risk_percent,
        conviction=conviction,
        risk_level=risk_level,
        reasoning=tuple(reasoning),
        timeframe=timeframe,
        valid_until=stamp + valid_minutes * 60 * 1000,
        generated_at=stamp,
    )
    return validate_setup(setup)


# ── Gap & Go ─────────────────────────────────────────────────────────────


def gap_and_go(
    inputs: StrategyInput, news_score: float = 0.0, now: Optional[int] = None,
) -> Optional[TradeSetup]:
    """Trade the break of the first 1m candle in the direction of the gap."""
    quote = inputs.quote
    candles = inputs.candles_1m
    if len(candles) < 3:
        return None

    gap = percent_change(quote.open, quote.prev_close)
    if abs(gap) < MIN_GAP_PCT:
        return None

    first = candles[0]
    is_long = gap > 0
    if is_long:
        entry, stop = first.high + TICK, first.low - TICK
    else:
        entry, stop = first.low - TICK, first.high + TICK

    # Room to run: no opposing level between price and the target side
    support, resistance = get_nearest_levels(quote.price, inputs.levels)
    blocked = resistance is not None if is_long else support is not None
    score = 6 + (0 if blocked else 2) + (2 if abs(gap) > LARGE_GAP_PCT else 0)

    side = "high" if is_long else "low"
    return _build_setup(
        "gap_and_go", quote.symbol, "long" if is_long else "short",
        entry, stop, (1.5, 2.5, 4.0),
        risk_percent=1.0,
        conviction=conviction_from_score(score),
        risk_level="medium",
        reasoning=[
            f"{abs(gap):.1f}% gap {'up' if is_long else 'down'} from prev close",
            f"Entry on first 1m candle {side} break",
            f"Stop beyond first candle {'low' if is_long else 'high'}",
        ],
        timeframe="1m",
        valid_minutes=15,
        now=now,
    )


# ── Momentum Breakout ────────────────────────────────────────────────────


def momentum_breakout(
    inputs: StrategyInput, news_score: float = 0.0, now: Optional[int] = None,
) -> Optional[TradeSetup]:
    """Buy a break of the recent 5m range when a big mover surges on volume."""
    quote = inputs.quote
    candles = inputs.candles_5m
    if len(candles) < BREAKOUT_WINDOW:
        return None
    if quote.change_percent < MIN_BREAKOUT_CHANGE_PCT:
        return None

    recent = candles[-BREAKOUT_WINDOW:]
    avg_vol = average_volume(recent)
    last_vol = recent[-1].volume
    if avg_vol <= 0 or last_vol <= avg_vol * VOLUME_SURGE_RATIO:
        return None

    highest_high = max(c.high for c in recent)
    lowest_low = min(c.low for c in recent)
    score = 5 + 2 + (2 if quote.change_percent > STRONG_CHANGE_PCT else 0)

    return _build_setup(
        "momentum_breakout", quote.symbol, "long",
        highest_high + TICK, lowest_low - TICK, (1.0, 2.0, 3.5),
        risk_percent=1.5,
        conviction=conviction_from_score(score),
        risk_level="high",
        reasoning=[
            f"+{quote.change_percent:.1f}% momentum with "
            f"{last_vol / avg_vol:.1f}x volume surge",
            f"Breakout above {BREAKOUT_WINDOW}-candle high at ${highest_high:.2f}",
            f"Stop below {BREAKOUT_WINDOW}-candle consolidation low",
        ],
        timeframe="5m",
        valid_minutes=30,
        now=now,
    )


# ── VWAP Reclaim ─────────────────────────────────────────────────────────


def vwap_reclaim(
    inputs: StrategyInput, news_score: float = 0.0, now: Optional[int] = None,
) -> Optional[TradeSetup]:
    """Buy when the latest 5m candle closes back above session VWAP."""
    candles = inputs.candles_5m
    if len(candles) < 10:
        return None

    vwap = calculate_vwap(candles)
    if vwap == 0:
        return None

    prev, last = candles[-2], candles[-1]
    if not (prev.close < vwap < last.close):
        return None

    return _build_setup(
        "vwap_reclaim", inputs.quote.symbol, "long",
        last.close, vwap * VWAP_STOP_FACTOR, (1.5, 2.5, 4.0),
        risk_percent=1.0,
        conviction="B",
        risk_level="low",
        reasoning=[
            f"Price reclaimed VWAP at ${vwap:.2f}",
            "Previous candle closed below, current candle closed above",
            "Stop just below VWAP",
        ],
        timeframe="5m",
        valid_minutes=20,
        now=now,
    )


# ── First Candle Hold ────────────────────────────────────────────────────


def first_candle_hold(
    inputs: StrategyInput, news_score: float = 0.0, now: Optional[int] = None,
) -> Optional[TradeSetup]:
    """Buy the first 1m candle's high while price holds above its low."""
    quote = inputs.quote
    candles = inputs.candles_1m
    if len(candles) < 5:
        return None

    first, last = candles[0], candles[-1]
    holding = (
        quote.change_percent > 0
        and last.close > first.low
        and last.close >= first.open
    )
    if not holding:
        return None

    return _build_setup(
        "first_candle_hold", quote.symbol, "long",
        first.high + TICK, first.low - TICK, (1.0, 2.0, 3.0),
        risk_percent=1.0,
        conviction="B",
        risk_level="medium",
        reasoning=[
            f"First 1m candle: O ${first.open:.2f} H ${first.high:.2f} "
            f"L ${first.low:.2f} C ${first.close:.2f}",
            "Price holding above first candle low",
            "Entry on first candle high break, stop below first candle low",
        ],
        timeframe="1m",
        valid_minutes=10,
        now=now,
    )


# ── News Catalyst ────────────────────────────────────────────────────────


def news_catalyst(
    inputs: StrategyInput, news_score: float = 0.0, now: Optional[int] = None,
) -> Optional[TradeSetup]:
    """Trade the last 5m candle break in the direction of the news."""
    if abs(news_score) < MIN_NEWS_SCORE:
        return None
    candles = inputs.candles_5m
    if len(candles) < 3:
        return None

    is_long = news_score > 0
    last = candles[-1]
    if is_long:
        entry, stop = last.high + TICK, last.low - TICK
    else:
        entry, stop = last.low - TICK, last.high + TICK

    high_impact = abs(news_score) >= HIGH_NEWS_SCORE
    return _build_setup(
        "news_catalyst", inputs.quote.symbol, "long" if is_long else "short",
        entry, stop, (1.0, 2.0, 3.5),
        risk_percent=1.0,
        conviction="A" if high_impact else "B",
        risk_level="medium",
        reasoning=[
            f"{'HIGH' if high_impact else 'MEDIUM'} impact news catalyst "
            f"(score: {news_score:+g})",
            "Trading in direction of news sentiment",
            "Entry on candle break, stop opposite side",
        ],
        timeframe="5m",
        valid_minutes=25,
        now=now,
    )
