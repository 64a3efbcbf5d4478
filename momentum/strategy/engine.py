"""Strategy engine — runs the fixed strategy set against one snapshot.

The strategy set is closed: ``STRATEGIES`` maps each ``StrategyId`` to its
evaluator in evaluation order.  There is no runtime registration.
"""

import logging
from typing import Callable, Optional

from momentum.strategy.evaluators import (
    first_candle_hold,
    gap_and_go,
    momentum_breakout,
    news_catalyst,
    now_ms,
    vwap_reclaim,
)
from momentum.strategy.indicators import percent_change
from momentum.strategy.levels import detect_levels
from momentum.strategy.models import (
    Candle,
    StockQuote,
    StrategyInput,
    TradeSetup,
)
from momentum.strategy.ranking import rank_setups
from momentum.strategy.setups import InvalidSetupError


logger = logging.getLogger("momentum.strategy")

Evaluator = Callable[[StrategyInput, float, Optional[int]], Optional[TradeSetup]]

STRATEGIES: tuple[tuple[str, Evaluator], ...] = (
    ("gap_and_go", gap_and_go),
    ("momentum_breakout", momentum_breakout),
    ("vwap_reclaim", vwap_reclaim),
    ("first_candle_hold", first_candle_hold),
    ("news_catalyst", news_catalyst),
)
STRATEGY_IDS: tuple[str, ...] = tuple(sid for sid, _ in STRATEGIES)

TRIGGER_CHANGE_PCT = 7.0


def get_evaluator(strategy_id: str) -> Evaluator:
    """Look up the evaluator for *strategy_id*.

    Raises ``KeyError`` if the id is not one of ``STRATEGY_IDS``.
    """
    for sid, evaluator in STRATEGIES:
        if sid == strategy_id:
            return evaluator
    raise KeyError(
        f"Unknown strategy '{strategy_id}'. Available: {', '.join(STRATEGY_IDS)}"
    )


def run_strategy_engine(
    inputs: StrategyInput,
    news_score: float = 0.0,
    now: Optional[int] = None,
) -> list[TradeSetup]:
    """Evaluate every strategy on *inputs* and return ranked setups.

    All setups share a single *now* stamp (unix ms), so identical inputs
    and *now* always give identical output.  A setup that fails validation
    is logged and dropped; the other strategies still run.
    """
    stamp = now_ms() if now is None else now
    candidates = []
    for sid, evaluator in STRATEGIES:
        try:
            candidates.append(evaluator(inputs, news_score, stamp))
        except InvalidSetupError:
            logger.warning("Dropped %s setup for %s", sid, inputs.quote.symbol)
    ranked = rank_setups(candidates)
    for setup in ranked:
        logger.debug(
            "%s %s %s entry=%.2f stop=%.2f rr=%.2f conviction=%s",
            inputs.quote.symbol, setup.strategy_id, setup.direction,
            setup.entry, setup.stop_loss, setup.risk_reward, setup.conviction,
        )
    return ranked


def scan_setups(
    quote: StockQuote,
    candles_1m: list[Candle],
    candles_5m: list[Candle],
    candles_15m: list[Candle],
    news_score: float = 0.0,
    now: Optional[int] = None,
    level_lookback: int = 50,
    level_tolerance: float = 0.003,
) -> list[TradeSetup]:
    """Live pipeline: detect levels once, then run the engine.

    Levels are taken from all three series combined and labelled ``5m``.
    """
    levels = detect_levels(
        [*candles_1m, *candles_5m, *candles_15m], "5m", level_lookback, level_tolerance,
    )
    inputs = StrategyInput(
        quote=quote,
        candles_1m=candles_1m,
        candles_5m=candles_5m,
        candles_15m=candles_15m,
        levels=levels,
    )
    return run_strategy_engine(inputs, news_score, now)


def build_quote(symbol: str, candle: Candle, prev_candle: Candle) -> StockQuote:
    """Synthesise a quote for *candle* relative to the prior bar's close."""
    change_pct = percent_change(candle.close, prev_candle.close)
    return StockQuote(
        symbol=symbol,
        price=candle.close,
        change=candle.close - prev_candle.close,
        change_percent=change_pct,
        open=candle.open,
        high=candle.high,
        low=candle.low,
        prev_close=prev_candle.close,
        session="regular",
        timestamp=candle.time * 1000,
        triggered=abs(change_pct) >= TRIGGER_CHANGE_PCT,
        volume=candle.volume,
    )
