"""Backtest engine — replays historical candles through the strategy engine.

At every bar the live pipeline (level detection, the five evaluators,
ranking) runs on the history up to that bar.  A selected setup is filled
at the next bar's open and walked forward until it hits its target, its
stop, or the hold limit.  Trades never overlap.

Known approximation: the evaluators expect 1m, 5m and 15m candles, but
the replayer feeds the same trailing window of the backtest series into
all three slots.  This keeps the intraday rules firing on daily or hourly
bars; results are therefore not equivalent to a true multi-timeframe
replay.
"""

import logging
from typing import Optional

from momentum.backtest.models import BacktestResult, BacktestTrade, Outcome
from momentum.backtest.stats import calculate_stats
from momentum.strategy.engine import STRATEGY_IDS, build_quote, run_strategy_engine
from momentum.strategy.levels import detect_levels
from momentum.strategy.models import Candle, StrategyInput, TradeSetup


logger = logging.getLogger("momentum.backtest")

MIN_LOOKBACK = 30
MAX_HOLD = 20
SIGNAL_WINDOW = 30


class BacktestEngine:
    """Simulates the strategy set on historical candle data.

    Args:
        min_lookback: Bars of history required before the first signal check.
        max_hold: Maximum number of bars a simulated trade stays open.
        level_lookback: Candles considered by level detection at each bar.
        level_tolerance: Level merge tolerance as a fraction of price.
    """

    def __init__(
        self,
        min_lookback: int = MIN_LOOKBACK,
        max_hold: int = MAX_HOLD,
        level_lookback: int = 50,
        level_tolerance: float = 0.003,
    ) -> None:
        if min_lookback < 1:
            raise ValueError(f"min_lookback must be at least 1, got {min_lookback}")
        if max_hold < 1:
            raise ValueError(f"max_hold must be at least 1, got {max_hold}")
        self._min_lookback = min_lookback
        self._max_hold = max_hold
        self._level_lookback = level_lookback
        self._level_tolerance = level_tolerance

    # ── Public API ───────────────────────────────────────────────────────

    def run(
        self,
        candles: list[Candle],
        symbol: str,
        timeframe: str,
        strategy_filter: Optional[str] = None,
    ) -> BacktestResult:
        """Execute a full replay.

        Args:
            candles: Historical candles ordered ascending by time.
            symbol: Ticker stamped on the synthetic quotes.
            timeframe: Timeframe label of *candles*.
            strategy_filter: Only trade this strategy id; otherwise take
                the top-ranked setup at each bar.

        Returns:
            ``BacktestResult`` with the sequential trade list and stats.
        """
        if strategy_filter and strategy_filter not in STRATEGY_IDS:
            logger.warning(
                "Strategy filter '%s' matches no strategy; no trades will be taken.",
                strategy_filter,
            )

        trades: list[BacktestTrade] = []
        i = self._min_lookback

        while i < len(candles) - 1:
            setup = self._select_setup(candles, i, symbol, timeframe, strategy_filter)
            if setup is None:
                i += 1
                continue

            trade, exit_idx = self._simulate(candles, i + 1, setup)
            trades.append(trade)
            logger.debug(
                "%s %s %s @ %.2f -> %s @ %.2f (%.2f%%)",
                symbol, trade.strategy_id, trade.direction, trade.entry_price,
                trade.outcome, trade.exit_price, trade.pnl_percent,
            )
            i = exit_idx + 1

        stats = calculate_stats(trades)
        logger.info(
            "Backtest %s %s: %d trades, win rate %.1f%%, PnL %.2f%%",
            symbol, timeframe, stats["total_trades"], stats["win_rate"],
            stats["total_pnl_percent"],
        )
        return BacktestResult(
            symbol=symbol,
            timeframe=timeframe,
            strategy_filter=strategy_filter or "all",
            trades=tuple(trades),
            win_rate=stats["win_rate"],
            total_pnl_percent=stats["total_pnl_percent"],
            avg_rr=stats["avg_rr"],
            max_drawdown=stats["max_drawdown"],
            total_trades=stats["total_trades"],
            wins=stats["wins"],
            losses=stats["losses"],
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _select_setup(
        self,
        candles: list[Candle],
        i: int,
        symbol: str,
        timeframe: str,
        strategy_filter: Optional[str],
    ) -> Optional[TradeSetup]:
        """Run the strategy pipeline as of bar *i* and pick one setup."""
        history = candles[: i + 1]
        window = history[-SIGNAL_WINDOW:]
        inputs = StrategyInput(
            quote=build_quote(symbol, candles[i], candles[i - 1]),
            candles_1m=window,
            candles_5m=window,
            candles_15m=window,
            levels=detect_levels(
                history, timeframe, self._level_lookback, self._level_tolerance,
            ),
        )
        setups = run_strategy_engine(inputs, now=candles[i].time * 1000)

        if strategy_filter:
            setups = [s for s in setups if s.strategy_id == strategy_filter]
        return setups[0] if setups else None

    def _simulate(
        self, candles: list[Candle], entry_idx: int, setup: TradeSetup,
    ) -> tuple[BacktestTrade, int]:
        """Walk forward from *entry_idx* and resolve the trade.

        Returns the recorded trade and the index of its exit bar.
        """
        entry_candle = candles[entry_idx]
        entry_price = entry_candle.open
        end_idx = min(entry_idx + self._max_hold, len(candles))

        outcome: Outcome = "timeout"
        exit_price = entry_candle.close
        exit_idx = entry_idx
        for j in range(entry_idx, end_idx):
            candle = candles[j]
            exit_idx = j
            hit = self._check_exit(setup, candle)
            if hit is not None:
                exit_price, outcome = hit
                break
            exit_price = candle.close

        pnl_pct = self._pnl_percent(setup.direction, entry_price, exit_price)
        risk_pct = abs(setup.stop_loss - entry_price) / entry_price * 100 if entry_price else 0.0
        rr = abs(pnl_pct) / risk_pct if risk_pct > 0 else 0.0

        trade = BacktestTrade(
            entry_time=entry_candle.time,
            exit_time=candles[exit_idx].time,
            entry_price=entry_price,
            exit_price=exit_price,
            direction=setup.direction,
            target=setup.target2,
            stop=setup.stop_loss,
            outcome=outcome,
            pnl_percent=round(pnl_pct, 2),
            rr=round(rr, 2),
            strategy_id=setup.strategy_id,
        )
        return trade, exit_idx

    @staticmethod
    def _check_exit(
        setup: TradeSetup, candle: Candle,
    ) -> Optional[tuple[float, Outcome]]:
        """Check if *candle* reaches the target (win) or the stop (loss).

        Returns ``(exit_price, outcome)`` or ``None``.  When both are
        reached in the same candle the target is taken first.
        """
        if setup.direction == "long":
            if candle.high >= setup.target2:
                return setup.target2, "win"
            if candle.low <= setup.stop_loss:
                return setup.stop_loss, "loss"
        else:
            if candle.low <= setup.target2:
                return setup.target2, "win"
            if candle.high >= setup.stop_loss:
                return setup.stop_loss, "loss"
        return None

    @staticmethod
    def _pnl_percent(direction: str, entry_price: float, exit_price: float) -> float:
        """Direction-aware percentage move from entry to exit."""
        if entry_price == 0:
            return 0.0
        if direction == "long":
            return (exit_price - entry_price) / entry_price * 100
        return (entry_price - exit_price) / entry_price * 100


def run_backtest(
    candles: list[Candle],
    symbol: str,
    timeframe: str,
    strategy_filter: Optional[str] = None,
    *,
    min_lookback: int = MIN_LOOKBACK,
    max_hold: int = MAX_HOLD,
) -> BacktestResult:
    """Replay *candles* with the given lookback and hold limits."""
    engine = BacktestEngine(min_lookback=min_lookback, max_hold=max_hold)
    return engine.run(candles, symbol, timeframe, strategy_filter)
