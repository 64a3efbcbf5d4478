"""Backtest data models — immutable records of a replay run."""

from dataclasses import asdict, dataclass
from typing import Literal

from momentum.strategy.models import Direction


Outcome = Literal["win", "loss", "timeout"]


@dataclass(frozen=True)
class BacktestTrade:
    """One simulated trade.  Times are unix seconds, percentages are 2 dp."""

    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    direction: Direction
    target: float
    stop: float
    outcome: Outcome
    pnl_percent: float
    rr: float  # realised |pnl%| / entry-to-stop risk %
    strategy_id: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BacktestResult:
    """Trades and summary statistics for one replay run."""

    symbol: str
    timeframe: str
    strategy_filter: str  # "all" when no filter was applied
    trades: tuple[BacktestTrade, ...]
    win_rate: float
    total_pnl_percent: float
    avg_rr: float
    max_drawdown: float
    total_trades: int
    wins: int
    losses: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["trades"] = [t.to_dict() for t in self.trades]
        return data
