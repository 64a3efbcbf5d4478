"""Strategy data models — typed representations for strategy inputs and outputs."""

from dataclasses import asdict, dataclass
from typing import Literal, Optional


Direction = Literal["long", "short"]
LevelType = Literal["support", "resistance", "pivot"]
Conviction = Literal["A", "B", "C"]
RiskLevel = Literal["low", "medium", "high"]
MarketSession = Literal["pre", "regular", "post"]
MARKET_SESSIONS: tuple[str, ...] = ("pre", "regular", "post")
StrategyId = Literal[
    "gap_and_go",
    "momentum_breakout",
    "vwap_reclaim",
    "first_candle_hold",
    "news_catalyst",
]

TIMEFRAMES: tuple[str, ...] = ("1m", "5m", "15m", "30m", "1h", "4h", "1D", "1W", "1M")


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar.  ``time`` is a unix timestamp in seconds."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class StockQuote:
    """A point-in-time quote snapshot.  ``timestamp`` is unix milliseconds."""

    symbol: str
    price: float
    change: float
    change_percent: float
    open: float
    high: float
    low: float
    prev_close: float
    session: MarketSession = "regular"
    timestamp: int = 0
    triggered: bool = False
    volume: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SupportResistanceLevel:
    """A support, resistance or pivot price level."""

    price: float
    level_type: LevelType
    strength: int  # number of touches
    timeframe: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TradeSetup:
    """An actionable trade setup produced by one strategy evaluator."""

    strategy_id: StrategyId
    strategy_label: str
    symbol: str
    direction: Direction
    entry: float
    stop_loss: float
    target1: float
    target2: float
    target3: float
    risk_reward: float
    risk_percent: float
    conviction: Conviction
    risk_level: RiskLevel
    reasoning: tuple[str, ...]
    timeframe: str
    valid_until: int  # unix ms
    generated_at: int  # unix ms

    def to_dict(self) -> dict:
        data = asdict(self)
        data["reasoning"] = list(self.reasoning)
        return data


@dataclass(frozen=True)
class StrategyInput:
    """Everything an evaluator may look at for one symbol snapshot."""

    quote: StockQuote
    candles_1m: list[Candle]
    candles_5m: list[Candle]
    candles_15m: list[Candle]
    levels: list[SupportResistanceLevel]


def candle_from_dict(raw: dict) -> Candle:
    """Build a ``Candle`` from a provider-style mapping."""
    return Candle(
        time=int(raw["time"]),
        open=float(raw["open"]),
        high=float(raw["high"]),
        low=float(raw["low"]),
        close=float(raw["close"]),
        volume=float(raw.get("volume", 0)),
    )


def quote_from_dict(raw: dict) -> StockQuote:
    """Build a ``StockQuote`` from a mapping using either snake or camel keys."""

    def _get(snake: str, camel: str, default: Optional[object] = None):
        if snake in raw:
            return raw[snake]
        return raw.get(camel, default)

    session = raw.get("session", "regular")
    if session not in MARKET_SESSIONS:
        raise ValueError(
            f"unknown session '{session}'. Expected one of: {', '.join(MARKET_SESSIONS)}"
        )

    return StockQuote(
        symbol=str(raw["symbol"]).upper(),
        price=float(raw["price"]),
        change=float(raw.get("change", 0.0)),
        change_percent=float(_get("change_percent", "changePercent", 0.0)),
        open=float(raw["open"]),
        high=float(raw.get("high", raw["price"])),
        low=float(raw.get("low", raw["price"])),
        prev_close=float(_get("prev_close", "prevClose")),
        session=session,
        timestamp=int(raw.get("timestamp", 0)),
        triggered=bool(raw.get("triggered", False)),
        volume=float(raw.get("volume", 0.0)),
    )
