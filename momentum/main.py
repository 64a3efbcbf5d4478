"""Momentum signals — command-line entry point.

Provides ``scan`` (rank setups for one snapshot) and ``backtest`` (replay a
candle history) modes over JSON files supplied by the data collaborators.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from momentum.backtest.engine import BacktestEngine
from momentum.config import Config, load_config
from momentum.strategy.engine import STRATEGY_IDS, scan_setups
from momentum.strategy.models import TIMEFRAMES, Candle, candle_from_dict, quote_from_dict


logger = logging.getLogger("momentum")

BACKTEST_TIMEFRAMES: tuple[str, ...] = ("1h", "4h", "1D", "1W", "1M")


class InputError(Exception):
    """Raised when an input file cannot be read or parsed."""


def _load_json(path: str):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as exc:
        raise InputError(f"Cannot read {path}: {exc.strerror}") from exc
    except json.JSONDecodeError as exc:
        raise InputError(f"Invalid JSON in {path}: {exc.msg} (line {exc.lineno})") from exc


def _parse_candles(raw, source: str) -> list[Candle]:
    """Accept either a bare list of candles or ``{"candles": [...]}``."""
    if isinstance(raw, dict):
        raw = raw.get("candles", [])
    if not isinstance(raw, list):
        raise InputError(f"{source}: expected a list of candles")
    try:
        candles = [candle_from_dict(c) for c in raw]
    except (KeyError, TypeError, ValueError) as exc:
        raise InputError(f"{source}: malformed candle ({exc})") from exc
    for c in candles:
        if c.low > c.high:
            raise InputError(
                f"{source}: malformed candle at time {c.time} (low {c.low} > high {c.high})"
            )
    return sorted(candles, key=lambda c: c.time)


def _build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Momentum trade-setup scanner and backtester")
    parser.add_argument(
        "--mode",
        choices=["scan", "backtest"],
        required=True,
        help="scan: rank setups for a snapshot; backtest: replay a candle file",
    )
    parser.add_argument("--input", help="scan: JSON with quote and 1m/5m/15m candles")
    parser.add_argument("--candles", help="backtest: JSON list of historical candles")
    parser.add_argument("--symbol", help="backtest: ticker symbol")
    parser.add_argument(
        "--timeframe",
        choices=TIMEFRAMES,
        default=config.default_timeframe,
        help=f"backtest: candle timeframe (default: {config.default_timeframe})",
    )
    parser.add_argument("--strategy", choices=STRATEGY_IDS, help="backtest: only trade this strategy")
    parser.add_argument("--news-score", type=float, default=0.0, help="scan: aggregate news impact score")
    parser.add_argument("--now", type=int, help="scan: timestamp (unix ms) for setup stamping")
    return parser


def _run_scan(config: Config, args: argparse.Namespace) -> dict:
    """Rank setups for the snapshot in ``args.input``."""
    raw = _load_json(args.input)
    if not isinstance(raw, dict) or "quote" not in raw:
        raise InputError(f"{args.input}: expected an object with a 'quote' key")
    try:
        quote = quote_from_dict(raw["quote"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InputError(f"{args.input}: malformed quote ({exc})") from exc

    setups = scan_setups(
        quote,
        _parse_candles(raw.get("candles_1m", []), "candles_1m"),
        _parse_candles(raw.get("candles_5m", []), "candles_5m"),
        _parse_candles(raw.get("candles_15m", []), "candles_15m"),
        news_score=args.news_score,
        now=args.now,
        level_lookback=config.level_lookback,
        level_tolerance=config.level_tolerance,
    )
    logger.info("Scan %s: %d setup(s).", quote.symbol, len(setups))
    return {
        "symbol": quote.symbol,
        "news_score": round(args.news_score, 1),
        "setups": [s.to_dict() for s in setups],
    }


def _run_backtest(config: Config, args: argparse.Namespace) -> dict:
    """Replay ``args.candles`` and return the result as a dict."""
    candles = _parse_candles(_load_json(args.candles), args.candles)
    if len(candles) < config.backtest_min_lookback:
        raise InputError(
            f"Not enough historical data to run a backtest "
            f"(need >= {config.backtest_min_lookback} bars, got {len(candles)})"
        )
    engine = BacktestEngine(
        min_lookback=config.backtest_min_lookback,
        max_hold=config.backtest_max_hold,
        level_lookback=config.level_lookback,
        level_tolerance=config.level_tolerance,
    )
    result = engine.run(candles, args.symbol.upper(), args.timeframe, args.strategy)
    return result.to_dict()


def main(argv: Optional[list[str]] = None) -> int:
    """Parse CLI arguments, dispatch, and print JSON.  Returns an exit code."""
    config = load_config()
    parser = _build_parser(config)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.mode == "scan":
        if not args.input:
            parser.error("--input is required in scan mode")
    else:
        if not args.candles or not args.symbol:
            parser.error("--candles and --symbol are required in backtest mode")
        if args.timeframe not in BACKTEST_TIMEFRAMES:
            parser.error(
                f"timeframe '{args.timeframe}' is not supported for backtesting "
                f"(choose from {', '.join(BACKTEST_TIMEFRAMES)})"
            )

    try:
        if args.mode == "scan":
            output = _run_scan(config, args)
        else:
            output = _run_backtest(config, args)
    except InputError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
