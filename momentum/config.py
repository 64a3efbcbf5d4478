"""Momentum signals — application configuration.

Loads .env variables into a typed config object.
Validates values on startup.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from momentum.strategy.models import TIMEFRAMES


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    backtest_min_lookback: int
    backtest_max_hold: int
    level_lookback: int
    level_tolerance: float
    default_timeframe: str
    log_level: str

    @property
    def log_level_value(self) -> int:
        """Numeric ``logging`` level for ``log_level``."""
        return getattr(logging, self.log_level)


def _int_var(name: str, default: str, minimum: int) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


def _float_var(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Every variable is optional.  Raises ``ValueError`` with a message
    naming the variable when a value is malformed or out of range.
    """
    load_dotenv(dotenv_path=env_path)

    tolerance = _float_var("LEVEL_TOLERANCE", "0.003")
    if not 0 < tolerance < 1:
        raise ValueError(f"LEVEL_TOLERANCE must be between 0 and 1, got {tolerance}")

    timeframe = os.environ.get("DEFAULT_TIMEFRAME", "1D")
    if timeframe not in TIMEFRAMES:
        raise ValueError(
            f"DEFAULT_TIMEFRAME must be one of {', '.join(TIMEFRAMES)}, got '{timeframe}'"
        )

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got '{log_level}'")

    return Config(
        backtest_min_lookback=_int_var("BACKTEST_MIN_LOOKBACK", "30", 5),
        backtest_max_hold=_int_var("BACKTEST_MAX_HOLD", "20", 1),
        level_lookback=_int_var("LEVEL_LOOKBACK", "50", 5),
        level_tolerance=tolerance,
        default_timeframe=timeframe,
        log_level=log_level,
    )
