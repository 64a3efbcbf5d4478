"""Trade-setup math and validation shared by every evaluator — pure functions."""

import logging

from momentum.strategy.models import Conviction, Direction, TradeSetup


logger = logging.getLogger("momentum.strategy")

TICK = 0.01
CONVICTION_RANK: dict[str, int] = {"A": 3, "B": 2, "C": 1}


class InvalidSetupError(ValueError):
    """Raised when a computed setup breaks the stop/entry/target ordering."""


def risk_reward(entry: float, stop: float, target: float) -> float:
    """Reward-to-risk ratio rounded to 2 dp; ``0.0`` when risk is zero."""
    risk = abs(entry - stop)
    if risk == 0:
        return 0.0
    return round(abs(target - entry) / risk, 2)


def conviction_from_score(score: int) -> Conviction:
    """Map an additive evidence score onto a conviction tier."""
    if score >= 8:
        return "A"
    if score >= 5:
        return "B"
    return "C"


def target_ladder(
    entry: float,
    stop: float,
    direction: Direction,
    multiples: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Project three targets at *multiples* of the entry-to-stop range."""
    rng = abs(entry - stop)
    sign = 1 if direction == "long" else -1
    t1, t2, t3 = (entry + sign * rng * m for m in multiples)
    return t1, t2, t3


def is_ordered(setup: TradeSetup) -> bool:
    """``True`` when the price ladder is strictly ordered for the direction."""
    ladder = [setup.stop_loss, setup.entry, setup.target1, setup.target2, setup.target3]
    if setup.direction == "short":
        ladder.reverse()
    return all(a < b for a, b in zip(ladder, ladder[1:]))


def validate_setup(setup: TradeSetup) -> TradeSetup:
    """Return *setup* unchanged, or raise ``InvalidSetupError``.

    A mis-ordered ladder comes from an evaluator defect or an inverted
    input bar.  It is logged here; ``run_strategy_engine`` drops the setup.
    """
    if not is_ordered(setup):
        logger.error(
            "Rejected %s %s setup for %s: stop=%.4f entry=%.4f targets=%.4f/%.4f/%.4f",
            setup.strategy_id, setup.direction, setup.symbol, setup.stop_loss,
            setup.entry, setup.target1, setup.target2, setup.target3,
        )
        raise InvalidSetupError(
            f"{setup.strategy_id}: {setup.direction} setup is not strictly ordered "
            f"(stop={setup.stop_loss}, entry={setup.entry}, "
            f"targets={setup.target1}/{setup.target2}/{setup.target3})"
        )
    return setup
