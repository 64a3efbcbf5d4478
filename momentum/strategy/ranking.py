"""Setup ranking — orders evaluator output by conviction then risk/reward."""

from typing import Iterable, Optional

from momentum.strategy.models import TradeSetup
from momentum.strategy.setups import CONVICTION_RANK


def rank_setups(candidates: Iterable[Optional[TradeSetup]]) -> list[TradeSetup]:
    """Drop ``None`` entries and sort the rest best-first.

    Conviction A > B > C, ties broken by higher ``risk_reward``.  The sort
    is stable, so fully tied setups keep evaluation order.
    """
    setups = [s for s in candidates if s is not None]
    setups.sort(key=lambda s: (-CONVICTION_RANK[s.conviction], -s.risk_reward))
    return setups
