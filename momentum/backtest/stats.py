"""Backtest statistics — pure functions for trade-series analysis."""

from momentum.backtest.models import BacktestTrade


def calculate_stats(trades: list[BacktestTrade]) -> dict:
    """Compute summary statistics from closed backtest trades.

    Anything that is not a win (losses and timeouts) counts as a loss.

    Returns:
        Dict with ``total_trades``, ``wins``, ``losses``, ``win_rate``
        (percent, 1 dp), ``total_pnl_percent``, ``avg_rr`` and
        ``max_drawdown`` (2 dp).  All zero for an empty trade list.
    """
    if not trades:
        return {
            "total_trades": 0,
            "wins": 0,
            "losses": 0,
            "win_rate": 0.0,
            "total_pnl_percent": 0.0,
            "avg_rr": 0.0,
            "max_drawdown": 0.0,
        }

    total = len(trades)
    wins = sum(1 for t in trades if t.outcome == "win")
    pnls = [t.pnl_percent for t in trades]

    return {
        "total_trades": total,
        "wins": wins,
        "losses": total - wins,
        "win_rate": round(wins / total * 100, 1),
        "total_pnl_percent": round(sum(pnls), 2),
        "avg_rr": round(sum(t.rr for t in trades) / total, 2),
        "max_drawdown": round(_max_drawdown(pnls), 2),
    }


# ── Helpers ──────────────────────────────────────────────────────────────


def _max_drawdown(pnls: list[float]) -> float:
    """Maximum drawdown of the cumulative P&L curve, in trade order.

    The curve starts at 0, so an opening losing streak counts as a
    drawdown.  Returns the largest peak-to-trough decline as a positive
    number.
    """
    cumulative = 0.0
    peak = 0.0
    max_dd = 0.0
    for p in pnls:
        cumulative += p
        if cumulative > peak:
            peak = cumulative
        dd = peak - cumulative
        if dd > max_dd:
            max_dd = dd
    return max_dd
