"""
Performance metrics over a daily balance history.
"""

import math
import statistics
from dataclasses import dataclass
from datetime import date


@dataclass
class PerformanceSummary:
    start_balance: float
    final_balance: float
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    trading_days: int


def compute_returns(balance_history: list[tuple[date, float]]) -> list[float]:
    """Period-over-period returns, skipping periods that start from a non-positive value."""
    returns: list[float] = []
    for (_, prev_value), (_, curr_value) in zip(balance_history, balance_history[1:]):
        if prev_value > 0:
            returns.append((curr_value - prev_value) / prev_value)
    return returns


def sharpe_ratio(returns: list[float], risk_free_rate: float = 0.0, periods_per_year: int = 252) -> float:
    """
    Calculate annualized Sharpe ratio.

    Args:
        returns: List of returns
        risk_free_rate: Annual risk-free rate
        periods_per_year: Number of periods in a year (252 for daily)

    Returns:
        Annualized Sharpe ratio
    """
    if len(returns) < 2:
        return 0.0

    std_return = statistics.stdev(returns)
    if std_return == 0:
        return 0.0

    annual_mean = statistics.mean(returns) * periods_per_year
    annual_std = std_return * math.sqrt(periods_per_year)
    return (annual_mean - risk_free_rate) / annual_std


def max_drawdown(balance_history: list[tuple[date, float]], start_balance: float) -> float:
    """Largest peak-to-trough decline as a fraction of the peak."""
    peak = start_balance
    worst = 0.0
    for _, value in balance_history:
        peak = max(peak, value)
        if peak > 0:
            worst = max(worst, (peak - value) / peak)
    return worst


def summarize(balance_history: list[tuple[date, float]], start_balance: float) -> PerformanceSummary:
    final_balance = balance_history[-1][1] if balance_history else start_balance
    return PerformanceSummary(
        start_balance=start_balance,
        final_balance=final_balance,
        total_return=(final_balance - start_balance) / start_balance if start_balance else 0.0,
        max_drawdown=max_drawdown(balance_history, start_balance),
        sharpe_ratio=sharpe_ratio(compute_returns(balance_history)),
        trading_days=len(balance_history),
    )
