"""
Portfolio series statistics: max drawdown, daily returns, sample standard
deviation, annualized Sharpe ratio and the simulated fallback history.
"""

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence

import numpy as np

from wallet_insights.models.analytics import MaxDrawdownResult
from wallet_insights.models.positions import PortfolioHistoryPoint

logger = logging.getLogger(__name__)

DEFAULT_RISK_FREE_RATE = 0.02
TRADING_DAYS_PER_YEAR = 252
SIMULATION_DAYS = 30
SIMULATION_VOLATILITY = 0.05
SIMULATION_FLOOR_RATIO = 0.3


def calculate_max_drawdown(points: Sequence[PortfolioHistoryPoint]) -> MaxDrawdownResult:
    """Largest peak-to-trough decline of a value series, in one forward pass.

    The percentage is zero or negative. Points that set a new high move the
    rolling peak and are not measured; a peak of exactly zero is skipped.
    """
    if not points:
        return MaxDrawdownResult(percentage=0.0, peak=0.0, trough=0.0)

    first = points[0]
    if len(points) == 1:
        return MaxDrawdownResult(
            percentage=0.0,
            peak=first.value,
            trough=first.value,
            peak_date=first.date,
            trough_date=first.date
        )

    peak, peak_date = first.value, first.date
    result = MaxDrawdownResult(
        percentage=0.0,
        peak=first.value,
        trough=first.value,
        peak_date=first.date,
        trough_date=first.date
    )

    for point in points[1:]:
        if point.value > peak:
            peak, peak_date = point.value, point.date
            continue
        if peak == 0:
            continue

        drawdown = (point.value - peak) / peak * 100
        if drawdown < result.percentage:
            result = MaxDrawdownResult(
                percentage=drawdown,
                peak=peak,
                trough=point.value,
                peak_date=peak_date,
                trough_date=point.date
            )

    return result


def calculate_daily_returns(points: Sequence[PortfolioHistoryPoint]) -> List[float]:
    """Simple returns between consecutive values, as fractions (0.01 == 1%).

    Non-finite values and zero-valued predecessors produce no return.
    """
    returns = []
    for previous, current in zip(points, points[1:]):
        if not (math.isfinite(previous.value) and math.isfinite(current.value)):
            continue
        if previous.value == 0:
            continue
        returns.append((current.value - previous.value) / previous.value)
    return returns


def calculate_standard_deviation(values: Sequence[float]) -> float:
    """Bessel-corrected sample standard deviation of the finite values."""
    finite = np.array([v for v in values if v is not None and math.isfinite(v)], dtype=float)
    if finite.size < 2:
        return 0.0
    std = float(np.std(finite, ddof=1))
    return std if std > 0 else 0.0


def calculate_sharpe_ratio(
    daily_returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS_PER_YEAR
) -> Optional[float]:
    """Annualized Sharpe ratio from daily returns, rounded to 4 decimals.

    Returns None with fewer than two finite returns, zero volatility, or a
    non-finite result.
    """
    finite = [r for r in daily_returns if r is not None and math.isfinite(r)]
    if len(finite) < 2:
        return None

    volatility = calculate_standard_deviation(finite)
    if volatility == 0:
        return None

    daily_risk_free = risk_free_rate / trading_days
    sharpe = (float(np.mean(finite)) - daily_risk_free) / volatility * math.sqrt(trading_days)
    if not math.isfinite(sharpe):
        return None
    return round(sharpe, 4)


def simulate_portfolio_history(
    net_worth: float,
    days: int = SIMULATION_DAYS,
    seed: Optional[int] = None,
    end_date: Optional[date] = None
) -> List[PortfolioHistoryPoint]:
    """Random-walk daily series ending at the current net worth.

    Each day moves by a uniform factor in [-5%, +5%] and never drops below 30%
    of the net worth. The last point is the net worth itself.

    Args:
        net_worth: Current portfolio value in USD
        days: Number of daily points
        seed: Seed for a reproducible walk
        end_date: Date of the final point (today, UTC, by default)
    """
    if not math.isfinite(net_worth) or net_worth <= 0 or days <= 0:
        return []

    end_date = end_date or datetime.now(timezone.utc).date()
    rng = np.random.default_rng(seed)
    floor = net_worth * SIMULATION_FLOOR_RATIO

    history = []
    value = net_worth
    for offset in range(days - 1, -1, -1):
        day = end_date - timedelta(days=offset)
        point_value = net_worth if offset == 0 else value
        history.append(PortfolioHistoryPoint(date=day.isoformat(), value=round(point_value, 2)))

        change = rng.uniform(-SIMULATION_VOLATILITY, SIMULATION_VOLATILITY)
        value = max(value * (1 + change), floor)

    logger.debug(f"Simulated {len(history)} days of portfolio history around ${net_worth:,.2f}")
    return history
