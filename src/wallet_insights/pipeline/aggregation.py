"""
Aggregation engine: pure folds over interpreted swaps, raw transactions and
position snapshots.

All functions return unrounded values; rounding happens when a report is
serialized. A record that cannot be placed (bad timestamp, non-numeric delta)
contributes zero instead of failing the whole aggregation.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from wallet_insights.models.analytics import (
    BreakdownStat,
    DailyPnlPoint,
    Direction,
    FeeCompositionItem,
    HourlyActivityPoint,
    InterpretedSwap,
    OrderType,
    PositionMetrics,
    SessionStat,
    VolumeFeeSummary,
)
from wallet_insights.models.positions import TokenPosition
from wallet_insights.models.transactions import LAMPORTS_PER_SOL, RawTransaction, utc_datetime

logger = logging.getLogger(__name__)

MAX_FEE_SLICES = 6
OTHER_BUCKET = "Other"
INFINITY_SYMBOL = "∞"


@dataclass(frozen=True)
class TradingSession:
    name: str
    start_hour: int
    end_hour: int


SESSIONS: Tuple[TradingSession, ...] = (
    TradingSession("Asia", 0, 8),
    TradingSession("Europe", 8, 16),
    TradingSession("US", 16, 24),
)

FRAME_COLUMNS = ['timestamp', 'date', 'hour', 'pnl', 'order_type', 'platform']


def _finite(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _order_type(value) -> OrderType:
    try:
        return OrderType(value)
    except ValueError:
        return OrderType.UNKNOWN


def swaps_to_frame(swaps: Iterable[InterpretedSwap]) -> pd.DataFrame:
    """Flatten swaps into a DataFrame with UTC date/hour buckets.

    Swaps whose timestamp cannot be converted are dropped with a warning.
    """
    rows = []
    for swap in swaps:
        moment = utc_datetime(swap.timestamp)
        if moment is None:
            logger.warning(f"Skipping swap {swap.signature} with invalid timestamp {swap.timestamp!r}")
            continue
        rows.append({
            'timestamp': int(swap.timestamp),
            'date': moment.strftime('%Y-%m-%d'),
            'hour': moment.hour,
            'pnl': _finite(swap.native_delta),
            'order_type': swap.order_type,
            'platform': swap.platform or 'Unknown',
        })
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def win_rate(pnls: Sequence[float]) -> float:
    """Percentage of strictly positive values; 0 for an empty sequence."""
    if len(pnls) == 0:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls) * 100


def daily_pnl(swaps: Iterable[InterpretedSwap]) -> List[DailyPnlPoint]:
    """Sum native deltas per UTC calendar date, ascending, dates with data only."""
    df = swaps_to_frame(swaps)
    if df.empty:
        return []

    grouped = df.groupby('date', sort=True)['pnl'].agg(['sum', 'count'])
    return [
        DailyPnlPoint(date=date, pnl=float(row['sum']), tx_count=int(row['count']))
        for date, row in grouped.iterrows()
    ]


def hourly_activity(swaps: Iterable[InterpretedSwap]) -> List[HourlyActivityPoint]:
    """24-bucket histogram by UTC hour of day."""
    df = swaps_to_frame(swaps)
    counts = df['hour'].value_counts() if not df.empty else pd.Series(dtype=int)
    return [HourlyActivityPoint(hour=hour, count=int(counts.get(hour, 0))) for hour in range(24)]


def session_for_hour(hour: int) -> Optional[TradingSession]:
    return next((s for s in SESSIONS if s.start_hour <= hour < s.end_hour), None)


def session_stats(swaps: Iterable[InterpretedSwap]) -> List[SessionStat]:
    """Fixed Asia/Europe/US buckets with count, PnL and positive-PnL win rate."""
    pnls_by_session: Dict[str, List[float]] = {s.name: [] for s in SESSIONS}
    df = swaps_to_frame(swaps)
    for hour, pnl in zip(df['hour'], df['pnl']):
        session = session_for_hour(int(hour))
        if session:
            pnls_by_session[session.name].append(float(pnl))

    stats = []
    for session in SESSIONS:
        pnls = pnls_by_session[session.name]
        total = sum(pnls)
        stats.append(SessionStat(
            session=session.name,
            start_hour=session.start_hour,
            end_hour=session.end_hour,
            tx_count=len(pnls),
            total_pnl=total,
            avg_pnl=total / len(pnls) if pnls else 0.0,
            win_rate=win_rate(pnls)
        ))
    return stats


def direction_counts(swaps: Iterable[InterpretedSwap]) -> Dict[str, int]:
    counts = {'buys': 0, 'sells': 0}
    for swap in swaps:
        if swap.direction == Direction.BUY:
            counts['buys'] += 1
        elif swap.direction == Direction.SELL:
            counts['sells'] += 1
    return counts


def long_short_ratio(buys: int, sells: int) -> Optional[str]:
    """buys/sells as a 2-decimal string, the infinity symbol when there are no sells."""
    if sells > 0:
        return f"{buys / sells:.2f}"
    if buys > 0:
        return INFINITY_SYMBOL
    return None


def position_metrics(positions: Iterable[TokenPosition]) -> PositionMetrics:
    """Largest gain/loss, average win/loss and profit factor over per-position PnL."""
    positions = list(positions)
    pnls = [(p.symbol, _finite(p.total_pnl)) for p in positions]
    wins = [pnl for _, pnl in pnls if pnl > 0]
    losses = [pnl for _, pnl in pnls if pnl < 0]

    largest_gain = max(pnls, key=lambda item: item[1], default=None)
    largest_loss = min(pnls, key=lambda item: item[1], default=None)
    if largest_gain is not None and largest_gain[1] <= 0:
        largest_gain = None
    if largest_loss is not None and largest_loss[1] >= 0:
        largest_loss = None

    gross_profit = sum(wins)
    gross_loss = abs(sum(losses))

    return PositionMetrics(
        largest_gain_usd=largest_gain[1] if largest_gain else None,
        largest_gain_symbol=largest_gain[0] if largest_gain else None,
        largest_loss_usd=largest_loss[1] if largest_loss else None,
        largest_loss_symbol=largest_loss[0] if largest_loss else None,
        average_win_usd=float(np.mean(wins)) if wins else None,
        average_loss_usd=float(np.mean(losses)) if losses else None,
        profit_factor=gross_profit / gross_loss if gross_loss > 0 else None,
        total_positions=len(positions),
        winning_positions=len(wins),
        losing_positions=len(losses)
    )


def average_trade_interval_minutes(swaps: Iterable[InterpretedSwap]) -> Optional[float]:
    """Mean gap between consecutive swaps in minutes; None with fewer than two gaps to use."""
    timestamps = sorted(int(s.timestamp) for s in swaps if utc_datetime(s.timestamp) is not None)
    if len(timestamps) < 2:
        return None

    gaps = [later - earlier for earlier, later in zip(timestamps, timestamps[1:])]
    gaps = [gap for gap in gaps if gap > 0]
    if not gaps:
        return None
    return sum(gaps) / len(gaps) / 60


def _breakdown(name: str, pnls: Sequence[float], total: int, order_type: Optional[OrderType] = None) -> BreakdownStat:
    total_pnl = sum(pnls)
    return BreakdownStat(
        name=name,
        count=len(pnls),
        percentage=len(pnls) / total * 100 if total else 0.0,
        total_pnl=total_pnl,
        avg_pnl=total_pnl / len(pnls) if pnls else 0.0,
        win_rate=win_rate(pnls),
        order_type=order_type
    )


def order_type_breakdown(swaps: Iterable[InterpretedSwap]) -> List[BreakdownStat]:
    """Per order type in Market/Limit/DCA/Unknown order; types without swaps are omitted."""
    swaps = list(swaps)
    pnls: Dict[OrderType, List[float]] = {t: [] for t in OrderType}
    for swap in swaps:
        pnls[_order_type(swap.order_type)].append(_finite(swap.native_delta))

    return [
        _breakdown(order_type.value, pnls[order_type], len(swaps), order_type)
        for order_type in OrderType
        if pnls[order_type]
    ]


def platform_breakdown(swaps: Iterable[InterpretedSwap]) -> List[BreakdownStat]:
    """Per platform, busiest first, tagged with the order type of its first swap."""
    swaps = list(swaps)
    pnls: Dict[str, List[float]] = {}
    first_type: Dict[str, OrderType] = {}
    for swap in swaps:
        platform = swap.platform or 'Unknown'
        pnls.setdefault(platform, []).append(_finite(swap.native_delta))
        first_type.setdefault(platform, _order_type(swap.order_type))

    stats = [_breakdown(name, values, len(swaps), first_type[name]) for name, values in pnls.items()]
    # Stable sort keeps first-seen order among ties
    return sorted(stats, key=lambda s: s.count, reverse=True)


def fee_composition(fees_by_source: Dict[str, int], max_slices: int = MAX_FEE_SLICES) -> List[FeeCompositionItem]:
    """Fee share per source in SOL, largest first.

    With more than max_slices sources the tail is folded into one "Other"
    bucket so that at most max_slices items are returned.
    """
    total = sum(fees_by_source.values())
    ordered = sorted(fees_by_source.items(), key=lambda item: item[1], reverse=True)
    items = [
        FeeCompositionItem(
            name=name,
            value=lamports / LAMPORTS_PER_SOL,
            percentage=lamports / total * 100 if total > 0 else 0.0
        )
        for name, lamports in ordered
    ]

    if len(items) <= max_slices:
        return items

    top, rest = items[:max_slices - 1], items[max_slices - 1:]
    other = FeeCompositionItem(
        name=OTHER_BUCKET,
        value=sum(item.value for item in rest),
        percentage=sum(item.percentage for item in rest)
    )
    return top + [other]


def volume_and_fees(transactions: Iterable[RawTransaction], max_slices: int = MAX_FEE_SLICES) -> VolumeFeeSummary:
    """Native volume, fee totals and fee composition over raw transactions."""
    transactions = list(transactions)
    fee_lamports = 0
    volume_lamports = 0
    fees_by_source: Dict[str, int] = {}

    for tx in transactions:
        fee = int(_finite(tx.fee))
        fee_lamports += fee
        source = tx.source or 'Unknown'
        fees_by_source[source] = fees_by_source.get(source, 0) + fee

        volume_lamports += sum(abs(int(_finite(t.amount))) for t in tx.native_transfers)
        swap = tx.swap_event
        if swap is not None:
            if swap.native_input:
                volume_lamports += abs(int(_finite(swap.native_input.amount)))
            if swap.native_output:
                volume_lamports += abs(int(_finite(swap.native_output.amount)))

    total_fees_sol = fee_lamports / LAMPORTS_PER_SOL
    return VolumeFeeSummary(
        total_volume_sol=volume_lamports / LAMPORTS_PER_SOL,
        total_fees_sol=total_fees_sol,
        total_transactions=len(transactions),
        avg_fee_per_tx_sol=total_fees_sol / len(transactions) if transactions else 0.0,
        fee_composition=fee_composition(fees_by_source, max_slices)
    )
