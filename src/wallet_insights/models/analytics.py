"""
Derived analytics records produced by the interpretation pipeline and the
aggregation engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"
    UNKNOWN = "unknown"


class OrderType(str, Enum):
    MARKET = "Market"
    LIMIT = "Limit"
    DCA = "DCA"
    UNKNOWN = "Unknown"


@dataclass
class InterpretedSwap:
    """Trading semantics recovered from one raw transaction for one wallet."""
    signature: str
    timestamp: int
    direction: Direction
    native_delta: float
    action: str
    token_symbols: List[str] = field(default_factory=list)
    order_type: OrderType = OrderType.UNKNOWN
    value_sol: float = 0.0
    value_usd: Optional[float] = None
    from_symbol: str = ''
    to_symbol: str = ''
    platform: str = 'Unknown'
    status: str = 'success'
    strategy: str = ''
    fee_lamports: int = 0


@dataclass
class DailyPnlPoint:
    date: str  # YYYY-MM-DD
    pnl: float  # SOL
    tx_count: int


@dataclass
class HourlyActivityPoint:
    hour: int  # 0-23 UTC
    count: int


@dataclass
class SessionStat:
    session: str
    start_hour: int
    end_hour: int
    tx_count: int
    total_pnl: float
    avg_pnl: float
    win_rate: float  # percent


@dataclass
class BreakdownStat:
    """Count and PnL summary for one order type or platform."""
    name: str
    count: int
    percentage: float
    total_pnl: float
    avg_pnl: float
    win_rate: float
    order_type: Optional[OrderType] = None


@dataclass
class FeeCompositionItem:
    name: str
    value: float  # SOL
    percentage: float


@dataclass
class VolumeFeeSummary:
    total_volume_sol: float
    total_fees_sol: float
    total_transactions: int
    avg_fee_per_tx_sol: float
    fee_composition: List[FeeCompositionItem] = field(default_factory=list)


@dataclass
class PositionMetrics:
    """Win/loss statistics computed over per-position PnL."""
    largest_gain_usd: Optional[float]
    largest_gain_symbol: Optional[str]
    largest_loss_usd: Optional[float]
    largest_loss_symbol: Optional[str]
    average_win_usd: Optional[float]
    average_loss_usd: Optional[float]
    profit_factor: Optional[float]
    total_positions: int
    winning_positions: int
    losing_positions: int


@dataclass
class MaxDrawdownResult:
    percentage: float
    peak: float
    trough: float
    peak_date: Optional[str] = None
    trough_date: Optional[str] = None
