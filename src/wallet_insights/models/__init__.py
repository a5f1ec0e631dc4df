"""
Data models for the wallet insights pipeline.
"""

from .transactions import (
    RawTransaction,
    TokenTransfer,
    NativeTransfer,
    SwapEvent,
    TokenLeg,
    NativeLeg,
    ProgramInfo,
    parse_transactions,
)
from .analytics import (
    Direction,
    OrderType,
    InterpretedSwap,
    DailyPnlPoint,
    HourlyActivityPoint,
    SessionStat,
    BreakdownStat,
    FeeCompositionItem,
    VolumeFeeSummary,
    PositionMetrics,
    MaxDrawdownResult,
)
from .positions import TokenPosition, WalletPositions, PortfolioHistoryPoint

__all__ = [
    # Raw provider records
    "RawTransaction",
    "TokenTransfer",
    "NativeTransfer",
    "SwapEvent",
    "TokenLeg",
    "NativeLeg",
    "ProgramInfo",
    "parse_transactions",
    # Derived records
    "Direction",
    "OrderType",
    "InterpretedSwap",
    "DailyPnlPoint",
    "HourlyActivityPoint",
    "SessionStat",
    "BreakdownStat",
    "FeeCompositionItem",
    "VolumeFeeSummary",
    "PositionMetrics",
    "MaxDrawdownResult",
    # Positions
    "TokenPosition",
    "WalletPositions",
    "PortfolioHistoryPoint",
]
