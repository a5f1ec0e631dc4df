"""
Wallet position snapshots and portfolio valuation series.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class TokenPosition:
    """Current holding of one token with its realized/unrealized PnL in USD."""
    symbol: str
    address: str
    name: str = ''
    balance: float = 0.0
    value: float = 0.0
    realized_pnl: Optional[float] = None
    unrealized_pnl: Optional[float] = None

    @property
    def total_pnl(self) -> float:
        return (self.realized_pnl or 0.0) + (self.unrealized_pnl or 0.0)


@dataclass
class WalletPositions:
    positions: List[TokenPosition] = field(default_factory=list)
    total_value: Optional[float] = None

    @property
    def net_worth(self) -> float:
        if self.total_value is not None:
            return self.total_value
        return sum(p.value or 0.0 for p in self.positions)


@dataclass
class PortfolioHistoryPoint:
    date: str  # YYYY-MM-DD
    value: float  # USD
