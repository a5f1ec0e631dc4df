"""
Order type classification from a transaction's source and program metadata.

Solana DEX order types:
- Market: regular AMM / aggregator swaps (Jupiter, Raydium, Orca, Meteora, ...)
- Limit:  Jupiter limit orders, OpenBook/Serum/Phoenix order book fills
- DCA:    Jupiter DCA program
"""

import re

from wallet_insights.models.analytics import OrderType
from wallet_insights.models.transactions import RawTransaction

DCA_KEYWORDS = ('dca', 'dollar cost', 'dollar-cost')

LIMIT_SOURCES = frozenset({
    'OPENBOOK',
    'OPENBOOK_V2',
    'SERUM',
    'SERUM_V3',
    'PHOENIX',
})

MARKET_SOURCES = frozenset({
    'JUPITER',
    'RAYDIUM',
    'ORCA',
    'METEORA',
    'LIFINITY',
    'ALDRIN',
    'SABER',
    'MARINADE',
    'WHIRLPOOL',
    'FLUXBEAM',
    'PUMP_FUN',
    'PUMP',
})

_FOR_WORD = re.compile(r'\bfor\b', re.IGNORECASE)


def is_swap_type(tx: RawTransaction) -> bool:
    return tx.type.upper() == 'SWAP'


def is_swap_like(tx: RawTransaction) -> bool:
    """True when the record carries any sign of being a swap."""
    if tx.swap_event is not None or is_swap_type(tx):
        return True
    description = tx.description.lower()
    return 'swap' in description or bool(_FOR_WORD.search(description))


def classify_order_type(tx: RawTransaction) -> OrderType:
    """Map a transaction to Market, Limit, DCA or Unknown. First matching rule wins."""
    source = tx.source.upper()
    description = tx.description.lower()
    program = tx.swap_event.program_info if tx.swap_event else None
    program_name = program.name.lower() if program else ''
    program_source = program.source.upper() if program else ''

    if (
        any(k in description for k in DCA_KEYWORDS)
        or any(k in program_name for k in DCA_KEYWORDS)
        or 'DCA' in source
        or 'DCA' in program_source
    ):
        return OrderType.DCA

    if (
        source in LIMIT_SOURCES
        or program_source in LIMIT_SOURCES
        or 'limit' in description
        or 'limit' in program_name
    ):
        return OrderType.LIMIT

    if source in MARKET_SOURCES or program_source in MARKET_SOURCES or is_swap_type(tx):
        return OrderType.MARKET

    return OrderType.UNKNOWN
