"""
Swap interpretation: recovers direction, counterparties and the wallet's SOL
delta from a loosely-typed Helius transaction.

Strategies run in a fixed order and the first one that produces a result
wins:

1. Structured swap event (legs read directly, with a token-transfer lookup
   when routing through wrapped SOL leaves SOL on both sides)
2. Long-form description ("swapped 1.5 SOL for 300 BONK")
3. Short-form description ("SOL for BONK")
4. Transfer heuristic (wallet sent SOL and received a token, or the reverse)

Each strategy computes its own SOL delta so labels and signs always come
from the same tier.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from wallet_insights.models.analytics import Direction, InterpretedSwap
from wallet_insights.models.transactions import LAMPORTS_PER_SOL, WSOL_MINT, RawTransaction, SwapEvent
from wallet_insights.pipeline.orders import classify_order_type, is_swap_like
from wallet_insights.pipeline.symbols import shorten_mint
from wallet_insights.pipeline.valuation import DUST_LAMPORTS, estimate_native_value, estimate_quote_value

logger = logging.getLogger(__name__)

NATIVE_SYMBOLS = frozenset({'SOL', 'WSOL'})
STABLE_SYMBOLS = frozenset({'SOL', 'WSOL', 'USDC', 'USDT'})
NON_SYMBOL_WORDS = frozenset({'SWAPPED', 'UNKNOWN', 'TOKEN', 'FOR'})
MAX_SYMBOL_LENGTH = 12
UNKNOWN_ACTION = "Unknown Swap"

LONG_DESCRIPTION_PATTERN = re.compile(
    r'swapped\s+[\d,.]+\s+(\w+)\s+for\s+[\d,.]+\s+(\w+)',
    re.IGNORECASE
)
SHORT_DESCRIPTION_PATTERN = re.compile(r'([a-zA-Z]+)\s+for\s+([a-zA-Z]+)', re.IGNORECASE)


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of one interpretation strategy."""
    strategy: str
    from_symbol: str
    to_symbol: str
    native_delta: float
    direction: Optional[Direction] = None


Strategy = Callable[[RawTransaction, str, Mapping[str, str], int], Optional[StrategyResult]]


def _same_account(account: Optional[str], wallet: str) -> bool:
    return bool(account) and account.lower() == wallet.lower()


def symbol_for_mint(mint: str, symbols: Mapping[str, str]) -> str:
    if mint == WSOL_MINT:
        return 'SOL'
    return symbols.get(mint) or shorten_mint(mint)


def classify_direction(from_symbol: str, to_symbol: str) -> Direction:
    """Buy is stable-for-non-stable, sell is non-stable-for-stable."""
    if not from_symbol or not to_symbol:
        return Direction.UNKNOWN
    from_stable = from_symbol.upper() in STABLE_SYMBOLS
    to_stable = to_symbol.upper() in STABLE_SYMBOLS
    if from_stable and not to_stable:
        return Direction.BUY
    if not from_stable and to_stable:
        return Direction.SELL
    return Direction.UNKNOWN


def build_action(from_symbol: str, to_symbol: str) -> str:
    if from_symbol and to_symbol:
        return f"{from_symbol} -> {to_symbol}"
    if from_symbol:
        return f"{from_symbol} -> ?"
    if to_symbol:
        return f"? -> {to_symbol}"
    return UNKNOWN_ACTION


def event_native_delta(swap: SwapEvent) -> float:
    """SOL received minus SOL spent according to the swap event."""
    received = swap.native_output.amount_sol if swap.native_output else 0.0
    spent = swap.native_input.amount_sol if swap.native_input else 0.0
    return received - spent


def transfer_native_delta(tx: RawTransaction, wallet: str) -> float:
    """Net SOL moved into the wallet by native transfers."""
    delta = 0
    for transfer in tx.native_transfers:
        if _same_account(transfer.to_user_account, wallet):
            delta += transfer.amount
        if _same_account(transfer.from_user_account, wallet):
            delta -= transfer.amount
    return delta / LAMPORTS_PER_SOL


def collect_mints(tx: RawTransaction) -> List[str]:
    """Every mint referenced by the transaction, for batched resolution."""
    mints: Dict[str, None] = {}
    swap = tx.swap_event
    if swap is not None:
        for leg in swap.token_inputs + swap.token_outputs:
            if leg.mint:
                mints[leg.mint] = None
        if swap.native_input or swap.native_output:
            mints[WSOL_MINT] = None
    for transfer in tx.token_transfers:
        if transfer.mint:
            mints[transfer.mint] = None
    return list(mints)


def _non_native_mints(tx: RawTransaction) -> List[str]:
    return list(dict.fromkeys(t.mint for t in tx.token_transfers if t.mint and t.mint != WSOL_MINT))


def _counterparty_from_transfers(
    tx: RawTransaction,
    wallet: str,
    symbols: Mapping[str, str]
) -> Optional[Tuple[str, str, Direction]]:
    """Find the real token behind a SOL -> SOL swap event from the wallet's transfers."""
    for transfer in tx.token_transfers:
        if not transfer.mint or transfer.mint == WSOL_MINT:
            continue
        symbol = symbol_for_mint(transfer.mint, symbols)
        if _same_account(transfer.to_user_account, wallet):
            return 'SOL', symbol, Direction.BUY
        if _same_account(transfer.from_user_account, wallet):
            return symbol, 'SOL', Direction.SELL
    return None


def structured_event_strategy(
    tx: RawTransaction,
    wallet: str,
    symbols: Mapping[str, str],
    dust_lamports: int = DUST_LAMPORTS
) -> Optional[StrategyResult]:
    swap = tx.swap_event
    if swap is None:
        return None

    from_symbol = ''
    to_symbol = ''
    if swap.native_input:
        from_symbol = 'SOL'
    elif swap.token_inputs:
        from_symbol = symbol_for_mint(swap.token_inputs[0].mint, symbols)

    if swap.native_output:
        to_symbol = 'SOL'
    elif swap.token_outputs:
        to_symbol = symbol_for_mint(swap.token_outputs[0].mint, symbols)

    direction = None
    if from_symbol.upper() in NATIVE_SYMBOLS and to_symbol.upper() in NATIVE_SYMBOLS:
        # Routed through wrapped SOL: the memecoin only shows up in the transfers
        counterparty = _counterparty_from_transfers(tx, wallet, symbols)
        if counterparty:
            from_symbol, to_symbol, direction = counterparty
        else:
            others = _non_native_mints(tx)
            if others:
                token = symbol_for_mint(others[0], symbols)
                if swap.native_input:
                    from_symbol, to_symbol, direction = 'SOL', token, Direction.BUY
                else:
                    from_symbol, to_symbol, direction = token, 'SOL', Direction.SELL

    if not from_symbol and not to_symbol:
        return None

    return StrategyResult('structured_event', from_symbol, to_symbol, event_native_delta(swap), direction)


def _description_symbol(raw: str, symbols: Mapping[str, str]) -> str:
    if raw.isdigit():
        return ''
    if len(raw) <= MAX_SYMBOL_LENGTH:
        return raw.upper()
    # Descriptions sometimes carry a mint address in place of a symbol
    return symbols.get(raw) or shorten_mint(raw)


def long_description_strategy(
    tx: RawTransaction,
    wallet: str,
    symbols: Mapping[str, str],
    dust_lamports: int = DUST_LAMPORTS
) -> Optional[StrategyResult]:
    match = LONG_DESCRIPTION_PATTERN.search(tx.description)
    if not match:
        return None

    from_symbol = _description_symbol(match.group(1), symbols)
    to_symbol = _description_symbol(match.group(2), symbols)
    if not from_symbol and not to_symbol:
        return None

    return StrategyResult('long_description', from_symbol, to_symbol, transfer_native_delta(tx, wallet))


def short_description_strategy(
    tx: RawTransaction,
    wallet: str,
    symbols: Mapping[str, str],
    dust_lamports: int = DUST_LAMPORTS
) -> Optional[StrategyResult]:
    match = SHORT_DESCRIPTION_PATTERN.search(tx.description)
    if not match:
        return None

    from_symbol = match.group(1).upper()
    to_symbol = match.group(2).upper()
    if from_symbol in NON_SYMBOL_WORDS or to_symbol in NON_SYMBOL_WORDS:
        return None
    if len(from_symbol) > MAX_SYMBOL_LENGTH or len(to_symbol) > MAX_SYMBOL_LENGTH:
        return None

    return StrategyResult('short_description', from_symbol, to_symbol, transfer_native_delta(tx, wallet))


def transfer_strategy(
    tx: RawTransaction,
    wallet: str,
    symbols: Mapping[str, str],
    dust_lamports: int = DUST_LAMPORTS
) -> Optional[StrategyResult]:
    sent_sol = False
    received_sol = False
    for transfer in tx.native_transfers:
        # Anything under the dust threshold is rent or fees
        if abs(transfer.amount) < dust_lamports:
            continue
        if _same_account(transfer.from_user_account, wallet):
            sent_sol = True
        if _same_account(transfer.to_user_account, wallet):
            received_sol = True

    sent_mints: List[str] = []
    received_mints: List[str] = []
    for transfer in tx.token_transfers:
        if _same_account(transfer.from_user_account, wallet):
            sent_mints.append(transfer.mint)
        if _same_account(transfer.to_user_account, wallet):
            received_mints.append(transfer.mint)

    delta = transfer_native_delta(tx, wallet)

    def pick(mints: List[str]) -> str:
        preferred = [m for m in mints if m and m != WSOL_MINT] or [m for m in mints if m]
        return symbol_for_mint(preferred[0], symbols) if preferred else '?'

    if sent_sol and received_mints:
        return StrategyResult('transfers', 'SOL', pick(received_mints), delta, Direction.BUY)
    if sent_mints and received_sol:
        return StrategyResult('transfers', pick(sent_mints), 'SOL', delta, Direction.SELL)

    if sent_sol or received_sol or sent_mints or received_mints:
        others = [symbol_for_mint(m, symbols) for m in _non_native_mints(tx)]
        if len(others) >= 2:
            return StrategyResult('transfers', others[0], others[1], delta, Direction.UNKNOWN)
        return StrategyResult('transfers', '', others[0] if others else '', delta, Direction.UNKNOWN)

    return None


STRATEGIES: Tuple[Strategy, ...] = (
    structured_event_strategy,
    long_description_strategy,
    short_description_strategy,
    transfer_strategy,
)


def run_strategies(
    tx: RawTransaction,
    wallet: str,
    symbols: Mapping[str, str],
    dust_lamports: int = DUST_LAMPORTS,
    strategies: Iterable[Strategy] = STRATEGIES
) -> Optional[StrategyResult]:
    """Try each strategy in order and return the first result."""
    for strategy in strategies:
        result = strategy(tx, wallet, symbols, dust_lamports)
        if result is not None:
            return result
    return None


def _token_symbols(*candidates: str) -> List[str]:
    return list(dict.fromkeys(c.upper() for c in candidates if c and c != '?'))


def interpret_swap(
    tx: RawTransaction,
    wallet: str,
    symbols: Optional[Mapping[str, str]] = None,
    sol_price_usd: Optional[float] = None,
    dust_lamports: int = DUST_LAMPORTS,
    strategies: Iterable[Strategy] = STRATEGIES
) -> Optional[InterpretedSwap]:
    """Interpret one transaction from the wallet's point of view.

    Args:
        tx: Raw transaction
        wallet: Wallet address whose perspective sets direction and delta sign
        symbols: Mint to symbol mapping (see SymbolResolver.resolve_symbols)
        sol_price_usd: SOL price used for the USD value; None leaves it unset
        dust_lamports: Native transfers below this are ignored for direction
        strategies: Ordered interpretation strategies

    Returns:
        InterpretedSwap, or None when the record does not look like a swap
    """
    if not is_swap_like(tx):
        return None

    symbols = symbols or {}
    result = run_strategies(tx, wallet, symbols, dust_lamports, strategies)

    if result is None:
        from_symbol, to_symbol, strategy = '', '', 'none'
        native_delta = transfer_native_delta(tx, wallet)
        direction = Direction.UNKNOWN
    else:
        from_symbol, to_symbol, strategy = result.from_symbol, result.to_symbol, result.strategy
        native_delta = result.native_delta
        direction = result.direction or classify_direction(from_symbol, to_symbol)

    value_sol = estimate_native_value(tx, dust_lamports)
    value_usd = None
    if sol_price_usd is not None and value_sol > 0:
        value_usd = estimate_quote_value(value_sol, sol_price_usd)

    return InterpretedSwap(
        signature=tx.signature,
        timestamp=tx.timestamp,
        direction=direction,
        native_delta=native_delta,
        action=build_action(from_symbol, '' if to_symbol == '?' else to_symbol),
        token_symbols=_token_symbols(from_symbol, to_symbol),
        order_type=classify_order_type(tx),
        value_sol=value_sol,
        value_usd=value_usd,
        from_symbol=from_symbol,
        to_symbol=to_symbol,
        platform=tx.source or 'Unknown',
        status='failed' if tx.failed else 'success',
        strategy=strategy,
        fee_lamports=tx.fee
    )


def interpret_transactions(
    transactions: Iterable[RawTransaction],
    wallet: str,
    resolver=None,
    sol_price_usd: Optional[float] = None,
    dust_lamports: int = DUST_LAMPORTS
) -> List[InterpretedSwap]:
    """Interpret a batch, resolving every referenced mint in one call.

    Records that are not swaps, or that fail to interpret, are left out.
    """
    transactions = list(transactions)
    symbols: Mapping[str, str] = {}
    if resolver is not None:
        mints = list(dict.fromkeys(m for tx in transactions for m in collect_mints(tx)))
        if mints:
            symbols = resolver.resolve_symbols(mints)

    swaps = []
    for tx in transactions:
        try:
            swap = interpret_swap(tx, wallet, symbols, sol_price_usd, dust_lamports)
        except (TypeError, ValueError, AttributeError, IndexError) as e:
            logger.warning(f"Failed to interpret transaction {tx.signature}: {e}")
            continue
        if swap is not None:
            swaps.append(swap)

    logger.debug(f"Interpreted {len(swaps)}/{len(transactions)} transactions as swaps for {wallet}")
    return swaps
