"""
Native (SOL) size estimation for a transaction and conversion to USD using a
cached SOL price.
"""

import logging
from typing import Optional

from wallet_insights.models.transactions import LAMPORTS_PER_SOL, WSOL_MINT, RawTransaction
from wallet_insights.pipeline.cache import TTLCache

logger = logging.getLogger(__name__)

DUST_LAMPORTS = 1_000_000
PRICE_TTL_SECONDS = 60
DEFAULT_SOL_PRICE_USD = 170.0


def estimate_native_value(tx: RawTransaction, dust_lamports: int = DUST_LAMPORTS) -> float:
    """Estimate the SOL size of a transaction.

    Prefers the swap event's native legs, then wrapped SOL token legs, then
    the largest non-dust native transfer.
    """
    swap = tx.swap_event
    if swap is not None:
        native_in = swap.native_input.amount_sol if swap.native_input else 0.0
        native_out = swap.native_output.amount_sol if swap.native_output else 0.0
        if native_in > 0 or native_out > 0:
            return max(native_in, native_out)

        wsol_in = next((leg for leg in swap.token_inputs if leg.mint == WSOL_MINT), None)
        wsol_out = next((leg for leg in swap.token_outputs if leg.mint == WSOL_MINT), None)
        from_tokens = max(
            wsol_in.amount / LAMPORTS_PER_SOL if wsol_in else 0.0,
            wsol_out.amount / LAMPORTS_PER_SOL if wsol_out else 0.0
        )
        if from_tokens > 0:
            return from_tokens

    largest = 0.0
    for transfer in tx.native_transfers:
        if abs(transfer.amount) < dust_lamports:
            continue
        largest = max(largest, abs(transfer.amount) / LAMPORTS_PER_SOL)
    return largest


def estimate_quote_value(native_value: float, price: float) -> float:
    """Convert a SOL amount to USD."""
    return native_value * price


class SolPriceOracle:
    """SOL/USD price with a short-lived cache.

    get_price() never raises: a failed fetch serves the last cached price, or
    the configured default when no price was ever fetched.
    """

    def __init__(
        self,
        price_client,
        ttl_seconds: float = PRICE_TTL_SECONDS,
        default_price: float = DEFAULT_SOL_PRICE_USD,
        cache: Optional[TTLCache[float]] = None
    ):
        self.price_client = price_client
        self.default_price = default_price
        self.cache = cache or TTLCache(ttl_seconds, name="SOL price")

    def get_price(self) -> float:
        price = self.cache.get_or_refresh(self.price_client.get_sol_price_usd)
        if price is None:
            logger.warning(f"No SOL price available, using default ${self.default_price}")
            return self.default_price
        return price
