"""
Token symbol resolution - two tiers:

1. Jupiter strict token list (bulk, cached with a TTL)
2. Helius DAS getAssetBatch for mints the list does not know (cached per mint)

Anything still unresolved is shown as a shortened mint address, so every
requested mint always gets a display string.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from wallet_insights.models.transactions import WSOL_MINT
from wallet_insights.pipeline.cache import TTLCache
from wallet_insights.services.errors import ProviderError
from wallet_insights.services.helius_client import extract_asset_symbol

logger = logging.getLogger(__name__)

TOKEN_LIST_TTL_SECONDS = 10 * 60
MAX_SYMBOL_LENGTH = 12


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: str
    name: str = ''
    decimals: Optional[int] = None


WRAPPED_SOL = TokenInfo(address=WSOL_MINT, symbol="SOL", name="Wrapped SOL", decimals=9)


def shorten_mint(mint: str) -> str:
    """Shorten a mint address to its first and last four characters."""
    if len(mint) > 10:
        return f"{mint[:4]}...{mint[-4:]}"
    return mint


class SymbolResolver:
    """Resolves mint addresses to display symbols."""

    def __init__(
        self,
        token_list_client,
        metadata_client=None,
        token_list_cache: Optional[TTLCache[Dict[str, TokenInfo]]] = None,
        per_mint_cache: Optional[Dict[str, str]] = None,
        ttl_seconds: float = TOKEN_LIST_TTL_SECONDS
    ):
        """Initialize the resolver.

        Args:
            token_list_client: Object exposing get_token_list() (bulk tier)
            metadata_client: Object exposing get_asset_batch(mints) (fallback tier);
                None disables the fallback tier
            token_list_cache: Cache for the bulk list
            per_mint_cache: Mint to symbol cache for fallback results
            ttl_seconds: Bulk list lifetime when no cache is supplied
        """
        self.token_list_client = token_list_client
        self.metadata_client = metadata_client
        self.token_list_cache = token_list_cache or TTLCache(ttl_seconds, name="token list")
        self.per_mint_cache = per_mint_cache if per_mint_cache is not None else {}

    def _fetch_token_list(self) -> Dict[str, TokenInfo]:
        tokens = self.token_list_client.get_token_list()
        mapping = {
            token['address']: TokenInfo(
                address=token['address'],
                symbol=token.get('symbol') or '',
                name=token.get('name') or '',
                decimals=token.get('decimals')
            )
            for token in tokens
        }
        mapping[WSOL_MINT] = WRAPPED_SOL
        logger.info(f"Loaded {len(mapping)} tokens into the symbol cache")
        return mapping

    def load_token_list(self) -> Dict[str, TokenInfo]:
        """Return the bulk token list, refreshing it when the cache has expired."""
        return self.token_list_cache.get_or_refresh(self._fetch_token_list) or {}

    def _resolve_via_metadata(self, unknown_mints: List[str]) -> Dict[str, str]:
        result: Dict[str, str] = {}
        to_fetch: List[str] = []

        for mint in unknown_mints:
            cached = self.per_mint_cache.get(mint)
            if cached:
                result[mint] = cached
            else:
                to_fetch.append(mint)

        if not to_fetch:
            return result

        if self.metadata_client is None:
            logger.warning("No metadata provider configured, skipping per-mint resolution")
            return result

        try:
            assets = self.metadata_client.get_asset_batch(to_fetch)
        except ProviderError as e:
            logger.warning(f"Per-mint metadata lookup failed: {e}")
            return result

        resolved = 0
        for asset in assets:
            mint = asset.get('id')
            if not mint:
                continue
            symbol = extract_asset_symbol(asset, MAX_SYMBOL_LENGTH)
            if symbol:
                result[mint] = symbol
                self.per_mint_cache[mint] = symbol
                resolved += 1

        logger.info(f"Metadata provider resolved {resolved}/{len(to_fetch)} unknown mints")
        return result

    def resolve_symbols(self, mints: Iterable[str]) -> Dict[str, str]:
        """Resolve many mints at once.

        Args:
            mints: Mint addresses

        Returns:
            Mapping with an entry for every requested mint
        """
        token_list = self.load_token_list()
        result: Dict[str, str] = {}
        unknowns: List[str] = []

        for mint in dict.fromkeys(mints):
            token = token_list.get(mint)
            if token and token.symbol:
                result[mint] = token.symbol
            else:
                unknowns.append(mint)

        if unknowns:
            result.update(self._resolve_via_metadata(unknowns))
            for mint in unknowns:
                if mint not in result:
                    result[mint] = shorten_mint(mint)

        return result

    def resolve_symbol(self, mint: str) -> str:
        """Resolve a single mint."""
        return self.resolve_symbols([mint])[mint]

    def get_token_info(self, mint: str) -> Optional[TokenInfo]:
        """Get the bulk-list entry for a mint, if any."""
        return self.load_token_list().get(mint)
