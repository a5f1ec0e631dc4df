"""
Helius API client.
Provides enhanced transaction history for a wallet and DAS asset metadata.
"""

import logging
import requests
from typing import Dict, Any, List, Optional

from wallet_insights.services.base_client import ProviderClient
from wallet_insights.services.errors import ProviderError, format_api_error

logger = logging.getLogger(__name__)


class HeliusAPIClient:
    """Helius client for Solana transaction history and token metadata."""

    RPC_URL = "https://mainnet.helius-rpc.com"
    API_URL = "https://api-mainnet.helius-rpc.com/v0"

    def __init__(
        self,
        api_key: str,
        rpc_url: Optional[str] = None,
        api_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30
    ):
        """Initialize Helius API client.

        Args:
            api_key: Helius API key
            rpc_url: JSON-RPC endpoint (DAS methods)
            api_url: Enhanced transactions API base URL
            session: Optional requests session (shared by both endpoints)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        session = session or requests.Session()
        self.rpc = ProviderClient(rpc_url or self.RPC_URL, {"Content-Type": "application/json"}, session, timeout)
        self.api = ProviderClient(api_url or self.API_URL, None, session, timeout)

    def _rpc_call(self, method: str, params: Dict[str, Any], request_id: str = "1") -> Any:
        payload = self.rpc._make_request(
            "POST",
            "/",
            params={"api-key": self.api_key},
            json={"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
        )

        if not isinstance(payload, dict):
            raise ProviderError("Helius RPC payload is not an object")
        if payload.get('error'):
            error = payload['error']
            message = error.get('message') if isinstance(error, dict) else str(error)
            raise ProviderError(f"Helius RPC error: {message}")
        if 'result' not in payload:
            raise ProviderError("Helius RPC payload is missing a result field")

        return payload['result']

    def get_recent_transactions(
        self,
        wallet_address: str,
        limit: int = 20,
        tx_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get recent enhanced transactions for a wallet.

        Helius answers 404 when nothing matches in its search window; that is
        reported as an empty list.

        Args:
            wallet_address: Wallet address
            limit: Maximum number of transactions to return
            tx_type: Optional transaction type filter (e.g. SWAP)

        Returns:
            List of raw transaction payloads
        """
        params: Dict[str, Any] = {"api-key": self.api_key, "limit": limit}
        if tx_type:
            params["type"] = tx_type

        logger.debug(f"Getting transactions for wallet {wallet_address}")
        try:
            transactions = self.api._make_request(
                "GET",
                f"/addresses/{wallet_address}/transactions",
                params=params,
                allow_not_found=True
            )
            if transactions is None:
                logger.info(f"No transactions found for {wallet_address} in the search window")
                return []
            if not isinstance(transactions, list):
                raise ProviderError("Helius API returned invalid data format")
            return transactions
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch transactions from Helius") from e

    def get_asset_batch(self, mints: List[str]) -> List[Dict[str, Any]]:
        """Get DAS metadata for a batch of mints in a single call."""
        if not mints:
            return []

        try:
            result = self._rpc_call("getAssetBatch", {"ids": list(mints)}, request_id="token-resolve")
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch asset metadata from Helius") from e

        if not isinstance(result, list):
            return []
        return [asset for asset in result if isinstance(asset, dict)]

    def get_assets_by_owner(self, wallet_address: str) -> Dict[str, Any]:
        """Get the assets held by a wallet (first page, up to 1000 items)."""
        try:
            result = self._rpc_call(
                "getAssetsByOwner",
                {"ownerAddress": wallet_address, "page": 1, "limit": 1000}
            )
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch assets from Helius") from e

        if not isinstance(result, dict):
            raise format_api_error(ProviderError("unexpected result shape"), "Failed to fetch assets from Helius")
        return result


def extract_asset_symbol(asset: Dict[str, Any], max_length: int = 12) -> Optional[str]:
    """Pick the best display name from a DAS asset.

    Priority: metadata symbol, metadata name, token_info symbol. Long names
    (common for pump.fun tokens) are cut to max_length characters.
    """
    content = asset.get('content') if isinstance(asset.get('content'), dict) else {}
    metadata = content.get('metadata') if isinstance(content.get('metadata'), dict) else {}
    token_info = asset.get('token_info') if isinstance(asset.get('token_info'), dict) else {}

    symbol = metadata.get('symbol') or metadata.get('name') or token_info.get('symbol') or ''
    symbol = str(symbol).strip()
    if not symbol:
        return None
    return symbol[:max_length]
