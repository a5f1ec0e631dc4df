"""
BirdEye API client.
Provides wallet-level realized PnL and ROI used to enrich the PnL summary.
"""

import logging
import requests
from typing import Dict, Any, List, Optional

from wallet_insights.models.transactions import to_float
from wallet_insights.services.base_client import ProviderClient
from wallet_insights.services.errors import ProviderError, format_api_error

logger = logging.getLogger(__name__)


class BirdEyeAPIClient(ProviderClient):
    """BirdEye API client for Solana wallet data."""

    BASE_URL = "https://public-api.birdeye.so"

    def __init__(
        self,
        api_key: str,
        chain: str = "solana",
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30
    ):
        """Initialize BirdEye API client.

        Args:
            api_key: BirdEye API key
            chain: Blockchain to query (default: solana)
            base_url: Override for the API base URL
            session: Optional requests session
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.chain = chain
        headers = {
            "X-API-KEY": self.api_key,
            "x-chain": self.chain
        }
        super().__init__(base_url or self.BASE_URL, headers, session, timeout)

    def get_wallet_pnl(self, wallet_address: str) -> Dict[str, Any]:
        """Get realized PnL summary for a wallet.

        Args:
            wallet_address: Wallet address

        Returns:
            Normalized {total_profit, overall_roi, tokens} dictionary
        """
        try:
            response = self._make_request("GET", "/v1/wallet/pnl", params={"wallet": wallet_address})
            if not isinstance(response, dict):
                raise ProviderError("BirdEye response is not an object")
            if not response.get('success', False):
                raise ProviderError(response.get('message') or "BirdEye API returned an error response")
            if not isinstance(response.get('data'), dict):
                raise ProviderError("BirdEye response payload is missing data")
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch PnL from BirdEye") from e

        return self.normalize_wallet_pnl_response(response['data'])

    def normalize_wallet_pnl_response(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize wallet PnL response to consistent format."""
        tokens: List[Dict[str, Any]] = []
        for token in data.get('tokens') or []:
            if not isinstance(token, dict) or not token.get('token_address'):
                continue
            tokens.append({
                "token_address": str(token['token_address']),
                "symbol": token.get('symbol'),
                "profit": to_float(token.get('profit')),
                "roi": to_float(token.get('roi')),
            })

        return {
            "total_profit": to_float(data.get('total_profit')),
            "overall_roi": to_float(data.get('overall_roi')),
            "tokens": tokens,
        }
