"""
Jupiter token list client.
"""

import logging
import requests
from typing import Dict, Any, List, Optional

from wallet_insights.services.base_client import ProviderClient
from wallet_insights.services.errors import ProviderError, format_api_error

logger = logging.getLogger(__name__)


class JupiterTokenListClient:
    """Fetches the strict list of well-known Solana tokens."""

    TOKEN_LIST_URL = "https://token.jup.ag/strict"

    def __init__(self, token_list_url: Optional[str] = None, session: Optional[requests.Session] = None, timeout: int = 30):
        self.client = ProviderClient(token_list_url or self.TOKEN_LIST_URL, None, session, timeout)

    def get_token_list(self) -> List[Dict[str, Any]]:
        """Get the full token list.

        Returns:
            List of {address, symbol, name, decimals} dictionaries
        """
        try:
            tokens = self.client._make_request("GET", "")
            if not isinstance(tokens, list):
                raise ProviderError("token list payload is not a list")
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch Jupiter token list") from e

        normalized = []
        for token in tokens:
            if not isinstance(token, dict) or not token.get('address'):
                continue
            normalized.append({
                "address": str(token['address']),
                "symbol": str(token.get('symbol') or ''),
                "name": str(token.get('name') or ''),
                "decimals": token.get('decimals'),
            })

        logger.info(f"Loaded {len(normalized)} Jupiter tokens")
        return normalized
