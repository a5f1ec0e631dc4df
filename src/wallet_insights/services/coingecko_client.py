"""
CoinGecko price client for the native SOL/USD quote.
"""

import logging
import requests
from typing import Optional

from wallet_insights.services.base_client import ProviderClient
from wallet_insights.services.errors import ProviderError, format_api_error

logger = logging.getLogger(__name__)


class CoinGeckoPriceClient:

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None, timeout: int = 30):
        self.client = ProviderClient(base_url or self.BASE_URL, None, session, timeout)

    def get_sol_price_usd(self) -> float:
        """Get the current SOL price in USD."""
        try:
            data = self.client._make_request(
                "GET", "/simple/price", params={"ids": "solana", "vs_currencies": "usd"}
            )
            quote = data.get('solana') if isinstance(data, dict) else None
            price = quote.get('usd') if isinstance(quote, dict) else None
            if not isinstance(price, (int, float)) or isinstance(price, bool) or price <= 0:
                raise ProviderError(f"no usable SOL price in payload: {data}")
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch SOL price from CoinGecko") from e

        logger.debug(f"Current SOL price: ${price}")
        return float(price)
