"""
Mobula API client.
Provides current wallet positions with PnL and the historical balance series.
"""

import logging
import requests
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Optional

from wallet_insights.models.positions import PortfolioHistoryPoint, TokenPosition, WalletPositions
from wallet_insights.models.transactions import to_float, utc_datetime
from wallet_insights.services.base_client import ProviderClient
from wallet_insights.services.errors import ProviderError, format_api_error

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else to_float(value)


class MobulaAPIClient:
    """Mobula client for wallet valuation data."""

    BASE_URL = "https://api.mobula.io/api"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30
    ):
        self.api_key = api_key
        self.client = ProviderClient(base_url or self.BASE_URL, {"Authorization": api_key}, session, timeout)

    def get_wallet_positions(self, wallet_address: str) -> WalletPositions:
        """Get current token positions for a wallet.

        Args:
            wallet_address: Wallet address

        Returns:
            WalletPositions with the positions and their total USD value
        """
        try:
            payload = self.client._make_request(
                "GET", "/2/wallet/positions", params={"wallet": wallet_address, "blockchain": "solana"}
            )
            data = payload.get('data') if isinstance(payload, dict) else None
            if not isinstance(data, list):
                message = None
                if isinstance(payload, dict):
                    message = payload.get('error') or payload.get('message')
                raise ProviderError(message or "Mobula API response missing data")
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch wallet positions from Mobula") from e

        positions = []
        for item in data:
            if not isinstance(item, dict):
                continue
            token = item.get('token') if isinstance(item.get('token'), dict) else {}
            positions.append(TokenPosition(
                symbol=str(token.get('symbol') or ''),
                address=str(token.get('address') or ''),
                name=str(token.get('name') or ''),
                balance=to_float(item.get('balance')),
                value=to_float(item.get('amountUSD')),
                realized_pnl=_optional_float(item.get('realizedPnlUSD')),
                unrealized_pnl=_optional_float(item.get('unrealizedPnlUSD'))
            ))

        total_value = sum(p.value for p in positions)
        logger.info(f"Fetched {len(positions)} positions for {wallet_address}")
        return WalletPositions(positions=positions, total_value=total_value)

    def get_wallet_history(
        self,
        wallet_address: str,
        days: int = 30,
        now: Optional[datetime] = None
    ) -> List[PortfolioHistoryPoint]:
        """Get the daily USD balance series for the last `days` days.

        Multiple samples on the same UTC day collapse to the latest one.
        """
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=days)
        params = {
            "wallet": wallet_address,
            "blockchains": "solana",
            "from": int(start.timestamp() * 1000),
            "to": int(end.timestamp() * 1000),
        }

        try:
            payload = self.client._make_request("GET", "/1/wallet/history", params=params)
            data = payload.get('data') if isinstance(payload, dict) else None
            history = data.get('balance_history') if isinstance(data, dict) else None
            if not isinstance(history, list):
                raise ProviderError("Mobula history response missing balance_history")
        except ProviderError as e:
            raise format_api_error(e, "Failed to fetch portfolio history from Mobula") from e

        by_date: Dict[str, float] = {}
        for sample in sorted((s for s in history if isinstance(s, (list, tuple)) and len(s) >= 2), key=lambda s: to_float(s[0])):
            timestamp_ms, value = sample[0], sample[1]
            moment = utc_datetime(to_float(timestamp_ms) / 1000)
            if moment is None:
                logger.warning(f"Skipping balance sample with invalid timestamp {timestamp_ms!r}")
                continue
            by_date[moment.strftime('%Y-%m-%d')] = round(to_float(value), 2)

        if not by_date:
            raise format_api_error(ProviderError("empty balance history"), "Failed to fetch portfolio history from Mobula")

        return [PortfolioHistoryPoint(date=date, value=value) for date, value in sorted(by_date.items())]
