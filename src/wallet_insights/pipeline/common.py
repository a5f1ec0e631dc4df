"""
Common utilities and base classes for wallet reports.
Provides the shared provider collaborators, consistent rounding and the
fetch-then-interpret step most reports start from.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from wallet_insights.config.settings import Settings, get_settings, mask_api_key
from wallet_insights.models.analytics import InterpretedSwap
from wallet_insights.models.transactions import RawTransaction, parse_transactions
from wallet_insights.pipeline.cache import TTLCache
from wallet_insights.pipeline.interpreter import interpret_transactions
from wallet_insights.pipeline.symbols import SymbolResolver
from wallet_insights.pipeline.valuation import SolPriceOracle
from wallet_insights.services.birdeye_client import BirdEyeAPIClient
from wallet_insights.services.coingecko_client import CoinGeckoPriceClient
from wallet_insights.services.helius_client import HeliusAPIClient
from wallet_insights.services.jupiter_client import JupiterTokenListClient
from wallet_insights.services.mobula_client import MobulaAPIClient

logger = logging.getLogger(__name__)


def round_sol(value: float) -> float:
    return round(value, 6)


def round_usd(value: float) -> float:
    return round(value, 2)


def safe_value(value: Optional[float], digits: int) -> Optional[float]:
    """Round a value for output, mapping None and non-finite numbers to None."""
    if value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return round(value, digits)


def format_percentage(value: float) -> str:
    """Format a percentage with one decimal, e.g. 66.7%."""
    return f"{value:.1f}%"


class WalletServices:
    """Process-wide provider clients and caches shared by every report.

    Clients that need credentials are built on first use, so a missing key
    only fails the reports that actually need that provider.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        helius_client: Optional[HeliusAPIClient] = None,
        mobula_client: Optional[MobulaAPIClient] = None,
        birdeye_client: Optional[BirdEyeAPIClient] = None,
        token_list_client: Optional[JupiterTokenListClient] = None,
        price_client: Optional[CoinGeckoPriceClient] = None,
        session: Optional[requests.Session] = None
    ):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self._helius = helius_client
        self._mobula = mobula_client
        self._birdeye = birdeye_client
        self._token_list_client = token_list_client
        self._price_client = price_client
        self._resolver: Optional[SymbolResolver] = None
        self._price_oracle: Optional[SolPriceOracle] = None

    @property
    def helius(self) -> HeliusAPIClient:
        if self._helius is None:
            api_key = self.settings.get_helius_api_key()
            logger.info(f"Initializing Helius client with key {mask_api_key(api_key)}")
            self._helius = HeliusAPIClient(
                api_key,
                rpc_url=self.settings.api.helius_rpc_url,
                api_url=self.settings.api.helius_api_url,
                session=self.session,
                timeout=self.settings.api.timeout_seconds
            )
        return self._helius

    @property
    def mobula(self) -> MobulaAPIClient:
        if self._mobula is None:
            api_key = self.settings.get_mobula_api_key()
            logger.info(f"Initializing Mobula client with key {mask_api_key(api_key)}")
            self._mobula = MobulaAPIClient(
                api_key,
                base_url=self.settings.api.mobula_base_url,
                session=self.session,
                timeout=self.settings.api.timeout_seconds
            )
        return self._mobula

    @property
    def birdeye(self) -> Optional[BirdEyeAPIClient]:
        """BirdEye client, or None when no key is configured."""
        if self._birdeye is None:
            api_key = self.settings.get_birdeye_api_key()
            if not api_key:
                return None
            self._birdeye = BirdEyeAPIClient(
                api_key,
                base_url=self.settings.api.birdeye_base_url,
                session=self.session,
                timeout=self.settings.api.timeout_seconds
            )
        return self._birdeye

    def _metadata_client(self) -> Optional[HeliusAPIClient]:
        if self._helius is not None:
            return self._helius
        try:
            return self.helius
        except ValueError as e:
            logger.warning(f"Per-mint symbol lookup disabled: {e}")
            return None

    @property
    def resolver(self) -> SymbolResolver:
        if self._resolver is None:
            token_list_client = self._token_list_client or JupiterTokenListClient(
                token_list_url=self.settings.api.jupiter_token_list_url,
                session=self.session,
                timeout=self.settings.api.timeout_seconds
            )
            self._resolver = SymbolResolver(
                token_list_client,
                metadata_client=self._metadata_client(),
                token_list_cache=TTLCache(self.settings.cache.token_list_ttl_seconds, name="token list")
            )
        return self._resolver

    @property
    def price_oracle(self) -> SolPriceOracle:
        if self._price_oracle is None:
            price_client = self._price_client or CoinGeckoPriceClient(
                base_url=self.settings.api.coingecko_base_url,
                session=self.session,
                timeout=self.settings.api.timeout_seconds
            )
            self._price_oracle = SolPriceOracle(
                price_client,
                ttl_seconds=self.settings.cache.price_ttl_seconds,
                default_price=self.settings.cache.default_sol_price_usd
            )
        return self._price_oracle


class ReportBase(ABC):
    """Base class for all wallet reports with common functionality."""

    def __init__(self, report_name: str, services: WalletServices, wallet: str):
        """
        Initialize base report.

        Args:
            report_name: Name of the report for logging
            services: Shared provider clients and caches
            wallet: Wallet address the report is built for
        """
        self.report_name = report_name
        self.services = services
        self.wallet = wallet
        self.analytics = services.settings.analytics
        self.logger = logging.getLogger(f"{__name__}.{report_name}")

    def fetch_transactions(self, limit: Optional[int] = None, tx_type: Optional[str] = None) -> List[RawTransaction]:
        """Fetch and parse the wallet's recent transactions."""
        limit = limit or self.analytics.transaction_limit
        payload = self.services.helius.get_recent_transactions(self.wallet, limit=limit, tx_type=tx_type)
        transactions = parse_transactions(payload)
        self.logger.info(f"Fetched {len(transactions)} transactions for {self.wallet}")
        return transactions

    def interpret(
        self,
        transactions: List[RawTransaction],
        sol_price_usd: Optional[float] = None
    ) -> List[InterpretedSwap]:
        """Interpret transactions as swaps from the wallet's point of view."""
        return interpret_transactions(
            transactions,
            self.wallet,
            resolver=self.services.resolver,
            sol_price_usd=sol_price_usd,
            dust_lamports=self.analytics.dust_lamports
        )

    @abstractmethod
    def execute(self) -> Dict[str, Any]:
        """Build the report payload. Must be implemented by subclasses."""
        pass
