"""
Settings and configuration management for the wallet insights service.
Loads configuration from YAML files and environment variables.
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass

from wallet_insights.services.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class APIConfig:
    """External provider configuration settings."""
    helius_rpc_url: str = "https://mainnet.helius-rpc.com"
    helius_api_url: str = "https://api-mainnet.helius-rpc.com/v0"
    jupiter_token_list_url: str = "https://token.jup.ag/strict"
    mobula_base_url: str = "https://api.mobula.io/api"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    birdeye_base_url: str = "https://public-api.birdeye.so"
    timeout_seconds: int = 30


@dataclass
class CacheConfig:
    """Cache lifetimes and price fallback."""
    token_list_ttl_seconds: int = 600
    price_ttl_seconds: int = 60
    default_sol_price_usd: float = 170.0


@dataclass
class AnalyticsConfig:
    """Aggregation configuration."""
    default_wallet: str = "CuieVDEDtLo7FypA9SbLM9saXFdb1dsshEkyErMqkRQq"
    transaction_limit: int = 50
    transactions_table_limit: int = 20
    dust_lamports: int = 1_000_000
    max_fee_slices: int = 6
    risk_free_rate: float = 0.02
    trading_days_per_year: int = 252
    history_days: int = 30
    simulation_seed: int = 42
    fallback_net_worth_usd: float = 10_000.0


class Settings:
    """Main settings class that loads and manages all configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize settings.

        Args:
            config_path: Path to YAML configuration file. If None, uses default path.
        """
        self.config_path = config_path or self._get_default_config_path()
        self.config_data: Dict[str, Any] = {}
        self.load_config()

        self.api = self._load_api_config()
        self.cache = self._load_cache_config()
        self.analytics = self._load_analytics_config()

    def _get_default_config_path(self) -> str:
        """Get default configuration file path."""
        env_path = os.getenv('WALLET_INSIGHTS_CONFIG')
        if env_path:
            return env_path

        possible_paths = [
            "/app/config/dashboard_config.yaml",  # Docker path
            "config/dashboard_config.yaml",       # Relative path
            os.path.join(os.path.dirname(__file__), "..", "..", "..", "config", "dashboard_config.yaml")
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        return possible_paths[0]

    def load_config(self):
        """Load configuration from YAML file."""
        try:
            if os.path.exists(self.config_path):
                with open(self.config_path, 'r') as file:
                    self.config_data = yaml.safe_load(file) or {}
                logger.debug(f"Loaded configuration from {self.config_path}")
            else:
                logger.warning(f"Configuration file not found at {self.config_path}, using defaults")
                self.config_data = {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load configuration from {self.config_path}: {e}")
            self.config_data = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Configuration key (supports dot notation like 'analytics.transaction_limit')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        # Support environment variable override
        env_key = key.upper().replace('.', '_')
        env_value = os.getenv(env_key)
        if env_value is not None:
            if isinstance(default, bool):
                return env_value.lower() in ('true', '1', 'yes', 'on')
            elif isinstance(default, int):
                try:
                    return int(env_value)
                except ValueError:
                    pass
            elif isinstance(default, float):
                try:
                    return float(env_value)
                except ValueError:
                    pass
            else:
                return env_value

        keys = key.split('.')
        value = self.config_data

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def _load_api_config(self) -> APIConfig:
        """Load API configuration."""
        defaults = APIConfig()
        return APIConfig(
            helius_rpc_url=self.get('api.helius_rpc_url', defaults.helius_rpc_url),
            helius_api_url=self.get('api.helius_api_url', defaults.helius_api_url),
            jupiter_token_list_url=self.get('api.jupiter_token_list_url', defaults.jupiter_token_list_url),
            mobula_base_url=self.get('api.mobula_base_url', defaults.mobula_base_url),
            coingecko_base_url=self.get('api.coingecko_base_url', defaults.coingecko_base_url),
            birdeye_base_url=self.get('api.birdeye_base_url', defaults.birdeye_base_url),
            timeout_seconds=self.get('api.timeout_seconds', defaults.timeout_seconds)
        )

    def _load_cache_config(self) -> CacheConfig:
        """Load cache configuration."""
        defaults = CacheConfig()
        return CacheConfig(
            token_list_ttl_seconds=self.get('cache.token_list_ttl_seconds', defaults.token_list_ttl_seconds),
            price_ttl_seconds=self.get('cache.price_ttl_seconds', defaults.price_ttl_seconds),
            default_sol_price_usd=self.get('cache.default_sol_price_usd', defaults.default_sol_price_usd)
        )

    def _load_analytics_config(self) -> AnalyticsConfig:
        """Load analytics configuration."""
        defaults = AnalyticsConfig()
        return AnalyticsConfig(
            default_wallet=self.get('analytics.default_wallet', defaults.default_wallet),
            transaction_limit=self.get('analytics.transaction_limit', defaults.transaction_limit),
            transactions_table_limit=self.get('analytics.transactions_table_limit', defaults.transactions_table_limit),
            dust_lamports=self.get('analytics.dust_lamports', defaults.dust_lamports),
            max_fee_slices=self.get('analytics.max_fee_slices', defaults.max_fee_slices),
            risk_free_rate=self.get('analytics.risk_free_rate', defaults.risk_free_rate),
            trading_days_per_year=self.get('analytics.trading_days_per_year', defaults.trading_days_per_year),
            history_days=self.get('analytics.history_days', defaults.history_days),
            simulation_seed=self.get('analytics.simulation_seed', defaults.simulation_seed),
            fallback_net_worth_usd=self.get('analytics.fallback_net_worth_usd', defaults.fallback_net_worth_usd)
        )

    # Credentials

    def _get_api_key(self, env_name: str) -> str:
        api_key = (os.getenv(env_name) or '').strip()
        if not api_key:
            raise ConfigurationError(f"{env_name} environment variable is not set")
        return api_key

    def get_helius_api_key(self) -> str:
        """Get Helius API key from environment variables."""
        return self._get_api_key('HELIUS_API_KEY')

    def get_mobula_api_key(self) -> str:
        """Get Mobula API key from environment variables."""
        return self._get_api_key('MOBULA_API_KEY')

    def get_birdeye_api_key(self) -> Optional[str]:
        """Get BirdEye API key, or None when the optional enrichment is not configured."""
        api_key = (os.getenv('BIRDEYE_API_KEY') or '').strip()
        return api_key or None


def mask_api_key(api_key: str) -> str:
    """Mask an API key for logging."""
    return f"{api_key[:8]}...{api_key[-4:]}" if len(api_key) > 12 else "***"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from configuration file."""
    global _settings
    _settings = Settings()
    logger.info("Settings reloaded")


def get_api_config() -> APIConfig:
    """Get API configuration."""
    return get_settings().api


def get_cache_config() -> CacheConfig:
    """Get cache configuration."""
    return get_settings().cache


def get_analytics_config() -> AnalyticsConfig:
    """Get analytics configuration."""
    return get_settings().analytics
