"""
Error types shared by the provider clients and the analytics pipeline.
"""

from typing import Optional


class WalletInsightsError(Exception):
    """Base class for wallet insights errors."""


class ConfigurationError(WalletInsightsError, ValueError):
    """A required credential or setting is missing."""


class InvalidWalletError(WalletInsightsError, ValueError):
    """A wallet address is not a valid Solana public key."""


class ProviderError(WalletInsightsError):
    """An upstream provider call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    """The provider answered HTTP 429."""


def format_api_error(error: BaseException, context: str) -> ProviderError:
    """Wrap an error with a description of the operation that failed."""
    message = str(error) or "Unknown error"
    status_code = getattr(error, 'status_code', None)
    if isinstance(error, RateLimitedError):
        return RateLimitedError(f"{context}: {message}", status_code=status_code)
    return ProviderError(f"{context}: {message}", status_code=status_code)
