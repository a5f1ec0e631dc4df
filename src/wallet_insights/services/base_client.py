"""
Shared HTTP plumbing for the provider clients: per-client headers over a
possibly shared session and a bounded retry on rate limiting.
"""

import logging
import requests
from typing import Dict, Any, Optional
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from wallet_insights.services.errors import ProviderError, RateLimitedError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 4
BACKOFF_MULTIPLIER_SECONDS = 0.5
BACKOFF_MAX_SECONDS = 4
DEFAULT_TIMEOUT_SECONDS = 30


class ProviderClient:
    """Base class for JSON-over-HTTP provider clients."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT_SECONDS
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"accept": "application/json", **(headers or {})}

    @retry(
        retry=retry_if_exception_type(RateLimitedError),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=BACKOFF_MULTIPLIER_SECONDS, max=BACKOFF_MAX_SECONDS),
        reraise=True
    )
    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request, raising RateLimitedError on HTTP 429 so it is retried."""
        try:
            response = self.session.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise ProviderError(str(e)) from e

        if response.status_code == 429:
            logger.warning(f"Rate limited by {url}, backing off")
            raise RateLimitedError("rate limit exceeded (HTTP 429)", status_code=429)

        return response

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        allow_not_found: bool = False
    ) -> Any:
        """Make an HTTP request and decode the JSON body.

        Args:
            method: HTTP method
            endpoint: Path appended to the base URL (may be empty)
            params: Query parameters
            json: JSON request body
            allow_not_found: Return None instead of raising on HTTP 404

        Returns:
            Decoded JSON response, or None for an allowed 404
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")

        response = self._send(method, url, params=params or {}, json=json)

        if allow_not_found and response.status_code == 404:
            return None

        if response.status_code >= 400:
            raise ProviderError(
                f"request failed with status {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"invalid JSON payload: {e}") from e
