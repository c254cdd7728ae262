"""
Provider HTTP Client

Bounded-time HTTP client for the external context providers.

Features:
- Single attempt per call (no retries)
- Fixed 10 second connect/response timeout
- Uniform ProviderResult for success, failure and timeout
- Malformed bodies keep the raw text for diagnostics
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Callable

import httpx

logger = logging.getLogger(__name__)

# Safety-net timeout; the aggregator applies its own tighter deadline
REQUEST_TIMEOUT_SECONDS = 10.0

SUCCESS = "success"
TIMEOUT = "timeout"
FAILURE = "failure"


@dataclass
class ProviderConfig:
    """Request description for one external provider."""
    name: str
    url: str
    parse: Callable[[Any], Optional[Dict[str, Any]]]
    headers: Dict[str, str] = field(default_factory=dict)
    description: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of a single provider call."""
    status: str
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    raw_text: Optional[str] = None

    @classmethod
    def success(cls, payload: Dict[str, Any]) -> "ProviderResult":
        return cls(status=SUCCESS, payload=payload)

    @classmethod
    def timeout(cls) -> "ProviderResult":
        return cls(status=TIMEOUT, error="Request timeout")

    @classmethod
    def failure(cls, message: str, raw_text: Optional[str] = None) -> "ProviderResult":
        return cls(status=FAILURE, error=message, raw_text=raw_text)

    @property
    def ok(self) -> bool:
        """True when the provider returned a usable payload."""
        return self.status == SUCCESS and self.payload is not None


class ProviderClient:
    """
    HTTP client for context providers.

    Usage:
        async with ProviderClient() as client:
            result = await client.fetch(airtable_provider(api_key))
            if result.ok:
                print(result.payload["base_names"])
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize provider client.

        Args:
            timeout: Connect/response timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def initialize(self):
        """Create the underlying HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, provider: ProviderConfig) -> ProviderResult:
        """
        Call a provider once and normalize the outcome.

        Args:
            provider: Provider request description

        Returns:
            ProviderResult (never raises for HTTP or payload problems)
        """
        if not provider.enabled:
            logger.info(f"{provider.name}: skipped, not configured")
            return ProviderResult.failure(f"{provider.name} not configured")

        await self.initialize()

        try:
            response = await self._client.get(provider.url, headers=provider.headers)
        except httpx.TimeoutException:
            logger.warning(f"{provider.name}: request timeout after {self.timeout}s")
            return ProviderResult.timeout()
        except httpx.HTTPError as e:
            logger.error(f"{provider.name}: request error: {e}")
            return ProviderResult.failure(str(e) or type(e).__name__)

        text = response.text
        if response.status_code < 200 or response.status_code >= 300:
            logger.warning(f"{provider.name}: HTTP {response.status_code}")
            return ProviderResult.failure(f"HTTP {response.status_code}", raw_text=text)

        if not text:
            return ProviderResult.failure("Empty response")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"{provider.name}: invalid JSON: {e}")
            return ProviderResult.failure(e.msg, raw_text=text)

        try:
            payload = provider.parse(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"{provider.name}: malformed payload: {e}")
            return ProviderResult.failure(f"Malformed payload: {e}", raw_text=text)

        if payload is None:
            logger.info(f"{provider.name}: connected but returned no data")
            return ProviderResult.failure("No data returned")

        logger.debug(f"{provider.name}: {str(payload)[:200]}")
        return ProviderResult.success(payload)
