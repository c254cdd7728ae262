"""
Context Aggregator

Fans out to every configured provider concurrently and races each call
against its own deadline. Whatever lands in time is kept; everything else is
recorded as unavailable so the caller can substitute fallback content.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, List, Dict

from .provider_client import ProviderClient, ProviderConfig, ProviderResult

logger = logging.getLogger(__name__)

# Per-provider deadline, tighter than the HTTP client's own timeout
PROVIDER_DEADLINE_SECONDS = 5.0


@dataclass
class AggregatedContext:
    """One ProviderResult per provider name."""
    results: Dict[str, ProviderResult] = field(default_factory=dict)

    def get(self, name: str) -> ProviderResult:
        """Result for a provider; unknown providers count as not configured."""
        result = self.results.get(name)
        if result is None:
            return ProviderResult.failure(f"{name} not configured")
        return result

    def is_available(self, name: str) -> bool:
        return self.get(name).ok

    @property
    def available(self) -> List[str]:
        return [name for name, result in self.results.items() if result.ok]


async def _race(
    client: ProviderClient,
    provider: ProviderConfig,
    deadline: float,
) -> ProviderResult:
    """
    Race one provider call against the deadline.

    On timeout the fetch task is cancelled, which closes its HTTP stream.
    Sibling races are unaffected.
    """
    started = time.monotonic()
    try:
        result = await asyncio.wait_for(client.fetch(provider), timeout=deadline)
    except asyncio.TimeoutError:
        logger.warning(f"{provider.name}: no result within {deadline}s deadline")
        return ProviderResult.timeout()
    except Exception as e:
        logger.error(f"{provider.name}: unexpected provider error: {e}", exc_info=True)
        return ProviderResult.failure(str(e) or type(e).__name__)

    elapsed = time.monotonic() - started
    logger.debug(f"{provider.name}: {result.status} in {elapsed:.2f}s")
    return result


async def aggregate(
    providers: List[ProviderConfig],
    deadline: float = PROVIDER_DEADLINE_SECONDS,
    client: Optional[ProviderClient] = None,
) -> AggregatedContext:
    """
    Query all providers concurrently, each bounded by the deadline.

    Args:
        providers: Providers to query
        deadline: Maximum wait per provider in seconds
        client: Optional open ProviderClient; a fresh one is used otherwise

    Returns:
        AggregatedContext (never raises for provider problems)
    """
    if not providers:
        return AggregatedContext()

    logger.info(f"Fetching context from: {', '.join(p.name for p in providers)}")
    started = time.monotonic()

    if client is None:
        async with ProviderClient() as owned_client:
            results = await asyncio.gather(
                *(_race(owned_client, p, deadline) for p in providers)
            )
    else:
        results = await asyncio.gather(*(_race(client, p, deadline) for p in providers))

    context = AggregatedContext(
        results={p.name: r for p, r in zip(providers, results)}
    )
    logger.info(
        f"Aggregation finished in {time.monotonic() - started:.2f}s: "
        f"{len(context.available)}/{len(providers)} providers available"
    )
    return context
