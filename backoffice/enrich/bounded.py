"""Bounded-concurrency secondary lookups and the capability latch.

The upstream degrades under bursts, so per-entity lookups (order details,
product images) run behind a semaphore. A lookup that fails leaves its
entity out of the result map; it never fails the batch.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Hashable, Iterable, Optional, TypeVar

from backoffice import metrics
from backoffice.upstream.models import ApiResult

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


async def enrich(
    keys: Iterable[K],
    fetch_one: Callable[[K], Awaitable[ApiResult[V]]],
    max_concurrent: int,
    capability: str = "enrichment",
) -> dict[K, V]:
    """
    Fetch secondary data for many entities with a cap on in-flight calls.

    Args:
        keys: Entity keys (duplicates are fetched once)
        fetch_one: Coroutine returning an ApiResult for one key
        max_concurrent: Maximum simultaneous fetch_one calls
        capability: Label for logs and metrics

    Returns:
        Map holding only the keys whose fetch succeeded with data. Returns
        after every worker has finished; cancelling the caller cancels the
        workers, and queued workers exit without taking a slot.
    """
    if max_concurrent < 1:
        raise ValueError("max_concurrent must be at least 1")

    unique_keys = list(dict.fromkeys(keys))
    results: dict[K, V] = {}
    if not unique_keys:
        return results

    semaphore = asyncio.Semaphore(max_concurrent)
    results_lock = asyncio.Lock()

    async def fetch_with_semaphore(key: K) -> None:
        async with semaphore:
            try:
                result = await fetch_one(key)
            except Exception as e:
                logger.debug(f"{capability}: fetch failed for {key}: {type(e).__name__}: {e}")
                metrics.record_enrichment_fetch(capability, False)
                return

            if not result.success or result.data is None:
                logger.debug(f"{capability}: no data for {key}: {result.first_message}")
                metrics.record_enrichment_fetch(capability, False)
                return

            async with results_lock:
                results[key] = result.data
            metrics.record_enrichment_fetch(capability, True)

    await asyncio.gather(*(fetch_with_semaphore(key) for key in unique_keys))

    logger.info(
        f"{capability}: {len(results)}/{len(unique_keys)} lookups succeeded "
        f"(max {max_concurrent} in flight)"
    )
    return results


class CapabilityLatch:
    """
    Latch that switches an enrichment capability off after an observed failure.

    It stays off for the life of its owner (the aggregator singleton, so
    effectively the process) until ``reset`` is called. Setting it twice to
    the same value is harmless, so concurrent trips need no lock.
    """

    def __init__(self, name: str):
        self.name = name
        self._available = True
        self.reason: Optional[str] = None
        self.tripped_at: Optional[datetime] = None
        metrics.set_capability_available(name, True)

    @property
    def available(self) -> bool:
        return self._available

    def trip(self, reason: Optional[str] = None):
        """Disable the capability until reset."""
        if self._available:
            logger.warning(f"Capability '{self.name}' unavailable, disabling future attempts: {reason}")
        self._available = False
        self.reason = reason
        self.tripped_at = datetime.now(timezone.utc)
        metrics.set_capability_available(self.name, False)

    def reset(self):
        """Re-enable the capability (administrative action)."""
        logger.info(f"Capability '{self.name}' reset")
        self._available = True
        self.reason = None
        self.tripped_at = None
        metrics.set_capability_available(self.name, True)

    def status(self) -> dict:
        return {
            "capability": self.name,
            "available": self._available,
            "reason": self.reason,
            "tripped_at": self.tripped_at.isoformat() if self.tripped_at else None,
        }
