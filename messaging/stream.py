# ============================================================================
# RESULT STREAM
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Shared result channel
# PURPOSE: Many checkers publish, one sink consumes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Result Stream

A bounded asyncio queue shared by every running checker (producers) and
drained by exactly one result sink (consumer).

Guarantees:
- Per-checker FIFO: a checker's results come out in probe order
- No cross-registry ordering
- Backpressure: publish() waits for a free slot when the sink lags;
  results are never dropped
- No persistence: results still queued at process exit are lost
"""

import asyncio
import logging
from typing import AsyncIterator

from core.models import CheckResult

logger = logging.getLogger(__name__)


class ResultStream:
    """Bounded many-producer, single-consumer result channel."""

    def __init__(self, maxsize: int = 100):
        """
        Initialize stream.

        Args:
            maxsize: Queue capacity (at least one slot)
        """
        if maxsize < 1:
            raise ValueError(f"ResultStream needs at least one slot, got {maxsize}")
        self.maxsize = maxsize
        self._queue: "asyncio.Queue[CheckResult]" = asyncio.Queue(maxsize=maxsize)
        self._published = 0
        self._consumed = 0

    async def publish(self, result: CheckResult) -> None:
        """Publish a result, waiting while the stream is full."""
        if self._queue.full():
            logger.debug(f"Result stream full ({self.maxsize}), {result.url} waiting")
        await self._queue.put(result)
        self._published += 1

    async def get(self) -> CheckResult:
        """Wait for and return the next result."""
        result = await self._queue.get()
        self._queue.task_done()
        self._consumed += 1
        return result

    def __aiter__(self) -> AsyncIterator[CheckResult]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[CheckResult]:
        while True:
            yield await self.get()

    def qsize(self) -> int:
        """Number of results waiting for the sink."""
        return self._queue.qsize()

    @property
    def stats(self) -> dict:
        """Stream counters."""
        return {
            "capacity": self.maxsize,
            "pending": self.qsize(),
            "published": self._published,
            "consumed": self._consumed,
        }


__all__ = ["ResultStream"]
