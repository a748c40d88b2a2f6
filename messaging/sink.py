# ============================================================================
# RESULT SINK
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Result stream consumer
# PURPOSE: Drain the result stream and render each result
# CREATED: 17 OCT 2026
# ============================================================================
"""
Result Sink

The single consumer of the result stream. Each result is handed to a
renderer (line-delimited JSON on stdout by default) and remembered as the
latest result for its URL, which backs the status API. Only the latest
result per URL is kept, pruned to the live registry set after each
refresh; there is no history.

A renderer failure is logged and the sink keeps draining, so a broken
output never stalls the checkers behind it.
"""

import asyncio
import sys
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import AbstractSet, Dict, Optional, TextIO

from core.logging import ComponentType, get_logger
from core.models import CheckResult, MAX_MESSAGE_LENGTH
from messaging.stream import ResultStream

logger = get_logger(__name__, ComponentType.SINK)


# ============================================================================
# RENDERERS
# ============================================================================

class ResultRenderer(ABC):
    """Abstract base for result renderers."""

    @abstractmethod
    def render(self, result: CheckResult) -> None:
        """Render or forward one result."""
        pass


class JsonLineRenderer(ResultRenderer):
    """Writes one JSON object per line, capping the message length."""

    def __init__(
        self,
        output: Optional[TextIO] = None,
        max_message_length: Optional[int] = MAX_MESSAGE_LENGTH,
    ):
        self._output = output
        self.max_message_length = max_message_length

    def render(self, result: CheckResult) -> None:
        output = self._output or sys.stdout
        output.write(result.to_json(self.max_message_length) + "\n")
        output.flush()


# ============================================================================
# SINK
# ============================================================================

class ResultSink:
    """Drains a ResultStream until stopped."""

    def __init__(
        self,
        stream: ResultStream,
        renderer: Optional[ResultRenderer] = None,
    ):
        """
        Initialize sink.

        Args:
            stream: Stream to drain
            renderer: Output renderer (JSON lines on stdout if not provided)
        """
        self.stream = stream
        self.renderer = renderer or JsonLineRenderer()

        self._latest: Dict[str, CheckResult] = {}
        self._task: Optional["asyncio.Task[None]"] = None
        self._running = False

        # Stats
        self._rendered = 0
        self._render_errors = 0
        self._last_result_at: Optional[datetime] = None

    def handle(self, result: CheckResult) -> None:
        """Render one result and record it as the latest for its URL."""
        self._latest[result.url] = result
        self._last_result_at = datetime.now(timezone.utc)
        try:
            self.renderer.render(result)
            self._rendered += 1
        except Exception as e:
            self._render_errors += 1
            logger.error(f"Failed to render result for {result.url}: {e}")

    async def run(self) -> None:
        """Drain the stream forever (until cancelled)."""
        self._running = True
        logger.info("Result sink started")
        try:
            async for result in self.stream:
                self.handle(result)
        finally:
            self._running = False
            logger.info(
                f"Result sink stopped. Stats: rendered={self._rendered}, "
                f"errors={self._render_errors}"
            )

    def start(self) -> "asyncio.Task[None]":
        """Run the sink as a background task."""
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="result-sink")
        return self._task

    async def stop(self) -> None:
        """Cancel the background task. Undrained results are dropped."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    # =========================================================================
    # STATS AND PROPERTIES
    # =========================================================================

    def latest(self, url: str) -> Optional[CheckResult]:
        """Latest result seen for a URL."""
        return self._latest.get(url)

    def prune(self, live_urls: AbstractSet[str]) -> None:
        """Drop latest results for URLs that no longer have a checker."""
        for url in [u for u in self._latest if u not in live_urls]:
            del self._latest[url]

    def latest_results(self) -> Dict[str, CheckResult]:
        """Copy of the latest result per URL."""
        return dict(self._latest)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_result_at(self) -> Optional[datetime]:
        return self._last_result_at

    @property
    def stats(self) -> Dict[str, object]:
        return {
            "running": self._running,
            "rendered": self._rendered,
            "render_errors": self._render_errors,
            "tracked_urls": len(self._latest),
            "last_result_at": self._last_result_at.isoformat() if self._last_result_at else None,
            "stream": self.stream.stats,
        }


__all__ = ["ResultRenderer", "JsonLineRenderer", "ResultSink"]
