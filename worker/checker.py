# ============================================================================
# REGISTRY CHECKER
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Per-registry probe loop
# PURPOSE: Probe one registry on a fixed interval until told to stop
# CREATED: 17 OCT 2026
# ============================================================================
"""
Registry Checker

One checker owns the recurring probe cycle of one registry. It runs as its
own asyncio task and talks to the rest of the system only through:
- its stop signal (raised by the reconciler, observed by the checker)
- the shared result stream (one result per cycle)

Cycle:
1. Stop signal raised? Exit (no probe, no partial result)
2. Probe the registry, tag the result with the source identity
3. Publish the result (may wait if the sink lags)
4. Sleep check_interval (ends early when the stop signal is raised)

Stopping is cooperative: an in-flight probe is never interrupted, so at
most one more result follows the stop signal. A failed probe is data,
never a reason for the loop to end.

A checker started for a URL whose previous checker is still finishing
waits for that task first, so two checkers never probe the same URL at
the same time.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.contracts import CheckerState
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import CheckResult, Registry, SourceIdentity
from messaging.stream import ResultStream
from worker.prober import Prober

logger = get_logger(__name__, ComponentType.CHECKER)


class RegistryChecker:
    """
    Lifecycle handle and probe loop for one registry.

    Created and stopped by the reconciler only.
    """

    def __init__(
        self,
        registry: Registry,
        check_interval: float,
        stream: ResultStream,
        prober: Prober,
        source: Optional[SourceIdentity] = None,
        predecessor: Optional["asyncio.Task[None]"] = None,
    ):
        """
        Initialize checker.

        Args:
            registry: Registry to probe (shared read-only)
            check_interval: Seconds between probes
            stream: Shared result stream
            prober: Prober used for every cycle
            source: Identity to tag results with (None disables tagging)
            predecessor: Task of a stopped checker for the same URL that
                must finish before this one probes
        """
        self.registry = registry
        self.check_interval = check_interval
        self._stream = stream
        self._prober = prober
        self._source = source
        self._predecessor = predecessor

        self._stop_event = asyncio.Event()
        self._task: Optional["asyncio.Task[None]"] = None
        self._state = CheckerState.PENDING

        # Stats
        self._started_at: Optional[datetime] = None
        self._probes = 0
        self._failures = 0
        self._last_result: Optional[CheckResult] = None

    @property
    def url(self) -> str:
        """Identity key of this checker."""
        return self.registry.url

    @property
    def state(self) -> CheckerState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        """True once the stop signal has been raised."""
        return self._stop_event.is_set()

    @property
    def task(self) -> Optional["asyncio.Task[None]"]:
        return self._task

    @property
    def last_result(self) -> Optional[CheckResult]:
        return self._last_result

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> "asyncio.Task[None]":
        """Schedule the probe loop as an independent task."""
        if self._task is not None:
            logger.warning(f"Checker for {self.url} already started")
            return self._task

        self._task = asyncio.create_task(self.run(), name=f"checker:{self.url}")
        return self._task

    def stop(self) -> None:
        """Raise the stop signal. Idempotent."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        if not self._state.is_terminal():
            self._state = CheckerState.STOPPING

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the task to finish.

        Returns:
            True if the task finished within the timeout
        """
        if self._task is None:
            return True
        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        return bool(done)

    # =========================================================================
    # PROBE LOOP
    # =========================================================================

    async def run(self) -> None:
        """Probe until stopped. Never returns a value."""
        with log_context(
            registry_url=self.registry.url,
            registry_name=self.registry.name,
            source=str(self._source) if self._source else None,
            component=ComponentType.CHECKER.value,
        ):
            try:
                if self._predecessor is not None and not self._predecessor.done():
                    logger.info("Waiting for previous checker of this registry to finish")
                    await asyncio.wait({self._predecessor})
                self._predecessor = None

                if not self.stop_requested:
                    self._state = CheckerState.RUNNING
                    self._started_at = datetime.now(timezone.utc)
                    log_checkpoint("checker_started", {"interval": self.check_interval})

                while not self.stop_requested:
                    result = await self._probe_once()
                    await self._stream.publish(result)

                    if await self._sleep():
                        break

            finally:
                self._state = CheckerState.STOPPED
                logger.info(
                    f"checker for '{self.registry.name}' registry has finished "
                    f"(probes={self._probes}, failures={self._failures})"
                )

    async def _probe_once(self) -> CheckResult:
        """Run one probe. Faults escaping the prober become failed results."""
        try:
            result = await self._prober.probe(
                self.registry.url,
                self.registry.username,
                self.registry.password,
            )
        except Exception as e:
            logger.exception(f"Prober raised for {self.url}: {e}")
            result = CheckResult.failed(self.url, f"probe error: {e}")

        result = result.with_source(self._source)

        self._probes += 1
        if not result.success:
            self._failures += 1
            logger.debug(f"Probe failed: {result.message}")
        self._last_result = result
        return result

    async def _sleep(self) -> bool:
        """
        Sleep check_interval.

        Returns:
            True if the stop signal was raised during the sleep
        """
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.check_interval)
            return True
        except asyncio.TimeoutError:
            return False

    # =========================================================================
    # STATS
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Read-only snapshot for status output (username only, never the password)."""
        return {
            "url": self.registry.url,
            "name": self.registry.name,
            "username": self.registry.username,
            "state": self._state.value,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "probes": self._probes,
            "failures": self._failures,
            "last_success": self._last_result.success if self._last_result else None,
        }


__all__ = ["RegistryChecker"]
