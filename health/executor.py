# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Concurrent health check execution
# PURPOSE: Execute health checks with timeouts and aggregation
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Executor

Runs the monitor's self checks concurrently, each under its own timeout,
inside an overall deadline. A check that raises or times out is reported
unhealthy; it never fails the endpoint itself.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    AggregatedHealthResult,
)
from health.registry import HealthCheckRegistry, get_registry

logger = logging.getLogger(__name__)


class HealthCheckExecutor:
    """Executes registered health checks."""

    def __init__(
        self,
        registry: Optional[HealthCheckRegistry] = None,
        overall_timeout: float = 30.0,
    ):
        """
        Initialize executor.

        Args:
            registry: Health check registry (uses global if None)
            overall_timeout: Max total execution time
        """
        self.registry = registry or get_registry()
        self.overall_timeout = overall_timeout

    async def execute_all(self) -> AggregatedHealthResult:
        """Execute every registered check."""
        return await self._execute(self.registry.get_checks_by_priority())

    async def execute_required(self) -> AggregatedHealthResult:
        """Execute only the checks required for /readyz."""
        return await self._execute(self.registry.get_required_checks())

    async def execute_single(self, name: str) -> Optional[HealthCheckResult]:
        """Execute a single check by name."""
        check = self.registry.get(name)
        if check is None:
            return None
        return await self._execute_check(check)

    async def _execute(self, checks: List[HealthCheckPlugin]) -> AggregatedHealthResult:
        start_time = time.monotonic()
        results: Dict[str, HealthCheckResult] = {}

        if checks:
            tasks = {
                check.name: asyncio.create_task(self._execute_check(check))
                for check in checks
            }
            done, pending = await asyncio.wait(
                tasks.values(),
                timeout=self.overall_timeout,
            )
            for task in pending:
                task.cancel()

            for name, task in tasks.items():
                if task in done:
                    results[name] = task.result()
                else:
                    logger.warning(
                        f"Health check {name} skipped: overall timeout "
                        f"({self.overall_timeout}s) exceeded"
                    )
                    results[name] = HealthCheckResult.unhealthy(
                        "Skipped: overall timeout exceeded"
                    )

        return AggregatedHealthResult(
            status=HealthStatus.aggregate([r.status for r in results.values()]),
            checks=results,
            total_duration_ms=(time.monotonic() - start_time) * 1000,
        )

    async def _execute_check(self, check: HealthCheckPlugin) -> HealthCheckResult:
        """Execute a single check with timeout."""
        start_time = time.monotonic()

        try:
            result = await asyncio.wait_for(check.check(), timeout=check.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Health check {check.name} timed out after {check.timeout_seconds}s")
            result = HealthCheckResult.unhealthy(f"Timeout after {check.timeout_seconds}s")
        except Exception as e:
            logger.error(f"Health check {check.name} failed: {e}")
            result = HealthCheckResult.from_exception(e)

        result.duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(f"Health check {check.name}: {result.status.value} ({result.duration_ms:.1f}ms)")
        return result


__all__ = ["HealthCheckExecutor"]
