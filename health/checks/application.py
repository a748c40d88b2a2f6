# ============================================================================
# APPLICATION HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Application state checks
# PURPOSE: Reconciler and result sink liveness
# CREATED: 17 OCT 2026
# ============================================================================
"""
Application Health Checks

Application-level checks (priority 40):
- ReconcilerCheck: loop running and the desired set refreshed recently
- ResultSinkCheck: results are being drained
"""

from datetime import datetime, timezone

from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check
from health.checks import components

# Refreshes missed before the reconciler counts as stale
STALE_REFRESH_FACTOR = 3


@register_check(category="application")
class ReconcilerCheck(HealthCheckPlugin):
    """Reconciliation loop health."""

    name = "reconciler"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        reconciler = components.reconciler
        if reconciler is None:
            return HealthCheckResult.unhealthy(message="Reconciler not initialized")

        if not reconciler.is_running:
            return HealthCheckResult.unhealthy(message="Reconciler loop not running")

        stats = reconciler.stats
        details = {
            "live_checkers": stats["live_checkers"],
            "cycles": stats["cycles"],
            "refresh_failures": stats["refresh_failures"],
            "last_refresh_at": stats["last_refresh_at"],
            "last_error": stats["last_error"],
        }

        last_refresh = reconciler.last_refresh_at
        if last_refresh is None:
            return HealthCheckResult.degraded(
                message="No successful registry refresh yet",
                **details,
            )

        age = (datetime.now(timezone.utc) - last_refresh).total_seconds()
        if age > reconciler.refresh_interval * STALE_REFRESH_FACTOR:
            return HealthCheckResult.degraded(
                message=f"Registry set is stale ({age:.0f}s since last refresh)",
                **details,
            )

        return HealthCheckResult.healthy(
            message=f"Checking {stats['live_checkers']} registries",
            **details,
        )


@register_check(category="application")
class ResultSinkCheck(HealthCheckPlugin):
    """Result sink health."""

    name = "result_sink"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        sink = components.sink
        if sink is None:
            return HealthCheckResult.unhealthy(message="Result sink not initialized")

        if not sink.is_running:
            return HealthCheckResult.unhealthy(message="Result sink not draining")

        stream_stats = sink.stream.stats
        if stream_stats["pending"] >= stream_stats["capacity"]:
            return HealthCheckResult.degraded(
                message="Result stream full, checkers are waiting on the sink",
                **stream_stats,
            )

        return HealthCheckResult.healthy(message="Draining results", **stream_stats)


__all__ = ["ReconcilerCheck", "ResultSinkCheck", "STALE_REFRESH_FACTOR"]
