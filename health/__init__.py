# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Health check plugin system
# PURPOSE: Kubernetes probes for the monitor process
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Module

Plugin-based self checks for the registry monitor:
- /livez: Process alive (instant, for Kubernetes liveness probe)
- /readyz: Reconciler and result sink running
- /health: Every registered check, including Kubernetes API access

These report on the monitor, not on the registries it probes. Registry
health travels as CheckResult records.

Usage:
    from health import health_router, register_check

    @register_check(category="application")
    class MyCheck(HealthCheckPlugin):
        name = "my_check"

        async def check(self) -> HealthCheckResult:
            return HealthCheckResult.healthy()

    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthCheckCategory,
    AggregatedHealthResult,
)
from health.registry import (
    HealthCheckRegistry,
    register_check,
    get_registry,
)
from health.executor import HealthCheckExecutor
from health.router import health_router

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "HealthCheckCategory",
    "AggregatedHealthResult",
    # Registry
    "HealthCheckRegistry",
    "register_check",
    "get_registry",
    # Executor
    "HealthCheckExecutor",
    # Router
    "health_router",
]
