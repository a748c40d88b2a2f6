# ============================================================================
# STARTUP HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Startup health checks
# PURPOSE: Basic process and configuration checks
# CREATED: 17 OCT 2026
# ============================================================================
"""
Startup Health Checks

Basic checks that run first (priority 10):
- ProcessCheck: Always healthy if process is running
- ConfigCheck: Effective configuration loaded
"""

import os
import platform
import sys

from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check
from health.checks import components


@register_check(category="startup")
class ProcessCheck(HealthCheckPlugin):
    """Always returns healthy if the check runs (proves process is alive)."""

    name = "process"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        return HealthCheckResult.healthy(
            message="Process running",
            python_version=sys.version,
            platform=platform.platform(),
            pid=os.getpid(),
        )


@register_check(category="startup")
class ConfigCheck(HealthCheckPlugin):
    """Reports the effective configuration."""

    name = "config"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        config = components.config
        if config is None:
            return HealthCheckResult.unhealthy(message="Configuration not loaded")

        settings = config.to_dict()
        if config.probe.insecure_tls:
            return HealthCheckResult.degraded(
                message="TLS verification disabled for registry probes",
                **settings,
            )
        return HealthCheckResult.healthy(message="Configuration loaded", **settings)


__all__ = ["ProcessCheck", "ConfigCheck"]
