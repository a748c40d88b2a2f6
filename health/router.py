# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Kubernetes probes for the registry monitor itself
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez              - Process answers HTTP. No checks run.
    GET /readyz             - Checks marked required_for_ready (process,
                              config, reconciler, result_sink). A Kubernetes
                              API outage alone does not fail it: running
                              checkers keep probing with the last known set.
    GET /health             - Every registered check, with a per-category
                              summary.
    GET /health/{name}      - One check.

Status codes: 200 healthy, 206 degraded, 503 unhealthy, 404 unknown check.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from health.core import AggregatedHealthResult, HealthStatus
from health.executor import HealthCheckExecutor
from health.registry import get_registry
from __version__ import __version__, BUILD_DATE

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

READINESS_TIMEOUT = 10.0
FULL_CHECK_TIMEOUT = 30.0

_HTTP_CODES = {
    HealthStatus.HEALTHY: 200,
    HealthStatus.DEGRADED: 206,
    HealthStatus.UNHEALTHY: 503,
}


def _category_summary(result: AggregatedHealthResult) -> Dict[str, Dict[str, int]]:
    """Count statuses per check category."""
    registry = get_registry()
    summary: Dict[str, Dict[str, int]] = {}
    for name, check_result in result.checks.items():
        plugin = registry.get(name)
        if plugin is None:
            continue
        counts = summary.setdefault(
            plugin.category.value,
            {status.value: 0 for status in HealthStatus},
        )
        counts[check_result.status.value] += 1
    return summary


@health_router.get("/livez")
async def liveness_probe():
    """Liveness: the event loop is serving requests."""
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/readyz")
async def readiness_probe():
    """
    Readiness: reconciler and sink are up.

    Degraded counts as ready; only an unhealthy required check returns 503.
    """
    registry = get_registry()
    if len(registry) == 0:
        return {"status": "ready", "message": "No checks registered"}

    result = await HealthCheckExecutor(registry, overall_timeout=READINESS_TIMEOUT).execute_required()
    duration = round(result.total_duration_ms, 2)

    if result.status == HealthStatus.UNHEALTHY:
        failing = {
            name: check.to_dict()
            for name, check in result.checks.items()
            if check.status == HealthStatus.UNHEALTHY
        }
        logger.warning(f"Readiness failed: {', '.join(sorted(failing))}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "checks": failing, "total_duration_ms": duration},
        )

    return {"status": "ready", "checks_passed": len(result.checks), "total_duration_ms": duration}


@health_router.get("/health")
async def full_health_check():
    """All registered checks, including the non-required ones."""
    registry = get_registry()
    if len(registry) == 0:
        return {"status": HealthStatus.HEALTHY.value, "message": "No checks registered", "checks": {}}

    result = await HealthCheckExecutor(registry, overall_timeout=FULL_CHECK_TIMEOUT).execute_all()

    body: Dict[str, Any] = result.to_dict()
    body.update(
        version=__version__,
        build_date=BUILD_DATE,
        summary=_category_summary(result),
    )
    return JSONResponse(status_code=_HTTP_CODES[result.status], content=body)


@health_router.get("/health/{check_name}")
async def single_health_check(check_name: str):
    """Run one check by name."""
    result = await HealthCheckExecutor().execute_single(check_name)
    if result is None:
        return JSONResponse(
            status_code=404,
            content={"error": f"Health check not found: {check_name}"},
        )
    return JSONResponse(status_code=_HTTP_CODES[result.status], content=result.to_dict())


__all__ = ["health_router"]
