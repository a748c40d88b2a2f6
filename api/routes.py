# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - FastAPI route definitions
# PURPOSE: Read-only status endpoints for the registry monitor
# CREATED: 17 OCT 2026
# ============================================================================
"""
API Routes

Read-only view of the running monitor. Nothing here mutates the
reconciler; the live-checker map is only exposed as snapshots.
"""

import logging

from fastapi import APIRouter, HTTPException

from __version__ import __version__
from .schemas import (
    MonitorStatusResponse,
    RegistryListResponse,
    RegistryStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_reconciler = None
_sink = None
_config = None


def set_services(reconciler, sink, config=None):
    """Set service instances for dependency injection."""
    global _reconciler, _sink, _config
    _reconciler = reconciler
    _sink = sink
    _config = config


def get_reconciler():
    if _reconciler is None:
        raise HTTPException(500, "Reconciler not initialized")
    return _reconciler


def get_sink():
    if _sink is None:
        raise HTTPException(500, "Result sink not initialized")
    return _sink


# ============================================================================
# MONITOR STATUS
# ============================================================================

@router.get("/status", response_model=MonitorStatusResponse, tags=["Monitor"])
async def get_monitor_status():
    """
    Get monitor status and statistics.

    Returns reconciler metrics (cycles, refresh failures, live checkers),
    result sink counters and the effective configuration.
    """
    reconciler = get_reconciler()
    sink = get_sink()
    stats = reconciler.stats

    return MonitorStatusResponse(
        status="running" if stats["running"] else "stopped",
        version=__version__,
        config=_config.to_dict() if _config is not None else {},
        reconciler=stats,
        sink=sink.stats,
    )


# ============================================================================
# REGISTRIES
# ============================================================================

@router.get("/registries", response_model=RegistryListResponse, tags=["Registries"])
async def list_registries():
    """
    List registries with a live checker and their latest result.
    """
    reconciler = get_reconciler()
    sink = get_sink()

    registries = []
    for snapshot in reconciler.checker_snapshots():
        latest = sink.latest(snapshot["url"])
        registries.append(
            RegistryStatusResponse(
                url=snapshot["url"],
                name=snapshot["name"],
                username=snapshot["username"],
                state=snapshot["state"],
                started_at=snapshot["started_at"],
                probes=snapshot["probes"],
                failures=snapshot["failures"],
                latest_result=latest.to_dict() if latest is not None else None,
            )
        )

    return RegistryListResponse(registries=registries, total=len(registries))


__all__ = ["router", "set_services"]
