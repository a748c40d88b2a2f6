# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - FastAPI routes
# PURPOSE: Read-only status API
# CREATED: 17 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the registry monitor status.
"""

from .routes import router, set_services
from .schemas import (
    MonitorStatusResponse,
    RegistryListResponse,
    RegistryStatusResponse,
)

__all__ = [
    "router",
    "set_services",
    "MonitorStatusResponse",
    "RegistryListResponse",
    "RegistryStatusResponse",
]
