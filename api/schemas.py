# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Response schemas
# PURPOSE: Pydantic models for the read-only status API
# CREATED: 17 OCT 2026
# ============================================================================
"""
API Schemas

Response models for the status API. Credentials never appear in them.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class RegistryStatusResponse(BaseModel):
    """One live checker and the latest result for its registry."""
    url: str
    name: str
    username: str = ""
    state: str
    started_at: Optional[str] = None
    probes: int = 0
    failures: int = 0
    latest_result: Optional[Dict[str, Any]] = Field(
        None,
        description="Latest rendered CheckResult for this URL",
    )


class RegistryListResponse(BaseModel):
    """Live registry checkers."""
    registries: List[RegistryStatusResponse]
    total: int


class MonitorStatusResponse(BaseModel):
    """Reconciler, stream and sink statistics."""
    status: str
    version: str
    config: Dict[str, Any]
    reconciler: Dict[str, Any]
    sink: Dict[str, Any]


__all__ = [
    "RegistryStatusResponse",
    "RegistryListResponse",
    "MonitorStatusResponse",
]
