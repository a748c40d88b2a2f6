# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core module initialization
# PURPOSE: Export core contracts and models
# LAST_REVIEWED: 17 OCT 2026
# ============================================================================

from core.contracts import (
    RotationPolicy,
    CheckerState,
    RegistryMonitorError,
    RegistrySourceError,
    IdentityResolutionError,
    ClusterAccessError,
)
from core.models import Registry, SourceIdentity, CheckResult

__all__ = [
    # Enums
    "RotationPolicy",
    "CheckerState",
    # Errors
    "RegistryMonitorError",
    "RegistrySourceError",
    "IdentityResolutionError",
    "ClusterAccessError",
    # Models
    "Registry",
    "SourceIdentity",
    "CheckResult",
]
