# ============================================================================
# WORKER MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Probe execution components
# PURPOSE: Registry probing and the per-registry checker task
# CREATED: 17 OCT 2026
# ============================================================================
"""
Worker Module

Components that do the actual checking:
- prober: One HTTP health check against a registry
- checker: The per-registry probe loop with cooperative stop
"""

from worker.prober import (
    Prober,
    RegistryProber,
    build_catalog_url,
)
from worker.checker import RegistryChecker

__all__ = [
    # Prober
    "Prober",
    "RegistryProber",
    "build_catalog_url",
    # Checker
    "RegistryChecker",
]
