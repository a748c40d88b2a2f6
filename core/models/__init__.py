# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 17 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the registry monitor. Every model is frozen:
registries are shared read-only with their checker and results are
consumed exactly once by the sink.
"""

from core.models.registry import Registry
from core.models.result import SourceIdentity, CheckResult, MAX_MESSAGE_LENGTH

__all__ = [
    "Registry",
    "SourceIdentity",
    "CheckResult",
    "MAX_MESSAGE_LENGTH",
]
