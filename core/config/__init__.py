# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the registry monitor.
"""

from core.config.defaults import (
    DiscoveryDefaults,
    ProbeDefaults,
    StreamDefaults,
    MonitorConfig,
    get_config,
    reset_config,
)

__all__ = [
    "DiscoveryDefaults",
    "ProbeDefaults",
    "StreamDefaults",
    "MonitorConfig",
    "get_config",
    "reset_config",
]
