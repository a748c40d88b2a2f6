# ============================================================================
# BASE CONTRACTS, ENUMS & ERRORS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Foundation - Core enums and error taxonomy
# PURPOSE: Shared status enums and exception classes for the monitor
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: RotationPolicy, CheckerState, RegistryMonitorError and subclasses
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the registry monitor.

Error taxonomy:
- RegistrySourceError: transient discovery failure, the cycle is skipped
- IdentityResolutionError: fatal at startup
- ClusterAccessError: fatal at startup

Probe failures are never raised; they travel as failed CheckResult records.
"""

from enum import Enum


# ============================================================================
# STATUS ENUMS
# ============================================================================

class RotationPolicy(str, Enum):
    """
    How the reconciler reacts to changed credentials under a stable URL.

    URL:          diff on URL only, running checkers keep the credentials
                  they were started with
    CREDENTIALS:  a changed credentials fingerprint replaces the checker
    """
    URL = "url"
    CREDENTIALS = "credentials"


class CheckerState(str, Enum):
    """
    Checker lifecycle states.

    State transitions:
        PENDING -> RUNNING -> STOPPING -> STOPPED
                -> STOPPED (stopped before first probe)
    """
    PENDING = "pending"      # Created, task not yet probing
    RUNNING = "running"      # Probe loop active
    STOPPING = "stopping"    # Stop signal raised, in-flight cycle finishing
    STOPPED = "stopped"      # Task finished

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self == CheckerState.STOPPED


# ============================================================================
# ERRORS
# ============================================================================

class RegistryMonitorError(Exception):
    """Base class for registry monitor errors."""


class RegistrySourceError(RegistryMonitorError):
    """The desired registry set could not be read."""


class IdentityResolutionError(RegistryMonitorError):
    """This process could not determine its own pod identity."""


class ClusterAccessError(RegistryMonitorError):
    """No usable Kubernetes API configuration was found."""


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RotationPolicy",
    "CheckerState",
    "RegistryMonitorError",
    "RegistrySourceError",
    "IdentityResolutionError",
    "ClusterAccessError",
]
