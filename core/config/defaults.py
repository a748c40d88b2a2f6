# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized settings for discovery, probing and result streaming
# CREATED: 17 OCT 2026
# ============================================================================
"""
Configuration Defaults

All settings are plain scalars read once at startup. Nothing in the
reconciliation engine depends on how they were supplied.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Validation at load time (bad values fail startup, not a later cycle)

Environment Variables:
    MONITOR_NAMESPACE:          Namespace searched for registry secrets
    UPDATE_CONFIG_INTERVAL_SEC: Seconds between desired-set refreshes
    CHECK_INTERVAL_SEC:         Seconds between probes of one registry
    DISCOVERY_HINT:             Label selector locating this pod (enables source tagging)
    ROTATION_POLICY:            "url" (default) or "credentials"
    SHUTDOWN_TIMEOUT:           Seconds to wait for checkers on shutdown
    PROBE_TIMEOUT_SEC:          Per-probe HTTP timeout
    REGISTRY_INSECURE_TLS:      "true" disables certificate verification
    RESULT_BUFFER_SIZE:         Result stream capacity
    KUBECONFIG:                 Kubeconfig path (in-cluster config when unset)
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.contracts import RotationPolicy


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DiscoveryDefaults:
    """
    Defaults for desired-set discovery and reconciliation.
    """
    namespace: str = "monitoring"
    refresh_interval: float = 30.0
    check_interval: float = 3.0
    discovery_hint: Optional[str] = None
    rotation_policy: RotationPolicy = RotationPolicy.URL
    shutdown_timeout: float = 30.0
    kubeconfig: Optional[str] = None

    @property
    def identity_enabled(self) -> bool:
        """Source tagging is on only when a discovery hint is configured."""
        return bool(self.discovery_hint)

    @classmethod
    def from_env(cls) -> "DiscoveryDefaults":
        """Create from environment variables."""
        return cls(
            namespace=os.getenv("MONITOR_NAMESPACE", "monitoring"),
            refresh_interval=float(os.getenv("UPDATE_CONFIG_INTERVAL_SEC", 30)),
            check_interval=float(os.getenv("CHECK_INTERVAL_SEC", 3)),
            discovery_hint=os.getenv("DISCOVERY_HINT") or None,
            rotation_policy=RotationPolicy(os.getenv("ROTATION_POLICY", "url").lower()),
            shutdown_timeout=float(os.getenv("SHUTDOWN_TIMEOUT", 30)),
            kubeconfig=os.getenv("KUBECONFIG") or None,
        )


@dataclass(frozen=True)
class ProbeDefaults:
    """
    Defaults for the registry probe.

    Certificate verification is on unless explicitly disabled for
    registries serving self-signed certificates.
    """
    timeout: float = 10.0
    insecure_tls: bool = False
    catalog_path: str = "/v2/_catalog"

    @classmethod
    def from_env(cls) -> "ProbeDefaults":
        """Create from environment variables."""
        return cls(
            timeout=float(os.getenv("PROBE_TIMEOUT_SEC", 10)),
            insecure_tls=_env_bool("REGISTRY_INSECURE_TLS"),
            catalog_path=os.getenv("PROBE_CATALOG_PATH", "/v2/_catalog"),
        )


@dataclass(frozen=True)
class StreamDefaults:
    """Defaults for the shared result stream."""
    buffer_size: int = 100

    @classmethod
    def from_env(cls) -> "StreamDefaults":
        """Create from environment variables."""
        return cls(buffer_size=int(os.getenv("RESULT_BUFFER_SIZE", 100)))


# ============================================================================
# GLOBAL CONFIG INSTANCE
# ============================================================================

@dataclass(frozen=True)
class MonitorConfig:
    """Container for all monitor configuration."""
    discovery: DiscoveryDefaults = field(default_factory=DiscoveryDefaults)
    probe: ProbeDefaults = field(default_factory=ProbeDefaults)
    stream: StreamDefaults = field(default_factory=StreamDefaults)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Reject values the engine cannot run with.

        Raises:
            ValueError: On the first invalid setting
        """
        if not self.discovery.namespace:
            raise ValueError("namespace must not be empty")
        if self.discovery.refresh_interval <= 0:
            raise ValueError(
                f"refresh interval must be positive, got {self.discovery.refresh_interval}"
            )
        if self.discovery.check_interval <= 0:
            raise ValueError(
                f"check interval must be positive, got {self.discovery.check_interval}"
            )
        if self.probe.timeout <= 0:
            raise ValueError(f"probe timeout must be positive, got {self.probe.timeout}")
        if self.stream.buffer_size < 1:
            raise ValueError(
                f"result buffer needs at least one slot, got {self.stream.buffer_size}"
            )

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        """Create all settings from environment variables."""
        return cls(
            discovery=DiscoveryDefaults.from_env(),
            probe=ProbeDefaults.from_env(),
            stream=StreamDefaults.from_env(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Effective settings for status and health output."""
        return {
            "namespace": self.discovery.namespace,
            "refresh_interval": self.discovery.refresh_interval,
            "check_interval": self.discovery.check_interval,
            "identity_enabled": self.discovery.identity_enabled,
            "discovery_hint": self.discovery.discovery_hint,
            "rotation_policy": self.discovery.rotation_policy.value,
            "probe_timeout": self.probe.timeout,
            "insecure_tls": self.probe.insecure_tls,
            "result_buffer_size": self.stream.buffer_size,
        }


_config: Optional[MonitorConfig] = None


def get_config() -> MonitorConfig:
    """Get global config instance."""
    global _config
    if _config is None:
        _config = MonitorConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (for testing)."""
    global _config
    _config = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DiscoveryDefaults",
    "ProbeDefaults",
    "StreamDefaults",
    "MonitorConfig",
    "get_config",
    "reset_config",
]
