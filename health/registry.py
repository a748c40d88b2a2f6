# ============================================================================
# HEALTH CHECK REGISTRY
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Health check plugin registration
# PURPOSE: Register and discover health check plugins
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Registry

Checks register an instance at import time through @register_check;
importing health.checks therefore populates the global registry.
"""

import logging
from typing import Dict, List, Optional, Type, Union

from health.core import HealthCheckPlugin, HealthCheckCategory

logger = logging.getLogger(__name__)


class HealthCheckRegistry:
    """Named set of health check instances."""

    def __init__(self):
        self._checks: Dict[str, HealthCheckPlugin] = {}
        self._initialized = False

    def register(self, check: HealthCheckPlugin) -> None:
        """Add a check; a check with the same name is replaced."""
        replaced = check.name in self._checks
        self._checks[check.name] = check
        if replaced:
            logger.warning(f"Health check {check.name} registered twice, keeping the latest")
        else:
            logger.debug(f"Registered health check {check.name} ({check.category.value})")

    def get(self, name: str) -> Optional[HealthCheckPlugin]:
        return self._checks.get(name)

    def get_checks_by_priority(self) -> List[HealthCheckPlugin]:
        """Every check, lowest priority value first."""
        return sorted(self._checks.values(), key=lambda check: (check.priority, check.name))

    def get_required_checks(self) -> List[HealthCheckPlugin]:
        """Checks that gate /readyz."""
        return [check for check in self.get_checks_by_priority() if check.required_for_ready]

    def clear(self) -> None:
        self._checks = {}
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """True once the app has wired its components into the checks."""
        return self._initialized

    def mark_initialized(self) -> None:
        self._initialized = True

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: str) -> bool:
        return name in self._checks


_registry: Optional[HealthCheckRegistry] = None


def get_registry() -> HealthCheckRegistry:
    """Process-wide registry."""
    global _registry
    if _registry is None:
        _registry = HealthCheckRegistry()
    return _registry


def register_check(
    category: Optional[Union[str, HealthCheckCategory]] = None,
    priority: Optional[int] = None,
    timeout_seconds: Optional[float] = None,
    required_for_ready: Optional[bool] = None,
):
    """
    Class decorator: apply overrides, then register one instance globally.

    A category override also resets the priority to that category's
    default unless priority is given too.
    """
    def decorator(cls: Type[HealthCheckPlugin]) -> Type[HealthCheckPlugin]:
        if category is not None:
            cls.category = HealthCheckCategory(category)
            cls.priority = cls.category.default_priority
        if priority is not None:
            cls.priority = priority
        if timeout_seconds is not None:
            cls.timeout_seconds = timeout_seconds
        if required_for_ready is not None:
            cls.required_for_ready = required_for_ready

        get_registry().register(cls())
        return cls

    return decorator


__all__ = [
    "HealthCheckRegistry",
    "get_registry",
    "register_check",
]
